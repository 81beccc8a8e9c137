"""
Hosting provider detection from a bare remote URL.

Detection runs an explicit, ordered list of strategies. Each strategy is a
pure function of the host name that returns a provider type, ``None`` (no
opinion, try the next one) or ``INDETERMINATE`` (the host cannot be
identified without probing its API). Detection never guesses: an
indeterminate or unknown host yields no provider, and the caller falls back
to explicit configuration (``HostingSettings.hosts``), which is consulted
before any strategy.

Example:
    >>> detector = GitHostingProviderDetector()
    >>> provider = await detector.resolve_provider(store, "git@github.com:owner/repo.git")
    >>> provider.cloud_provider
    <CloudProvider.GITHUB: 'GitHub'>
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal
from urllib.parse import urlsplit

import httpx
import structlog

from ckli_hosting.config.settings import HostingSettings
from ckli_hosting.credentials.backend import SecretsStore
from ckli_hosting.enums import AccessLevel, HostingProviderType
from ckli_hosting.git.parser import RemoteUrlParser
from ckli_hosting.hosting.base import GitHostingProvider
from ckli_hosting.hosting.filesystem import FILESYSTEM_BASE_URL, get_filesystem_provider
from ckli_hosting.hosting.gitea import GiteaProvider, default_gitea_api_url
from ckli_hosting.hosting.github import GitHubProvider
from ckli_hosting.hosting.gitlab import GitLabProvider
from ckli_hosting.hosting.keys import pat_key

log = structlog.get_logger(__name__)


class Detection(Enum):
    INDETERMINATE = "indeterminate"


INDETERMINATE = Detection.INDETERMINATE

DetectionOutcome = HostingProviderType | Literal[Detection.INDETERMINATE] | None
DetectionStrategy = Callable[[str], DetectionOutcome]

WELL_KNOWN_HOSTS = {
    "github.com": HostingProviderType.GITHUB,
    "gitlab.com": HostingProviderType.GITLAB,
}

HOSTNAME_MARKERS = (
    ("github", HostingProviderType.GITHUB),
    ("gitlab", HostingProviderType.GITLAB),
    ("gitea", HostingProviderType.GITEA),
)


def detect_well_known_host(host: str) -> DetectionOutcome:
    """Public SaaS hosts: github.com and gitlab.com."""
    return WELL_KNOWN_HOSTS.get(_cloud_host(host))


def detect_hostname_pattern(host: str) -> DetectionOutcome:
    """Self-hosted instances whose name reveals the software (git.gitlab.acme.org)."""
    for marker, provider_type in HOSTNAME_MARKERS:
        if marker in host:
            return provider_type
    return None


def detect_requires_credentials(host: str) -> DetectionOutcome:
    """Any other host can only be identified by probing its API with a token."""
    return INDETERMINATE


DETECTION_STRATEGIES: tuple[DetectionStrategy, ...] = (
    detect_well_known_host,
    detect_hostname_pattern,
    detect_requires_credentials,
)


def _cloud_host(host: str) -> str:
    return host.removeprefix("www.")


@dataclass(frozen=True)
class DetectedProvider:
    """Provider identity derived from a remote URL, before construction.

    Attributes:
        provider_type: Detected provider implementation
        host: Instance id (host, with port when the URL carries one)
        api_url: Explicit API root from configuration, if any
        is_default_public: Default visibility from configuration
    """

    provider_type: HostingProviderType
    host: str
    api_url: str | None = None
    is_default_public: bool = False


class GitHostingProviderDetector:
    """Select or construct the hosting provider for a remote URL."""

    def __init__(
        self,
        settings: HostingSettings | None = None,
        strategies: Sequence[DetectionStrategy] = DETECTION_STRATEGIES,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the detector.

        Args:
            settings: Explicit host map and transport settings
            strategies: Ordered detection strategies
            transport: httpx transport handed to every constructed provider
        """
        self.settings = settings or HostingSettings()
        self.strategies = tuple(strategies)
        self._transport = transport

    def detect(self, host: str) -> DetectionOutcome:
        """Run the strategies in order; the first opinion wins."""
        for strategy in self.strategies:
            outcome = strategy(host)
            if outcome is not None:
                log.debug("provider_detected", host=host, strategy=strategy.__name__, outcome=str(outcome.value))
                return outcome
        return None

    def identify(self, remote_url: str) -> DetectedProvider | None:
        """Work out which provider serves a remote URL, without constructing it.

        Args:
            remote_url: Remote URL in any supported dialect

        Returns:
            DetectedProvider, or None when the URL is unparseable or the host
            cannot be identified
        """
        if remote_url and remote_url.strip().lower().startswith(FILESYSTEM_BASE_URL):
            return DetectedProvider(HostingProviderType.FILESYSTEM, "filesystem", is_default_public=True)

        normalized = RemoteUrlParser.try_normalize_to_https(remote_url)
        if normalized is None:
            log.warning("unparseable_remote_url", remote_url=remote_url)
            return None

        parts = urlsplit(normalized)
        host = parts.hostname or ""
        authority = parts.netloc

        configured = self.settings.hosts.get(host)
        if configured is not None:
            return DetectedProvider(
                provider_type=HostingProviderType.from_name(configured.provider),  # type: ignore[arg-type]
                host=authority,
                api_url=configured.api_url,
                is_default_public=configured.is_default_public,
            )

        outcome = self.detect(host)
        if isinstance(outcome, HostingProviderType):
            if detect_well_known_host(host) is not None:
                authority = _cloud_host(host)
            return DetectedProvider(provider_type=outcome, host=authority)

        if outcome is INDETERMINATE:
            log.warning(
                "provider_detection_indeterminate",
                message=(
                    f"Cannot identify the hosting provider of '{host}' from its name. "
                    f"Declare it under 'hosts' in the configuration."
                ),
                host=host,
                candidate_key=pat_key(host, AccessLevel.WRITE),
            )
        return None

    def create_provider(
        self,
        type_name: str,
        host: str,
        secrets_store: SecretsStore,
        api_url: str | None = None,
        is_default_public: bool = False,
    ) -> GitHostingProvider | None:
        """Construct a provider whose type is already known.

        Args:
            type_name: ``github``, ``gitlab``, ``gitea`` or ``filesystem``
                (case-insensitive; full type names are accepted too)
            host: Host of the instance, used as instance id
            secrets_store: Lookup for personal access tokens
            api_url: Explicit API root; Gitea defaults to https://{host}/api/v1/
            is_default_public: Default visibility of created repositories

        Returns:
            The provider, or None for unknown type names
        """
        provider_type = HostingProviderType.from_name(type_name)
        if provider_type is None:
            return None
        return self.construct(DetectedProvider(provider_type, host, api_url, is_default_public), secrets_store)

    async def resolve_provider(self, secrets_store: SecretsStore, remote_url: str) -> GitHostingProvider | None:
        """Detect and construct the provider serving a remote URL.

        Stages: URL normalization, explicit configuration, well-known host,
        hostname pattern, then the credential-gated stage which never guesses.

        Args:
            secrets_store: Lookup for personal access tokens
            remote_url: Remote URL or SSH string

        Returns:
            The provider, or None when it cannot be determined
        """
        detected = self.identify(remote_url)
        if detected is None:
            return None
        return self.construct(detected, secrets_store)

    def construct(self, detected: DetectedProvider, secrets_store: SecretsStore) -> GitHostingProvider:
        """Build the provider for an identity returned by ``identify``."""
        if detected.provider_type is HostingProviderType.FILESYSTEM:
            return get_filesystem_provider()

        kwargs: dict[str, Any] = self.settings.transport_settings()
        kwargs["transport"] = self._transport

        if detected.provider_type is HostingProviderType.GITHUB:
            return GitHubProvider(
                secrets_store,
                detected.host,
                api_url=detected.api_url,
                is_default_public=detected.is_default_public,
                **kwargs,
            )
        if detected.provider_type is HostingProviderType.GITLAB:
            return GitLabProvider(
                secrets_store,
                detected.host,
                api_url=detected.api_url,
                is_default_public=detected.is_default_public,
                **kwargs,
            )
        return GiteaProvider(
            secrets_store,
            detected.host,
            api_url=detected.api_url or default_gitea_api_url(detected.host),
            is_default_public=detected.is_default_public,
            **kwargs,
        )
