"""
Provider registry.

The registry owns the hosting providers of an application: one instance per
``(provider_type, instance_id)``, constructed lazily on first use, reused by
every operation on every repository of that host, and disposed exactly once
by ``aclose()`` at shutdown.
"""

import asyncio
from collections.abc import Callable
from typing import Any

import structlog

from ckli_hosting.credentials.backend import SecretsStore
from ckli_hosting.enums import HostingProviderType
from ckli_hosting.exceptions import ProviderResolutionError, RegistryClosedError
from ckli_hosting.hosting.base import GitHostingProvider
from ckli_hosting.hosting.detector import DetectedProvider, GitHostingProviderDetector

log = structlog.get_logger(__name__)

ProviderKey = tuple[HostingProviderType, str]


class ProviderRegistry:
    """Cache of hosting providers keyed by ``(provider_type, instance_id)``.

    Example:
        >>> async with ProviderRegistry(secrets_store) as registry:
        ...     provider = await registry.require("git@github.com:owner/repo.git")
        ...     result = await provider.get_repository_info("owner", "repo")
    """

    def __init__(
        self,
        secrets_store: SecretsStore,
        detector: GitHostingProviderDetector | None = None,
    ) -> None:
        self.secrets_store = secrets_store
        self.detector = detector or GitHostingProviderDetector()
        self._providers: dict[ProviderKey, GitHostingProvider] = {}
        self._lock = asyncio.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def providers(self) -> list[GitHostingProvider]:
        return list(self._providers.values())

    def get(self, provider_type: HostingProviderType, instance_id: str) -> GitHostingProvider | None:
        """Return an already constructed provider, if any."""
        return self._providers.get((provider_type, instance_id.lower()))

    async def get_or_create(
        self,
        provider_type: HostingProviderType,
        instance_id: str,
        factory: Callable[[], GitHostingProvider],
    ) -> GitHostingProvider:
        """Return the cached provider, constructing it with ``factory`` on first use.

        Raises:
            RegistryClosedError: If the registry has been closed
        """
        key = (provider_type, instance_id.lower())
        async with self._lock:
            if self._closed:
                raise RegistryClosedError("Provider registry has been closed")

            provider = self._providers.get(key)
            if provider is None:
                provider = factory()
                self._providers[key] = provider
                log.debug("provider_registered", provider_type=str(provider_type), instance_id=instance_id)
            return provider

    async def create(self, type_name: str, host: str, **options: Any) -> GitHostingProvider | None:
        """Registry-backed ``GitHostingProviderDetector.create_provider``.

        Returns:
            The cached or new provider, or None for unknown type names
        """
        provider_type = HostingProviderType.from_name(type_name)
        if provider_type is None:
            return None

        detected = DetectedProvider(provider_type=provider_type, host=host.strip().lower(), **options)
        return await self._get_or_construct(detected)

    async def resolve(self, remote_url: str) -> GitHostingProvider | None:
        """Registry-backed ``GitHostingProviderDetector.resolve_provider``.

        Returns:
            The cached or new provider serving the URL, or None when it
            cannot be determined
        """
        detected = self.detector.identify(remote_url)
        if detected is None:
            return None
        return await self._get_or_construct(detected)

    async def require(self, remote_url: str) -> GitHostingProvider:
        """Like ``resolve`` but raise when no provider can be determined.

        Raises:
            ProviderResolutionError: If the provider cannot be determined
        """
        provider = await self.resolve(remote_url)
        if provider is None:
            raise ProviderResolutionError(
                f"Cannot determine the hosting provider for '{remote_url}'",
                remote_url=remote_url,
            )
        return provider

    async def aclose(self) -> None:
        """Dispose every provider once. Safe to call repeatedly."""
        async with self._lock:
            if self._closed:
                return
            self._closed = True
            providers = list(self._providers.values())
            self._providers.clear()

        for provider in providers:
            await provider.aclose()
        log.debug("provider_registry_closed", provider_count=len(providers))

    async def _get_or_construct(self, detected: DetectedProvider) -> GitHostingProvider:
        return await self.get_or_create(
            detected.provider_type,
            detected.host,
            lambda: self.detector.construct(detected, self.secrets_store),
        )

    async def __aenter__(self) -> "ProviderRegistry":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()
