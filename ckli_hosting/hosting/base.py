"""
Abstract base class for hosting providers.

A hosting provider executes repository lifecycle operations (info, create,
archive, delete) against one backend and maps its quirks onto the common
result shapes of ``ckli_hosting.hosting.models``.
"""

from abc import ABC, abstractmethod
from typing import Any

import structlog

from ckli_hosting.enums import CloudProvider, HostingProviderType
from ckli_hosting.git.models import ParsedRemote
from ckli_hosting.git.parser import RemoteUrlParser
from ckli_hosting.hosting.models import (
    GitHostingDataResult,
    GitHostingOperationResult,
    HostedRepositoryInfo,
    RepositoryCreateOptions,
)

log = structlog.get_logger(__name__)


class GitHostingProvider(ABC):
    """Abstract base class for hosting provider implementations.

    This interface defines the contract that all hosting providers (GitHub,
    GitLab, Gitea, local file system) must fulfill. Implementations handle
    backend-specific quirks such as:
    - Different endpoints and HTTP verbs for the same operation
    - Namespace or organization resolution on creation
    - Empty-repository detection heuristics
    - Authentication header formats (Bearer, token, PRIVATE-TOKEN)

    All operations are async and never raise for expected failures: HTTP
    errors, transport errors and invalid local paths are returned as failed
    results, after being logged.

    A provider instance is built once per (type, host) pair and is safe to
    share between concurrent operations on many repositories. Call
    ``aclose()`` once at shutdown; extra calls are no-ops.
    """

    provider_type: HostingProviderType

    def __init__(
        self,
        instance_id: str,
        base_url: str,
        base_api_url: str,
        cloud_provider: CloudProvider = CloudProvider.UNKNOWN,
        is_default_public: bool = False,
    ) -> None:
        """Initialize provider identity.

        Args:
            instance_id: Host name identifying this instance (e.g., "github.com")
            base_url: Web authority of the host (e.g., "https://github.com")
            base_api_url: Root of the REST API; a trailing slash is enforced
            cloud_provider: Public SaaS this instance is, if any
            is_default_public: Visibility of created repositories when the
                create options do not say
        """
        if not base_api_url.endswith("/"):
            # Relative request paths resolve against the last segment otherwise
            base_api_url = base_api_url + "/"

        self._instance_id = instance_id
        self._base_url = base_url
        self._base_api_url = base_api_url
        self._cloud_provider = cloud_provider
        self._is_default_public = is_default_public
        self._closed = False

    @property
    def instance_id(self) -> str:
        return self._instance_id

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def base_api_url(self) -> str:
        """Root URL of the API, always ending with ``/``."""
        return self._base_api_url

    @property
    def cloud_provider(self) -> CloudProvider:
        return self._cloud_provider

    @property
    def is_default_public(self) -> bool:
        return self._is_default_public

    @property
    def can_archive_repository(self) -> bool:
        return True

    @property
    def closed(self) -> bool:
        return self._closed

    def repository_location(self, owner: str, name: str) -> str:
        """Human-readable location of a repository, used in log messages."""
        return f"{self._base_url.rstrip('/')}/{owner}/{name}"

    def accepts_host(self, host: str) -> bool:
        """Check whether a remote host belongs to this provider instance.

        Cloud instances also answer for their ``www.`` alias, which the
        detector maps onto them.
        """
        host = host.lower()
        if self._cloud_provider is not CloudProvider.UNKNOWN:
            host = host.removeprefix("www.")
        return host == self._instance_id.split(":", 1)[0].lower()

    def parse_remote_url(self, url: str) -> ParsedRemote | None:
        """Parse a remote URL that belongs to this provider instance.

        Args:
            url: Remote URL in any supported dialect

        Returns:
            ParsedRemote, or None if the URL is unparseable or points to a
            different host
        """
        parsed = RemoteUrlParser.parse_remote(url)
        if parsed is None or not self.accepts_host(parsed.host):
            return None
        return parsed

    @abstractmethod
    async def get_repository_info(
        self,
        owner: str,
        name: str,
        must_exist: bool = True,
    ) -> GitHostingDataResult[HostedRepositoryInfo]:
        """Get the state of a hosted repository.

        Args:
            owner: Owner path (user, organization, or nested group path)
            name: Repository name
            must_exist: When True an absent repository is a failure (logged as
                an error); when False it is a success whose data is the
                default ``HostedRepositoryInfo`` with ``exists=False``

        Returns:
            Result carrying a fully populated HostedRepositoryInfo on success.
        """
        pass

    @abstractmethod
    async def create_repository(
        self,
        options: RepositoryCreateOptions,
    ) -> GitHostingDataResult[HostedRepositoryInfo]:
        """Create a repository.

        Organization (or group) namespaces are tried first; GitHub and Gitea
        fall back once to the authenticated user's namespace when the
        organization does not exist.

        Args:
            options: Owner, name and optional backend-specific settings

        Returns:
            Result carrying the created repository on success. Naming
            conflicts are failed results, not exceptions.
        """
        pass

    @abstractmethod
    async def archive_repository(
        self,
        owner: str,
        name: str,
        archive: bool = True,
    ) -> GitHostingOperationResult:
        """Archive (or unarchive) a repository.

        Idempotent: when the repository is already in the requested state the
        call succeeds, logs a notice and sends no state change.

        Args:
            owner: Owner path
            name: Repository name
            archive: True to archive, False to unarchive

        Returns:
            Operation result
        """
        pass

    @abstractmethod
    async def delete_repository(self, owner: str, name: str) -> GitHostingOperationResult:
        """Delete a repository.

        Args:
            owner: Owner path
            name: Repository name

        Returns:
            Success only on a definitive deletion response. Insufficient
            privileges are reported as authentication errors carrying the
            host's own explanation.
        """
        pass

    async def aclose(self) -> None:
        """Release the provider's resources. Safe to call repeatedly."""
        self._closed = True

    async def __aenter__(self) -> "GitHostingProvider":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    def _missing_repository(
        self,
        owner: str,
        name: str,
        must_exist: bool,
    ) -> GitHostingDataResult[HostedRepositoryInfo]:
        if not must_exist:
            return GitHostingDataResult.ok(HostedRepositoryInfo())

        message = f"Expected Git repository at '{self.repository_location(owner, name)}' is missing."
        log.error(
            "repository_missing",
            message=message,
            instance_id=self._instance_id,
            repo_path=f"{owner}/{name}",
        )
        return GitHostingDataResult.fail(message, status_code=404)

    def _already_in_state(self, owner: str, name: str, archive: bool) -> GitHostingOperationResult:
        location = self.repository_location(owner, name)
        if archive:
            log.info(
                "repository_already_archived",
                message=f"Repository '{location}' is already archived.",
                instance_id=self._instance_id,
            )
        else:
            log.info(
                "repository_not_archived",
                message=f"Repository '{location}' is not archived.",
                instance_id=self._instance_id,
            )
        return GitHostingOperationResult.ok()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(instance_id={self._instance_id!r}, base_api_url={self._base_api_url!r})"
