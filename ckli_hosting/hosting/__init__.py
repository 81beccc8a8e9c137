"""Git hosting providers.

One contract (``GitHostingProvider``), four backends:

    - GitHubProvider: github.com and GitHub Enterprise Server
    - GitLabProvider: gitlab.com and self-managed GitLab
    - GiteaProvider: any Gitea instance
    - FileSystemProvider: bare repositories on the local disk

``GitHostingProviderDetector`` picks the backend for a remote URL and
``ProviderRegistry`` keeps one instance per host for the application.

Example:
    >>> from ckli_hosting.credentials import EnvironmentSecretsStore
    >>> from ckli_hosting.hosting import ProviderRegistry
    >>> async with ProviderRegistry(EnvironmentSecretsStore()) as registry:
    ...     provider = await registry.require("https://github.com/owner/repo")
    ...     result = await provider.archive_repository("owner", "repo")
"""

from ckli_hosting.hosting.base import GitHostingProvider
from ckli_hosting.hosting.detector import (
    DETECTION_STRATEGIES,
    INDETERMINATE,
    DetectedProvider,
    GitHostingProviderDetector,
)
from ckli_hosting.hosting.filesystem import FileSystemProvider, get_filesystem_provider
from ckli_hosting.hosting.gitea import GiteaProvider
from ckli_hosting.hosting.github import GitHubProvider
from ckli_hosting.hosting.gitlab import GitLabProvider
from ckli_hosting.hosting.keys import candidate_keys, key_prefix, pat_key
from ckli_hosting.hosting.models import (
    GitHostingDataResult,
    GitHostingOperationResult,
    HostedRepositoryInfo,
    RepositoryCreateOptions,
)
from ckli_hosting.hosting.registry import ProviderRegistry
from ckli_hosting.hosting.rest import HttpGitHostingProvider

__all__ = [
    # Contract
    "GitHostingProvider",
    "HttpGitHostingProvider",
    # Backends
    "GitHubProvider",
    "GitLabProvider",
    "GiteaProvider",
    "FileSystemProvider",
    "get_filesystem_provider",
    # Detection
    "GitHostingProviderDetector",
    "DetectedProvider",
    "DETECTION_STRATEGIES",
    "INDETERMINATE",
    "ProviderRegistry",
    # Models
    "GitHostingOperationResult",
    "GitHostingDataResult",
    "HostedRepositoryInfo",
    "RepositoryCreateOptions",
    # Credential keys
    "candidate_keys",
    "key_prefix",
    "pat_key",
]
