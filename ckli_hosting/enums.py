"""Enumerations for hosting providers and credential access levels."""

from enum import Enum


class CloudProvider(str, Enum):
    """Well-known public SaaS hosting services.

    Any host other than the public service itself (GitHub Enterprise,
    self-managed GitLab, every Gitea) is ``UNKNOWN`` and addressed by its
    literal host name.
    """

    GITHUB = "GitHub"
    GITLAB = "GitLab"
    UNKNOWN = "Unknown"

    def __str__(self) -> str:
        return self.value


class HostingProviderType(str, Enum):
    """Concrete hosting provider implementations.

    The value is the provider type name exposed by ``provider_type``.
    """

    GITHUB = "GitHubProvider"
    GITLAB = "GitLabProvider"
    GITEA = "GiteaProvider"
    FILESYSTEM = "FileSystemProvider"

    def __str__(self) -> str:
        return self.value

    @property
    def short_name(self) -> str:
        """Lowercase name used in configuration files and on the command line."""
        return self.value.removesuffix("Provider").lower()

    @classmethod
    def from_name(cls, name: str) -> "HostingProviderType | None":
        """Look up a provider type by short or full name, ignoring case.

        Args:
            name: ``github``, ``GitLab``, ``GiteaProvider``...

        Returns:
            The matching type, or None for unknown names
        """
        wanted = name.strip().lower()
        for member in cls:
            if wanted in (member.short_name, member.value.lower()):
                return member
        return None


class AccessLevel(str, Enum):
    """Access level a personal access token is looked up for."""

    READ = "read"
    WRITE = "write"

    def __str__(self) -> str:
        return self.value
