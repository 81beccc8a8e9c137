"""
GitHub hosting provider.

Supports https://github.com (API at https://api.github.com/) and GitHub
Enterprise Server instances (API at https://{host}/api/v3/).
"""

from typing import Any

import httpx
import structlog

from ckli_hosting.credentials.backend import SecretsStore
from ckli_hosting.enums import CloudProvider, HostingProviderType
from ckli_hosting.hosting.models import HostedRepositoryInfo, RepositoryCreateOptions
from ckli_hosting.hosting.rest import HttpGitHostingProvider, parse_timestamp

log = structlog.get_logger(__name__)

GITHUB_CLOUD_HOST = "github.com"
GITHUB_CLOUD_API_URL = "https://api.github.com/"
GITHUB_API_VERSION = "2022-11-28"


def github_repository_info(payload: dict[str, Any], is_empty: bool) -> HostedRepositoryInfo:
    """Map a GitHub-shaped repository payload (GitHub, Gitea) to HostedRepositoryInfo."""
    full_name = payload.get("full_name") or ""
    owner = payload.get("owner") or {}
    owner_name = owner.get("login") or owner.get("username") or full_name.rpartition("/")[0]
    name = payload.get("name") or full_name.rpartition("/")[2]

    return HostedRepositoryInfo(
        exists=True,
        repo_path=full_name or f"{owner_name}/{name}",
        owner=owner_name,
        name=name,
        description=payload.get("description") or None,
        is_private=bool(payload.get("private", False)),
        is_archived=bool(payload.get("archived", False)),
        is_empty=is_empty,
        default_branch=payload.get("default_branch") or None,
        clone_url_https=payload.get("clone_url"),
        clone_url_ssh=payload.get("ssh_url"),
        web_url=payload.get("html_url"),
        created_at=parse_timestamp(payload.get("created_at")),
        updated_at=parse_timestamp(payload.get("updated_at")),
    )


class GitHubProvider(HttpGitHostingProvider):
    """GitHub REST v3 provider.

    Example:
        >>> provider = GitHubProvider(secrets_store)
        >>> result = await provider.get_repository_info("owner", "repo")
        >>> result.data.is_empty
        False
    """

    provider_type = HostingProviderType.GITHUB

    def __init__(
        self,
        secrets_store: SecretsStore,
        host: str = GITHUB_CLOUD_HOST,
        api_url: str | None = None,
        is_default_public: bool = False,
        **kwargs: Any,
    ) -> None:
        """Initialize a GitHub provider.

        Args:
            secrets_store: Lookup for personal access tokens
            host: ``github.com`` or the host of a GitHub Enterprise Server
            api_url: Explicit API root, overriding the one derived from host
            is_default_public: Visibility of created repositories by default
            **kwargs: Transport settings forwarded to HttpGitHostingProvider
        """
        host = host.strip().lower()
        is_cloud = host == GITHUB_CLOUD_HOST
        if api_url is None:
            api_url = GITHUB_CLOUD_API_URL if is_cloud else f"https://{host}/api/v3/"

        super().__init__(
            instance_id=host,
            base_url=f"https://{host}",
            base_api_url=api_url,
            secrets_store=secrets_store,
            cloud_provider=CloudProvider.GITHUB if is_cloud else CloudProvider.UNKNOWN,
            is_default_public=is_default_public,
            **kwargs,
        )

    def _default_headers(self) -> dict[str, str]:
        return {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }

    def _auth_headers(self, token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    def _validate_repository_path(self, owner: str, name: str) -> str | None:
        if not owner or not name or "/" in owner.strip("/") or "/" in name:
            return f"Invalid GitHub repository path '{owner}/{name}'. Must be '<owner>/<name>'."
        return None

    def _repository_api_path(self, owner: str, name: str) -> str:
        return f"repos/{owner}/{name}"

    async def _detect_empty(self, owner: str, name: str, payload: dict[str, Any], token: str | None) -> bool:
        """Check for branches: GitHub answers 409 (or 404) for a repository without commits."""
        response = await self._send("GET", f"repos/{owner}/{name}/git/refs/heads", token)
        if response.status_code in (404, 409):
            return True
        if not response.is_success:
            log.warning(
                "empty_detection_failed",
                instance_id=self.instance_id,
                repo_path=f"{owner}/{name}",
                status_code=response.status_code,
            )
            return False

        try:
            refs = response.json()
        except ValueError:
            return False
        return isinstance(refs, list) and not refs

    async def _send_create(self, options: RepositoryCreateOptions, token: str) -> httpx.Response:
        payload: dict[str, Any] = {
            "name": options.name,
            "private": options.is_private if options.is_private is not None else not self.is_default_public,
            "auto_init": bool(options.auto_init),
        }
        if options.description:
            payload["description"] = options.description
        if options.gitignore_template:
            payload["gitignore_template"] = options.gitignore_template
        if options.license_template:
            payload["license_template"] = options.license_template

        response = await self._send("POST", f"orgs/{options.owner}/repos", token, json=payload)
        if response.status_code == 404:
            # Not an organization: the owner must be the authenticated user
            log.debug("organization_not_found", instance_id=self.instance_id, owner=options.owner)
            response = await self._send("POST", "user/repos", token, json=payload)
        return response

    async def _send_archive(self, owner: str, name: str, archive: bool, token: str) -> httpx.Response:
        return await self._send("PATCH", f"repos/{owner}/{name}", token, json={"archived": archive})

    def _to_repository_info(self, payload: dict[str, Any], is_empty: bool) -> HostedRepositoryInfo:
        return github_repository_info(payload, is_empty)
