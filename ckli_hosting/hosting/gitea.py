"""
Gitea hosting provider.

Gitea has no official SaaS: every instance is self-hosted and its API root
is given explicitly (usually https://{host}/api/v1/). Payloads are
GitHub-shaped, with an extra ``empty`` flag on repositories.
"""

from typing import Any

import httpx
import structlog

from ckli_hosting.credentials.backend import SecretsStore
from ckli_hosting.enums import CloudProvider, HostingProviderType
from ckli_hosting.hosting.github import github_repository_info
from ckli_hosting.hosting.models import HostedRepositoryInfo, RepositoryCreateOptions
from ckli_hosting.hosting.rest import HttpGitHostingProvider

log = structlog.get_logger(__name__)


def default_gitea_api_url(host: str) -> str:
    return f"https://{host}/api/v1/"


class GiteaProvider(HttpGitHostingProvider):
    """Gitea REST v1 provider."""

    provider_type = HostingProviderType.GITEA
    empty_field = "empty"

    def __init__(
        self,
        secrets_store: SecretsStore,
        host: str,
        api_url: str,
        is_default_public: bool = False,
        **kwargs: Any,
    ) -> None:
        """Initialize a Gitea provider.

        Args:
            secrets_store: Lookup for personal access tokens
            host: Host of the Gitea instance (instance id)
            api_url: API root (e.g., "https://gitea.example.com/api/v1/")
            is_default_public: Visibility of created repositories by default
            **kwargs: Transport settings forwarded to HttpGitHostingProvider
        """
        host = host.strip().lower()
        super().__init__(
            instance_id=host,
            base_url=f"https://{host}",
            base_api_url=api_url,
            secrets_store=secrets_store,
            cloud_provider=CloudProvider.UNKNOWN,
            is_default_public=is_default_public,
            **kwargs,
        )

    def _auth_headers(self, token: str) -> dict[str, str]:
        return {"Authorization": f"token {token}"}

    def _validate_repository_path(self, owner: str, name: str) -> str | None:
        if not owner or not name or "/" in owner.strip("/") or "/" in name:
            return f"Invalid Gitea repository path '{owner}/{name}'. Must be '<owner>/<name>'."
        return None

    def _repository_api_path(self, owner: str, name: str) -> str:
        return f"repos/{owner}/{name}"

    async def _send_create(self, options: RepositoryCreateOptions, token: str) -> httpx.Response:
        payload: dict[str, Any] = {
            "name": options.name,
            "private": options.is_private if options.is_private is not None else not self.is_default_public,
            "auto_init": bool(options.auto_init),
        }
        if options.description:
            payload["description"] = options.description
        if options.gitignore_template:
            payload["gitignores"] = options.gitignore_template
        if options.license_template:
            payload["license"] = options.license_template

        response = await self._send("POST", f"orgs/{options.owner}/repos", token, json=payload)
        if response.status_code == 404:
            log.debug("organization_not_found", instance_id=self.instance_id, owner=options.owner)
            response = await self._send("POST", "user/repos", token, json=payload)
        return response

    async def _send_archive(self, owner: str, name: str, archive: bool, token: str) -> httpx.Response:
        return await self._send("PATCH", f"repos/{owner}/{name}", token, json={"archived": archive})

    def _to_repository_info(self, payload: dict[str, Any], is_empty: bool) -> HostedRepositoryInfo:
        return github_repository_info(payload, is_empty)
