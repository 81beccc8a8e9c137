"""
GitLab hosting provider.

Supports https://gitlab.com and self-managed instances, both through the
REST v4 API. Projects are addressed by their URL-encoded full path
(``group%2Fsubgroup%2Fproject``), so nested groups work everywhere.
"""

import urllib.parse
from typing import Any

import httpx
import structlog

from ckli_hosting.credentials.backend import SecretsStore
from ckli_hosting.enums import CloudProvider, HostingProviderType
from ckli_hosting.hosting.models import HostedRepositoryInfo, RepositoryCreateOptions
from ckli_hosting.hosting.rest import HttpGitHostingProvider, parse_timestamp

log = structlog.get_logger(__name__)

GITLAB_CLOUD_HOST = "gitlab.com"
GITLAB_CLOUD_API_URL = "https://gitlab.com/api/v4/"


def encode_project_path(path: str) -> str:
    """URL-encode a project or namespace path, slashes included."""
    return urllib.parse.quote(path, safe="")


class GitLabProvider(HttpGitHostingProvider):
    """GitLab REST v4 provider.

    Creation resolves the owner to a namespace id first; when the namespace
    does not exist the project is created in the authenticated user's
    personal namespace.
    """

    provider_type = HostingProviderType.GITLAB
    empty_field = "empty_repo"

    def __init__(
        self,
        secrets_store: SecretsStore,
        host: str = GITLAB_CLOUD_HOST,
        api_url: str | None = None,
        is_default_public: bool = False,
        **kwargs: Any,
    ) -> None:
        """Initialize a GitLab provider.

        Args:
            secrets_store: Lookup for personal access tokens
            host: ``gitlab.com`` or the host of a self-managed instance
            api_url: Explicit API root, overriding the one derived from host
            is_default_public: Visibility of created repositories by default
            **kwargs: Transport settings forwarded to HttpGitHostingProvider
        """
        host = host.strip().lower()
        is_cloud = host == GITLAB_CLOUD_HOST
        if api_url is None:
            api_url = GITLAB_CLOUD_API_URL if is_cloud else f"https://{host}/api/v4/"

        super().__init__(
            instance_id=host,
            base_url=f"https://{host}",
            base_api_url=api_url,
            secrets_store=secrets_store,
            cloud_provider=CloudProvider.GITLAB if is_cloud else CloudProvider.UNKNOWN,
            is_default_public=is_default_public,
            **kwargs,
        )

    def _auth_headers(self, token: str) -> dict[str, str]:
        return {"PRIVATE-TOKEN": token}

    def _repository_api_path(self, owner: str, name: str) -> str:
        project_path = f"{owner.strip('/')}/{name}"
        return f"projects/{encode_project_path(project_path)}"

    async def _send_create(self, options: RepositoryCreateOptions, token: str) -> httpx.Response:
        response = await self._send("GET", f"namespaces/{encode_project_path(options.owner)}", token)
        namespace_id = None
        if response.is_success:
            namespace_id = self._read_json_object(response).get("id")
        elif response.status_code == 404:
            log.debug("namespace_not_found", instance_id=self.instance_id, owner=options.owner)
        else:
            return response

        is_private = options.is_private if options.is_private is not None else not self.is_default_public
        payload: dict[str, Any] = {
            "name": options.name,
            "path": options.name,
            "visibility": "private" if is_private else "public",
            "initialize_with_readme": bool(options.auto_init),
        }
        if options.description:
            payload["description"] = options.description
        if namespace_id is not None:
            payload["namespace_id"] = namespace_id
        if options.gitignore_template or options.license_template:
            log.debug("create_templates_ignored", instance_id=self.instance_id, repo_path=options.repo_path)

        return await self._send("POST", "projects", token, json=payload)

    async def _send_archive(self, owner: str, name: str, archive: bool, token: str) -> httpx.Response:
        action = "archive" if archive else "unarchive"
        return await self._send("POST", f"{self._repository_api_path(owner, name)}/{action}", token)

    def _to_repository_info(self, payload: dict[str, Any], is_empty: bool) -> HostedRepositoryInfo:
        full_path = payload.get("path_with_namespace") or ""
        namespace = payload.get("namespace") or {}
        owner = namespace.get("full_path") or full_path.rpartition("/")[0]
        name = payload.get("path") or payload.get("name") or full_path.rpartition("/")[2]

        return HostedRepositoryInfo(
            exists=True,
            repo_path=full_path or f"{owner}/{name}",
            owner=owner,
            name=name,
            description=payload.get("description") or None,
            is_private=payload.get("visibility", "private") != "public",
            is_archived=bool(payload.get("archived", False)),
            is_empty=is_empty,
            default_branch=payload.get("default_branch") or None,
            clone_url_https=payload.get("http_url_to_repo"),
            clone_url_ssh=payload.get("ssh_url_to_repo"),
            web_url=payload.get("web_url"),
            created_at=parse_timestamp(payload.get("created_at")),
            updated_at=parse_timestamp(payload.get("last_activity_at") or payload.get("updated_at")),
        )
