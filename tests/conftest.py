"""Pytest configuration and shared fixtures."""

from typing import Any

import httpx
import pytest

from ckli_hosting.credentials import InMemorySecretsStore


class FakeHostingApi:
    """Scripted hosting API served through ``httpx.MockTransport``.

    Routes are keyed by method and raw (still percent-encoded) URL path.
    Several responses registered on one route are served in order, the last
    one repeating. Unrouted requests get a 500.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], list[Any]] = {}
        self.requests: list[httpx.Request] = []

    def add(
        self,
        method: str,
        path: str,
        status_code: int = 200,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.routes.setdefault((method, path), []).append((status_code, json, headers))

    def add_error(self, method: str, path: str, error: Exception) -> None:
        self.routes.setdefault((method, path), []).append(error)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)

    @property
    def calls(self) -> list[tuple[str, str]]:
        return [(request.method, _raw_path(request)) for request in self.requests]

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get((request.method, _raw_path(request)))
        if not queue:
            return httpx.Response(500, json={"message": f"Unexpected {request.method} {_raw_path(request)}"})

        entry = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(entry, Exception):
            raise entry

        status_code, json, headers = entry
        if json is None:
            return httpx.Response(status_code, headers=headers)
        return httpx.Response(status_code, json=json, headers=headers)


def _raw_path(request: httpx.Request) -> str:
    return request.url.raw_path.decode("ascii").split("?", 1)[0]


@pytest.fixture
def api() -> FakeHostingApi:
    """Scripted hosting API."""
    return FakeHostingApi()


@pytest.fixture
def secrets() -> InMemorySecretsStore:
    """Secrets store holding write tokens for every test host."""
    return InMemorySecretsStore(
        {
            "GITHUB_GIT_WRITE_PAT": "ghp_write_token",
            "GITLAB_GIT_WRITE_PAT": "glpat_write_token",
            "GITEA_EXAMPLE_COM_GIT_WRITE_PAT": "gitea_write_token",
            "GITHUB_COMPANY_COM_GIT_WRITE_PAT": "ghe_write_token",
            "GITLAB_EXAMPLE_COM_GIT_WRITE_PAT": "glpat_self_managed",
        }
    )


@pytest.fixture
def empty_secrets() -> InMemorySecretsStore:
    """Secrets store without any token."""
    return InMemorySecretsStore()


@pytest.fixture
def github_repo_payload() -> dict[str, Any]:
    """Repository as returned by GitHub GET /repos/{owner}/{repo}."""
    return {
        "id": 1296269,
        "name": "Hello-World",
        "full_name": "octocat/Hello-World",
        "owner": {"login": "octocat", "id": 1},
        "private": False,
        "description": "This your first repo!",
        "archived": False,
        "default_branch": "main",
        "html_url": "https://github.com/octocat/Hello-World",
        "clone_url": "https://github.com/octocat/Hello-World.git",
        "ssh_url": "git@github.com:octocat/Hello-World.git",
        "created_at": "2011-01-26T19:01:12Z",
        "updated_at": "2011-01-26T19:14:43Z",
    }


@pytest.fixture
def gitlab_project_payload() -> dict[str, Any]:
    """Project as returned by GitLab GET /projects/{id}."""
    return {
        "id": 3,
        "name": "Diaspora Project",
        "path": "diaspora-project",
        "path_with_namespace": "diaspora/backend/diaspora-project",
        "namespace": {"id": 7, "full_path": "diaspora/backend"},
        "description": "Project description",
        "visibility": "private",
        "archived": False,
        "empty_repo": False,
        "default_branch": "main",
        "http_url_to_repo": "https://gitlab.example.com/diaspora/backend/diaspora-project.git",
        "ssh_url_to_repo": "git@gitlab.example.com:diaspora/backend/diaspora-project.git",
        "web_url": "https://gitlab.example.com/diaspora/backend/diaspora-project",
        "created_at": "2013-09-30T13:46:02Z",
        "last_activity_at": "2013-09-30T13:46:02Z",
    }


@pytest.fixture
def gitea_repo_payload() -> dict[str, Any]:
    """Repository as returned by Gitea GET /repos/{owner}/{repo}."""
    return {
        "id": 12,
        "name": "service",
        "full_name": "acme/service",
        "owner": {"login": "acme", "username": "acme"},
        "private": True,
        "description": "",
        "archived": False,
        "empty": True,
        "default_branch": "main",
        "html_url": "https://gitea.example.com/acme/service",
        "clone_url": "https://gitea.example.com/acme/service.git",
        "ssh_url": "git@gitea.example.com:acme/service.git",
        "created_at": "2024-03-01T08:00:00+01:00",
        "updated_at": "2024-03-02T08:00:00+01:00",
    }
