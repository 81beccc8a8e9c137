"""Tests for ckli_hosting/hosting/gitea.py - Gitea REST v1 provider."""

import json
from datetime import UTC, datetime
from typing import Any

import httpx
import pytest

from ckli_hosting.enums import CloudProvider, HostingProviderType
from ckli_hosting.hosting.gitea import GiteaProvider, default_gitea_api_url
from ckli_hosting.hosting.models import RepositoryCreateOptions

REPO = "/api/v1/repos/acme/service"


@pytest.fixture
def provider(secrets: Any, api: Any) -> GiteaProvider:
    """GiteaProvider wired to the scripted API."""
    return GiteaProvider(secrets, "gitea.example.com", "https://gitea.example.com/api/v1", transport=api.transport)


def body(request: httpx.Request) -> dict[str, Any]:
    return json.loads(request.content)


class TestGiteaIdentity:
    """Tests for provider identity."""

    def test_identity(self, provider: GiteaProvider) -> None:
        assert provider.provider_type is HostingProviderType.GITEA
        assert provider.instance_id == "gitea.example.com"
        assert provider.base_api_url == "https://gitea.example.com/api/v1/"
        assert provider.cloud_provider is CloudProvider.UNKNOWN

    def test_default_api_url(self) -> None:
        assert default_gitea_api_url("git.acme.internal:3000") == "https://git.acme.internal:3000/api/v1/"


class TestGiteaRepositoryInfo:
    """Tests for get_repository_info."""

    @pytest.mark.asyncio
    async def test_maps_repository(self, provider: GiteaProvider, api: Any, gitea_repo_payload: dict) -> None:
        api.add("GET", REPO, json=gitea_repo_payload)

        result = await provider.get_repository_info("acme", "service")

        assert result.success
        info = result.data
        assert info is not None
        assert info.repo_path == "acme/service"
        assert info.owner == "acme"
        assert info.is_private is True
        assert info.is_empty is True
        assert info.description is None
        assert info.created_at == datetime(2024, 3, 1, 7, 0, tzinfo=UTC)
        assert api.requests[0].headers["Authorization"] == "token gitea_write_token"
        assert len(api.requests) == 1

    @pytest.mark.asyncio
    async def test_invalid_path(self, provider: GiteaProvider, api: Any) -> None:
        result = await provider.get_repository_info("acme/team", "service")

        assert result.error_message == "Invalid Gitea repository path 'acme/team/service'. Must be '<owner>/<name>'."
        assert api.requests == []


class TestGiteaCreateRepository:
    """Tests for create_repository."""

    @pytest.mark.asyncio
    async def test_create_with_templates(self, provider: GiteaProvider, api: Any, gitea_repo_payload: dict) -> None:
        api.add("POST", "/api/v1/orgs/acme/repos", status_code=201, json=gitea_repo_payload)
        options = RepositoryCreateOptions(
            owner="acme",
            name="service",
            auto_init=True,
            gitignore_template="Python",
            license_template="MIT",
        )

        result = await provider.create_repository(options)

        assert result.success
        assert result.data is not None
        # The host's own flag wins over the requested initialization
        assert result.data.is_empty is True
        assert body(api.requests[0]) == {
            "name": "service",
            "private": True,
            "auto_init": True,
            "gitignores": "Python",
            "license": "MIT",
        }

    @pytest.mark.asyncio
    async def test_falls_back_to_user_namespace(
        self, provider: GiteaProvider, api: Any, gitea_repo_payload: dict
    ) -> None:
        api.add("POST", "/api/v1/orgs/jdoe/repos", status_code=404, json={"message": "org not found"})
        api.add("POST", "/api/v1/user/repos", status_code=201, json=gitea_repo_payload)

        result = await provider.create_repository(RepositoryCreateOptions(owner="jdoe", name="service"))

        assert result.success
        assert api.calls == [("POST", "/api/v1/orgs/jdoe/repos"), ("POST", "/api/v1/user/repos")]

    @pytest.mark.asyncio
    async def test_conflict(self, provider: GiteaProvider, api: Any) -> None:
        api.add("POST", "/api/v1/orgs/acme/repos", status_code=409, json={"message": "The repository already exists."})

        result = await provider.create_repository(RepositoryCreateOptions(owner="acme", name="service"))

        assert result.http_status_code == 409
        assert result.error_message == "The repository already exists."


class TestGiteaArchiveAndDelete:
    """Tests for archive_repository and delete_repository."""

    @pytest.mark.asyncio
    async def test_archive(self, provider: GiteaProvider, api: Any, gitea_repo_payload: dict) -> None:
        api.add("GET", REPO, json=gitea_repo_payload)
        api.add("PATCH", REPO, json={**gitea_repo_payload, "archived": True})

        result = await provider.archive_repository("acme", "service")

        assert result.success
        assert body(api.requests[1]) == {"archived": True}

    @pytest.mark.asyncio
    async def test_delete(self, provider: GiteaProvider, api: Any) -> None:
        api.add("DELETE", REPO, status_code=204)

        result = await provider.delete_repository("acme", "service")

        assert result.success
        assert api.calls == [("DELETE", REPO)]

    @pytest.mark.asyncio
    async def test_delete_without_write_token(self, empty_secrets: Any, api: Any) -> None:
        provider = GiteaProvider(
            empty_secrets, "gitea.example.com", "https://gitea.example.com/api/v1/", transport=api.transport
        )

        result = await provider.delete_repository("acme", "service")

        assert result.error_message == (
            "No PAT available for 'gitea.example.com'. Set GITEA_EXAMPLE_COM_GIT_WRITE_PAT in secrets."
        )
        assert api.requests == []
