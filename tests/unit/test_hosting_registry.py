"""Tests for ckli_hosting/hosting/registry.py - provider instance lifecycle."""

import asyncio
from typing import Any

import pytest

from ckli_hosting.enums import HostingProviderType
from ckli_hosting.exceptions import ProviderResolutionError, RegistryClosedError
from ckli_hosting.hosting.github import GitHubProvider
from ckli_hosting.hosting.gitlab import GitLabProvider
from ckli_hosting.hosting.registry import ProviderRegistry


@pytest.fixture
def registry(secrets: Any) -> ProviderRegistry:
    return ProviderRegistry(secrets)


class TestProviderRegistryResolve:
    """Tests for resolve, require and create."""

    @pytest.mark.asyncio
    async def test_one_instance_per_host(self, registry: ProviderRegistry) -> None:
        first = await registry.resolve("git@github.com:acme/app.git")
        second = await registry.resolve("https://github.com/other/lib")

        assert isinstance(first, GitHubProvider)
        assert first is second
        assert registry.providers == [first]
        await registry.aclose()

    @pytest.mark.asyncio
    async def test_different_hosts_get_different_instances(self, registry: ProviderRegistry) -> None:
        cloud = await registry.resolve("https://github.com/acme/app")
        enterprise = await registry.resolve("https://github.company.com/acme/app")

        assert cloud is not enterprise
        assert registry.get(HostingProviderType.GITHUB, "github.company.com") is enterprise
        await registry.aclose()

    @pytest.mark.asyncio
    async def test_unresolvable_url(self, registry: ProviderRegistry) -> None:
        assert await registry.resolve("https://code.acme.org/team/app") is None

        with pytest.raises(ProviderResolutionError) as exc_info:
            await registry.require("https://code.acme.org/team/app")
        assert exc_info.value.remote_url == "https://code.acme.org/team/app"

    @pytest.mark.asyncio
    async def test_create_is_cached(self, registry: ProviderRegistry) -> None:
        provider = await registry.create("gitlab", "gitlab.com")

        assert isinstance(provider, GitLabProvider)
        assert await registry.create("GitLabProvider", "GitLab.com") is provider
        assert await registry.resolve("git@gitlab.com:group/app.git") is provider
        await registry.aclose()

    @pytest.mark.asyncio
    async def test_create_unknown_type(self, registry: ProviderRegistry) -> None:
        assert await registry.create("bitbucket", "bitbucket.org") is None

    @pytest.mark.asyncio
    async def test_concurrent_resolution_builds_once(self, registry: ProviderRegistry) -> None:
        providers = await asyncio.gather(
            *(registry.resolve(f"https://github.com/acme/repo-{index}") for index in range(10))
        )

        assert len({id(provider) for provider in providers}) == 1
        await registry.aclose()


class TestProviderRegistryGetOrCreate:
    """Tests for get_or_create."""

    @pytest.mark.asyncio
    async def test_factory_called_once(self, registry: ProviderRegistry, secrets: Any) -> None:
        calls: list[int] = []

        def factory() -> GitHubProvider:
            calls.append(1)
            return GitHubProvider(secrets)

        first = await registry.get_or_create(HostingProviderType.GITHUB, "github.com", factory)
        second = await registry.get_or_create(HostingProviderType.GITHUB, "GITHUB.COM", factory)

        assert first is second
        assert calls == [1]
        await registry.aclose()


class TestProviderRegistryClose:
    """Tests for aclose."""

    @pytest.mark.asyncio
    async def test_closes_every_provider_once(self, registry: ProviderRegistry) -> None:
        provider = await registry.resolve("https://github.com/acme/app")
        assert provider is not None

        await registry.aclose()
        await registry.aclose()

        assert registry.closed is True
        assert provider.closed is True
        assert registry.providers == []

    @pytest.mark.asyncio
    async def test_closed_registry_refuses_new_providers(self, registry: ProviderRegistry) -> None:
        await registry.aclose()

        with pytest.raises(RegistryClosedError):
            await registry.resolve("https://github.com/acme/app")

    @pytest.mark.asyncio
    async def test_context_manager(self, secrets: Any) -> None:
        async with ProviderRegistry(secrets) as registry:
            provider = await registry.require("https://gitlab.com/group/app")

        assert provider.closed is True
        assert registry.closed is True
