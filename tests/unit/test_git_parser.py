"""Unit tests for ckli_hosting.git.parser.

Covers normalization of every remote URL dialect to HTTPS, host extraction,
owner/name splitting (nested groups included) and rejection of malformed
input, which always yields None rather than an exception.
"""

from urllib.parse import urlsplit

import pytest

from ckli_hosting.git.models import ParsedRemote
from ckli_hosting.git.parser import RemoteUrlParser


class TestTryNormalizeToHttps:
    """Tests for RemoteUrlParser.try_normalize_to_https."""

    def test_https_url_is_kept_with_git_suffix(self) -> None:
        assert (
            RemoteUrlParser.try_normalize_to_https("https://github.com/owner/repo.git")
            == "https://github.com/owner/repo.git"
        )

    def test_http_url_is_upgraded_and_keeps_port(self) -> None:
        assert (
            RemoteUrlParser.try_normalize_to_https("http://gitea.local:3000/owner/repo")
            == "https://gitea.local:3000/owner/repo"
        )

    def test_https_default_port_and_trailing_slash_are_dropped(self) -> None:
        assert (
            RemoteUrlParser.try_normalize_to_https("https://GitHub.com:443/Owner/Repo/")
            == "https://github.com/Owner/Repo"
        )

    def test_scp_ssh_url_strips_git_suffix(self) -> None:
        assert (
            RemoteUrlParser.try_normalize_to_https("git@github.com:owner/repo.git")
            == "https://github.com/owner/repo"
        )

    def test_scp_ssh_url_with_other_user(self) -> None:
        assert (
            RemoteUrlParser.try_normalize_to_https("deploy@git.company.com:team/project.git")
            == "https://git.company.com/team/project"
        )

    def test_ssh_scheme_url_drops_port(self) -> None:
        """The SSH port says nothing about the HTTPS port."""
        assert (
            RemoteUrlParser.try_normalize_to_https("ssh://git@gitlab.example.com:2222/group/subgroup/repo.git")
            == "https://gitlab.example.com/group/subgroup/repo"
        )

    def test_ssh_scheme_url_without_user(self) -> None:
        assert (
            RemoteUrlParser.try_normalize_to_https("ssh://gitlab.example.com/group/repo")
            == "https://gitlab.example.com/group/repo"
        )

    def test_schemeless_url(self) -> None:
        assert RemoteUrlParser.try_normalize_to_https("github.com/owner/repo.git") == "https://github.com/owner/repo"

    def test_surrounding_whitespace_is_ignored(self) -> None:
        assert (
            RemoteUrlParser.try_normalize_to_https("  git@github.com:owner/repo.git \n")
            == "https://github.com/owner/repo"
        )

    @pytest.mark.parametrize(
        "remote_url",
        [
            None,
            "",
            "   ",
            "not a url",
            "ftp://example.com/owner/repo",
            "ssh://",
            "git@github.com:owner/my repo.git",
            "https://",
        ],
    )
    def test_malformed_input_returns_none(self, remote_url: str | None) -> None:
        assert RemoteUrlParser.try_normalize_to_https(remote_url) is None


class TestGetHost:
    """Tests for RemoteUrlParser.get_host."""

    def test_host_is_lowercased_without_port(self) -> None:
        assert RemoteUrlParser.get_host("https://GitHub.company.com:8443/owner/repo") == "github.company.com"

    def test_host_from_ssh_url(self) -> None:
        assert RemoteUrlParser.get_host("git@gitlab.com:group/repo.git") == "gitlab.com"

    def test_unparseable_url_returns_none(self) -> None:
        assert RemoteUrlParser.get_host("not a url") is None


class TestParseStandardPath:
    """Tests for RemoteUrlParser.parse_standard_path."""

    def test_owner_and_name(self) -> None:
        assert RemoteUrlParser.parse_standard_path("/owner/repo.git") == ("owner", "repo")

    def test_nested_groups_belong_to_owner(self) -> None:
        assert RemoteUrlParser.parse_standard_path("group/subgroup/repo") == ("group/subgroup", "repo")

    def test_case_is_preserved_and_suffix_matched_case_insensitively(self) -> None:
        assert RemoteUrlParser.parse_standard_path("/Owner/Repo.GIT/") == ("Owner", "Repo")

    @pytest.mark.parametrize("path", [None, "", "/", "repo", "/repo.git", "owner//repo", "owner/ /repo"])
    def test_invalid_paths_return_none(self, path: str | None) -> None:
        assert RemoteUrlParser.parse_standard_path(path) is None


class TestNormalizedPathAgreement:
    """Owner and name read back from the normalized URL match the remote's own path."""

    @pytest.mark.parametrize(
        "remote_url, raw_path, expected",
        [
            ("https://github.com/owner/repo.git", "/owner/repo.git", ("owner", "repo")),
            ("http://gitea.local:3000/owner/repo/", "/owner/repo/", ("owner", "repo")),
            ("git@github.com:Owner/Repo.GIT", "Owner/Repo.GIT", ("Owner", "Repo")),
            (
                "ssh://git@gitlab.example.com:2222/group/subgroup/repo.git",
                "/group/subgroup/repo.git",
                ("group/subgroup", "repo"),
            ),
            ("github.com/owner/repo/", "/owner/repo/", ("owner", "repo")),
            ("git@gitlab.com:group/sub/project.git", "group/sub/project.git", ("group/sub", "project")),
        ],
    )
    def test_every_dialect(self, remote_url: str, raw_path: str, expected: tuple[str, str]) -> None:
        normalized = RemoteUrlParser.try_normalize_to_https(remote_url)
        assert normalized is not None

        from_normalized = RemoteUrlParser.parse_standard_path(urlsplit(normalized).path)

        assert from_normalized == RemoteUrlParser.parse_standard_path(raw_path) == expected


class TestParseRemote:
    """Tests for RemoteUrlParser.parse_remote."""

    def test_parse_https_remote(self) -> None:
        parsed = RemoteUrlParser.parse_remote("https://github.com/octocat/Hello-World.git")

        assert parsed == ParsedRemote(host="github.com", owner="octocat", repo_name="Hello-World")

    def test_parse_nested_group_remote(self) -> None:
        parsed = RemoteUrlParser.parse_remote("git@gitlab.com:group/subgroup/project.git")

        assert parsed is not None
        assert parsed.host == "gitlab.com"
        assert parsed.owner == "group/subgroup"
        assert parsed.repo_name == "project"
        assert parsed.repo_path == "group/subgroup/project"

    def test_host_loses_port(self) -> None:
        parsed = RemoteUrlParser.parse_remote("http://gitea.local:3000/acme/service")

        assert parsed is not None
        assert parsed.host == "gitea.local"

    def test_remote_without_repository_returns_none(self) -> None:
        assert RemoteUrlParser.parse_remote("https://github.com/octocat") is None

    def test_unparseable_remote_returns_none(self) -> None:
        assert RemoteUrlParser.parse_remote("not a url") is None
