"""Remote URL parsing utilities.

This module normalizes the remote URL dialects Git accepts into a canonical
``https://host/owner[/...]/repo`` form and splits repository paths into owner
and name, including nested group paths.

Supported URL formats:
    HTTPS / HTTP (http is upgraded, ``.git`` is preserved, port is kept):
        - https://github.com/owner/repo.git
        - http://gitea.local:3000/owner/repo

    SSH (``.git`` is stripped, any SSH port is discarded):
        - git@github.com:owner/repo.git
        - ssh://git@gitlab.example.com:2222/group/subgroup/repo.git

    Schemeless (``.git`` is stripped):
        - github.com/owner/repo

Key Exports:
    RemoteUrlParser: Stateless parsing helpers.

Example:
    >>> from ckli_hosting.git.parser import RemoteUrlParser
    >>> RemoteUrlParser.try_normalize_to_https("git@github.com:owner/repo.git")
    'https://github.com/owner/repo'
    >>> RemoteUrlParser.get_host("https://GitHub.company.com:8443/owner/repo")
    'github.company.com'
    >>> RemoteUrlParser.parse_standard_path("/group/subgroup/repo.git")
    ('group/subgroup', 'repo')

Thread Safety:
    All helpers are pure functions over immutable compiled patterns.
"""

import re
from urllib.parse import urlsplit

from ckli_hosting.git.models import ParsedRemote


class RemoteUrlParser:
    """Parser for Git remote URLs.

    Every helper returns ``None`` when the input cannot be parsed; none of
    them raise for malformed input.
    """

    # SCP format: user@host:path
    # A non-empty user is required so that "https://..." never matches
    SCP_PATTERN = re.compile(r"^[^@/]+@(?P<host>[^:/]+):(?P<path>.+)$")

    # ssh://[user@]host[:port]/path
    SSH_SCHEME_PATTERN = re.compile(
        r"^ssh://(?:[^@/]+@)?(?P<host>[^:/]+)(?::(?P<port>\d+))?(?P<path>/.+)$",
        re.IGNORECASE,
    )

    HOST_PATTERN = re.compile(r"^[a-z0-9](?:[a-z0-9._-]*[a-z0-9])?$", re.IGNORECASE)

    @classmethod
    def try_normalize_to_https(cls, remote_url: str | None) -> str | None:
        """Normalize a remote URL to its canonical HTTPS form.

        Args:
            remote_url: Remote URL in any supported dialect

        Returns:
            The normalized ``https://`` URL, or None if parsing failed
        """
        if remote_url is None or not remote_url.strip():
            return None

        value = remote_url.strip()
        lowered = value.lower()

        if lowered.startswith("https://"):
            return cls._normalize_web_url(value[len("https://") :])

        if lowered.startswith("http://"):
            return cls._normalize_web_url(value[len("http://") :])

        match = cls.SSH_SCHEME_PATTERN.match(value)
        if match:
            # The SSH port says nothing about the HTTPS port
            return cls._build(match.group("host"), None, match.group("path"), strip_git_suffix=True)

        if lowered.startswith("ssh://"):
            return None

        match = cls.SCP_PATTERN.match(value)
        if match:
            return cls._build(match.group("host"), None, match.group("path"), strip_git_suffix=True)

        if "@" not in value and "/" in value and "://" not in value:
            host, _, path = value.partition("/")
            host, _, port = host.partition(":")
            if port and not port.isdigit():
                return None
            return cls._build(host, int(port) if port else None, path, strip_git_suffix=True)

        return None

    @classmethod
    def get_host(cls, remote_url: str | None) -> str | None:
        """Extract the lowercase host name from a remote URL.

        Port numbers are always stripped.

        Args:
            remote_url: Remote URL in any supported dialect

        Returns:
            The host, or None when no host and path structure is recognized
        """
        normalized = cls.try_normalize_to_https(remote_url)
        if normalized is None:
            return None
        return urlsplit(normalized).hostname

    @staticmethod
    def parse_standard_path(path: str | None) -> tuple[str, str] | None:
        """Split a ``/``-delimited repository path into owner and name.

        Leading and trailing slashes are ignored and a ``.git`` suffix is
        stripped. The owner is every segment but the last, so nested groups
        (``group/subgroup/repo``) are supported. Case is preserved.

        Args:
            path: Path portion of a remote URL (e.g., "/owner/repo.git")

        Returns:
            ``(owner, repo_name)``, or None when fewer than two non-empty
            segments are present
        """
        if path is None or not path.strip():
            return None

        trimmed = path.strip().strip("/")
        if trimmed.lower().endswith(".git"):
            trimmed = trimmed[:-4]

        segments = trimmed.split("/")
        if len(segments) < 2 or any(not segment.strip() for segment in segments):
            return None

        return "/".join(segments[:-1]), segments[-1]

    @classmethod
    def parse_remote(cls, remote_url: str | None) -> ParsedRemote | None:
        """Parse host, owner and repository name from any supported dialect.

        Args:
            remote_url: Remote URL to parse

        Returns:
            ParsedRemote, or None if the URL or its path cannot be parsed
        """
        normalized = cls.try_normalize_to_https(remote_url)
        if normalized is None:
            return None

        parts = urlsplit(normalized)
        owner_and_name = cls.parse_standard_path(parts.path)
        if parts.hostname is None or owner_and_name is None:
            return None

        owner, repo_name = owner_and_name
        return ParsedRemote(host=parts.hostname, owner=owner, repo_name=repo_name)

    @classmethod
    def _normalize_web_url(cls, rest: str) -> str | None:
        """Rebuild an http(s) URL as https, keeping its port and ``.git`` suffix."""
        try:
            parts = urlsplit("https://" + rest)
            port = parts.port
        except ValueError:
            return None

        if parts.hostname is None:
            return None

        return cls._build(parts.hostname, port, parts.path, strip_git_suffix=False)

    @classmethod
    def _build(cls, host: str, port: int | None, path: str, strip_git_suffix: bool) -> str | None:
        if not cls.HOST_PATTERN.match(host):
            return None

        path = path.strip().strip("/")
        if strip_git_suffix and path.lower().endswith(".git"):
            path = path[:-4].rstrip("/")

        if any(char.isspace() for char in path):
            return None

        authority = host.lower()
        if port is not None and port != 443:
            authority = f"{authority}:{port}"

        return f"https://{authority}/{path}" if path else f"https://{authority}"
