"""Personal access token key derivation.

Maps a provider instance identity and an access level to the ordered list of
secret names handed to the secrets store:

    ==========================  ====================================
    Instance id                 Write key
    ==========================  ====================================
    github.com                  GITHUB_GIT_WRITE_PAT
    gitlab.com                  GITLAB_GIT_WRITE_PAT
    github.company.com          GITHUB_COMPANY_COM_GIT_WRITE_PAT
    git-server.example.com:443  GIT_SERVER_EXAMPLE_COM_GIT_WRITE_PAT
    filesystem                  FILESYSTEM_GIT_WRITE_PAT
    ==========================  ====================================

Read lookups also accept the write key: a token allowed to write can read.
"""

import re

from ckli_hosting.enums import AccessLevel

CLOUD_KEY_PREFIXES = {
    "github.com": "GITHUB_GIT",
    "gitlab.com": "GITLAB_GIT",
}

FILESYSTEM_INSTANCE_ID = "filesystem"
FILESYSTEM_KEY_PREFIX = "FILESYSTEM_GIT"

_SANITIZE_PATTERN = re.compile(r"[.\-]")


def key_prefix(instance_id: str) -> str:
    """Return the ``*_GIT`` prefix shared by the read and write keys.

    Args:
        instance_id: Provider instance id (host name, optionally with port)

    Returns:
        Key prefix such as ``GITHUB_GIT`` or ``GITHUB_COMPANY_COM_GIT``
    """
    host = instance_id.strip().lower()
    if host == FILESYSTEM_INSTANCE_ID or host.startswith("file:"):
        return FILESYSTEM_KEY_PREFIX

    # Ports never take part in the key
    host = host.split(":", 1)[0]

    if host in CLOUD_KEY_PREFIXES:
        return CLOUD_KEY_PREFIXES[host]

    return f"{_SANITIZE_PATTERN.sub('_', host.upper())}_GIT"


def pat_key(instance_id: str, access: AccessLevel) -> str:
    """Return the single secret name for an instance and access level."""
    suffix = "WRITE_PAT" if access is AccessLevel.WRITE else "READ_PAT"
    return f"{key_prefix(instance_id)}_{suffix}"


def candidate_keys(instance_id: str, access: AccessLevel) -> list[str]:
    """Return the ordered secret names to try for an access level.

    Args:
        instance_id: Provider instance id
        access: Requested access level

    Returns:
        ``[READ, WRITE]`` keys for reads, ``[WRITE]`` for writes
    """
    write_key = pat_key(instance_id, AccessLevel.WRITE)
    if access is AccessLevel.WRITE:
        return [write_key]
    return [pat_key(instance_id, AccessLevel.READ), write_key]
