"""Git remote URL parsing.

Example:
    >>> from ckli_hosting.git import RemoteUrlParser
    >>> RemoteUrlParser.parse_remote("git@gitlab.com:group/sub/repo.git")
    ParsedRemote(host='gitlab.com', owner='group/sub', repo_name='repo')
"""

from ckli_hosting.git.models import ParsedRemote
from ckli_hosting.git.parser import RemoteUrlParser

__all__ = [
    "ParsedRemote",
    "RemoteUrlParser",
]
