"""Git remote data models.

Example:
    >>> from ckli_hosting.git.models import ParsedRemote
    >>> remote = ParsedRemote(host="gitlab.com", owner="group/subgroup", repo_name="project")
    >>> remote.repo_path
    'group/subgroup/project'
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ParsedRemote:
    """Host, owner and repository name extracted from a remote URL.

    Instances are only produced by successful parsing and are never
    partially populated.

    Attributes:
        host: Lowercase host name, without port
        owner: Owner path; contains ``/`` for nested groups (GitLab subgroups)
        repo_name: Repository name, without ``.git`` suffix
    """

    host: str
    owner: str
    repo_name: str

    @property
    def repo_path(self) -> str:
        """Full ``owner/name`` path of the repository."""
        return f"{self.owner}/{self.repo_name}"
