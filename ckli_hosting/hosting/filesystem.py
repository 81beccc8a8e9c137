"""
Local file system pseudo-provider.

Repositories are bare Git repositories stored in ``<owner>/<name>/.git``
and exposed as ``file://`` URLs. There is no network I/O and no host
specific state, so one instance serves the whole process
(see ``get_filesystem_provider``).
"""

import asyncio
import os
import shutil
import stat
from datetime import UTC, datetime
from pathlib import Path, PurePath
from urllib.parse import unquote, urlsplit

import git
import structlog
from git.exc import GitError

from ckli_hosting.enums import CloudProvider, HostingProviderType
from ckli_hosting.git.models import ParsedRemote
from ckli_hosting.hosting.base import GitHostingProvider
from ckli_hosting.hosting.keys import FILESYSTEM_INSTANCE_ID
from ckli_hosting.hosting.models import (
    GitHostingDataResult,
    GitHostingOperationResult,
    HostedRepositoryInfo,
    RepositoryCreateOptions,
)

log = structlog.get_logger(__name__)

FILESYSTEM_BASE_URL = "file://"


class FileSystemProvider(GitHostingProvider):
    """Bare repositories on the local file system.

    ``owner`` is a directory and ``name`` the repository folder inside it;
    the bare repository itself is the ``.git`` folder of that directory so
    that cloning ``file://<owner>/<name>`` yields a regular working copy.

    Creation options are ignored (a warning is logged when any is set).
    Archiving is not supported.
    """

    provider_type = HostingProviderType.FILESYSTEM

    def __init__(self) -> None:
        super().__init__(
            instance_id=FILESYSTEM_INSTANCE_ID,
            base_url=FILESYSTEM_BASE_URL,
            base_api_url=FILESYSTEM_BASE_URL,
            cloud_provider=CloudProvider.UNKNOWN,
            is_default_public=True,
        )

    @property
    def can_archive_repository(self) -> bool:
        return False

    def repository_location(self, owner: str, name: str) -> str:
        return self._repository_path(owner, name).as_uri()

    def accepts_host(self, host: str) -> bool:
        return host == FILESYSTEM_INSTANCE_ID

    def parse_remote_url(self, url: str) -> ParsedRemote | None:
        """Parse a ``file://`` URL or an absolute local path.

        A trailing ``.git`` folder is ignored: ``file:///srv/repos/app/.git``
        and ``/srv/repos/app`` both give owner ``/srv/repos``, name ``app``.
        """
        if not url or not url.strip():
            return None

        value = url.strip()
        if value.lower().startswith(FILESYSTEM_BASE_URL):
            value = unquote(urlsplit(value).path)
        elif not os.path.isabs(value):
            return None

        path = PurePath(value)
        if path.name.lower() == ".git":
            path = path.parent
        if not path.name or path.parent == path:
            return None

        return ParsedRemote(host=FILESYSTEM_INSTANCE_ID, owner=str(path.parent), repo_name=path.name)

    async def get_repository_info(
        self,
        owner: str,
        name: str,
        must_exist: bool = True,
    ) -> GitHostingDataResult[HostedRepositoryInfo]:
        return await asyncio.to_thread(self._get_repository_info, owner, name, must_exist)

    async def create_repository(
        self,
        options: RepositoryCreateOptions,
    ) -> GitHostingDataResult[HostedRepositoryInfo]:
        return await asyncio.to_thread(self._create_repository, options)

    async def archive_repository(self, owner: str, name: str, archive: bool = True) -> GitHostingOperationResult:
        message = f"Archiving is not supported by {self.provider_type}."
        log.error("archive_not_supported", message=message, repo_path=str(self._repository_path(owner, name)))
        return GitHostingOperationResult.fail(message)

    async def delete_repository(self, owner: str, name: str) -> GitHostingOperationResult:
        return await asyncio.to_thread(self._delete_repository, owner, name)

    async def aclose(self) -> None:
        """Nothing to release; the shared instance stays usable."""

    def _repository_path(self, owner: str, name: str) -> Path:
        return (Path(owner) / name).absolute()

    def _get_repository_info(
        self, owner: str, name: str, must_exist: bool
    ) -> GitHostingDataResult[HostedRepositoryInfo]:
        path = self._repository_path(owner, name)
        git_dir = path / ".git"
        if not git_dir.is_dir():
            return self._missing_repository(owner, name, must_exist)

        try:
            with git.Repo(git_dir) as repo:
                if not repo.bare:
                    return self._fail(f"Expected bare .git repository at '{path}'.", path)
                try:
                    default_branch = repo.head.reference.name
                except TypeError:
                    # Detached HEAD
                    default_branch = None
            info = self._describe(path, default_branch)
        except (GitError, OSError) as e:
            return self._fail(f"While getting repository info for '{path}': {e}", path)

        return GitHostingDataResult.ok(info)

    def _create_repository(self, options: RepositoryCreateOptions) -> GitHostingDataResult[HostedRepositoryInfo]:
        path = self._repository_path(options.owner, options.name)

        if any(part.lower() == ".git" for part in path.parts):
            return self._fail(f"Cannot create a repository inside another one at '{path}'.", path)
        if path.name.lower().endswith(".git"):
            return self._fail(f"Repository path '{path}' must not end with '.git'.", path)
        if path.exists():
            return self._fail(f"Directory already exists at '{path}'.", path)

        if options.has_extras:
            log.warning(
                "create_options_ignored",
                message=f"Repository creation options are ignored by {self.provider_type}.",
                repo_path=str(path),
            )

        try:
            with git.Repo.init(path / ".git", bare=True, mkdir=True) as repo:
                default_branch = repo.head.reference.name
            info = self._describe(path, default_branch)
        except (GitError, OSError) as e:
            return self._fail(f"While creating repository '{path}': {e}", path)

        log.info("repository_created", instance_id=self.instance_id, repo_path=str(path))
        return GitHostingDataResult.ok(info)

    def _delete_repository(self, owner: str, name: str) -> GitHostingOperationResult:
        path = self._repository_path(owner, name)
        if not path.exists():
            log.debug("repository_already_absent", repo_path=str(path))
            return GitHostingOperationResult.ok()

        if any(part.lower() == ".git" for part in path.parts):
            return self._fail(f"Cannot delete a repository inside another one at '{path}'.", path).without_data()

        try:
            with git.Repo(path / ".git") as repo:
                is_bare = repo.bare
        except (GitError, OSError):
            is_bare = False
        if not is_bare:
            return self._fail(f"Cannot delete a non bare repository at '{path}'.", path).without_data()

        try:
            _remove_tree(path)
        except OSError as e:
            return self._fail(f"While deleting repository '{path}': {e}", path).without_data()

        log.info("repository_deleted", instance_id=self.instance_id, repo_path=str(path))
        return GitHostingOperationResult.ok()

    def _describe(self, path: Path, default_branch: str | None) -> HostedRepositoryInfo:
        stats = (path / ".git").stat()
        return HostedRepositoryInfo(
            exists=True,
            repo_path=str(path),
            owner=str(path.parent),
            name=path.name,
            is_private=False,
            is_archived=False,
            is_empty=False,
            default_branch=default_branch,
            clone_url_https=path.as_uri(),
            web_url=path.as_uri(),
            created_at=datetime.fromtimestamp(stats.st_ctime, tz=UTC),
            updated_at=datetime.fromtimestamp(stats.st_mtime, tz=UTC),
        )

    def _fail(self, message: str, path: Path) -> GitHostingDataResult[HostedRepositoryInfo]:
        log.error("filesystem_operation_failed", message=message, repo_path=str(path))
        return GitHostingDataResult.fail(message)


def _remove_tree(path: Path) -> None:
    # Git object files are read-only
    for root, _dirs, files in os.walk(path):
        for file_name in files:
            file_path = os.path.join(root, file_name)
            os.chmod(file_path, os.stat(file_path).st_mode | stat.S_IWRITE)
    shutil.rmtree(path)


_shared: FileSystemProvider | None = None


def get_filesystem_provider() -> FileSystemProvider:
    """Return the process-wide FileSystemProvider."""
    global _shared
    if _shared is None:
        _shared = FileSystemProvider()
    return _shared
