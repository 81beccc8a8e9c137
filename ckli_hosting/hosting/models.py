"""Result envelopes and repository models shared by every hosting provider.

Provider operations never raise for expected failures: each returns a
``GitHostingOperationResult`` (or ``GitHostingDataResult`` when it produces a
value) whose error classification is derived from the HTTP status code alone.

Example:
    >>> result = GitHostingOperationResult.fail("Bad credentials", status_code=401)
    >>> result.is_authentication_error
    True
    >>> GitHostingDataResult.ok(HostedRepositoryInfo()).data.exists
    False
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, field_validator

T = TypeVar("T")


@dataclass(frozen=True)
class HostedRepositoryInfo:
    """Repository state as reported by a hosting provider.

    The default instance describes a repository that does not exist: every
    flag is false and every optional field is None. Providers return exactly
    this shape for absent repositories.

    Attributes:
        exists: Whether the repository exists on the host
        repo_path: Full ``owner/name`` path as reported by the host
        owner: Owner path (may contain ``/`` for nested groups)
        name: Repository name
        description: Repository description
        is_private: Whether the repository is private
        is_archived: Whether the repository is archived (read-only)
        is_empty: Whether the repository has no branches yet
        default_branch: Default branch name
        clone_url_https: HTTPS clone URL
        clone_url_ssh: SSH clone URL
        web_url: Browser URL
        created_at: Creation time
        updated_at: Last update (GitLab: last activity) time
    """

    exists: bool = False
    repo_path: str = ""
    owner: str = ""
    name: str = ""
    description: str | None = None
    is_private: bool = False
    is_archived: bool = False
    is_empty: bool = False
    default_branch: str | None = None
    clone_url_https: str | None = None
    clone_url_ssh: str | None = None
    web_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class RepositoryCreateOptions(BaseModel):
    """Options for creating a hosted repository.

    Provider-specific extras are honored where the backend supports them and
    ignored otherwise. When ``is_private`` is None the provider's
    ``is_default_public`` flag decides.
    """

    owner: str
    name: str
    description: str | None = None
    is_private: bool | None = None
    auto_init: bool | None = None
    gitignore_template: str | None = None
    license_template: str | None = None

    @field_validator("owner", "name")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        """Ensure owner and name are not blank.

        Args:
            v: Value to validate

        Returns:
            The stripped value

        Raises:
            ValueError: If the value is empty or whitespace only
        """
        if not v or not v.strip():
            raise ValueError("Field cannot be empty")
        return v.strip()

    @field_validator("name")
    @classmethod
    def validate_single_segment(cls, v: str) -> str:
        if "/" in v:
            raise ValueError("Repository name cannot contain '/'")
        return v

    @property
    def repo_path(self) -> str:
        return f"{self.owner}/{self.name}"

    @property
    def has_extras(self) -> bool:
        """True when any optional setting beyond owner and name is set."""
        return any(
            value is not None
            for value in (
                self.description,
                self.is_private,
                self.auto_init,
                self.gitignore_template,
                self.license_template,
            )
        )


@dataclass(frozen=True)
class GitHostingOperationResult:
    """Success or failure of a hosting operation.

    Attributes:
        success: Whether the operation succeeded
        error_message: Best available error text (provider text preserved)
        http_status_code: HTTP status of the failing response, if any
        retry_after: Seconds the host asked to wait (``Retry-After`` header);
            informational only, nothing is retried here
    """

    success: bool
    error_message: str | None = None
    http_status_code: int | None = None
    retry_after: float | None = None

    @property
    def is_authentication_error(self) -> bool:
        return self.http_status_code in (401, 403)

    @property
    def is_not_found(self) -> bool:
        return self.http_status_code == 404

    @property
    def is_rate_limited(self) -> bool:
        return self.http_status_code == 429

    @classmethod
    def ok(cls) -> "GitHostingOperationResult":
        return cls(success=True)

    @classmethod
    def fail(
        cls,
        message: str,
        status_code: int | None = None,
        retry_after: float | None = None,
    ) -> "GitHostingOperationResult":
        return cls(
            success=False,
            error_message=message,
            http_status_code=status_code,
            retry_after=retry_after,
        )


@dataclass(frozen=True)
class GitHostingDataResult(GitHostingOperationResult, Generic[T]):
    """Operation result that carries a value on success.

    ``data`` is only populated when ``success`` is True.
    """

    data: T | None = None

    @classmethod
    def ok(cls, data: T | None = None) -> "GitHostingDataResult[T]":  # type: ignore[override]
        return cls(success=True, data=data)

    @classmethod
    def fail(
        cls,
        message: str,
        status_code: int | None = None,
        retry_after: float | None = None,
    ) -> "GitHostingDataResult[T]":
        return cls(
            success=False,
            error_message=message,
            http_status_code=status_code,
            retry_after=retry_after,
        )

    @classmethod
    def from_failure(cls, result: GitHostingOperationResult) -> "GitHostingDataResult[T]":
        """Carry a failed result over into a data result."""
        return cls.fail(
            result.error_message or "Operation failed",
            status_code=result.http_status_code,
            retry_after=result.retry_after,
        )

    def without_data(self) -> GitHostingOperationResult:
        """Drop the payload, keeping success and error details."""
        return GitHostingOperationResult(
            success=self.success,
            error_message=self.error_message,
            http_status_code=self.http_status_code,
            retry_after=self.retry_after,
        )
