"""
Shared machinery for hosting providers that talk to a REST API.

``HttpGitHostingProvider`` owns the HTTP transport, looks up personal access
tokens, and turns every HTTP or transport failure into a failed result. The
concrete backends only describe endpoints, payloads and JSON mapping.
"""

from abc import abstractmethod
from datetime import datetime
from typing import Any, TypeVar

import httpx
import structlog

from ckli_hosting import DEFAULT_USER_AGENT
from ckli_hosting.credentials.backend import SecretsStore
from ckli_hosting.enums import AccessLevel, CloudProvider
from ckli_hosting.exceptions import CKliHostingError, ConnectionPoolClosedError, InvalidResponseError
from ckli_hosting.hosting.base import GitHostingProvider
from ckli_hosting.hosting.keys import candidate_keys, pat_key
from ckli_hosting.hosting.models import (
    GitHostingDataResult,
    GitHostingOperationResult,
    HostedRepositoryInfo,
    RepositoryCreateOptions,
)
from ckli_hosting.utils.connection_pool import HTTPConnectionPool

log = structlog.get_logger(__name__)

# Statuses that mean the repository is gone (GitLab answers 202 for deferred deletion)
DELETED_STATUSES = frozenset({200, 202, 204})

R = TypeVar("R", bound=GitHostingOperationResult)


def extract_error_message(response: httpx.Response) -> str:
    """Build the best available error text from a failed response.

    Uses the JSON ``message`` (GitHub, Gitea, GitLab) or ``error`` field and
    GitHub's ``errors[].message`` details. GitLab validation messages such as
    ``{"message": {"name": ["has already been taken"]}}`` are flattened.

    Args:
        response: Non-2xx response

    Returns:
        Provider text, or ``"HTTP {status}: {reason}"`` when there is none
    """
    fallback = f"HTTP {response.status_code}: {response.reason_phrase}"
    try:
        payload = response.json()
    except ValueError:
        return fallback

    if not isinstance(payload, dict):
        return fallback

    parts = _flatten_message(payload.get("message") or payload.get("error"))

    errors = payload.get("errors")
    if isinstance(errors, list):
        for error in errors:
            if isinstance(error, dict) and error.get("message"):
                parts.append(str(error["message"]))
            elif isinstance(error, str):
                parts.append(error)

    return "; ".join(parts) if parts else fallback


def _flatten_message(value: Any) -> list[str]:
    if value is None or value == "":
        return []
    if isinstance(value, dict):
        flattened = []
        for field, details in value.items():
            for detail in _flatten_message(details):
                flattened.append(f"{field} {detail}")
        return flattened
    if isinstance(value, list):
        return [text for item in value for text in _flatten_message(item)]
    return [str(value)]


def parse_retry_after(response: httpx.Response) -> float | None:
    """Read the ``Retry-After`` delay in seconds, if the host sent one."""
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return max(float(value), 0.0)
    except ValueError:
        # HTTP-date form is not interpreted
        return None


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO 8601 timestamp as returned by hosting APIs."""
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


class HttpGitHostingProvider(GitHostingProvider):
    """Base class for REST-based hosting providers.

    Subclasses provide:
        - ``_auth_headers``: authentication header format
        - ``_repository_api_path``: path of the repository resource
        - ``_send_create`` / ``_send_archive``: backend request shaping
        - ``_to_repository_info``: JSON mapping

    Read operations look up ``[READ, WRITE]`` token keys and fall back to
    anonymous access; write operations require the write token and fail
    without sending anything when it is missing.
    """

    # JSON flag holding the emptiness of a repository, when the API has one
    empty_field: str | None = None

    def __init__(
        self,
        instance_id: str,
        base_url: str,
        base_api_url: str,
        secrets_store: SecretsStore,
        cloud_provider: CloudProvider = CloudProvider.UNKNOWN,
        is_default_public: bool = False,
        timeout: float = 30.0,
        max_connections: int = 10,
        verify_ssl: bool = True,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the provider and its (lazily connected) transport.

        Args:
            instance_id: Host name identifying this instance
            base_url: Web authority (e.g., "https://github.company.com")
            base_api_url: REST API root; a trailing slash is enforced
            secrets_store: Lookup for personal access tokens
            cloud_provider: Public SaaS this instance is, if any
            is_default_public: Visibility of created repositories by default
            timeout: Request timeout in seconds
            max_connections: Connection pool size
            verify_ssl: Verify server certificates
            user_agent: User-Agent header value
            transport: Custom httpx transport (tests inject ``httpx.MockTransport``)
        """
        super().__init__(
            instance_id=instance_id,
            base_url=base_url,
            base_api_url=base_api_url,
            cloud_provider=cloud_provider,
            is_default_public=is_default_public,
        )
        self._secrets_store = secrets_store
        headers = {"User-Agent": user_agent, "Accept": "application/json"}
        headers.update(self._default_headers())
        self._pool = HTTPConnectionPool(
            base_url=self.base_api_url,
            max_connections=max_connections,
            timeout=timeout,
            headers=headers,
            verify=verify_ssl,
            transport=transport,
        )

    # ------------------------------------------------------------------
    # Backend hooks
    # ------------------------------------------------------------------

    def _default_headers(self) -> dict[str, str]:
        return {}

    @abstractmethod
    def _auth_headers(self, token: str) -> dict[str, str]:
        pass

    @abstractmethod
    def _repository_api_path(self, owner: str, name: str) -> str:
        pass

    @abstractmethod
    async def _send_create(self, options: RepositoryCreateOptions, token: str) -> httpx.Response:
        pass

    @abstractmethod
    async def _send_archive(self, owner: str, name: str, archive: bool, token: str) -> httpx.Response:
        pass

    @abstractmethod
    def _to_repository_info(self, payload: dict[str, Any], is_empty: bool) -> HostedRepositoryInfo:
        pass

    def _validate_repository_path(self, owner: str, name: str) -> str | None:
        """Return an error message when the path is invalid for this backend."""
        if not owner.strip("/") or not name.strip("/") or "/" in name:
            return f"Invalid repository path '{owner}/{name}'. Must be '<owner>/<name>'."
        return None

    async def _detect_empty(self, owner: str, name: str, payload: dict[str, Any], token: str | None) -> bool:
        if self.empty_field is None:
            return False
        return bool(payload.get(self.empty_field, False))

    def _created_empty(self, payload: dict[str, Any], options: RepositoryCreateOptions) -> bool:
        if self.empty_field is not None and self.empty_field in payload:
            return bool(payload[self.empty_field])
        return not options.auto_init

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def get_repository_info(
        self,
        owner: str,
        name: str,
        must_exist: bool = True,
    ) -> GitHostingDataResult[HostedRepositoryInfo]:
        refused = self._refuse(GitHostingDataResult, owner, name)
        if refused is not None:
            return refused

        try:
            token = self._lookup_token(AccessLevel.READ)
            if token is None:
                log.debug("anonymous_read", instance_id=self.instance_id, repo_path=f"{owner}/{name}")

            response = await self._send("GET", self._repository_api_path(owner, name), token)
            if response.status_code == 404:
                return self._missing_repository(owner, name, must_exist)
            if not response.is_success:
                return self._rejected(GitHostingDataResult, "get_repository_info", response)

            payload = self._read_json_object(response)
            is_empty = await self._detect_empty(owner, name, payload, token)
            info = self._to_repository_info(payload, is_empty)
        except (httpx.HTTPError, CKliHostingError) as e:
            return self._request_failed(GitHostingDataResult, "get_repository_info", e)

        log.debug("repository_info", instance_id=self.instance_id, repo_path=info.repo_path, is_empty=info.is_empty)
        return GitHostingDataResult.ok(info)

    async def create_repository(
        self,
        options: RepositoryCreateOptions,
    ) -> GitHostingDataResult[HostedRepositoryInfo]:
        refused = self._refuse(GitHostingDataResult, options.owner, options.name)
        if refused is not None:
            return refused

        try:
            token = self._lookup_token(AccessLevel.WRITE)
            if token is None:
                return self._missing_token(GitHostingDataResult, "create_repository")

            response = await self._send_create(options, token)
            if not response.is_success:
                return self._rejected(GitHostingDataResult, "create_repository", response)

            payload = self._read_json_object(response)
            info = self._to_repository_info(payload, self._created_empty(payload, options))
        except (httpx.HTTPError, CKliHostingError) as e:
            return self._request_failed(GitHostingDataResult, "create_repository", e)

        log.info(
            "repository_created",
            instance_id=self.instance_id,
            repo_path=info.repo_path,
            is_private=info.is_private,
        )
        return GitHostingDataResult.ok(info)

    async def archive_repository(self, owner: str, name: str, archive: bool = True) -> GitHostingOperationResult:
        refused = self._refuse(GitHostingOperationResult, owner, name)
        if refused is not None:
            return refused

        try:
            token = self._lookup_token(AccessLevel.WRITE)
            if token is None:
                return self._missing_token(GitHostingOperationResult, "archive_repository")

            response = await self._send("GET", self._repository_api_path(owner, name), token)
            if response.status_code == 404:
                return self._missing_repository(owner, name, must_exist=True).without_data()
            if not response.is_success:
                return self._rejected(GitHostingOperationResult, "archive_repository", response)

            payload = self._read_json_object(response)
            if bool(payload.get("archived", False)) == archive:
                return self._already_in_state(owner, name, archive)

            response = await self._send_archive(owner, name, archive, token)
            if not response.is_success:
                return self._rejected(GitHostingOperationResult, "archive_repository", response)
        except (httpx.HTTPError, CKliHostingError) as e:
            return self._request_failed(GitHostingOperationResult, "archive_repository", e)

        log.info(
            "repository_archived" if archive else "repository_unarchived",
            instance_id=self.instance_id,
            repo_path=f"{owner}/{name}",
        )
        return GitHostingOperationResult.ok()

    async def delete_repository(self, owner: str, name: str) -> GitHostingOperationResult:
        refused = self._refuse(GitHostingOperationResult, owner, name)
        if refused is not None:
            return refused

        try:
            token = self._lookup_token(AccessLevel.WRITE)
            if token is None:
                return self._missing_token(GitHostingOperationResult, "delete_repository")

            response = await self._send("DELETE", self._repository_api_path(owner, name), token)
        except (httpx.HTTPError, CKliHostingError) as e:
            return self._request_failed(GitHostingOperationResult, "delete_repository", e)

        if response.status_code not in DELETED_STATUSES:
            return self._rejected(GitHostingOperationResult, "delete_repository", response)

        log.info("repository_deleted", instance_id=self.instance_id, repo_path=f"{owner}/{name}")
        return GitHostingOperationResult.ok()

    async def aclose(self) -> None:
        if self.closed:
            return
        await super().aclose()
        await self._pool.close()
        log.debug("provider_closed", instance_id=self.instance_id, provider_type=str(self.provider_type))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _lookup_token(self, access: AccessLevel) -> str | None:
        return self._secrets_store.try_get_secret(candidate_keys(self.instance_id, access))

    async def _send(
        self,
        method: str,
        path: str,
        token: str | None,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        headers = self._auth_headers(token) if token else None
        return await self._pool.request(method, path, headers=headers, json=json)

    def _read_json_object(self, response: httpx.Response) -> dict[str, Any]:
        url = str(response.request.url)
        if not response.content:
            raise InvalidResponseError(f"Empty response from '{url}'.", status_code=response.status_code)
        try:
            payload = response.json()
        except ValueError as e:
            raise InvalidResponseError(f"Invalid JSON response from '{url}'.", status_code=response.status_code) from e
        if not isinstance(payload, dict):
            raise InvalidResponseError(f"Unexpected JSON response from '{url}'.", status_code=response.status_code)
        return payload

    def _refuse(self, result_cls: type[R], owner: str, name: str) -> R | None:
        if self.closed:
            message = f"{self.provider_type} for '{self.instance_id}' has been closed."
            log.error("provider_closed_use", message=message, instance_id=self.instance_id)
            return result_cls.fail(message)  # type: ignore[return-value]

        invalid = self._validate_repository_path(owner, name)
        if invalid is not None:
            log.error("invalid_repository_path", message=invalid, instance_id=self.instance_id)
            return result_cls.fail(invalid)  # type: ignore[return-value]
        return None

    def _missing_token(self, result_cls: type[R], operation: str) -> R:
        key = pat_key(self.instance_id, AccessLevel.WRITE)
        message = f"No PAT available for '{self.instance_id}'. Set {key} in secrets."
        log.error("missing_pat", message=message, operation=operation, instance_id=self.instance_id)
        return result_cls.fail(message)  # type: ignore[return-value]

    def _rejected(self, result_cls: type[R], operation: str, response: httpx.Response) -> R:
        message = extract_error_message(response)
        log.error(
            "hosting_request_rejected",
            message=message,
            operation=operation,
            instance_id=self.instance_id,
            status_code=response.status_code,
            method=response.request.method,
            url=str(response.request.url),
        )
        return result_cls.fail(  # type: ignore[return-value]
            message,
            status_code=response.status_code,
            retry_after=parse_retry_after(response),
        )

    def _request_failed(self, result_cls: type[R], operation: str, error: Exception) -> R:
        """Convert an exception raised during an operation into a failed result.

        An ``InvalidResponseError`` keeps the status of the offending response,
        so a malformed 2xx body is reported with its 2xx status while
        ``success`` stays false. Transport errors and a provider closed in
        the middle of an operation carry no status.
        """
        if isinstance(error, ConnectionPoolClosedError):
            message = f"{self.provider_type} for '{self.instance_id}' has been closed."
        elif isinstance(error, CKliHostingError):
            message = error.message
        else:
            message = f"Request to '{self.base_api_url}' failed: {type(error).__name__}: {error}"
        status_code = error.status_code if isinstance(error, InvalidResponseError) else None
        log.error(
            "hosting_request_failed",
            message=message,
            operation=operation,
            instance_id=self.instance_id,
            error_type=type(error).__name__,
        )
        return result_cls.fail(message, status_code=status_code)  # type: ignore[return-value]
