"""Exception hierarchy for ckli-hosting.

Hosting provider operations report expected failures (HTTP errors, missing
repositories, invalid local paths) through result objects, never through
exceptions. The exceptions below are reserved for configuration mistakes,
credential backend problems and misuse of the provider registry.

Exception Hierarchy:
    CKliHostingError (base)
    ├── ConfigurationError
    ├── CredentialError
    │   └── BackendNotAvailableError
    ├── ProviderResolutionError
    ├── RegistryClosedError
    ├── ConnectionPoolClosedError
    └── InvalidResponseError

Example Usage:
    >>> from ckli_hosting.exceptions import ConfigurationError
    >>> try:
    ...     settings = HostingSettings.from_yaml(path)
    ... except ConfigurationError as e:
    ...     print(e.message)
"""


class CKliHostingError(Exception):
    """Base exception for all ckli-hosting errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigurationError(CKliHostingError):
    """Configuration-related errors.

    Examples:
        - Configuration file not found
        - Invalid YAML syntax
        - Unknown provider name in the host map
    """

    pass


class CredentialError(CKliHostingError):
    """Secrets store errors.

    Raised when a secrets backend fails while reading or writing a personal
    access token. A missing token is not an error: lookups return ``None``.

    Attributes:
        message: Human-readable error description
        reference: The secret key that failed (e.g., "GITHUB_GIT_WRITE_PAT")
        suggestion: Optional suggestion for resolution
    """

    def __init__(
        self,
        message: str,
        reference: str | None = None,
        suggestion: str | None = None,
    ) -> None:
        self.reference = reference
        self.suggestion = suggestion

        full_message = message
        if reference:
            full_message = f"{message} (key: {reference})"
        if suggestion:
            full_message = f"{full_message}\nSuggestion: {suggestion}"

        super().__init__(full_message)
        # super() stored the decorated text
        self.message = message


class BackendNotAvailableError(CredentialError):
    """Requested secrets backend is not available on this system."""

    pass


class ProviderResolutionError(CKliHostingError):
    """No hosting provider could be resolved for a remote URL.

    Raised by callers that require a provider (the CLI, the registry's
    strict lookup). The detector itself returns ``None``.

    Attributes:
        message: Human-readable error description
        remote_url: The remote URL that could not be resolved
    """

    def __init__(self, message: str, remote_url: str | None = None) -> None:
        self.remote_url = remote_url
        super().__init__(message)


class RegistryClosedError(CKliHostingError):
    """A provider was requested from a registry that has been closed."""

    pass


class ConnectionPoolClosedError(CKliHostingError):
    """A request was sent through a connection pool that has been closed."""

    pass


class InvalidResponseError(CKliHostingError):
    """A hosting API answered with an empty or malformed body.

    Raised inside HTTP providers and converted to a failed result at the
    operation boundary.

    Attributes:
        message: Human-readable error description
        status_code: HTTP status of the offending response
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)
