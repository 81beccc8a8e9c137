"""Environment variable secrets store for CI/CD and containerized environments."""

import logging
import os
from collections.abc import Sequence

logger = logging.getLogger(__name__)


class EnvironmentSecretsStore:
    """Resolve personal access tokens from environment variables.

    The secret key is used verbatim as the variable name, so
    ``GITHUB_GIT_WRITE_PAT`` is read from ``$GITHUB_GIT_WRITE_PAT``.

    Example:
        >>> import os
        >>> os.environ['GITHUB_GIT_WRITE_PAT'] = 'ghp_abc123'
        >>> EnvironmentSecretsStore().try_get_secret(['GITHUB_GIT_WRITE_PAT'])
        'ghp_abc123'
    """

    @property
    def name(self) -> str:
        return "environment"

    @property
    def available(self) -> bool:
        """Environment backend is always available."""
        return True

    def get(self, key: str) -> str | None:
        """Read a single secret; empty values count as missing."""
        value = os.getenv(key)
        if not value:
            return None

        logger.debug(f"Retrieved secret from environment: {key}")
        return value

    def try_get_secret(self, candidate_keys: Sequence[str]) -> str | None:
        for key in candidate_keys:
            value = self.get(key)
            if value is not None:
                return value
        return None

    def set(self, key: str, value: str) -> None:
        """Set a secret for the current process and its children.

        Raises:
            ValueError: If the value is empty
        """
        if not value:
            raise ValueError("Secret value cannot be empty")

        os.environ[key] = value
        logger.debug(f"Set environment variable: {key}")

    def delete(self, key: str) -> bool:
        if key in os.environ:
            del os.environ[key]
            logger.debug(f"Deleted environment variable: {key}")
            return True
        return False
