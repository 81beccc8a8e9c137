"""OS-level keyring secrets store.

Platform Support:
- Linux: Secret Service API (GNOME Keyring, KWallet)
- macOS: Keychain
- Windows: Windows Credential Locker
"""

import logging
from collections.abc import Sequence
from typing import cast

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from ckli_hosting.exceptions import BackendNotAvailableError, CredentialError

logger = logging.getLogger(__name__)

DEFAULT_SERVICE = "ckli"


class KeyringSecretsStore:
    """Personal access tokens stored in the system keyring.

    Every secret is stored under one keyring service (``ckli`` by default)
    with the secret key as user name.

    Example:
        >>> store = KeyringSecretsStore()
        >>> store.set('GITHUB_GIT_WRITE_PAT', 'ghp_abc123')
        >>> store.try_get_secret(['GITHUB_GIT_READ_PAT', 'GITHUB_GIT_WRITE_PAT'])
        'ghp_abc123'
    """

    def __init__(self, service: str = DEFAULT_SERVICE) -> None:
        self.service = service

    @property
    def name(self) -> str:
        return "keyring"

    @property
    def available(self) -> bool:
        """Check if a functional keyring backend is configured.

        Headless systems usually only have the ``fail`` backend.
        """
        try:
            backend = keyring.get_keyring()
        except KeyringError as e:
            logger.debug(f"Keyring not available: {e}")
            return False
        return type(backend).__module__ != "keyring.backends.fail"

    def get(self, key: str) -> str | None:
        """Retrieve a secret from the keyring.

        Raises:
            BackendNotAvailableError: If keyring is not available
            CredentialError: If the keyring operation fails
        """
        if not self.available:
            raise BackendNotAvailableError(
                "Keyring backend is not available",
                suggestion="Use the environment backend or configure a keyring",
            )

        try:
            secret = cast(str | None, keyring.get_password(self.service, key))
        except KeyringError as e:
            raise CredentialError(f"Keyring operation failed: {e}", reference=key) from e

        if secret:
            logger.debug(f"Retrieved secret from keyring: {self.service}/{key}")
            return secret
        return None

    def try_get_secret(self, candidate_keys: Sequence[str]) -> str | None:
        for key in candidate_keys:
            value = self.get(key)
            if value is not None:
                return value
        return None

    def set(self, key: str, value: str) -> None:
        """Store a secret in the keyring.

        Raises:
            BackendNotAvailableError: If keyring is not available
            CredentialError: If the keyring operation fails
            ValueError: If the value is empty
        """
        if not self.available:
            raise BackendNotAvailableError("Keyring backend is not available")

        if not value:
            raise ValueError("Secret value cannot be empty")

        try:
            keyring.set_password(self.service, key, value)
        except KeyringError as e:
            raise CredentialError(f"Failed to store secret: {e}", reference=key) from e

        logger.info(f"Stored secret in keyring: {self.service}/{key}")

    def delete(self, key: str) -> bool:
        if not self.available:
            raise BackendNotAvailableError("Keyring backend is not available")

        try:
            keyring.delete_password(self.service, key)
        except PasswordDeleteError:
            return False
        except KeyringError as e:
            raise CredentialError(f"Failed to delete secret: {e}", reference=key) from e

        logger.info(f"Deleted secret from keyring: {self.service}/{key}")
        return True
