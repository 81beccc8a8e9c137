"""Composite and in-memory secrets stores."""

import logging
from collections.abc import Mapping, Sequence

from ckli_hosting.exceptions import BackendNotAvailableError, ConfigurationError

from .environment_backend import EnvironmentSecretsStore
from .keyring_backend import KeyringSecretsStore

logger = logging.getLogger(__name__)


class InMemorySecretsStore:
    """Secrets held in a plain dictionary.

    Useful for embedding callers that already hold their tokens, and in tests.
    """

    def __init__(self, secrets: Mapping[str, str] | None = None) -> None:
        self._secrets = dict(secrets or {})
        self.requested_keys: list[list[str]] = []

    @property
    def name(self) -> str:
        return "memory"

    def try_get_secret(self, candidate_keys: Sequence[str]) -> str | None:
        self.requested_keys.append(list(candidate_keys))
        for key in candidate_keys:
            value = self._secrets.get(key)
            if value:
                return value
        return None

    def set(self, key: str, value: str) -> None:
        self._secrets[key] = value


class ChainedSecretsStore:
    """Query several backends, candidate key by candidate key.

    The outer loop runs over the candidate keys so that key order always
    wins over backend order: a read token found in the keyring beats a
    write token found in the environment.

    Unavailable backends are skipped with a debug log.
    """

    def __init__(self, backends: Sequence[EnvironmentSecretsStore | KeyringSecretsStore]) -> None:
        self.backends = tuple(backends)

    def try_get_secret(self, candidate_keys: Sequence[str]) -> str | None:
        usable = [backend for backend in self.backends if backend.available]
        for key in candidate_keys:
            for backend in usable:
                try:
                    value = backend.get(key)
                except BackendNotAvailableError:
                    logger.debug(f"Secrets backend '{backend.name}' became unavailable")
                    continue
                if value is not None:
                    logger.debug(f"Resolved secret {key} from {backend.name}")
                    return value
        return None


def create_secrets_store(backend_names: Sequence[str]) -> ChainedSecretsStore:
    """Build a chained store from backend names.

    Args:
        backend_names: Ordered names among ``environment`` and ``keyring``

    Returns:
        ChainedSecretsStore over the named backends

    Raises:
        ConfigurationError: If a backend name is unknown
    """
    backends: list[EnvironmentSecretsStore | KeyringSecretsStore] = []
    for name in backend_names:
        if name == "environment":
            backends.append(EnvironmentSecretsStore())
        elif name == "keyring":
            backends.append(KeyringSecretsStore())
        else:
            raise ConfigurationError(f"Unknown secrets backend: {name}")
    return ChainedSecretsStore(backends)
