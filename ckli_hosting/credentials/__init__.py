"""Personal access token lookup for hosting providers.

Providers consume the narrow ``SecretsStore`` protocol: given an ordered list
of candidate key names, return the first resolved secret or None. Concrete
stores read environment variables, the OS keyring, or an in-memory mapping.
"""

from .backend import SecretsStore
from .environment_backend import EnvironmentSecretsStore
from .keyring_backend import KeyringSecretsStore
from .store import ChainedSecretsStore, InMemorySecretsStore, create_secrets_store

__all__ = [
    "SecretsStore",
    "EnvironmentSecretsStore",
    "KeyringSecretsStore",
    "ChainedSecretsStore",
    "InMemorySecretsStore",
    "create_secrets_store",
]
