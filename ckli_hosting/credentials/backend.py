"""Secrets store protocol consumed by the hosting providers."""

from collections.abc import Sequence
from typing import Protocol


class SecretsStore(Protocol):
    """Lookup contract for personal access tokens.

    Providers only ever read secrets. Writing them is the business of the
    concrete backends and the ``credentials`` CLI.
    """

    def try_get_secret(self, candidate_keys: Sequence[str]) -> str | None:
        """Return the first non-empty secret among the candidate keys.

        Args:
            candidate_keys: Ordered secret names (e.g., ["GITHUB_GIT_READ_PAT",
                "GITHUB_GIT_WRITE_PAT"])

        Returns:
            The secret value, or None when no key resolves
        """
        ...
