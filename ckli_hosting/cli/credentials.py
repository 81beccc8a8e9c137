"""CLI commands for personal access token management.

This module provides the ``ckli-hosting credentials`` command group. Hosting
providers look tokens up by key names derived from the host:

    - GITHUB_GIT_READ_PAT / GITHUB_GIT_WRITE_PAT for github.com
    - GITLAB_GIT_READ_PAT / GITLAB_GIT_WRITE_PAT for gitlab.com
    - {HOST}_GIT_READ_PAT / {HOST}_GIT_WRITE_PAT for any other host

Commands:
    - keys: Show the key names used for a host
    - set: Store a token in a backend
    - delete: Remove a token from a backend
    - check: Show which keys resolve, in which backend

Example:
    Store a write token for a self-hosted Gitea::

        $ ckli-hosting credentials keys git.acme.internal
        $ ckli-hosting credentials set GIT_ACME_INTERNAL_GIT_WRITE_PAT --backend keyring
        $ ckli-hosting credentials check git.acme.internal
"""

import sys

import click

from ckli_hosting.credentials import EnvironmentSecretsStore, KeyringSecretsStore
from ckli_hosting.enums import AccessLevel
from ckli_hosting.exceptions import CredentialError
from ckli_hosting.hosting.keys import pat_key

BACKEND_CHOICES = ["keyring", "environment"]


@click.group(name="credentials")
def credentials_group() -> None:
    """Manage personal access tokens used by the hosting providers.

    Supports two storage backends:
    - keyring: OS-level credential storage (recommended for workstations)
    - environment: Environment variables (recommended for CI/CD)

    Examples:

        # Which keys does a host use?
        ckli-hosting credentials keys github.com

        # Store a token in the OS keyring
        ckli-hosting credentials set GITHUB_GIT_WRITE_PAT --backend keyring

        # Check what resolves for a host
        ckli-hosting credentials check github.com
    """
    pass


@credentials_group.command(name="keys")
@click.argument("host")
def show_keys(host: str) -> None:
    """Show the token key names for HOST.

    Reads use the READ key first and fall back to the WRITE key; writes
    only use the WRITE key.
    """
    click.echo(f"Read:  {pat_key(host, AccessLevel.READ)}")
    click.echo(f"Write: {pat_key(host, AccessLevel.WRITE)}")


@credentials_group.command(name="set")
@click.argument("key")
@click.option(
    "--backend",
    type=click.Choice(BACKEND_CHOICES),
    required=True,
    help="Storage backend to use",
)
@click.option(
    "--value",
    prompt=True,
    hide_input=True,
    confirmation_prompt=True,
    help="Token value (will prompt if not provided)",
)
def set_credential(key: str, backend: str, value: str) -> None:
    """Store a token under KEY (e.g., GITHUB_GIT_WRITE_PAT).

    Examples:

        ckli-hosting credentials set GITHUB_GIT_WRITE_PAT --backend keyring

        ckli-hosting credentials set GITLAB_GIT_READ_PAT --backend environment
    """
    try:
        if backend == "keyring":
            store = KeyringSecretsStore()
            store.set(key, value)
            click.echo(f"Stored in keyring: {store.service}/{key}")
        else:
            EnvironmentSecretsStore().set(key, value)
            click.echo(f"Set environment variable: {key}")
            click.echo(click.style("Note: Environment variables only persist in current session", fg="yellow"))

        click.echo(click.style("Credential stored successfully", fg="green"))

    except CredentialError as e:
        _fail(e)
    except ValueError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)


@credentials_group.command(name="delete")
@click.argument("key")
@click.option(
    "--backend",
    type=click.Choice(BACKEND_CHOICES),
    required=True,
    help="Storage backend to use",
)
@click.confirmation_option(prompt="Are you sure you want to delete this credential?")
def delete_credential(key: str, backend: str) -> None:
    """Delete the token stored under KEY."""
    try:
        if backend == "keyring":
            deleted = KeyringSecretsStore().delete(key)
        else:
            deleted = EnvironmentSecretsStore().delete(key)

        if deleted:
            click.echo(click.style("Credential deleted successfully", fg="green"))
        else:
            click.echo(click.style("Credential not found", fg="yellow"))

    except CredentialError as e:
        _fail(e)


@credentials_group.command(name="check")
@click.argument("host")
def check_credentials(host: str) -> None:
    """Show which token keys for HOST resolve, and where.

    Values are never printed, only masked.
    """
    backends = [EnvironmentSecretsStore(), KeyringSecretsStore()]

    for access in (AccessLevel.READ, AccessLevel.WRITE):
        key = pat_key(host, access)
        try:
            found = _lookup(backends, key)
        except CredentialError as e:
            click.echo(f"{key}: " + click.style(f"error: {e.message}", fg="red"))
            continue

        if found is None:
            click.echo(f"{key}: " + click.style("not set", fg="yellow"))
        else:
            backend_name, value = found
            click.echo(f"{key}: " + click.style(f"{_mask(value)} ({backend_name})", fg="green"))


def _lookup(
    backends: list[EnvironmentSecretsStore | KeyringSecretsStore],
    key: str,
) -> tuple[str, str] | None:
    for backend in backends:
        if not backend.available:
            continue
        value = backend.get(key)
        if value is not None:
            return backend.name, value
    return None


def _mask(value: str) -> str:
    if len(value) > 8:
        return value[:4] + "*" * (len(value) - 8) + value[-4:]
    return "*" * len(value)


def _fail(error: CredentialError) -> None:
    click.echo(click.style(f"Error: {error.message}", fg="red"), err=True)
    if error.suggestion:
        click.echo(click.style(f"Suggestion: {error.suggestion}", fg="yellow"), err=True)
    sys.exit(1)
