"""CLI entry point for ckli-hosting."""

import asyncio
import sys
from collections.abc import Awaitable, Callable
from typing import Any

import click
import structlog

from ckli_hosting.cli.credentials import credentials_group
from ckli_hosting.config.settings import HostingSettings
from ckli_hosting.credentials import create_secrets_store
from ckli_hosting.credentials.backend import SecretsStore
from ckli_hosting.exceptions import CKliHostingError, ConfigurationError, ProviderResolutionError
from ckli_hosting.git.models import ParsedRemote
from ckli_hosting.hosting.base import GitHostingProvider
from ckli_hosting.hosting.detector import GitHostingProviderDetector
from ckli_hosting.hosting.models import GitHostingOperationResult, HostedRepositoryInfo, RepositoryCreateOptions
from ckli_hosting.hosting.registry import ProviderRegistry
from ckli_hosting.utils.logging_config import configure_logging

log = structlog.get_logger(__name__)


@click.group()
@click.option("--config", default=None, help="Path to a YAML configuration file")
@click.option("--log-level", default="WARNING", help="Logging level")
@click.option("--json-logs/--console-logs", default=False, help="Log as JSON lines")
@click.pass_context
def cli(ctx: click.Context, config: str | None, log_level: str, json_logs: bool) -> None:
    """ckli-hosting: repository lifecycle on GitHub, GitLab, Gitea and local disk."""
    configure_logging(log_level, json_output=json_logs)

    # The credentials group manages secrets and needs no provider settings
    if ctx.invoked_subcommand == "credentials":
        ctx.obj = {"settings": None, "secrets_store": None}
        return

    try:
        settings = HostingSettings.from_yaml(config) if config else HostingSettings()
        secrets_store = create_secrets_store(settings.secrets_backends)
    except ConfigurationError as e:
        click.echo(f"Error: {e.message}", err=True)
        log.debug("config_error", exc_info=True)
        sys.exit(1)

    ctx.obj = {"settings": settings, "secrets_store": secrets_store}


cli.add_command(credentials_group)


@cli.command()
@click.argument("remote_url")
@click.pass_context
def detect(ctx: click.Context, remote_url: str) -> None:
    """Show which hosting provider serves REMOTE_URL."""

    async def run(provider: GitHostingProvider) -> None:
        click.echo(f"Provider:       {provider.provider_type}")
        click.echo(f"Instance:       {provider.instance_id}")
        click.echo(f"Cloud:          {provider.cloud_provider}")
        click.echo(f"API:            {provider.base_api_url}")
        click.echo(f"Default public: {provider.is_default_public}")

    _run_command(ctx, "detect", remote_url, run)


@cli.command()
@click.argument("remote_url")
@click.option("--allow-missing", is_flag=True, help="Succeed when the repository does not exist")
@click.pass_context
def info(ctx: click.Context, remote_url: str, allow_missing: bool) -> None:
    """Show the hosted state of the repository at REMOTE_URL."""

    async def run(provider: GitHostingProvider) -> None:
        remote = _parse_remote(provider, remote_url)
        result = await provider.get_repository_info(remote.owner, remote.repo_name, must_exist=not allow_missing)
        _check(result)
        assert result.data is not None
        _print_info(result.data)

    _run_command(ctx, "info", remote_url, run)


@cli.command()
@click.argument("remote_url")
@click.option("--private/--public", "is_private", default=None, help="Visibility (host default when omitted)")
@click.option("--description", default=None, help="Repository description")
@click.option("--auto-init", is_flag=True, default=None, help="Create an initial commit")
@click.pass_context
def create(
    ctx: click.Context,
    remote_url: str,
    is_private: bool | None,
    description: str | None,
    auto_init: bool | None,
) -> None:
    """Create the repository at REMOTE_URL."""

    async def run(provider: GitHostingProvider) -> None:
        remote = _parse_remote(provider, remote_url)
        options = RepositoryCreateOptions(
            owner=remote.owner,
            name=remote.repo_name,
            description=description,
            is_private=is_private,
            auto_init=auto_init or None,
        )
        result = await provider.create_repository(options)
        _check(result)
        assert result.data is not None
        click.echo(f"Created {result.data.repo_path}")
        _print_info(result.data)

    _run_command(ctx, "create", remote_url, run)


@cli.command()
@click.argument("remote_url")
@click.option("--unarchive", is_flag=True, help="Make an archived repository writable again")
@click.pass_context
def archive(ctx: click.Context, remote_url: str, unarchive: bool) -> None:
    """Archive the repository at REMOTE_URL."""

    async def run(provider: GitHostingProvider) -> None:
        remote = _parse_remote(provider, remote_url)
        result = await provider.archive_repository(remote.owner, remote.repo_name, archive=not unarchive)
        _check(result)
        click.echo(f"{'Unarchived' if unarchive else 'Archived'} {remote.repo_path}")

    _run_command(ctx, "archive", remote_url, run)


@cli.command()
@click.argument("remote_url")
@click.confirmation_option(prompt="Are you sure you want to delete this repository?")
@click.pass_context
def delete(ctx: click.Context, remote_url: str) -> None:
    """Delete the repository at REMOTE_URL."""

    async def run(provider: GitHostingProvider) -> None:
        remote = _parse_remote(provider, remote_url)
        result = await provider.delete_repository(remote.owner, remote.repo_name)
        _check(result)
        click.echo(f"Deleted {remote.repo_path}")

    _run_command(ctx, "delete", remote_url, run)


def create_registry(settings: HostingSettings, secrets_store: SecretsStore) -> ProviderRegistry:
    """Build the provider registry used by every command."""
    return ProviderRegistry(secrets_store, GitHostingProviderDetector(settings))


class CommandFailed(CKliHostingError):
    """A hosting operation returned a failed result."""

    def __init__(self, result: GitHostingOperationResult) -> None:
        self.result = result
        super().__init__(result.error_message or "Operation failed")


def _run_command(
    ctx: click.Context,
    name: str,
    remote_url: str,
    action: Callable[[GitHostingProvider], Awaitable[None]],
) -> None:
    settings = ctx.obj["settings"]
    secrets_store = ctx.obj["secrets_store"]

    async def execute() -> None:
        async with create_registry(settings, secrets_store) as registry:
            provider = await registry.require(remote_url)
            await action(provider)

    try:
        asyncio.run(execute())
    except CKliHostingError as e:
        click.echo(f"Error: {e.message}", err=True)
        log.debug(f"{name}_error", exc_info=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)


def _parse_remote(provider: GitHostingProvider, remote_url: str) -> ParsedRemote:
    remote = provider.parse_remote_url(remote_url)
    if remote is None:
        raise ProviderResolutionError(f"Cannot read owner and repository name from '{remote_url}'", remote_url)
    return remote


def _check(result: GitHostingOperationResult) -> None:
    if not result.success:
        raise CommandFailed(result)


def _print_info(info: HostedRepositoryInfo) -> None:
    if not info.exists:
        click.echo("Exists:         False")
        return

    fields: list[tuple[str, Any]] = [
        ("Path", info.repo_path),
        ("Description", info.description),
        ("Private", info.is_private),
        ("Archived", info.is_archived),
        ("Empty", info.is_empty),
        ("Default branch", info.default_branch),
        ("Clone (https)", info.clone_url_https),
        ("Clone (ssh)", info.clone_url_ssh),
        ("Web", info.web_url),
        ("Created", info.created_at.isoformat() if info.created_at else None),
        ("Updated", info.updated_at.isoformat() if info.updated_at else None),
    ]
    click.echo("Exists:         True")
    for label, value in fields:
        if value is not None:
            click.echo(f"{label + ':':<16}{value}")


if __name__ == "__main__":
    cli()
