"""Annex Remote Runtime CLI.

Default mode is a git-annex external special remote session on stdio.
Git-annex starts the remote itself; the other commands are for setting up
and inspecting remotes by hand.

Usage:
    annex-remote-runtime                  # Serve one session on stdio (default)
    annex-remote-runtime --verbose        # Same, with a transcript on stderr
    annex-remote-runtime serve            # Explicit form of the default

    annex-remote-runtime backends         # List storage backends
    annex-remote-runtime remotes          # List configured remotes
    annex-remote-runtime remotes --json   # Same, as JSON

Git-annex looks for an executable named git-annex-remote-<type> on PATH;
the package installs git-annex-remote-rclone-py for that purpose.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import sys
from pathlib import Path

import click

from .errors import RemoteError

logger = logging.getLogger(__name__)

# Set to a non-empty value to get a transcript when git-annex starts us.
VERBOSE_ENV_VAR = "ANNEX_REMOTE_VERBOSE"

LOG_FORMAT = "%(levelname)s: %(name)s: %(message)s"

CONFIG_PATH_OPTION = click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="YAML file defining named remotes",
)


def configure_logging(verbose: bool) -> None:
    """Log to stderr. Stdout belongs to the protocol."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


@click.group(invoke_without_command=True)
@click.option("--verbose", "-v", is_flag=True, help="Log every protocol line to stderr")
@click.option(
    "--strict-remotes",
    is_flag=True,
    help="Only accept configured remote names, not ':backend:' strings",
)
@CONFIG_PATH_OPTION
@click.pass_context
def main(
    ctx: click.Context,
    verbose: bool,
    strict_remotes: bool,
    config_path: Path | None,
) -> None:
    """Annex Remote Runtime - external special remote for git-annex.

    By default, serves one git-annex session on stdin/stdout.
    """
    # If a subcommand is invoked, let it handle everything
    if ctx.invoked_subcommand is not None:
        return

    _run_stdio_session(verbose, strict_remotes, config_path)


@main.command("serve")
@click.option("--verbose", "-v", is_flag=True, help="Log every protocol line to stderr")
@click.option(
    "--strict-remotes",
    is_flag=True,
    help="Only accept configured remote names, not ':backend:' strings",
)
@CONFIG_PATH_OPTION
def serve(verbose: bool, strict_remotes: bool, config_path: Path | None) -> None:
    """Serve one git-annex session on stdin/stdout."""
    _run_stdio_session(verbose, strict_remotes, config_path)


def _run_stdio_session(
    verbose: bool,
    strict_remotes: bool,
    config_path: Path | None,
) -> None:
    from .storage import BackendStorageDelegate
    from .transport.stdio_adapter import prepare_stdio, run_stdio_adapter

    configure_logging(verbose)
    prepare_stdio()

    storage = BackendStorageDelegate(config_path=config_path)
    try:
        asyncio.run(
            run_stdio_adapter(
                storage,
                verbose=verbose,
                allow_backend_locators=not strict_remotes,
            )
        )
    except RemoteError:
        # Already reported to git-annex and logged.
        sys.exit(1)
    except OSError as e:
        # Usually a broken pipe: git-annex has gone away.
        logger.error(f"Lost stdio: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(130)


def git_annex_remote() -> None:
    """Entry point git-annex runs as git-annex-remote-rclone-py.

    Git-annex passes no arguments, so verbosity comes from the environment.
    """
    verbose = bool(os.getenv(VERBOSE_ENV_VAR))
    _run_stdio_session(verbose, strict_remotes=False, config_path=None)


# =============================================================================
# Inspection Commands
# =============================================================================


@main.command("backends")
def list_backends_command() -> None:
    """List the storage backends remotes can use."""
    from .storage import list_backends

    for name in list_backends():
        click.echo(name)


@main.command("remotes")
@CONFIG_PATH_OPTION
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def list_remotes_command(config_path: Path | None, output_json: bool) -> None:
    """List configured remotes.

    Remotes come from the config file and from ANNEX_REMOTE_<NAME>_TYPE /
    ANNEX_REMOTE_<NAME>_ROOT environment variables.

    Examples:

        annex-remote-runtime remotes
        annex-remote-runtime remotes --config ./remotes.yaml --json
    """
    from .storage import RemoteRegistry

    try:
        registry = RemoteRegistry.load(config_path)
    except RemoteError as e:
        click.echo(f"Error loading remotes: {e}", err=True)
        sys.exit(1)

    names = sorted(registry.names())

    if output_json:
        remotes = {name: registry.get(name).model_dump() for name in names}
        click.echo(json.dumps(remotes, indent=2))
        return

    if not names:
        click.echo("No remotes configured.")
        return

    click.echo(f"{'Name':<20} {'Type':<10} {'Root':<40}")
    click.echo("-" * 72)
    for name in names:
        definition = registry.get(name)
        click.echo(f"{name:<20} {definition.type:<10} {definition.root:<40}")


if __name__ == "__main__":
    main()
