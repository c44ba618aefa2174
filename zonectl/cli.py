#!/usr/bin/env python3
"""
zonectl - Main CLI
"""

import json
import sys
from pathlib import Path

import rich_click as click
from colorama import Fore, Style

from .__version__ import get_version
from .config import AppContext, ConfigManager
from .errors import ConfigurationError, ZonectlError
from .logging_config import setup_logging
from .utils import get_config_path
from .zfs import ZfsManager


def _fail(error: Exception) -> None:
    """Print a fatal error and exit."""
    click.echo(f"{Fore.RED}ERROR: {error}{Style.RESET_ALL}", err=True)
    sys.exit(1)


def _get_context(ctx) -> AppContext:
    """Build the application context once; an invalid global config is fatal."""
    if "app" not in ctx.obj:
        try:
            ctx.obj["app"] = AppContext.create(config_path=ctx.obj["config_path"])
        except ZonectlError as e:
            _fail(e)
    return ctx.obj["app"]


@click.group(invoke_without_command=True)
@click.option(
    "--config",
    "-c",
    "config_path",
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Global configuration file (default: $ZONECTL_CONFIG or <install>/etc/zonectl.conf)",
)
@click.option("--debug", "-d", is_flag=True, help="Log external commands and internals")
@click.option("--version", is_flag=True, help="Show version information")
@click.pass_context
def cli(ctx, config_path, debug, version):
    """Zone configuration helpers.

    \b
    For LLM/AI agents:
    Use --schema option to get machine-readable JSON documentation:
      zonectl config --schema
    """
    ctx.ensure_object(dict)
    setup_logging("DEBUG" if debug else "WARNING")
    ctx.obj["config_path"] = config_path or get_config_path()

    if version:
        click.echo(f"{Fore.CYAN}zonectl {Fore.GREEN}{get_version()}{Style.RESET_ALL}")
        return

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.group("config", invoke_without_command=True)
@click.option("--schema", "show_schema", is_flag=True, help="Output JSON schema for LLM agents")
@click.pass_context
def config_cmd(ctx, show_schema):
    """Global configuration commands."""
    if show_schema:
        from .schema import get_full_schema

        click.echo(json.dumps(get_full_schema(), indent=2))
        ctx.exit(0)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@config_cmd.command("view")
@click.pass_context
def config_view(ctx):
    """Display raw configuration file content."""
    config_path = Path(ctx.obj["config_path"])

    if not config_path.exists():
        _fail(f"Config file not found: {config_path}")

    try:
        click.echo(config_path.read_text(encoding="utf-8"), nl=False)
    except OSError as e:
        _fail(e)


@config_cmd.command("validate")
@click.pass_context
def config_validate(ctx):
    """Validate the global configuration file."""
    manager = ConfigManager(ctx.obj["config_path"])

    if not manager.exists():
        click.echo(f"{Fore.YELLOW}No global config at {manager.config_path}, using defaults{Style.RESET_ALL}")
        return

    click.echo(f"{Fore.CYAN}Validating {manager.config_path}...{Style.RESET_ALL}\n")

    try:
        errors = manager.validate_config()
    except ConfigurationError as e:
        _fail(e)
    except (ZonectlError, OSError, ValueError) as e:
        _fail(f"{manager.config_path}: {e}")

    if errors:
        click.echo(f"{Fore.RED}Errors:{Style.RESET_ALL}")
        for error in errors:
            click.echo(f"  {Fore.RED}✗{Style.RESET_ALL} {error}")
        click.echo(f"\n{Fore.CYAN}Summary:{Style.RESET_ALL} {len(errors)} errors")
        sys.exit(1)

    click.echo(f"{Fore.GREEN}✓ Configuration is valid{Style.RESET_ALL}")


@cli.group("snapshot")
@click.pass_context
def snapshot_cmd(ctx):
    """ZFS snapshot commands."""


@snapshot_cmd.command("list")
@click.argument("dataset")
@click.pass_context
def snapshot_list(ctx, dataset):
    """List snapshots of DATASET, oldest first."""
    app = _get_context(ctx)
    try:
        for name in ZfsManager(app.runner).snapshot("list", dataset):
            click.echo(name)
    except (ZonectlError, OSError) as e:
        _fail(e)


def _snapshot_op(ctx, op: str, dataset: str, snapshot: str, prefix: bool = False) -> None:
    app = _get_context(ctx)
    if prefix:
        snapshot = app.gconf.snapshot.prefix + snapshot

    try:
        ZfsManager(app.runner).snapshot(op, dataset, snapshot)
    except ZonectlError as e:
        _fail(e)

    click.echo(f"{Fore.GREEN}✓ {op} {dataset}@{snapshot}{Style.RESET_ALL}")


@snapshot_cmd.command("create")
@click.argument("dataset")
@click.argument("snapshot")
@click.pass_context
def snapshot_create(ctx, dataset, snapshot):
    """Create DATASET@<prefix>SNAPSHOT."""
    _snapshot_op(ctx, "snapshot", dataset, snapshot, prefix=True)


@snapshot_cmd.command("destroy")
@click.argument("dataset")
@click.argument("snapshot")
@click.pass_context
def snapshot_destroy(ctx, dataset, snapshot):
    """Destroy DATASET@SNAPSHOT."""
    _snapshot_op(ctx, "destroy", dataset, snapshot)


@snapshot_cmd.command("rollback")
@click.argument("dataset")
@click.argument("snapshot")
@click.pass_context
def snapshot_rollback(ctx, dataset, snapshot):
    """Roll DATASET back to SNAPSHOT."""
    _snapshot_op(ctx, "rollback", dataset, snapshot)


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
