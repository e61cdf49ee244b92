#!/usr/bin/env python3
"""AIQ CLI - manage HTML5 applications on the AIQ platform

Usage:
    aiq login -o ORG -u USER
    aiq logout
    aiq info
    aiq generate <name>
    aiq register | update [id] | delete <id> | list
    aiq logs <ip> [-f]
    aiq server [--port=PORT]
"""

import logging
import sys
from importlib.metadata import version
from pathlib import Path

import click

from .commands import apps, generate, info, login, logout, logs, server
from .platform.config import CONFIG_FILE
from .platform.errors import AIQError
from .platform.services import Services
from .utils import Printer


@click.group()
@click.version_option(version=version("aiq-cli"))
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=CONFIG_FILE,
    show_default=True,
    help="Session config file",
)
@click.option("--verbose", "-v", is_flag=True, help="Log HTTP calls and file operations")
@click.option("--no-color", is_flag=True, help="Disable coloured output")
@click.pass_context
def cli(ctx: click.Context, config_path: Path, verbose: bool, no_color: bool):
    """AIQ CLI - manage HTML5 applications on the AIQ platform"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    printer = Printer(color=False if no_color else None)
    ctx.obj = Services(config_path, Path.cwd(), printer=printer)


# Session
cli.add_command(login.login)
cli.add_command(logout.logout)
cli.add_command(info.info)

# Applications
cli.add_command(generate.generate)
cli.add_command(apps.register)
cli.add_command(apps.update)
cli.add_command(apps.delete)
cli.add_command(apps.list_apps)

# Development
cli.add_command(logs.logs)
cli.add_command(server.server)


def main():
    """Main entry point for the CLI."""
    try:
        cli()
    except AIQError as e:
        Printer().error(e.message)
        sys.exit(1)
    except (click.Abort, KeyboardInterrupt):
        click.echo(err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
