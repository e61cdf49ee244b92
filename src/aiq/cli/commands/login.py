"""Authenticate with the AIQ platform.

The `aiq login` command exchanges organization credentials for an access
token and stores it in the session config.

Usage:
    aiq login -o acme -u admin          # Prompts for the password
    aiq login -o acme -u admin -p pass  # Non-interactive
"""

import click

from ..platform.errors import AIQError
from ..platform.services import Services
from ..utils import NotedCommand
from . import fail


@click.command(
    cls=NotedCommand,
    long_description="Connect to an AIQ organization and store the access token.",
    note="The token is kept in the session config file, see 'aiq --help'.",
)
@click.option("--org", "-o", "org_name", help="Name of the organization")
@click.option("--username", "-u", help="Username")
@click.option("--password", "-p", prompt=True, hide_input=True, help="Password")
@click.option("--server", "-s", "server_url", help="AIQ server address")
@click.pass_obj
def login(
    services: Services,
    org_name: str | None,
    username: str | None,
    password: str | None,
    server_url: str | None,
) -> None:
    """Authenticate with the AIQ platform.

    Examples:
        aiq login -o acme -u admin
        aiq login -o acme -u admin -s https://aiq.example.com/api
    """
    try:
        services.login(org_name, username, password, server_url)
    except AIQError as e:
        fail(services, e)

    services.printer.info("Successfully logged in as [%s].", username)
