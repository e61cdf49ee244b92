"""Log out from the AIQ platform.

The `aiq logout` command revokes the access token and clears the session
config.

Usage:
    aiq logout
"""

import click

from ..platform.errors import AIQError
from ..platform.services import Services
from . import fail


@click.command()
@click.pass_obj
def logout(services: Services) -> None:
    """Log out from the AIQ platform.

    The local session is cleared even if the platform cannot be reached.
    """
    try:
        services.logout()
    except AIQError as e:
        fail(services, e)

    services.printer.info("Logged out successfully.")
