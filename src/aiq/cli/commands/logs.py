"""Show logs of a device running the AIQ client.

The `aiq logs` command reads the log a device exposes on port 8000.

Usage:
    aiq logs 192.168.0.12       # Print the current log
    aiq logs 192.168.0.12 -f    # Follow the log
"""

import click

from ..platform.errors import AIQError
from ..platform.services import Services
from . import fail


@click.command()
@click.argument("ip")
@click.option("--follow", "-f", is_flag=True, help="Follow log output")
@click.pass_obj
def logs(services: Services, ip: str, follow: bool) -> None:
    """Show the log of a device.

    Use --follow to keep polling for new output, Ctrl+C to stop.

    Examples:
        aiq logs 192.168.0.12
        aiq logs 192.168.0.12 -f
    """
    try:
        services.show_logs(ip, follow=follow)
    except AIQError as e:
        fail(services, e)
    except KeyboardInterrupt:
        click.echo("\nStopped.")
