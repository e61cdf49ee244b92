"""Preview an application in the browser.

Usage:
    aiq server                  # Serve the current directory on port 8080
    aiq server -p 9000 --path ./myapp
"""

from pathlib import Path

import click

from .. import preview
from ..platform.errors import AIQError
from ..platform.services import Services
from . import fail


@click.command()
@click.option("--port", "-p", default="8080", help="Port number (1-65535)")
@click.option(
    "--path",
    default=None,
    help="Application directory (default: current directory)",
)
@click.pass_obj
def server(services: Services, port: str, path: str | None) -> None:
    """Start a local web server for the application."""
    docs_root = Path(path) if path else Path.cwd()
    try:
        httpd = preview.make_server(port, docs_root)
    except AIQError as e:
        fail(services, e)

    services.printer.info(
        "Serving [%s] at http://localhost:%d (Ctrl+C to stop)",
        docs_root,
        httpd.server_address[1],
    )
    try:
        httpd.serve_forever()
    except KeyboardInterrupt:
        click.echo("\nStopped.")
    finally:
        httpd.server_close()
