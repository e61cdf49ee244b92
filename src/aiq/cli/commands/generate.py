"""Scaffold a new HTML5 application.

Usage:
    aiq generate myapp                  # In the current directory
    aiq generate myapp --path ~/work    # In another workspace
    aiq generate myapp --api-level 3    # Pin the minimum JS API level
"""

import click

from ..platform.errors import AIQError
from ..platform.services import Services
from ..utils import NotedCommand, Spinner
from . import fail


@click.command(
    cls=NotedCommand,
    long_description=(
        "Copy the application skeleton into a new folder and download the "
        "latest AIQ JS API into it."
    ),
    note="Without --api-level the level of the downloaded JS API is used.",
)
@click.argument("name")
@click.option(
    "--path",
    type=click.Path(file_okay=False),
    default=None,
    help="Workspace directory (default: current directory)",
)
@click.option("--api-level", default=None, help="Minimum JS API level (1-65535)")
@click.pass_obj
def generate(services: Services, name: str, path: str | None, api_level: str | None) -> None:
    """Generate an HTML5 application skeleton."""
    status = Spinner(indent=2)
    status.start(f"Generating [{name}]...")
    try:
        result = services.generate_app(name, path=path, api_level=api_level)
    except AIQError as e:
        status.fail()
        fail(services, e)
    status.done()

    services.printer.info(
        "Application [%s] was generated with API level %d.",
        result["name"],
        result["apiLevel"],
    )
