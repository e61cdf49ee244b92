"""CLI commands for managing registered applications."""

import json

import click

from ..platform.errors import AIQError
from ..platform.services import Services
from ..utils import NotedCommand, Spinner, sanitize_terminal_output
from . import fail

MOCK_NOTE = (
    'The mock-data folder is only uploaded with --mock "true"; the choice is '
    "remembered in manifest.json."
)

_app_options = [
    click.option(
        "--path",
        type=click.Path(file_okay=False),
        default=None,
        help="Application directory (default: current directory)",
    ),
    click.option("--name", "-n", default=None, help="Application name"),
    click.option("--api-level", default=None, help="Minimum JS API level (1-65535)"),
    click.option("--mock", default=None, help='Upload mock data: "true" or "false"'),
    click.option(
        "--global",
        "global_app",
        is_flag=True,
        help="Do not bind the application to the current user",
    ),
]


def app_options(func):
    for option in reversed(_app_options):
        func = option(func)
    return func


@click.command(
    cls=NotedCommand,
    long_description="Package the application folder and publish it as a new application.",
    note=MOCK_NOTE,
)
@app_options
@click.option("--solution", "solution_id", default=None, help="Solution ID to publish to")
@click.pass_obj
def register(
    services: Services,
    path: str | None,
    name: str | None,
    api_level: str | None,
    mock: str | None,
    global_app: bool,
    solution_id: str | None,
) -> None:
    """Register and deploy a new HTML5 application.

    Values not given are read from manifest.json. When several solutions
    are available you are asked which one to publish to.
    """
    try:
        result = services.register_app(
            path=path,
            name=name,
            api_level=api_level,
            mock=mock,
            solution_id=solution_id,
            global_app=global_app,
        )
    except AIQError as e:
        fail(services, e)

    services.printer.info(
        "Application [%s] was registered with ID: %s", result["name"], result["id"]
    )


@click.command(
    cls=NotedCommand,
    long_description="Package the application folder and upload it as a new version.",
    note=MOCK_NOTE,
)
@click.argument("app_id", required=False, default=None)
@app_options
@click.pass_obj
def update(
    services: Services,
    app_id: str | None,
    path: str | None,
    name: str | None,
    api_level: str | None,
    mock: str | None,
    global_app: bool,
) -> None:
    """Update an existing HTML5 application.

    APP_ID defaults to the id stored in manifest.json.
    """
    status = Spinner(show_elapsed=True, indent=2)
    status.start("Uploading application...")
    try:
        result = services.update_app(
            app_id,
            path=path,
            name=name,
            api_level=api_level,
            mock=mock,
            global_app=global_app,
        )
    except AIQError as e:
        status.fail()
        fail(services, e)
    status.done()

    services.printer.info(
        "Application [%s] with ID: %s was updated.", result["name"], result["id"]
    )


@click.command()
@click.argument("app_id")
@click.option(
    "--path",
    type=click.Path(file_okay=False),
    default=None,
    help="Application directory whose manifest should forget the id",
)
@click.pass_obj
def delete(services: Services, app_id: str, path: str | None) -> None:
    """Unregister an HTML5 application."""
    try:
        result = services.delete_app(app_id, path=path)
    except AIQError as e:
        fail(services, e)

    services.printer.info("Application with ID: %s was deleted.", result["id"])


@click.command("list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def list_apps(services: Services, as_json: bool) -> None:
    """List registered HTML5 applications."""
    try:
        app_list = services.get_apps_list()
    except AIQError as e:
        fail(services, e)

    if as_json:
        click.echo(json.dumps([a.model_dump(by_alias=True) for a in app_list], indent=2))
        return

    if not app_list:
        services.printer.info("No applications found. Register one with: aiq register")
        return

    click.echo(f"{'ID':<26} {'NAME':<30} {'SOLUTION':<25}")
    click.echo("-" * 81)

    for app in app_list:
        name = sanitize_terminal_output(app.name)
        solution = sanitize_terminal_output(app.solution.get("name", ""))
        click.echo(f"{app.id:<26} {name:<30} {solution:<25}")
