"""Show the current session."""

import json

import click

from ..platform.services import Services


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def info(services: Services, as_json: bool) -> None:
    """Show information about the current session."""
    session = services.get_info()

    if as_json:
        click.echo(json.dumps(session.to_json_dict() if session else None, indent=2))
        return

    if session is None:
        services.printer.info("Client is not authorized. See 'aiq login -h'.")
        return

    lines = [
        f"Organization: {session.org_name or '-'}",
        f"Username:     {session.username or '-'}",
        f"User ID:      {session.user_id if session.user_id is not None else '-'}",
        f"Server:       {session.base_url or '-'}",
    ]
    services.printer.info("\n".join(lines))
