"""CLI commands."""

import sys
from typing import NoReturn

from ..platform.errors import AIQError
from ..platform.services import Services


def fail(services: Services, error: AIQError) -> NoReturn:
    """Report a failed operation and exit with status 1."""
    services.printer.error(error.message)
    sys.exit(1)
