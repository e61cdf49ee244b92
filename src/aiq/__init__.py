"""aiq - command-line client for the AIQ mobile-application platform."""

import importlib.metadata

try:
    __version__ = importlib.metadata.version("aiq-cli")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.0.0"
