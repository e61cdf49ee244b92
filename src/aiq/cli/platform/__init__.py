"""AIQ platform client: session, manifests, packaging and REST calls."""

from .client import RestClient
from .config import CONFIG_FILE, PLATFORM_SERVER_URL
from .errors import (
    AIQError,
    AuthorizationError,
    InputValidationError,
    RemoteError,
    SizeLimitError,
    StorageError,
)
from .packaging import pack_folder
from .services import Services
from .store import ManifestStore, clear_session, load_session, read_json, save_session, write_json
from .types import Application, LogRange, Manifest, PackagedArchive, SessionConfig, Solution

__all__ = [
    # Client
    "RestClient",
    "Services",
    # Config
    "CONFIG_FILE",
    "PLATFORM_SERVER_URL",
    # Errors
    "AIQError",
    "AuthorizationError",
    "InputValidationError",
    "RemoteError",
    "SizeLimitError",
    "StorageError",
    # Storage
    "ManifestStore",
    "read_json",
    "write_json",
    "load_session",
    "save_session",
    "clear_session",
    # Packaging
    "pack_folder",
    # Types
    "Application",
    "LogRange",
    "Manifest",
    "PackagedArchive",
    "SessionConfig",
    "Solution",
]
