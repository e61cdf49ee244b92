"""JSON-backed session and manifest storage."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .config import MANIFEST_FILE
from .errors import StorageError
from .types import Manifest, SessionConfig

logger = logging.getLogger(__name__)


def read_json(
    path: str | Path, defaults: dict[str, Any] | None = None, exit_on_error: bool = False
) -> dict[str, Any]:
    """Read a JSON object, merging stored values over ``defaults``.

    Args:
        path: File to read.
        defaults: Values used for keys the file does not define.
        exit_on_error: Terminate the process when the file is not valid JSON.

    Returns:
        The merged dictionary. A missing or corrupt file yields the defaults.
    """
    result = dict(defaults or {})
    path = Path(path)
    if not path.exists():
        return result
    try:
        data = json.loads(path.read_text())
    except (OSError, ValueError) as e:
        logger.error("Could not read %s: %s", path, e)
        if exit_on_error:
            sys.exit(1)
        return result
    if isinstance(data, dict):
        result.update(data)
    else:
        logger.warning("Ignoring %s: expected a JSON object", path)
    return result


def write_json(path: str | Path, data: dict[str, Any] | None) -> dict[str, Any]:
    """Write ``data`` as indented JSON and return it.

    Raises:
        StorageError: If the file cannot be written.
    """
    data = data or {}
    try:
        Path(path).write_text(json.dumps(data, indent=2))
    except OSError as e:
        raise StorageError(str(e)) from e
    return data


def load_session(path: Path) -> SessionConfig:
    """Load the session config, treating an invalid one as logged out."""
    try:
        return SessionConfig.model_validate(read_json(path))
    except ValidationError:
        logger.warning("Session file %s is invalid, ignoring it", path)
        return SessionConfig()


def save_session(path: Path, session: SessionConfig) -> dict[str, Any]:
    """Persist the session config readable by its owner only."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StorageError(str(e)) from e
    data = write_json(path, session.to_json_dict())
    path.chmod(0o600)
    return data


def clear_session(path: Path) -> dict[str, Any]:
    """Reset the session config to the unauthenticated state."""
    return save_session(path, SessionConfig())


class ManifestStore:
    """Access to the ``manifest.json`` of one application folder."""

    def __init__(self, app_path: str | Path) -> None:
        self.app_path = Path(app_path)
        self.path = self.app_path / MANIFEST_FILE

    def exists(self) -> bool:
        """Whether the application folder itself exists."""
        return self.app_path.is_dir()

    def load(self) -> Manifest:
        data = read_json(self.path, {"minJsApiLevel": 1})
        try:
            return Manifest.model_validate(data)
        except ValidationError as e:
            raise StorageError(f"Invalid manifest file [{self.path}].") from e

    def save(self, manifest: Manifest) -> dict[str, Any]:
        return write_json(self.path, manifest.to_json_dict())

    def snapshot(self) -> bytes | None:
        """Raw manifest bytes, or None when there is no manifest yet."""
        try:
            return self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(str(e)) from e

    def restore(self, snapshot: bytes | None) -> None:
        """Put back exactly what :meth:`snapshot` returned."""
        logger.debug("Restoring manifest %s", self.path)
        try:
            if snapshot is None:
                self.path.unlink(missing_ok=True)
            else:
                self.path.write_bytes(snapshot)
        except OSError as e:
            raise StorageError(str(e)) from e
