"""Application packaging for upload."""

from __future__ import annotations

import logging
import os
import tempfile
import zipfile
from pathlib import Path

from .config import MAX_ARCHIVE_SIZE, MOCK_DATA_DIR
from .errors import SizeLimitError, StorageError
from .types import PackagedArchive

logger = logging.getLogger(__name__)


def pack_folder(
    folder: str | Path, skip_mocks: bool, max_size: int | None = None
) -> PackagedArchive:
    """Zip an application folder into a temporary archive.

    The archive is created outside of ``folder`` so it never ends up inside
    itself. The caller owns the returned file and must remove it.

    Args:
        folder: Application root.
        skip_mocks: Leave out everything under ``mock-data/``.
        max_size: Size ceiling in bytes, ``MAX_ARCHIVE_SIZE`` by default.

    Returns:
        Path and size of the archive.

    Raises:
        SizeLimitError: If the archive is larger than the ceiling.
        StorageError: If the archive cannot be written.
    """
    folder = Path(folder)
    limit = MAX_ARCHIVE_SIZE if max_size is None else max_size

    fd, package_path_str = tempfile.mkstemp(suffix=".zip")
    os.close(fd)
    package_path = Path(package_path_str)

    try:
        with zipfile.ZipFile(package_path, "w", zipfile.ZIP_DEFLATED) as zf:
            _add_directory_to_zip(zf, folder, package_path, skip_mocks)
    except (OSError, zipfile.BadZipFile, ValueError) as e:
        package_path.unlink(missing_ok=True)
        raise StorageError(f"Could not package the application: {e}") from e

    size = package_path.stat().st_size
    if size > limit:
        package_path.unlink(missing_ok=True)
        raise SizeLimitError(
            f"Application package is too big ({_format_size(size)}), "
            f"the limit is {_format_size(limit)}."
        )

    logger.debug("Packaged %s into %s (%d bytes)", folder, package_path, size)
    return PackagedArchive(path=str(package_path), size=size)


def _add_directory_to_zip(
    zf: zipfile.ZipFile, source_path: Path, archive_path: Path, skip_mocks: bool
) -> None:
    """Add every file of ``source_path`` to the zip, relative to its root."""
    archive_path = archive_path.resolve()
    for item in sorted(source_path.rglob("*")):
        if not item.is_file() or item.resolve() == archive_path:
            continue

        rel_path = item.relative_to(source_path)
        if skip_mocks and rel_path.parts[0] == MOCK_DATA_DIR:
            continue

        zf.write(item, arcname=rel_path.as_posix())


def _format_size(size_bytes: int) -> str:
    """Format byte count as human-readable size."""
    if size_bytes >= 100 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
    return f"{size_bytes / 1024:.0f} KB"
