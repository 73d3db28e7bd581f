"""
Assemble an Anki package (.apkg) in memory.

APKG Layout
-----------
An .apkg file is a ZIP archive containing:
- collection.anki2 (SQLite database)
- 0, 1, 2, ... (media files named by numeric ID, no extension)
- media (JSON object mapping file IDs to filenames)
    {"0": "0.mp3", "1": "1.mp3"}
"""

import io
import json
import logging
import zipfile
from pathlib import Path

from anki_deck.errors import PackagingError
from anki_deck.media import MediaIndex

logger = logging.getLogger(__name__)

COLLECTION_NAME = "collection.anki2"
MEDIA_MANIFEST_NAME = "media"


def _check_database_file(db_path: Path) -> None:
    """Raise :class:`PackagingError` unless ``db_path`` is a non-empty file."""
    try:
        if not db_path.exists():
            raise PackagingError(
                f"Database file does not exist: {db_path}",
                step="precondition",
                path=str(db_path),
            )
        if not db_path.is_file():
            raise PackagingError(
                f"Database path is not a regular file: {db_path}",
                step="precondition",
                path=str(db_path),
            )
        size = db_path.stat().st_size
    except OSError as e:
        raise PackagingError(
            f"Cannot access database file: {db_path} ({e})",
            step="precondition",
            path=str(db_path),
        ) from e

    if size == 0:
        raise PackagingError(
            f"Database file is empty: {db_path}",
            step="precondition",
            path=str(db_path),
        )


def assemble_package(
    db_path: str | Path, media: MediaIndex, compression_level: int = 9
) -> bytes:
    """
    Bundle a collection database and its media into .apkg bytes.

    Media files are written in index order, straight from ``media``, so the
    archive always agrees with the sound markers written to the database.

    :param db_path: Path to the finished collection database.
    :param media: Media index used when the database was written.
    :param compression_level: Deflate level, 0-9.
    :returns: The complete archive.
    :raises PackagingError: If the database file is missing, empty or
        unreadable, or if writing the archive fails.
    """
    db_path = Path(db_path)
    _check_database_file(db_path)

    buffer = io.BytesIO()
    step = "archive"
    try:
        with zipfile.ZipFile(
            buffer, "w", zipfile.ZIP_DEFLATED, compresslevel=compression_level
        ) as zip_ref:
            step = "database"
            zip_ref.write(db_path, COLLECTION_NAME)

            step = "media"
            for media_file in media.files:
                zip_ref.writestr(str(media_file.index), media_file.data)

            step = "manifest"
            zip_ref.writestr(MEDIA_MANIFEST_NAME, json.dumps(media.manifest()))
            step = "archive"
    except (OSError, zipfile.BadZipFile, ValueError) as e:
        raise PackagingError(
            f"Failed to write {step} to archive: {e}", step=step, path=str(db_path)
        ) from e

    data = buffer.getvalue()
    logger.debug(
        "Packaged %s with %d media files (%d bytes)", db_path.name, len(media), len(data)
    )
    return data
