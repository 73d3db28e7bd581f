"""
Read Anki package (.apkg) files written by this package.

Only the legacy layout is supported: a ``collection.anki2`` SQLite database
with note types and decks stored as JSON in the ``col`` table, and a JSON
``media`` file mapping numeric archive entries to filenames.
"""

import io
import json
import os
import re
import shutil
import sqlite3
import tempfile
import zipfile
from pathlib import Path

from anki_deck.package import COLLECTION_NAME, MEDIA_MANIFEST_NAME
from anki_deck.records import FIELD_SEPARATOR

SOUND_PATTERN = re.compile(r"\[sound:([^\]]+)\]")
AUDIO_EXTENSIONS = (".mp3", ".wav", ".ogg", ".m4a")


class AnkiPackage:
    """
    Read-only view of an Anki package.

    Use as a context manager to ensure proper cleanup::

        with AnkiPackage('deck.apkg') as pkg:
            for card in pkg.get_cards():
                print(pkg.parse_card(card, pkg.get_models(), pkg.get_decks()))

    The package may also be given as the bytes returned by
    :func:`anki_deck.deck.create_deck`.
    """

    def __init__(self, source: str | Path | bytes) -> None:
        """
        :param source: Path to an .apkg file, or its contents.
        """
        self.source = source
        self.temp_dir: str | None = None
        self.conn: sqlite3.Connection | None = None

    def __enter__(self) -> "AnkiPackage":
        """Extract the archive and open its collection database."""
        self.temp_dir = tempfile.mkdtemp(prefix="anki-read-")

        try:
            archive = (
                io.BytesIO(self.source)
                if isinstance(self.source, (bytes, bytearray))
                else self.source
            )
            with zipfile.ZipFile(archive, "r") as zip_ref:
                zip_ref.extractall(self.temp_dir)

            db_path = os.path.join(self.temp_dir, COLLECTION_NAME)
            if not os.path.exists(db_path):
                raise ValueError(f"Package has no {COLLECTION_NAME} database")

            self.conn = sqlite3.connect(db_path)
            self.conn.row_factory = sqlite3.Row
        except BaseException:
            shutil.rmtree(self.temp_dir, ignore_errors=True)
            raise

        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Close the connection and remove the extracted files."""
        if self.conn:
            self.conn.close()
            self.conn = None
        if self.temp_dir:
            shutil.rmtree(self.temp_dir)
            self.temp_dir = None

    def namelist(self) -> list[str]:
        """Names of all entries in the extracted archive."""
        return sorted(os.listdir(self.temp_dir))

    def get_collection(self) -> sqlite3.Row:
        """Return the single ``col`` row."""
        cursor = self.conn.cursor()
        cursor.execute("SELECT * FROM col")
        return cursor.fetchone()

    def get_decks(self) -> dict[str, dict]:
        """
        Get all decks in the collection.

        :returns: Dict mapping deck ID (string) to deck info dict with ``'name'`` key.
        """
        return json.loads(self.get_collection()["decks"])

    def get_models(self) -> dict[str, dict]:
        """
        Get all note models (called "note types" in the Anki UI).

        :returns: Dict mapping model ID (string) to model info with ``'name'``,
            ``'flds'`` and ``'tmpls'`` keys.
        """
        return json.loads(self.get_collection()["models"])

    def get_notes(self) -> list[sqlite3.Row]:
        """
        Get all notes, in ID order.

        :returns: Note rows with ``id``, ``guid``, ``mid``, ``mod``, ``flds``,
            ``sfld``, ``csum``, ``tags`` columns.
        """
        cursor = self.conn.cursor()
        cursor.execute(
            "SELECT id, guid, mid, mod, flds, sfld, csum, tags FROM notes ORDER BY id"
        )
        return cursor.fetchall()

    def get_cards(self) -> list[sqlite3.Row]:
        """
        Get all cards with their note information, in card ID order.

        :returns: Card rows with ``id``, ``nid``, ``did``, ``ord``, ``type``,
            ``queue``, ``due``, ``ivl``, ``factor``, ``reps``, ``lapses``,
            ``flds``, ``tags``, ``mid`` columns.
        """
        cursor = self.conn.cursor()
        cursor.execute("""
            SELECT cards.id, cards.nid, cards.did, cards.ord, cards.type,
                   cards.queue, cards.due, cards.ivl, cards.factor,
                   cards.reps, cards.lapses,
                   notes.flds, notes.tags, notes.mid
            FROM cards
            JOIN notes ON cards.nid = notes.id
            ORDER BY cards.id
        """)
        return cursor.fetchall()

    def parse_card(self, card: sqlite3.Row, models: dict, decks: dict) -> dict:
        """
        Parse a card into a readable format.

        :param card: Card row from :meth:`get_cards`.
        :param models: Models dict from :meth:`get_models`.
        :param decks: Decks dict from :meth:`get_decks`.
        :returns: Dict with ``card_id``, ``note_id``, ``deck``, ``model``,
            ``fields``, ``tags`` keys.
        """
        model = models.get(str(card["mid"]), {})
        field_names = [f["name"] for f in model.get("flds", [])]
        field_values = card["flds"].split(FIELD_SEPARATOR)

        return {
            "card_id": card["id"],
            "note_id": card["nid"],
            "deck": decks.get(str(card["did"]), {}).get("name", "Unknown"),
            "model": model.get("name", "Unknown"),
            "fields": dict(zip(field_names, field_values)),
            "tags": card["tags"],
        }

    def get_media_mapping(self) -> dict[str, str]:
        """
        Get mapping of file IDs to filenames from the media file.

        :returns: Dict mapping numeric file IDs (as strings) to filenames,
            e.g. ``{"0": "0.mp3"}``. Empty if the package has no media file.
        """
        media_path = os.path.join(self.temp_dir, MEDIA_MANIFEST_NAME)
        if not os.path.exists(media_path):
            return {}
        with open(media_path, "r", encoding="utf-8") as f:
            return json.load(f)

    def get_media_names(self) -> list[str]:
        """Archive entries holding media data (``0``, ``1``, ...), in ID order."""
        return sorted(
            (name for name in os.listdir(self.temp_dir) if name.isdigit()), key=int
        )

    def read_media(self, filename: str) -> bytes:
        """
        Read a media file by its filename (e.g. ``"0.mp3"``).

        :raises KeyError: If the filename is not in the media mapping.
        """
        for file_id, name in self.get_media_mapping().items():
            if name == filename:
                with open(os.path.join(self.temp_dir, file_id), "rb") as f:
                    return f.read()
        raise KeyError(filename)

    def get_audio_for_card(self, card: sqlite3.Row) -> list[str]:
        """Audio filenames referenced by ``[sound:...]`` markers in a card's fields."""
        return SOUND_PATTERN.findall(card["flds"])

    def get_audio_statistics(self) -> dict:
        """
        Count media and audio files in the package.

        :returns: Dict with ``total_media_files``, ``audio_files``,
            ``total_bytes`` and ``audio_formats`` keys.
        """
        mapping = self.get_media_mapping()
        stats = {
            "total_media_files": len(mapping),
            "audio_files": 0,
            "total_bytes": 0,
            "audio_formats": {},
        }

        for file_id, filename in mapping.items():
            path = os.path.join(self.temp_dir, file_id)
            if os.path.exists(path):
                stats["total_bytes"] += os.path.getsize(path)
            if filename.lower().endswith(AUDIO_EXTENSIONS):
                stats["audio_files"] += 1
                ext = filename.split(".")[-1].lower()
                stats["audio_formats"][ext] = stats["audio_formats"].get(ext, 0) + 1

        return stats
