"""
Create the legacy Anki collection schema (``collection.anki2``).

Tables
------
- col: one row with collection settings, note types and decks as JSON
- notes: one row per note, fields joined by ``\\x1f``
- cards: one row per card, scheduling state
- revlog: review history (left empty)
- graves: deletions pending sync (left empty)

Tables are created before indexes.
"""

import logging
import sqlite3

from anki_deck.errors import SchemaError

logger = logging.getLogger(__name__)

TABLE_STATEMENTS = (
    """
    CREATE TABLE col (
        id INTEGER PRIMARY KEY,
        crt INTEGER NOT NULL,
        mod INTEGER NOT NULL,
        scm INTEGER NOT NULL,
        ver INTEGER NOT NULL,
        dty INTEGER NOT NULL,
        usn INTEGER NOT NULL,
        ls INTEGER NOT NULL,
        conf TEXT NOT NULL,
        models TEXT NOT NULL,
        decks TEXT NOT NULL,
        dconf TEXT NOT NULL,
        tags TEXT NOT NULL
    )
    """,
    # sfld is declared INTEGER so numeric sort fields sort numerically
    """
    CREATE TABLE notes (
        id INTEGER PRIMARY KEY,
        guid TEXT NOT NULL,
        mid INTEGER NOT NULL,
        mod INTEGER NOT NULL,
        usn INTEGER NOT NULL,
        tags TEXT NOT NULL,
        flds TEXT NOT NULL,
        sfld INTEGER NOT NULL,
        csum INTEGER NOT NULL,
        flags INTEGER NOT NULL,
        data TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE cards (
        id INTEGER PRIMARY KEY,
        nid INTEGER NOT NULL,
        did INTEGER NOT NULL,
        ord INTEGER NOT NULL,
        mod INTEGER NOT NULL,
        usn INTEGER NOT NULL,
        type INTEGER NOT NULL,
        queue INTEGER NOT NULL,
        due INTEGER NOT NULL,
        ivl INTEGER NOT NULL,
        factor INTEGER NOT NULL,
        reps INTEGER NOT NULL,
        lapses INTEGER NOT NULL,
        left INTEGER NOT NULL,
        odue INTEGER NOT NULL,
        odid INTEGER NOT NULL,
        flags INTEGER NOT NULL,
        data TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE revlog (
        id INTEGER PRIMARY KEY,
        cid INTEGER NOT NULL,
        usn INTEGER NOT NULL,
        ease INTEGER NOT NULL,
        ivl INTEGER NOT NULL,
        lastIvl INTEGER NOT NULL,
        factor INTEGER NOT NULL,
        time INTEGER NOT NULL,
        type INTEGER NOT NULL
    )
    """,
    """
    CREATE TABLE graves (
        usn INTEGER NOT NULL,
        oid INTEGER NOT NULL,
        type INTEGER NOT NULL
    )
    """,
)

INDEX_STATEMENTS = (
    "CREATE INDEX ix_notes_usn ON notes (usn)",
    "CREATE INDEX ix_cards_usn ON cards (usn)",
    "CREATE INDEX ix_revlog_usn ON revlog (usn)",
    "CREATE INDEX ix_cards_nid ON cards (nid)",
    "CREATE INDEX ix_cards_sched ON cards (did, queue, due)",
    "CREATE INDEX ix_revlog_cid ON revlog (cid)",
    "CREATE INDEX ix_notes_csum ON notes (csum)",
)


def create_schema(conn: sqlite3.Connection) -> None:
    """
    Create all tables, then all indexes, in an empty database.

    :param conn: Open connection to a fresh database file.
    :raises SchemaError: If any statement fails. The database file must
        then be discarded.
    """
    cursor = conn.cursor()
    statements = TABLE_STATEMENTS + INDEX_STATEMENTS
    for number, statement in enumerate(statements, start=1):
        try:
            cursor.execute(statement)
        except sqlite3.Error as e:
            raise SchemaError(
                f"Failed to execute schema statement {number}: {e}",
                statement=statement.strip(),
            ) from e
    conn.commit()
    logger.debug(
        "Created %d tables and %d indexes",
        len(TABLE_STATEMENTS),
        len(INDEX_STATEMENTS),
    )
