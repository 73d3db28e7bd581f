"""
Write the collection database for a new deck.

The database holds one ``col`` row (note type, decks and settings as JSON),
and one ``notes`` row plus one ``cards`` row per input card. Every card is
new: no scheduling history is ever written.
"""

import json
import logging
import sqlite3
import time
from contextlib import closing
from pathlib import Path
from typing import Sequence

from anki_deck.card import Card
from anki_deck.config import DeckConfig
from anki_deck.errors import InsertError
from anki_deck.media import MediaIndex, compute_media_index
from anki_deck.records import (
    Fields,
    Identity,
    compose_fields,
    compose_identity,
    field_checksum,
    join_fields,
)
from anki_deck.schema import create_schema

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 11
DEFAULT_DECK_ID = 1
DEFAULT_CONF_ID = 1

# Card type/queue value for a new, unstudied card
CARD_NEW = 0

LATEX_PRE = (
    "\\documentclass[12pt]{article}\n"
    "\\special{papersize=3in,5in}\n"
    "\\usepackage[utf8]{inputenc}\n"
    "\\usepackage{amssymb,amsmath}\n"
    "\\pagestyle{empty}\n"
    "\\setlength{\\parindent}{0in}\n"
    "\\begin{document}\n"
)
LATEX_POST = "\\end{document}"


def _deck(deck_id: int, name: str, mod: int) -> dict:
    return {
        "id": deck_id,
        "name": name,
        "desc": "",
        "mod": mod,
        "usn": 0,
        "collapsed": False,
        "newToday": [0, 0],
        "revToday": [0, 0],
        "lrnToday": [0, 0],
        "timeToday": [0, 0],
        "dyn": 0,
        "extendNew": 10,
        "extendRev": 50,
        "conf": DEFAULT_CONF_ID,
    }


def _model(model_id: int, deck_id: int, mod: int, config: DeckConfig) -> dict:
    field_names = (config.front_field, config.back_field)
    return {
        "id": model_id,
        "name": config.model_name,
        "type": 0,
        "mod": mod,
        "usn": 0,
        "sortf": 0,
        "did": deck_id,
        "tmpls": [
            {
                "name": config.template_name,
                "ord": 0,
                "qfmt": "{{" + config.front_field + "}}",
                "afmt": "{{FrontSide}}\n\n<hr id=answer>\n\n{{"
                + config.back_field
                + "}}",
                "did": None,
                "bqfmt": "",
                "bafmt": "",
            }
        ],
        "flds": [
            {
                "name": name,
                "ord": ord_,
                "sticky": False,
                "rtl": False,
                "font": "Arial",
                "size": 20,
                "media": [],
            }
            for ord_, name in enumerate(field_names)
        ],
        "css": config.css,
        "latexPre": LATEX_PRE,
        "latexPost": LATEX_POST,
        "tags": [],
        "vers": [],
        "req": [[0, "any", [0]]],
    }


def _deck_conf(mod: int) -> dict:
    return {
        "id": DEFAULT_CONF_ID,
        "name": "Default",
        "mod": mod,
        "usn": 0,
        "maxTaken": 60,
        "autoplay": True,
        "timer": 0,
        "replayq": True,
        "dyn": False,
        "new": {
            "delays": [1, 10],
            "ints": [1, 4, 7],
            "initialFactor": 2500,
            "order": 1,
            "perDay": 20,
            "bury": True,
        },
        "rev": {
            "perDay": 100,
            "ease4": 1.3,
            "fuzz": 0.05,
            "ivlFct": 1,
            "maxIvl": 36500,
            "bury": True,
        },
        "lapse": {
            "delays": [10],
            "mult": 0,
            "minInt": 1,
            "leechFails": 8,
            "leechAction": 0,
        },
    }


def collection_row(
    deck_name: str,
    model_id: int,
    deck_id: int,
    now: float,
    card_count: int,
    config: DeckConfig,
) -> tuple:
    """
    Build the single ``col`` row.

    :param deck_name: Display name of the new deck.
    :param model_id: ID of the note type.
    :param deck_id: ID of the new deck.
    :param now: Current time in seconds since epoch.
    :param card_count: Number of cards, used for the next new-card position.
    :param config: Note type settings.
    :returns: Values for ``INSERT INTO col``, in column order.
    """
    seconds = int(now)
    millis = int(now * 1000)

    models = {str(model_id): _model(model_id, deck_id, seconds, config)}
    decks = {
        str(DEFAULT_DECK_ID): _deck(DEFAULT_DECK_ID, "Default", seconds),
        str(deck_id): _deck(deck_id, deck_name, seconds),
    }
    conf = {
        "nextPos": card_count + 1,
        "estTimes": True,
        "activeDecks": [DEFAULT_DECK_ID],
        "sortType": "noteFld",
        "timeLim": 0,
        "sortBackwards": False,
        "addToCur": True,
        "curDeck": DEFAULT_DECK_ID,
        "newBury": True,
        "newSpread": 0,
        "dueCounts": True,
        "curModel": str(model_id),
        "collapseTime": 1200,
    }
    dconf = {str(DEFAULT_CONF_ID): _deck_conf(seconds)}

    return (
        1,
        seconds,
        millis,
        millis,
        SCHEMA_VERSION,
        0,
        0,
        0,
        json.dumps(conf),
        json.dumps(models),
        json.dumps(decks),
        json.dumps(dconf),
        json.dumps({}),
    )


def note_row(
    identity: Identity, model_id: int, mod: int, fields: Fields, card: Card
) -> tuple:
    """Values for ``INSERT INTO notes``, in column order."""
    return (
        identity.note_id,
        identity.guid,
        model_id,
        mod,
        0,
        "",
        join_fields(fields),
        card.target_text,
        field_checksum(card.target_text),
        0,
        "",
    )


def card_row(identity: Identity, deck_id: int, mod: int, position: int) -> tuple:
    """Values for ``INSERT INTO cards``, in column order.

    The card is new: type and queue are new, due is its position in the
    new queue, and interval, ease factor, reps and lapses are all zero.
    """
    return (
        identity.card_id,
        identity.note_id,
        deck_id,
        0,
        mod,
        0,
        CARD_NEW,
        CARD_NEW,
        position + 1,
        0,
        0,
        0,
        0,
        0,
        0,
        0,
        0,
        "",
    )


def build_database(
    db_path: str | Path,
    cards: Sequence[Card],
    deck_name: str,
    media: MediaIndex | None = None,
    config: DeckConfig | None = None,
    now: float | None = None,
) -> MediaIndex:
    """
    Create and populate a collection database for a deck.

    :param db_path: Path of the database file to create. Must not already
        hold a collection.
    :param cards: Cards in deck order. May be empty.
    :param deck_name: Display name of the deck in Anki.
    :param media: Media index to reference from the fields. Computed from
        ``cards`` if not given; pass the same index to the package assembler.
    :param config: Note type and layout settings.
    :param now: Current time in seconds since epoch (defaults to the clock).
    :returns: The media index used for the sound markers.
    :raises SchemaError: If the schema cannot be created.
    :raises InsertError: If any row fails to insert. Nothing is committed.
    """
    if config is None:
        config = DeckConfig()
    if media is None:
        media = compute_media_index(cards)
    if now is None:
        now = time.time()

    base_timestamp = int(now)
    # Millisecond IDs, like the ones Anki assigns to new note types and decks
    model_id = int(now * 1000)
    deck_id = model_id + 1

    with closing(sqlite3.connect(str(db_path))) as conn:
        create_schema(conn)

        try:
            conn.execute(
                "INSERT INTO col VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                collection_row(deck_name, model_id, deck_id, now, len(cards), config),
            )
        except sqlite3.Error as e:
            conn.rollback()
            raise InsertError("col", None, str(e)) from e

        for position, card in enumerate(cards):
            fields = compose_fields(card, position, media, config.orientation)
            identity = compose_identity(position, base_timestamp)
            # Distinct modification times, newest first
            mod = base_timestamp - position

            table = "notes"
            try:
                conn.execute(
                    "INSERT INTO notes VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    note_row(identity, model_id, mod, fields, card),
                )
                table = "cards"
                conn.execute(
                    "INSERT INTO cards VALUES "
                    "(?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    card_row(identity, deck_id, mod, position),
                )
            except sqlite3.Error as e:
                conn.rollback()
                raise InsertError(table, position, str(e)) from e

        conn.commit()

    logger.debug(
        "Wrote %d notes and %d media references to %s", len(cards), len(media), db_path
    )
    return media
