"""
Anki Deck - build Anki packages (.apkg) from translated card lists.

Core functions:
    create_deck - Build an .apkg in memory from cards and a deck name

Modules:
    card     - Card input records
    media    - Media index assignment for card audio
    schema   - Collection database schema
    records  - Note field and identifier composition
    database - Collection database writer
    package  - .apkg archive assembly
    deck     - Deck creation entry points
    reader   - Read-only access to built packages
    cli      - Command-line interface
"""

from anki_deck.card import Card
from anki_deck.config import DeckConfig
from anki_deck.deck import create_deck, create_deck_async, write_deck
from anki_deck.errors import (
    AnkiDeckError,
    CleanupWarning,
    DeckCreationError,
    InsertError,
    PackagingError,
    SchemaError,
)
from anki_deck.media import MediaIndex, compute_media_index
from anki_deck.reader import AnkiPackage
from anki_deck.records import Orientation

__all__ = [
    "Card",
    "DeckConfig",
    "Orientation",
    "MediaIndex",
    "compute_media_index",
    "create_deck",
    "create_deck_async",
    "write_deck",
    "AnkiPackage",
    "AnkiDeckError",
    "SchemaError",
    "InsertError",
    "PackagingError",
    "DeckCreationError",
    "CleanupWarning",
]
