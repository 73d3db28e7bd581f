"""
Compose the per-card note fields and identifiers.

Field layout
------------
With the default :attr:`Orientation.AUTO`, which text goes on the front
depends on which audio buffers a card has:

==============  ==============  =======================  =======================
source audio    target audio    front                    back
==============  ==============  =======================  =======================
no              no              target                   source
no              yes             target + target sound    source
yes             no              source + source sound    target
yes             yes             target + target sound    source + source sound
==============  ==============  =======================  =======================

Sound markers (``[sound:N.mp3]``) are appended with no separating space.

Identifiers
-----------
Note and card IDs share a per-call base (seconds since epoch) scaled by
:data:`ID_SCALE`, so each second owns a block of ten million IDs. Notes use
the lower half of the block and cards the upper half, and both increase
with card position.
"""

import hashlib
import uuid
from enum import Enum
from typing import NamedTuple

from anki_deck.card import Card
from anki_deck.media import SOURCE, TARGET, MediaIndex

FIELD_SEPARATOR = "\x1f"

ID_SCALE = 10_000_000
NOTE_ID_BAND = 0
CARD_ID_BAND = 5_000_000
MAX_CARDS = CARD_ID_BAND - NOTE_ID_BAND


class Orientation(Enum):
    """Which language is shown on the front of each card."""

    AUTO = "auto"
    TARGET_FRONT = "target"
    SOURCE_FRONT = "source"


class Fields(NamedTuple):
    front: str
    back: str


class Identity(NamedTuple):
    note_id: int
    card_id: int
    guid: str


def compose_fields(
    card: Card,
    position: int,
    media: MediaIndex,
    orientation: Orientation = Orientation.AUTO,
) -> Fields:
    """
    Build the front and back field strings for one card.

    :param card: The card to lay out.
    :param position: Zero-based position of the card in the deck.
    :param media: Media index shared with the package assembler.
    :param orientation: Front-side rule; ``AUTO`` follows audio presence.
    :returns: The :class:`Fields` pair.
    """
    target = card.target_text + media.marker(position, TARGET)
    source = card.source_text + media.marker(position, SOURCE)

    if orientation is Orientation.TARGET_FRONT:
        return Fields(target, source)
    if orientation is Orientation.SOURCE_FRONT:
        return Fields(source, target)

    has_source = media.lookup(position, SOURCE) is not None
    has_target = media.lookup(position, TARGET) is not None

    # Promote the only side with audio to the front
    if has_source and not has_target:
        return Fields(source, card.target_text)
    return Fields(target, source)


def compose_identity(position: int, base_timestamp: int) -> Identity:
    """
    Derive the note ID, card ID and GUID for the card at ``position``.

    :param position: Zero-based position of the card in the deck.
    :param base_timestamp: Seconds since epoch, shared by the whole deck.
    :returns: The :class:`Identity` for the card.
    :raises ValueError: If ``position`` is outside the per-call ID block.
    """
    if not 0 <= position < MAX_CARDS:
        raise ValueError(f"Card position {position} exceeds the {MAX_CARDS} card limit")
    base = base_timestamp * ID_SCALE
    return Identity(
        note_id=base + NOTE_ID_BAND + position,
        card_id=base + CARD_ID_BAND + position,
        guid=uuid.uuid4().hex,
    )


def field_checksum(text: str) -> int:
    """First 32 bits of the SHA-1 of ``text``, as used for duplicate hints."""
    return int(hashlib.sha1(text.encode("utf-8")).hexdigest()[:8], 16)


def join_fields(fields: Fields) -> str:
    return FIELD_SEPARATOR.join(fields)


def split_fields(flds: str) -> Fields:
    """Split a note's ``flds`` blob into its two fields.

    :raises ValueError: If the blob does not hold exactly two fields.
    """
    parts = flds.split(FIELD_SEPARATOR)
    if len(parts) != 2:
        raise ValueError(f"Expected 2 fields, found {len(parts)}")
    return Fields(*parts)
