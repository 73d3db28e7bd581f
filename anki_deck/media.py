"""
Assign media indices to card audio.

Every non-empty audio buffer gets a contiguous integer index starting at 0.
Target audio is numbered first, in card order, then source audio continues
the same counter, again in card order. The index is both the archive entry
name (``0``, ``1``, ...) and the stem of the filename used in
``[sound:N.mp3]`` markers, so the database and the archive must share one
:class:`MediaIndex`.
"""

from dataclasses import dataclass, field
from typing import Sequence

from anki_deck.card import Card, has_audio

SOURCE = "source"
TARGET = "target"

AUDIO_EXTENSION = ".mp3"


@dataclass(frozen=True)
class MediaFile:
    """One audio buffer placed in the media namespace."""

    index: int
    filename: str
    data: bytes


@dataclass(frozen=True)
class MediaIndex:
    """Media index assignments for one deck.

    :ivar target: Card position to media index for target audio.
    :ivar source: Card position to media index for source audio.
    :ivar files: Media files in index order.
    """

    target: dict[int, int] = field(default_factory=dict)
    source: dict[int, int] = field(default_factory=dict)
    files: tuple[MediaFile, ...] = ()

    def __len__(self) -> int:
        return len(self.files)

    def lookup(self, position: int, side: str) -> int | None:
        """Return the media index for a card side, or None if it has no audio."""
        if side == TARGET:
            return self.target.get(position)
        if side == SOURCE:
            return self.source.get(position)
        raise ValueError(f"Unknown audio side: {side}")

    def marker(self, position: int, side: str) -> str:
        """Return the ``[sound:N.mp3]`` marker for a card side, or ``""``."""
        index = self.lookup(position, side)
        if index is None:
            return ""
        return sound_marker(index)

    def manifest(self) -> dict[str, str]:
        """Return the media manifest, e.g. ``{"0": "0.mp3", "1": "1.mp3"}``."""
        return {str(f.index): f.filename for f in self.files}


def media_filename(index: int) -> str:
    return f"{index}{AUDIO_EXTENSION}"


def sound_marker(index: int) -> str:
    return f"[sound:{media_filename(index)}]"


def compute_media_index(cards: Sequence[Card]) -> MediaIndex:
    """Assign media indices to all non-empty audio buffers.

    :param cards: Cards in deck order.
    :returns: The :class:`MediaIndex` for the deck.
    """
    target: dict[int, int] = {}
    source: dict[int, int] = {}
    files: list[MediaFile] = []

    for side, assigned in ((TARGET, target), (SOURCE, source)):
        for position, card in enumerate(cards):
            data = card.target_audio if side == TARGET else card.source_audio
            if not has_audio(data):
                continue
            index = len(files)
            assigned[position] = index
            files.append(MediaFile(index, media_filename(index), bytes(data)))

    return MediaIndex(target=target, source=source, files=tuple(files))


def count_audio_buffers(cards: Sequence[Card]) -> int:
    """Count the non-empty audio buffers across both sides of all cards."""
    return sum(
        has_audio(card.target_audio) + has_audio(card.source_audio) for card in cards
    )
