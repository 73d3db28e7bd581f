"""
Create complete Anki decks from card lists.

:func:`create_deck` is the entry point: it writes the collection database
into a private scratch directory, packages it with the card audio, and
removes the scratch directory on every exit path.
"""

import asyncio
import logging
import shutil
import tempfile
import warnings
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Sequence

from anki_deck.card import Card
from anki_deck.config import DeckConfig
from anki_deck.database import build_database
from anki_deck.errors import CleanupWarning, DeckCreationError
from anki_deck.media import compute_media_index
from anki_deck.package import COLLECTION_NAME, assemble_package

logger = logging.getLogger(__name__)


@contextmanager
def _scratch_dir(config: DeckConfig) -> Iterator[Path]:
    """Yield a fresh temporary directory, removing it afterwards.

    Removal failures are reported as :class:`CleanupWarning` and never
    replace the result or exception of the ``with`` body.
    """
    temp_dir = tempfile.mkdtemp(
        prefix="anki-", dir=str(config.temp_dir) if config.temp_dir else None
    )
    try:
        yield Path(temp_dir)
    finally:
        try:
            shutil.rmtree(temp_dir)
        except OSError as e:
            logger.warning("Failed to clean up temporary files in %s: %s", temp_dir, e)
            warnings.warn(
                f"Failed to clean up temporary files in {temp_dir}: {e}",
                CleanupWarning,
                stacklevel=3,
            )


def create_deck(
    cards: Sequence[Card], deck_name: str, config: DeckConfig | None = None
) -> bytes:
    """
    Create an Anki package containing one card per input card.

    :param cards: Cards in deck order. May be empty.
    :param deck_name: Display name of the deck in Anki.
    :param config: Deck settings (defaults to :class:`DeckConfig`).
    :returns: The .apkg file contents.
    :raises DeckCreationError: If any step fails. The original error is
        available as ``__cause__``.

    :Example:

    >>> data = create_deck(
    ...     [Card("hello", "hola", target_audio=mp3_bytes)],
    ...     "Spanish Basics",
    ... )
    """
    if config is None:
        config = DeckConfig()

    try:
        with _scratch_dir(config) as temp_dir:
            db_path = temp_dir / COLLECTION_NAME
            media = compute_media_index(cards)
            build_database(db_path, cards, deck_name, media=media, config=config)
            data = assemble_package(db_path, media, config.compression_level)
    except Exception as e:
        logger.error("Error creating Anki deck %r: %s", deck_name, e)
        raise DeckCreationError(f"Failed to create Anki deck: {e}") from e

    logger.info(
        "Created Anki deck %r with %d cards and %d media files",
        deck_name,
        len(cards),
        len(media),
    )
    return data


async def create_deck_async(
    cards: Sequence[Card],
    deck_name: str,
    *,
    timeout: float | None = None,
    config: DeckConfig | None = None,
) -> bytes:
    """
    Run :func:`create_deck` in a worker thread.

    The timeout covers the whole build. If it expires, or the awaiting task
    is cancelled, the worker still finishes and removes its scratch files.

    :param cards: Cards in deck order.
    :param deck_name: Display name of the deck in Anki.
    :param timeout: Seconds to wait before giving up, or None to wait forever.
    :param config: Deck settings.
    :returns: The .apkg file contents.
    :raises DeckCreationError: If the build fails or times out.
    """
    try:
        return await asyncio.wait_for(
            asyncio.to_thread(create_deck, cards, deck_name, config),
            timeout=timeout,
        )
    except asyncio.TimeoutError as e:
        raise DeckCreationError(
            f"Failed to create Anki deck: timed out after {timeout} seconds"
        ) from e


def write_deck(
    output_path: str | Path,
    cards: Sequence[Card],
    deck_name: str,
    config: DeckConfig | None = None,
) -> Path:
    """
    Create a deck and write it to ``output_path``.

    :returns: The path written.
    :raises DeckCreationError: If the deck cannot be built.
    """
    data = create_deck(cards, deck_name, config)
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(data)
    return output_path
