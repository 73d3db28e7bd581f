"""
Settings for deck generation.

A :class:`DeckConfig` is passed to each call; there is no module-level
mutable state.
"""

import os
from dataclasses import dataclass, replace
from pathlib import Path
from textwrap import dedent

from anki_deck.records import Orientation

DEFAULT_CSS = dedent("""\
    .card {
     font-family: arial;
     font-size: 20px;
     text-align: center;
     color: black;
     background-color: white;
    }
    """)

ORIENTATION_NAMES = {
    "auto": Orientation.AUTO,
    "target": Orientation.TARGET_FRONT,
    "source": Orientation.SOURCE_FRONT,
}


@dataclass(frozen=True)
class DeckConfig:
    """Configuration for building one deck."""

    # Note type
    model_name: str = "Basic"
    front_field: str = "Front"
    back_field: str = "Back"
    template_name: str = "Card 1"
    css: str = DEFAULT_CSS

    # Card layout
    orientation: Orientation = Orientation.AUTO

    # Packaging
    compression_level: int = 9
    temp_dir: Path | None = None

    def __post_init__(self):
        if not 0 <= self.compression_level <= 9:
            raise ValueError(
                f"compression_level must be between 0 and 9, got {self.compression_level}"
            )

    @classmethod
    def from_env(cls, **overrides) -> "DeckConfig":
        """Create a config from ``ANKI_DECK_*`` environment variables.

        :param overrides: Explicit values that take precedence over the environment.
        :returns: A new :class:`DeckConfig`.
        :raises ValueError: If a variable holds an unusable value.
        """
        config = cls()

        temp_dir = os.environ.get("ANKI_DECK_TMPDIR")
        if temp_dir:
            config = replace(config, temp_dir=Path(temp_dir))

        level = os.environ.get("ANKI_DECK_COMPRESSION")
        if level:
            config = replace(config, compression_level=int(level))

        orientation = os.environ.get("ANKI_DECK_ORIENTATION")
        if orientation:
            config = replace(config, orientation=parse_orientation(orientation))

        return replace(config, **overrides)


def parse_orientation(name: str) -> Orientation:
    """Map ``auto``/``target``/``source`` to an :class:`Orientation`."""
    try:
        return ORIENTATION_NAMES[name.lower().strip()]
    except KeyError:
        raise ValueError(
            f"Unknown orientation: {name}. Supported: {', '.join(ORIENTATION_NAMES)}"
        ) from None
