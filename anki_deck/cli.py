"""
CLI tools for building and inspecting Anki decks.

Commands:
    build - Build an .apkg deck from a JSON card list
    inspect - Diagnostic tools to inspect .apkg files
"""

import json
import logging
import re
from pathlib import Path

import cyclopts

from anki_deck.card import Card
from anki_deck.config import DeckConfig, parse_orientation
from anki_deck.deck import write_deck
from anki_deck.errors import AnkiDeckError
from anki_deck.reader import AnkiPackage

app = cyclopts.App(help="Build Anki packages (.apkg) from translated card lists")


def load_cards(json_path: Path) -> list[Card]:
    """Load cards from a JSON list of card objects.

    Each object has ``source`` and ``target`` texts and optional
    ``sourceAudio``/``targetAudio`` paths to MP3 files, resolved relative
    to the JSON file.

    :param json_path: Path to the JSON file.
    :returns: Cards in file order.
    :raises ValueError: If the file is not a list of card objects.
    :raises FileNotFoundError: If a referenced audio file is missing.
    """
    with open(json_path, "r", encoding="utf-8") as f:
        entries = json.load(f)

    if not isinstance(entries, list):
        raise ValueError(f"Expected a JSON list of cards in {json_path}")

    base_dir = Path(json_path).parent
    cards = []
    for i, entry in enumerate(entries):
        if not isinstance(entry, dict) or "source" not in entry or "target" not in entry:
            raise ValueError(f"Card {i} must be an object with 'source' and 'target'")

        audio = {}
        for key in ("sourceAudio", "targetAudio"):
            if not entry.get(key):
                continue
            audio_path = base_dir / entry[key]
            if not audio_path.exists():
                raise FileNotFoundError(f"Audio file not found: {audio_path}")
            audio[key] = audio_path.read_bytes()

        cards.append(
            Card.from_dict(
                {"source": entry["source"], "target": entry["target"], **audio}
            )
        )

    return cards


def default_output_path(deck_name: str) -> Path:
    """``<deck name>.apkg`` with characters unsafe in filenames replaced."""
    stem = re.sub(r'[\\/:*?"<>|\s]+', "_", deck_name.strip()) or "deck"
    return Path(f"{stem}.apkg")


@app.command
def build(
    cards_json: Path,
    *,
    deck_name: str,
    output: Path | None = None,
    orientation: str = "auto",
    verbose: bool = False,
) -> int:
    """Build an Anki deck from a JSON card list.

    :param cards_json: JSON file with a list of {source, target, sourceAudio, targetAudio}.
    :param deck_name: Name of the deck shown in Anki.
    :param output: Output .apkg path (defaults to the deck name).
    :param orientation: Front side rule: auto, target or source.
    :param verbose: Show debug logging.
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    try:
        config = DeckConfig.from_env(orientation=parse_orientation(orientation))
        deck_cards = load_cards(cards_json)
    except (OSError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    if output is None:
        output = default_output_path(deck_name)

    audio_count = sum(c.has_source_audio + c.has_target_audio for c in deck_cards)
    print(f"Creating APKG: {output}")
    print(f"  Deck: {deck_name}")
    print(f"  Cards: {len(deck_cards)}")
    print(f"  Audio files: {audio_count}")

    try:
        write_deck(output, deck_cards, deck_name, config)
    except AnkiDeckError as e:
        print(f"Error: {e}")
        return 1

    print(f"\nSuccessfully created: {output}")
    return 0


# =============================================================================
# Inspect commands - diagnostic tools for .apkg files
# =============================================================================

inspect_app = cyclopts.App(name="inspect", help="Inspect Anki package (.apkg) files")
app.command(inspect_app)


@inspect_app.command
def cards(apkg_path: Path, *, limit: int = 10):
    """List cards in the deck.

    :param apkg_path: Path to .apkg file.
    :param limit: Maximum cards to show (0 for all).
    """
    with AnkiPackage(apkg_path) as pkg:
        all_cards = pkg.get_cards()
        models = pkg.get_models()
        decks = pkg.get_decks()

        print(f"Total cards: {len(all_cards)}\n")

        shown = all_cards if limit == 0 else all_cards[:limit]
        for i, card in enumerate(shown):
            parsed = pkg.parse_card(card, models, decks)
            print(f"Card {i}:")
            for name, value in parsed["fields"].items():
                print(f"  {name}: {value}")
            print()

        if len(shown) < len(all_cards):
            print(f"... and {len(all_cards) - len(shown)} more")


@inspect_app.command
def stats(apkg_path: Path):
    """Show overall statistics for the package.

    :param apkg_path: Path to .apkg file.
    """
    with AnkiPackage(apkg_path) as pkg:
        all_cards = pkg.get_cards()
        decks = pkg.get_decks()
        models = pkg.get_models()
        audio_stats = pkg.get_audio_statistics()

        print(f"File: {apkg_path.name}")
        print(f"Size: {apkg_path.stat().st_size / 1024:.1f} KB")
        print()
        print("Counts:")
        print(f"  Cards: {len(all_cards)}")
        print(f"  Decks: {len(decks)}")
        print(f"  Note Types: {len(models)}")
        print(f"  Media Files: {audio_stats['total_media_files']}")
        print(f"  Audio Files: {audio_stats['audio_files']}")
        print()

        print("Decks:")
        for deck_id, deck_info in decks.items():
            count = len([c for c in all_cards if str(c["did"]) == deck_id])
            print(f"  {deck_info.get('name', 'Unknown')}: {count} cards")


@inspect_app.command
def media(apkg_path: Path):
    """Show the media manifest and check it against the archive entries.

    :param apkg_path: Path to .apkg file.
    """
    with AnkiPackage(apkg_path) as pkg:
        mapping = pkg.get_media_mapping()
        names = pkg.get_media_names()

        print(f"Media manifest: {len(mapping)} entries")
        for file_id, filename in sorted(mapping.items(), key=lambda kv: int(kv[0])):
            print(f"  {file_id} -> {filename}")

        missing = sorted(set(mapping) - set(names), key=int)
        extra = sorted(set(names) - set(mapping), key=int)
        if missing:
            print(f"Missing media entries: {', '.join(missing)}")
        if extra:
            print(f"Unlisted media entries: {', '.join(extra)}")
        if not missing and not extra:
            print("Manifest matches archive contents")


def main() -> None:
    """Main entry point. Invokes the cyclopts app."""
    app()


if __name__ == "__main__":
    main()
