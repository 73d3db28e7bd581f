"""
Shared pytest fixtures for all tests.
"""

import pytest

from anki_deck import AnkiPackage, Card, create_deck

FAKE_MP3 = b"ID3\x03\x00\x00\x00\x00\x00\x00" + b"\xff\xfb\x90\x00" * 16


def audio(tag: str) -> bytes:
    """Distinct fake MP3 payload, so media entries can be told apart."""
    return FAKE_MP3 + tag.encode("utf-8")


@pytest.fixture
def mixed_cards():
    """One card for each combination of source/target audio."""
    return [
        Card("one", "uno"),
        Card("two", "dos", target_audio=audio("t1")),
        Card("three", "tres", source_audio=audio("s2")),
        Card("four", "cuatro", source_audio=audio("s3"), target_audio=audio("t3")),
    ]


@pytest.fixture
def open_deck():
    """Build a deck and open it with AnkiPackage.

    Usage: ``with open_deck(cards, "Name") as pkg: ...``
    """

    def _open(cards, deck_name="Test Deck", config=None):
        return AnkiPackage(create_deck(cards, deck_name, config))

    return _open


@pytest.fixture
def make_audio():
    """Factory for distinct fake MP3 payloads."""
    return audio
