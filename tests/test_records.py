"""
Tests for note field and identifier composition.
"""

import pytest

from anki_deck import Card
from anki_deck.media import compute_media_index
from anki_deck.records import (
    CARD_ID_BAND,
    ID_SCALE,
    MAX_CARDS,
    Fields,
    Orientation,
    compose_fields,
    compose_identity,
    field_checksum,
    join_fields,
    split_fields,
)

BASE = 1_700_000_000


def _fields(cards, orientation=Orientation.AUTO):
    media = compute_media_index(cards)
    return [compose_fields(c, i, media, orientation) for i, c in enumerate(cards)]


class TestComposeFields:
    """Tests for the audio-driven front/back layout."""

    def test_no_audio(self):
        """Without audio: front is target, back is source, no markers."""
        (fields,) = _fields([Card("hello", "hola")])
        assert fields == Fields("hola", "hello")
        assert "[sound:" not in join_fields(fields)

    def test_target_audio_only(self, make_audio):
        """Target audio stays with the target text on the front."""
        (fields,) = _fields([Card("hello", "hola", target_audio=make_audio("t"))])
        assert fields == Fields("hola[sound:0.mp3]", "hello")

    def test_source_audio_only(self, make_audio):
        """Source audio promotes the source text to the front."""
        (fields,) = _fields([Card("hello", "hola", source_audio=make_audio("s"))])
        assert fields == Fields("hello[sound:0.mp3]", "hola")

    def test_both_audio(self, make_audio):
        """Both audios: front has target audio, back has source audio."""
        card = Card(
            "hello", "hola", source_audio=make_audio("s"), target_audio=make_audio("t")
        )
        (fields,) = _fields([card])
        assert fields == Fields("hola[sound:0.mp3]", "hello[sound:1.mp3]")

    def test_mixed_deck(self, mixed_cards):
        """Markers use indices from the shared two-pass numbering."""
        assert _fields(mixed_cards) == [
            Fields("uno", "one"),
            Fields("dos[sound:0.mp3]", "two"),
            Fields("three[sound:2.mp3]", "tres"),
            Fields("cuatro[sound:1.mp3]", "four[sound:3.mp3]"),
        ]

    def test_empty_audio_is_absent(self):
        """A zero-length buffer is treated as no audio."""
        (fields,) = _fields([Card("hello", "hola", source_audio=b"")])
        assert fields == Fields("hola", "hello")


class TestOrientation:
    """Tests for fixed front-side orientation."""

    def test_target_front(self, mixed_cards):
        """Target text is always in front, each text keeps its own audio."""
        assert _fields(mixed_cards, Orientation.TARGET_FRONT) == [
            Fields("uno", "one"),
            Fields("dos[sound:0.mp3]", "two"),
            Fields("tres", "three[sound:2.mp3]"),
            Fields("cuatro[sound:1.mp3]", "four[sound:3.mp3]"),
        ]

    def test_source_front(self, mixed_cards):
        """Source text is always in front, each text keeps its own audio."""
        assert _fields(mixed_cards, Orientation.SOURCE_FRONT) == [
            Fields("one", "uno"),
            Fields("two", "dos[sound:0.mp3]"),
            Fields("three[sound:2.mp3]", "tres"),
            Fields("four[sound:3.mp3]", "cuatro[sound:1.mp3]"),
        ]


class TestComposeIdentity:
    """Tests for note/card identifiers."""

    def test_ids_increase_with_position(self):
        ids = [compose_identity(i, BASE) for i in range(5)]
        note_ids = [i.note_id for i in ids]
        card_ids = [i.card_id for i in ids]
        assert note_ids == sorted(note_ids)
        assert card_ids == sorted(card_ids)
        assert len(set(note_ids)) == 5

    def test_note_and_card_bands_do_not_overlap(self):
        """The last note ID is below the first card ID."""
        last_note = compose_identity(MAX_CARDS - 1, BASE)
        first_card = compose_identity(0, BASE)
        assert last_note.note_id < first_card.card_id
        assert first_card.card_id == BASE * ID_SCALE + CARD_ID_BAND

    def test_next_second_starts_above_previous_block(self):
        """IDs from consecutive seconds never collide."""
        last_card = compose_identity(MAX_CARDS - 1, BASE)
        next_note = compose_identity(0, BASE + 1)
        assert next_note.note_id > last_card.card_id

    def test_ids_fit_sqlite_integer(self):
        identity = compose_identity(MAX_CARDS - 1, BASE)
        assert identity.card_id < 2**63

    def test_guids_unique(self):
        guids = {compose_identity(i, BASE).guid for i in range(100)}
        assert len(guids) == 100

    def test_position_out_of_range(self):
        with pytest.raises(ValueError):
            compose_identity(MAX_CARDS, BASE)


class TestFieldHelpers:
    """Tests for checksum and field joining helpers."""

    def test_checksum_is_stable(self):
        assert field_checksum("hola") == field_checksum("hola")
        assert field_checksum("hola") != field_checksum("adiós")
        assert 0 <= field_checksum("hola") < 2**32

    def test_split_round_trip(self):
        fields = Fields("hola[sound:0.mp3]", "hello")
        assert split_fields(join_fields(fields)) == fields

    def test_split_rejects_wrong_count(self):
        with pytest.raises(ValueError):
            split_fields("only one")


class TestCard:
    """Tests for Card input records."""

    def test_from_request_dict(self):
        card = Card.from_dict(
            {"source": "hello", "target": "hola", "targetAudio": bytearray(b"abc")}
        )
        assert card == Card("hello", "hola", target_audio=b"abc")
        assert card.has_target_audio
        assert not card.has_source_audio

    def test_from_snake_case_dict(self):
        card = Card.from_dict({"source_text": "hello", "target_text": "hola"})
        assert card == Card("hello", "hola")

    def test_missing_text(self):
        with pytest.raises(KeyError):
            Card.from_dict({"source": "hello"})
