"""
Tests for the collection database writer.
"""

import json
import sqlite3
from contextlib import closing

import pytest

from anki_deck import Card, DeckConfig
from anki_deck.database import build_database
from anki_deck.errors import InsertError, SchemaError
from anki_deck.records import FIELD_SEPARATOR, Identity, field_checksum

NOW = 1_700_000_000.25


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "collection.anki2"


def _query(db_path, sql):
    with closing(sqlite3.connect(db_path)) as conn:
        conn.row_factory = sqlite3.Row
        return conn.execute(sql).fetchall()


class TestBuildDatabase:
    """Tests for build_database()."""

    def test_one_note_and_card_per_input(self, db_path, mixed_cards):
        build_database(db_path, mixed_cards, "Spanish", now=NOW)
        assert len(_query(db_path, "SELECT * FROM notes")) == 4
        assert len(_query(db_path, "SELECT * FROM cards")) == 4
        assert len(_query(db_path, "SELECT * FROM col")) == 1

    def test_fields_split_into_two_parts(self, db_path, mixed_cards):
        build_database(db_path, mixed_cards, "Spanish", now=NOW)
        for note in _query(db_path, "SELECT flds FROM notes"):
            parts = note["flds"].split(FIELD_SEPARATOR)
            assert len(parts) == 2
            assert all(parts)

    def test_notes_in_input_order(self, db_path, mixed_cards):
        build_database(db_path, mixed_cards, "Spanish", now=NOW)
        notes = _query(db_path, "SELECT flds, sfld, csum FROM notes ORDER BY id")
        assert [n["flds"] for n in notes] == [
            "uno\x1fone",
            "dos[sound:0.mp3]\x1ftwo",
            "three[sound:2.mp3]\x1ftres",
            "cuatro[sound:1.mp3]\x1ffour[sound:3.mp3]",
        ]
        assert notes[0]["sfld"] == "uno"
        assert notes[0]["csum"] == field_checksum("uno")

    def test_modification_times_distinct(self, db_path, mixed_cards):
        build_database(db_path, mixed_cards, "Spanish", now=NOW)
        mods = [n["mod"] for n in _query(db_path, "SELECT mod FROM notes")]
        assert len(set(mods)) == len(mods)

    def test_cards_are_new(self, db_path, mixed_cards):
        """Every card is unstudied, with no scheduling history."""
        build_database(db_path, mixed_cards, "Spanish", now=NOW)
        for card in _query(db_path, "SELECT * FROM cards"):
            assert card["type"] == 0
            assert card["queue"] == 0
            assert card["ivl"] == 0
            assert card["factor"] == 0
            assert card["reps"] == 0
            assert card["lapses"] == 0
            assert card["ord"] == 0
        assert _query(db_path, "SELECT COUNT(*) FROM revlog")[0][0] == 0

    def test_cards_reference_notes_and_deck(self, db_path, mixed_cards):
        build_database(db_path, mixed_cards, "Spanish", now=NOW)
        col = _query(db_path, "SELECT decks, models FROM col")[0]
        decks = json.loads(col["decks"])
        deck_id = next(int(k) for k, d in decks.items() if d["name"] == "Spanish")
        models = json.loads(col["models"])
        (model_id,) = (int(k) for k in models)

        rows = _query(
            db_path,
            "SELECT cards.did, notes.mid FROM cards JOIN notes ON cards.nid = notes.id",
        )
        assert len(rows) == 4
        assert all(r["did"] == deck_id for r in rows)
        assert all(r["mid"] == model_id for r in rows)

    def test_collection_ids_are_time_derived(self, db_path):
        build_database(db_path, [], "Spanish", now=NOW)
        col = _query(db_path, "SELECT * FROM col")[0]
        models = json.loads(col["models"])
        decks = json.loads(col["decks"])
        assert list(models) == [str(int(NOW * 1000))]
        assert str(int(NOW * 1000) + 1) in decks
        assert col["crt"] == int(NOW)
        assert col["ver"] == 11

    def test_model_has_two_fields_and_one_template(self, db_path):
        build_database(db_path, [], "Spanish", now=NOW)
        (model,) = json.loads(_query(db_path, "SELECT models FROM col")[0][0]).values()
        assert [f["name"] for f in model["flds"]] == ["Front", "Back"]
        assert len(model["tmpls"]) == 1
        template = model["tmpls"][0]
        assert template["qfmt"] == "{{Front}}"
        assert "{{Front" in template["afmt"]
        assert "{{Back}}" in template["afmt"]

    def test_custom_model_names(self, db_path):
        config = DeckConfig(model_name="Vocab", front_field="Recto", back_field="Verso")
        build_database(db_path, [], "Spanish", config=config, now=NOW)
        (model,) = json.loads(_query(db_path, "SELECT models FROM col")[0][0]).values()
        assert model["name"] == "Vocab"
        assert [f["name"] for f in model["flds"]] == ["Recto", "Verso"]

    def test_empty_deck(self, db_path):
        """Zero cards still produce the schema and collection row."""
        media = build_database(db_path, [], "Empty", now=NOW)
        assert len(media) == 0
        assert len(_query(db_path, "SELECT * FROM col")) == 1
        assert _query(db_path, "SELECT COUNT(*) FROM notes")[0][0] == 0
        assert _query(db_path, "SELECT COUNT(*) FROM cards")[0][0] == 0


class TestBuildDatabaseFailures:
    """Tests for failure reporting."""

    def test_duplicate_ids_raise_insert_error(self, db_path, monkeypatch):
        """A failed note insert names the failing card position."""
        monkeypatch.setattr(
            "anki_deck.database.compose_identity",
            lambda position, base: Identity(1, 2, f"guid-{position}"),
        )
        cards = [Card("a", "b"), Card("c", "d"), Card("e", "f")]

        with pytest.raises(InsertError) as exc_info:
            build_database(db_path, cards, "Broken", now=NOW)

        assert exc_info.value.position == 1
        assert exc_info.value.table == "notes"
        assert "card 1" in str(exc_info.value)

    def test_failed_insert_commits_nothing(self, db_path, monkeypatch):
        monkeypatch.setattr(
            "anki_deck.database.compose_identity",
            lambda position, base: Identity(1, 2, "guid"),
        )
        with pytest.raises(InsertError):
            build_database(db_path, [Card("a", "b"), Card("c", "d")], "Broken", now=NOW)
        assert _query(db_path, "SELECT COUNT(*) FROM notes")[0][0] == 0
        assert _query(db_path, "SELECT COUNT(*) FROM col")[0][0] == 0

    def test_existing_collection_raises_schema_error(self, db_path):
        build_database(db_path, [], "First", now=NOW)
        with pytest.raises(SchemaError):
            build_database(db_path, [], "Second", now=NOW)
