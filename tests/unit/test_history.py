"""Unit tests for the recipe history store."""

import json
from datetime import date
from itertools import count

import pytest

from cookiq.models.models import RecipeSet
from cookiq.storage.history import HISTORY_KEY, HistoryStore, export_file_name
from cookiq.utils.errors import StorageError


@pytest.fixture
def recipe_set(recipe_set_data):
    return RecipeSet.model_validate(recipe_set_data)


@pytest.fixture
def store(tmp_path):
    """Store on a temp file with deterministic ids and timestamps."""
    ids = count(1)
    ticks = count(1_700_000_000_000, 1000)
    history = HistoryStore(
        db_file=str(tmp_path / "history.db"),
        clock=lambda: next(ticks),
        id_factory=lambda: f"id-{next(ids)}",
    )
    with history:
        yield history


def _write_document(store, value):
    with store.conn:
        store.conn.execute(
            "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)", (HISTORY_KEY, value)
        )


class TestSave:
    """Test save() stamping and retention."""

    def test_save_returns_stamped_entry(self, store, recipe_set):
        stored = store.save(recipe_set)

        assert stored.id == "id-1"
        assert stored.timestamp == 1_700_000_000_000
        assert stored.recipe_set().to_json_dict() == recipe_set.to_json_dict()

    def test_save_then_list_round_trip(self, store, recipe_set):
        stored = store.save(recipe_set)
        assert store.list_all() == [stored]

    def test_most_recent_first(self, store, recipe_set):
        first = store.save(recipe_set)
        second = store.save(recipe_set)

        assert [entry.id for entry in store.list_all()] == [second.id, first.id]

    def test_history_capped_at_twenty(self, store, recipe_set):
        for _ in range(25):
            store.save(recipe_set)

        entries = store.list_all()

        assert len(entries) == 20
        assert entries[0].id == "id-25"
        assert entries[-1].id == "id-6"

    def test_custom_limit(self, tmp_path, recipe_set):
        with HistoryStore(db_file=str(tmp_path / "small.db"), limit=2) as history:
            for _ in range(3):
                history.save(recipe_set)
            assert len(history.list_all()) == 2

    def test_invalid_limit_rejected(self):
        with pytest.raises(ValueError):
            HistoryStore(db_file=":memory:", limit=0)

    def test_default_ids_unique(self, recipe_set):
        with HistoryStore(db_file=":memory:") as history:
            ids = {history.save(recipe_set).id for _ in range(5)}
        assert len(ids) == 5

    def test_persists_across_reopen(self, tmp_path, recipe_set):
        db_file = str(tmp_path / "persist.db")
        with HistoryStore(db_file=db_file) as history:
            stored = history.save(recipe_set)
        with HistoryStore(db_file=db_file) as history:
            assert history.get_by_id(stored.id) == stored


class TestRead:
    def test_empty_store(self, store):
        assert store.list_all() == []

    def test_get_by_id(self, store, recipe_set):
        store.save(recipe_set)
        second = store.save(recipe_set)

        assert store.get_by_id(second.id) == second
        assert store.get_by_id("missing") is None

    def test_corrupt_document_reads_as_empty(self, store):
        _write_document(store, "{not json")
        assert store.list_all() == []

    def test_non_list_document_reads_as_empty(self, store):
        _write_document(store, json.dumps({"id": "x"}))
        assert store.list_all() == []

    def test_invalid_entries_skipped(self, store, recipe_set):
        stored = store.save(recipe_set)
        document = [{"id": "broken", "timestamp": 1}, stored.to_json_dict(), "junk"]
        _write_document(store, json.dumps(document))

        assert store.list_all() == [stored]

    def test_mutating_listed_entry_leaves_store_unchanged(self, store, recipe_set):
        store.save(recipe_set)

        listed = store.list_all()[0]
        listed.recipes[0].steps.append("Serve immediately.")
        listed.analysis.categorization.edible.clear()

        fresh = store.list_all()[0]
        assert fresh.recipes[0].steps == recipe_set.recipes[0].steps
        assert fresh.analysis.categorization.edible == ["egg", "spinach"]

    def test_save_after_corruption_starts_fresh(self, store, recipe_set):
        _write_document(store, "garbage")
        stored = store.save(recipe_set)
        assert store.list_all() == [stored]

    def test_not_open_raises(self):
        with pytest.raises(RuntimeError, match="not open"):
            HistoryStore(db_file=":memory:").list_all()


class TestDelete:
    def test_delete_by_id(self, store, recipe_set):
        first = store.save(recipe_set)
        second = store.save(recipe_set)

        store.delete_by_id(first.id)

        assert store.list_all() == [second]

    def test_delete_is_idempotent(self, store, recipe_set):
        stored = store.save(recipe_set)
        store.delete_by_id(stored.id)
        store.delete_by_id(stored.id)
        assert store.list_all() == []

    def test_delete_unknown_id_leaves_collection_unchanged(self, store, recipe_set):
        stored = store.save(recipe_set)
        store.delete_by_id("unknown")
        assert store.list_all() == [stored]

    def test_clear_all(self, store, recipe_set):
        store.save(recipe_set)
        store.save(recipe_set)

        store.clear_all()

        assert store.list_all() == []

    def test_clear_all_on_empty_store(self, store):
        store.clear_all()
        assert store.list_all() == []


class TestExport:
    def test_export_file_name(self):
        assert export_file_name(date(2024, 3, 9)) == "cookiq_database_export_2024-03-09.json"

    def test_export_writes_pretty_json(self, store, recipe_set, tmp_path):
        first = store.save(recipe_set)
        second = store.save(recipe_set)

        path = store.export_json(tmp_path / "exports", today=date(2024, 1, 2))

        assert path.name == "cookiq_database_export_2024-01-02.json"
        text = path.read_text(encoding="utf-8")
        assert text.startswith("[\n  {")
        data = json.loads(text)
        assert [entry["id"] for entry in data] == [second.id, first.id]
        assert data[0]["recipes"][0]["dishName"] == "Spinach Omelette"

    def test_export_includes_entries_list_all_skips(self, store, recipe_set, tmp_path):
        stored = store.save(recipe_set)
        broken = {"id": "broken", "timestamp": 1}
        _write_document(store, json.dumps([broken, stored.to_json_dict()]))

        path = store.export_json(tmp_path, today=date(2024, 1, 2))

        assert store.list_all() == [stored]
        assert json.loads(path.read_text(encoding="utf-8")) == [broken, stored.to_json_dict()]

    def test_export_empty_history(self, store, tmp_path):
        path = store.export_json(tmp_path, today=date(2024, 1, 2))
        assert json.loads(path.read_text(encoding="utf-8")) == []

    def test_export_to_unwritable_location_raises(self, store, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        with pytest.raises(StorageError):
            store.export_json(blocker, today=date(2024, 1, 2))


class TestStorageErrors:
    def test_open_in_missing_directory_raises(self, tmp_path):
        with pytest.raises(StorageError):
            HistoryStore(db_file=str(tmp_path / "missing" / "history.db")).open()
