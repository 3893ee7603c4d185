from pathlib import Path

from notecraft.store import SQLiteArtifactStore, source_units_from_rows


def _store(tmp_path: Path) -> SQLiteArtifactStore:
    store = SQLiteArtifactStore(tmp_path / "nested" / "store.sqlite3")
    store.init_db()
    return store


def test_upsert_by_key_replaces_previous_value(tmp_path: Path) -> None:
    store = _store(tmp_path)

    store.upsert_by_key("daily_inspiration", "2026-02-06", {"title": "first"})
    store.upsert_by_key("daily_inspiration", "2026-02-06", {"title": "second"})
    store.upsert_by_key("daily_inspiration", "2026-02-07", {"title": "other day"})

    assert store.get_by_key("daily_inspiration", "2026-02-06") == {"title": "second"}
    assert store.count_keys("daily_inspiration") == 2
    assert store.get_by_key("weekly_insights", "2026-02-06") is None


def test_init_db_is_idempotent(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.upsert_by_key("c", "k", {"v": 1})

    store.init_db()

    assert store.get_by_key("c", "k") == {"v": 1}


def test_insert_assigns_id_and_query_filters(tmp_path: Path) -> None:
    store = _store(tmp_path)

    first = store.insert("notes", {"title": "a", "topic": "Work/Professional"})
    second = store.insert("notes", {"title": "b", "topic": "Relationships"})
    store.insert("cards", {"title": "c"})

    assert first["id"] != second["id"]
    assert first["created_at"]
    assert [row["title"] for row in store.query("notes")] == ["a", "b"]
    assert [row["title"] for row in store.query("notes", {"topic": "Relationships"})] == ["b"]
    assert [row["title"] for row in store.query("notes", {"id": [second["id"], "nope"]})] == ["b"]
    assert store.query("articles") == []


def test_source_units_from_rows_maps_note_fields() -> None:
    rows = [
        {
            "id": "n1",
            "title": "Walk",
            "content": "Walked to clear my head.",
            "tags": ["calm", "habits"],
            "created_at": "2026-02-03T08:30:00Z",
        },
        {"id": "n2", "content": None, "tags": "oops", "created_at": "not a date"},
    ]

    units = source_units_from_rows(rows)

    assert units[0].body == "Walked to clear my head."
    assert units[0].tags == ("calm", "habits")
    assert units[0].created_at.isoformat() == "2026-02-03T08:30:00+00:00"
    assert units[1].title == ""
    assert units[1].body == ""
    assert units[1].tags == ()
    assert units[1].created_at is None


def test_update_merges_changes_into_existing_record(tmp_path: Path) -> None:
    store = _store(tmp_path)
    note = store.insert("notes", {"title": "Old", "content": "Body"})

    updated = store.update("notes", note["id"], {"title": "New"})

    assert updated == {**note, "title": "New"}
    assert store.query("notes") == [updated]
    assert store.update("notes", "missing", {"title": "x"}) is None
