"""SQLite artifact store for notes, keyed artifacts and saved outputs."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Mapping
from uuid import uuid4

from .models import SourceUnit


class SQLiteArtifactStore:
    """SQLite-backed store with upsert-by-key and plain collections."""

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        with self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS keyed_artifacts (
                    collection TEXT NOT NULL,
                    artifact_key TEXT NOT NULL,
                    value_json TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    PRIMARY KEY (collection, artifact_key)
                );

                CREATE TABLE IF NOT EXISTS records (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    collection TEXT NOT NULL,
                    record_id TEXT NOT NULL,
                    value_json TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    UNIQUE (collection, record_id)
                );

                CREATE INDEX IF NOT EXISTS idx_records_collection ON records(collection);
                """
            )

    def get_by_key(self, collection: str, key: str) -> dict | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT value_json FROM keyed_artifacts WHERE collection = ? AND artifact_key = ?",
                (collection, key),
            ).fetchone()
        return json.loads(row["value_json"]) if row else None

    def upsert_by_key(self, collection: str, key: str, value: Mapping[str, Any]) -> dict:
        """Write ``value`` under ``key``; a later write replaces an earlier one."""

        now_iso = datetime.now(timezone.utc).isoformat()
        stored = dict(value)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO keyed_artifacts (collection, artifact_key, value_json, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(collection, artifact_key) DO UPDATE SET
                    value_json = excluded.value_json,
                    updated_at = excluded.updated_at
                """,
                (collection, key, json.dumps(stored, ensure_ascii=False), now_iso),
            )
        return stored

    def count_keys(self, collection: str) -> int:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT COUNT(*) AS n FROM keyed_artifacts WHERE collection = ?",
                (collection,),
            ).fetchone()
        return int(row["n"])

    def insert(self, collection: str, value: Mapping[str, Any]) -> dict:
        """Insert a record, assigning ``id`` and ``created_at`` when absent."""

        stored = dict(value)
        stored.setdefault("id", uuid4().hex)
        stored.setdefault("created_at", datetime.now(timezone.utc).isoformat())
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO records (collection, record_id, value_json, created_at)
                VALUES (?, ?, ?, ?)
                """,
                (collection, str(stored["id"]), json.dumps(stored, ensure_ascii=False), stored["created_at"]),
            )
        return stored

    def update(self, collection: str, record_id: str, changes: Mapping[str, Any]) -> dict | None:
        """Merge ``changes`` into a stored record; None when the record is absent."""

        with self._connect() as conn:
            row = conn.execute(
                "SELECT value_json FROM records WHERE collection = ? AND record_id = ?",
                (collection, record_id),
            ).fetchone()
            if row is None:
                return None

            stored = {**json.loads(row["value_json"]), **changes, "id": record_id}
            conn.execute(
                "UPDATE records SET value_json = ? WHERE collection = ? AND record_id = ?",
                (json.dumps(stored, ensure_ascii=False), collection, record_id),
            )
        return stored

    def query(self, collection: str, filters: Mapping[str, Any] | None = None) -> list[dict]:
        """Return records in insertion order matching every filter.

        A list, tuple or set filter value matches by membership.
        """

        with self._connect() as conn:
            rows = conn.execute(
                "SELECT value_json FROM records WHERE collection = ? ORDER BY seq",
                (collection,),
            ).fetchall()

        records = [json.loads(row["value_json"]) for row in rows]
        return [record for record in records if _matches(record, filters or {})]


def _matches(record: Mapping[str, Any], filters: Mapping[str, Any]) -> bool:
    for field_name, expected in filters.items():
        actual = record.get(field_name)
        if isinstance(expected, (list, tuple, set, frozenset)):
            if actual not in expected:
                return False
        elif actual != expected:
            return False
    return True


def source_units_from_rows(rows: Iterable[Mapping[str, Any]]) -> list[SourceUnit]:
    """Convert ``notes`` records into SourceUnits."""

    units: list[SourceUnit] = []
    for row in rows:
        tags = row.get("tags") or []
        created_at = row.get("created_at")
        units.append(
            SourceUnit(
                id=str(row.get("id", "")),
                title=str(row.get("title") or ""),
                body=str(row.get("content") or ""),
                tags=tuple(str(tag) for tag in tags) if isinstance(tags, list) else (),
                created_at=_parse_dt(created_at) if isinstance(created_at, str) else None,
            )
        )
    return units


def _parse_dt(text: str) -> datetime | None:
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
