"""RecordStore implementation backed by a local SQLite database."""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Iterable, Iterator
from pathlib import Path

from indexsync.models import Record, RecordType

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS record (
    id INTEGER PRIMARY KEY,
    record_type TEXT NOT NULL,
    parent_id INTEGER,
    taxonomy_id INTEGER,
    data_json TEXT NOT NULL DEFAULT '{}'
);
CREATE INDEX IF NOT EXISTS idx_record_type ON record(record_type);
CREATE INDEX IF NOT EXISTS idx_record_parent ON record(parent_id);
CREATE TABLE IF NOT EXISTS object_term_relation (
    object_id INTEGER NOT NULL,
    term_id INTEGER NOT NULL,
    PRIMARY KEY (object_id, term_id)
);
"""

_COLUMNS = "id, record_type, parent_id, taxonomy_id, data_json"


class SQLiteRecordStore:
    """RecordStore over a single SQLite file.

    Suitable for the command line and for tests; production deployments
    plug in their own RecordStore over the real relational database.
    """

    def __init__(self, db_path: str = ".indexsync/records.db") -> None:
        path = Path(db_path)
        if db_path != ":memory:":
            path.parent.mkdir(parents=True, exist_ok=True)

        self.db_path = str(path) if db_path != ":memory:" else db_path
        self._conn = sqlite3.connect(self.db_path, timeout=5)
        self._conn.executescript(_SCHEMA)

    # -- helpers ---------------------------------------------------------------

    def _row_to_record(self, row: tuple) -> Record:
        id_, record_type, parent_id, taxonomy_id, data_json = row
        return Record(
            id=id_,
            record_type=RecordType(record_type),
            parent_id=parent_id,
            taxonomy_id=taxonomy_id,
            data=json.loads(data_json),
        )

    # -- writes ----------------------------------------------------------------

    def save(self, record: Record) -> None:
        """Insert or replace a record."""
        with self._conn:
            self._conn.execute(
                f"INSERT OR REPLACE INTO record ({_COLUMNS}) VALUES (?, ?, ?, ?, ?)",
                (
                    record.id,
                    record.record_type.value,
                    record.parent_id,
                    record.taxonomy_id,
                    json.dumps(record.data),
                ),
            )

    def relate_term(self, object_id: int, term_id: int) -> None:
        with self._conn:
            self._conn.execute(
                "INSERT OR IGNORE INTO object_term_relation (object_id, term_id) VALUES (?, ?)",
                (object_id, term_id),
            )

    # -- RecordStore protocol --------------------------------------------------

    def iter_records(self, record_type: RecordType) -> Iterator[Record]:
        cursor = self._conn.execute(
            f"SELECT {_COLUMNS} FROM record WHERE record_type = ? ORDER BY id",
            (record_type.value,),
        )
        for row in cursor:
            yield self._row_to_record(row)

    def get(self, record_type: RecordType, record_id: int) -> Record | None:
        row = self._conn.execute(
            f"SELECT {_COLUMNS} FROM record WHERE record_type = ? AND id = ?",
            (record_type.value, record_id),
        ).fetchone()
        return self._row_to_record(row) if row else None

    def count(self, record_type: RecordType) -> int:
        (n,) = self._conn.execute(
            "SELECT COUNT(*) FROM record WHERE record_type = ?", (record_type.value,)
        ).fetchone()
        return n

    def children(self, record_id: int) -> list[Record]:
        rows = self._conn.execute(
            f"SELECT {_COLUMNS} FROM record WHERE parent_id = ? ORDER BY id", (record_id,)
        ).fetchall()
        return [self._row_to_record(r) for r in rows]

    def related_term_ids(self, object_id: int) -> list[int]:
        rows = self._conn.execute(
            "SELECT term_id FROM object_term_relation WHERE object_id = ? ORDER BY term_id",
            (object_id,),
        ).fetchall()
        return [r[0] for r in rows]

    def term_parent_list(self, taxonomy_ids: Iterable[int]) -> dict[int, int | None]:
        """Map term id -> parent term id for every term in the given taxonomies."""
        ids = list(taxonomy_ids)
        if not ids:
            return {}
        placeholders = ", ".join("?" for _ in ids)
        rows = self._conn.execute(
            f"SELECT id, parent_id FROM record WHERE record_type = ? "
            f"AND taxonomy_id IN ({placeholders})",
            (RecordType.term.value, *ids),
        ).fetchall()
        return {id_: parent_id for id_, parent_id in rows}

    # -- extras ----------------------------------------------------------------

    def stats(self) -> dict[str, int]:
        """Count records grouped by type."""
        rows = self._conn.execute(
            "SELECT record_type, COUNT(*) FROM record GROUP BY record_type"
        ).fetchall()
        counts: dict[str, int] = {t.value: 0 for t in RecordType.indexed()}
        for record_type, n in rows:
            counts[record_type] = n
        return counts

    def close(self) -> None:
        self._conn.close()
