"""SQLite persistence for observed draw outcomes."""

import sqlite3
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from pathlib import Path
from typing import Optional

import structlog

from db import wal_connect
from shared_types import Category

logger = structlog.get_logger()


class QueryOrder(StrEnum):
    NEWEST_FIRST = "newest_first"
    OLDEST_FIRST = "oldest_first"


@dataclass(frozen=True)
class OutcomeRecord:
    """Single observed draw. Never mutated once stored."""

    issue_id: str
    value: int
    observed_at: str = field(default_factory=lambda: datetime.now().isoformat())

    def __post_init__(self):
        if not self.issue_id:
            raise ValueError("issue_id must be non-empty")
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValueError(f"value must be an int, got {self.value!r}")
        if not 0 <= self.value <= 9:
            raise ValueError(f"value must be 0-9, got {self.value}")

    @property
    def category(self) -> Category:
        return Category.of(self.value)


class HistoryStore:
    """Append-only outcome history, keyed by issue id."""

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path).expanduser()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self):
        with wal_connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS outcomes (
                    issue_id TEXT PRIMARY KEY,
                    value INTEGER NOT NULL CHECK(value BETWEEN 0 AND 9),
                    category TEXT NOT NULL CHECK(category IN ('LOW','HIGH')),
                    observed_at TIMESTAMP NOT NULL
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_outcomes_observed ON outcomes(observed_at)")

    def append_if_absent(self, record: OutcomeRecord) -> bool:
        """Insert record unless its issue id is already stored. Returns True if inserted."""
        try:
            with wal_connect(self.db_path) as conn:
                cur = conn.execute(
                    """INSERT OR IGNORE INTO outcomes (issue_id, value, category, observed_at)
                    VALUES (?, ?, ?, ?)""",
                    (record.issue_id, record.value, str(record.category), record.observed_at),
                )
                inserted = cur.rowcount > 0
        except sqlite3.Error as e:
            logger.error("history_append_error", issue_id=record.issue_id, error=str(e))
            return False
        if inserted:
            logger.debug("history_appended", issue_id=record.issue_id, value=record.value)
        return inserted

    def query(
        self, limit: int = 1000, order: QueryOrder = QueryOrder.NEWEST_FIRST
    ) -> list[OutcomeRecord]:
        """Most recent ``limit`` records, returned in the requested order.

        Recency follows issue id order, since ids increase monotonically upstream.
        """
        with wal_connect(self.db_path, row_factory=True) as conn:
            rows = conn.execute(
                "SELECT * FROM outcomes ORDER BY issue_id DESC LIMIT ?", (limit,)
            ).fetchall()
        records = [self._row_to_record(r) for r in rows]
        if order == QueryOrder.OLDEST_FIRST:
            records.reverse()
        return records

    def find_by_id(self, issue_id: str) -> Optional[OutcomeRecord]:
        with wal_connect(self.db_path, row_factory=True) as conn:
            row = conn.execute(
                "SELECT * FROM outcomes WHERE issue_id = ?", (issue_id,)
            ).fetchone()
        return self._row_to_record(row) if row else None

    def count(self) -> int:
        with wal_connect(self.db_path) as conn:
            return conn.execute("SELECT COUNT(*) FROM outcomes").fetchone()[0]

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> OutcomeRecord:
        return OutcomeRecord(
            issue_id=row["issue_id"],
            value=int(row["value"]),
            observed_at=row["observed_at"],
        )
