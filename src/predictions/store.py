"""SQLite persistence for the forecast ledger."""

import sqlite3
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

import structlog

from db import wal_connect
from errors import PersistenceConflict
from shared_types import Category, Outcome

logger = structlog.get_logger()


@dataclass
class ForecastRecord:
    issue_id: str
    predicted_value: int
    predicted_category: Category
    confidence: float
    model_tier: str = ""
    outcome: Outcome = Outcome.PENDING
    actual_value: Optional[int] = None
    actual_category: Optional[Category] = None
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())
    resolved_at: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.outcome == Outcome.PENDING


class ForecastStore:
    """One forecast per issue id; resolved at most once."""

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path).expanduser()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_tables()

    def _init_tables(self):
        with wal_connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS forecasts (
                    issue_id TEXT PRIMARY KEY,
                    predicted_value INTEGER NOT NULL CHECK(predicted_value BETWEEN 0 AND 9),
                    predicted_category TEXT NOT NULL,
                    confidence REAL NOT NULL,
                    model_tier TEXT NOT NULL DEFAULT '',
                    outcome TEXT NOT NULL DEFAULT 'PENDING'
                        CHECK(outcome IN ('PENDING','WIN','LOSS')),
                    actual_value INTEGER,
                    actual_category TEXT,
                    created_at TIMESTAMP NOT NULL,
                    resolved_at TIMESTAMP
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_forecast_outcome ON forecasts(outcome)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_forecast_created ON forecasts(created_at)")

    def create_if_absent(self, record: ForecastRecord) -> bool:
        """Insert the forecast unless one exists for its issue id. Returns True if inserted."""
        try:
            with wal_connect(self.db_path) as conn:
                cur = conn.execute(
                    """INSERT OR IGNORE INTO forecasts
                    (issue_id, predicted_value, predicted_category, confidence, model_tier,
                     outcome, actual_value, actual_category, created_at, resolved_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                    (
                        record.issue_id,
                        record.predicted_value,
                        str(record.predicted_category),
                        record.confidence,
                        record.model_tier,
                        str(record.outcome),
                        record.actual_value,
                        str(record.actual_category) if record.actual_category else None,
                        record.created_at,
                        record.resolved_at,
                    ),
                )
                return cur.rowcount > 0
        except sqlite3.Error as e:
            logger.error("forecast_save_error", issue_id=record.issue_id, error=str(e))
            return False

    def create(self, record: ForecastRecord, strict: bool = False) -> bool:
        """create_if_absent, optionally raising PersistenceConflict when the id is taken."""
        created = self.create_if_absent(record)
        if not created and strict:
            raise PersistenceConflict(record.issue_id)
        return created

    def update_once(
        self,
        issue_id: str,
        outcome: Outcome,
        actual_value: int,
        actual_category: Category,
    ) -> bool:
        """Resolve a PENDING forecast. No-op (False) if missing or already resolved."""
        if outcome not in (Outcome.WIN, Outcome.LOSS):
            return False
        try:
            with wal_connect(self.db_path) as conn:
                cur = conn.execute(
                    """UPDATE forecasts
                    SET outcome = ?, actual_value = ?, actual_category = ?, resolved_at = ?
                    WHERE issue_id = ? AND outcome = 'PENDING'""",
                    (
                        str(outcome),
                        actual_value,
                        str(actual_category),
                        datetime.now().isoformat(),
                        issue_id,
                    ),
                )
                return cur.rowcount > 0
        except sqlite3.Error as e:
            logger.error("forecast_outcome_error", issue_id=issue_id, error=str(e))
            return False

    def find_by_id(self, issue_id: str) -> Optional[ForecastRecord]:
        with wal_connect(self.db_path, row_factory=True) as conn:
            row = conn.execute("SELECT * FROM forecasts WHERE issue_id = ?", (issue_id,)).fetchone()
        return self._row_to_record(row) if row else None

    def query(
        self, outcome: Optional[Outcome] = None, limit: Optional[int] = 100
    ) -> list[ForecastRecord]:
        """Forecasts, newest first, optionally filtered by outcome. limit=None returns all."""
        with wal_connect(self.db_path, row_factory=True) as conn:
            query = "SELECT * FROM forecasts WHERE 1=1"
            params: list = []
            if outcome:
                query += " AND outcome = ?"
                params.append(str(outcome))
            query += " ORDER BY issue_id DESC"
            if limit is not None:
                query += " LIMIT ?"
                params.append(limit)
            return [self._row_to_record(r) for r in conn.execute(query, params).fetchall()]

    def accuracy(self) -> dict:
        """Resolved totals and win rate across the whole ledger."""
        with wal_connect(self.db_path) as conn:
            rows = conn.execute(
                "SELECT outcome, COUNT(*) FROM forecasts GROUP BY outcome"
            ).fetchall()
        counts = {outcome: count for outcome, count in rows}
        wins = counts.get(Outcome.WIN.value, 0)
        losses = counts.get(Outcome.LOSS.value, 0)
        resolved = wins + losses
        return {
            "total": resolved,
            "wins": wins,
            "losses": losses,
            "pending": counts.get(Outcome.PENDING.value, 0),
            "accuracy": wins / resolved if resolved else None,
        }

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> ForecastRecord:
        return ForecastRecord(
            issue_id=row["issue_id"],
            predicted_value=int(row["predicted_value"]),
            predicted_category=Category(row["predicted_category"]),
            confidence=float(row["confidence"]),
            model_tier=row["model_tier"],
            outcome=Outcome(row["outcome"]),
            actual_value=row["actual_value"],
            actual_category=Category(row["actual_category"]) if row["actual_category"] else None,
            created_at=row["created_at"],
            resolved_at=row["resolved_at"],
        )
