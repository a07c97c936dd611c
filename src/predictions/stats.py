"""Running win/loss session counter."""

import sqlite3
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

import structlog

from db import wal_connect

logger = structlog.get_logger()


@dataclass
class SessionStat:
    wins: int = 0
    losses: int = 0
    total: int = 0
    updated_at: Optional[str] = None

    @property
    def win_rate(self) -> Optional[float]:
        return self.wins / self.total if self.total else None


class SessionStatStore:
    """Single-row accumulator; ``total`` is always written as wins + losses."""

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path).expanduser()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_tables()

    def _init_tables(self):
        with wal_connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS session_stats (
                    id INTEGER PRIMARY KEY CHECK(id = 1),
                    wins INTEGER NOT NULL DEFAULT 0,
                    losses INTEGER NOT NULL DEFAULT 0,
                    total INTEGER NOT NULL DEFAULT 0,
                    updated_at TIMESTAMP
                )
            """)
            conn.execute("INSERT OR IGNORE INTO session_stats (id) VALUES (1)")

    def increment(self, wins_delta: int = 0, losses_delta: int = 0) -> bool:
        """Atomically add to the counters."""
        if wins_delta < 0 or losses_delta < 0:
            raise ValueError("session stats only accumulate")
        try:
            with wal_connect(self.db_path) as conn:
                conn.execute(
                    """UPDATE session_stats
                    SET wins = wins + ?, losses = losses + ?,
                        total = wins + losses + ? + ?, updated_at = ?
                    WHERE id = 1""",
                    (
                        wins_delta,
                        losses_delta,
                        wins_delta,
                        losses_delta,
                        datetime.now().isoformat(),
                    ),
                )
            return True
        except sqlite3.Error as e:
            logger.error("session_stat_error", error=str(e))
            return False

    def get(self) -> SessionStat:
        with wal_connect(self.db_path, row_factory=True) as conn:
            row = conn.execute("SELECT * FROM session_stats WHERE id = 1").fetchone()
        if row is None:
            return SessionStat()
        return SessionStat(
            wins=row["wins"], losses=row["losses"], total=row["total"], updated_at=row["updated_at"]
        )
