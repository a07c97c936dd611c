"""Forecast ledger: pending forecasts, reconciliation and session stats."""

from .stats import SessionStat, SessionStatStore
from .store import ForecastRecord, ForecastStore

__all__ = [
    "ForecastRecord",
    "ForecastStore",
    "SessionStat",
    "SessionStatStore",
]
