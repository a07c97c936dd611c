"""Observed draw history: storage and upstream feed."""

from .source import DrawSource, FetchError, parse_draws
from .store import HistoryStore, OutcomeRecord, QueryOrder

__all__ = [
    "DrawSource",
    "FetchError",
    "HistoryStore",
    "OutcomeRecord",
    "QueryOrder",
    "parse_draws",
]
