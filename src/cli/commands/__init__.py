"""CLI command modules."""

from .daemon import daemon, fetch, verify
from .forecasts import forecasts, history, models, predict, stats

__all__ = [
    "daemon",
    "fetch",
    "verify",
    "predict",
    "forecasts",
    "history",
    "stats",
    "models",
]
