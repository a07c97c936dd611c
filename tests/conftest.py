"""Shared test fixtures for drawcast."""

import random
import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from errors import FetchError  # noqa: E402
from forecasting.engine import Forecaster  # noqa: E402
from forecasting.registry import ModelRegistry  # noqa: E402
from forecasting.trainer import Trainer  # noqa: E402
from history.store import HistoryStore, OutcomeRecord  # noqa: E402
from orchestrator.context import EngineContext  # noqa: E402
from predictions.stats import SessionStatStore  # noqa: E402
from predictions.store import ForecastStore  # noqa: E402
from shared_types import ModelTier  # noqa: E402

# Low thresholds so the first two tiers train on small synthetic histories
SMALL_THRESHOLDS = {
    ModelTier.ULTRA: 30,
    ModelTier.ONEHOT: 40,
    ModelTier.DEEP: 5000,
    ModelTier.LAGSTATS: 6000,
    ModelTier.WIDE: 7000,
    ModelTier.HYBRID: 8000,
    ModelTier.ENSEMBLE: 9000,
}

# Ten-value cycle whose most recent ten never form a repeating/sequential/alternating pattern
PATTERNLESS = [0, 3, 6, 9, 2, 5, 8, 1, 4, 7]


def issue_id(i: int) -> str:
    return f"2024010100{i:04d}"


class FakeSource:
    """Stands in for DrawSource; returns whatever batch the test sets."""

    def __init__(self, batch=None, error: str | None = None):
        self.batch = list(batch or [])
        self.error = error
        self.calls = 0
        self.closed = False

    def fetch(self):
        self.calls += 1
        if self.error:
            raise FetchError(self.error)
        return list(self.batch)

    def close(self):
        self.closed = True


class RecordingNotifier:
    def __init__(self):
        self.pending = []
        self.resolved = []

    def notify_pending(self, record):
        self.pending.append(record)

    def notify_resolved(self, record):
        self.resolved.append(record)


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "drawcast.db"


@pytest.fixture
def make_records():
    """Factory: ``make_records(n, start=1, values=None)`` → OutcomeRecords with increasing ids."""

    def _make(n: int, start: int = 1, values=None):
        values = values if values is not None else [PATTERNLESS[i % 10] for i in range(n)]
        return [
            OutcomeRecord(issue_id=issue_id(start + i), value=values[i]) for i in range(n)
        ]

    return _make


@pytest.fixture
def fake_source():
    return FakeSource()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def build_ctx(db_path, fake_source, notifier):
    """Factory for a fresh EngineContext over a temp database."""

    def _build(thresholds=None, seed: int = 7):
        registry = ModelRegistry(thresholds)
        return EngineContext(
            history=HistoryStore(db_path),
            forecasts=ForecastStore(db_path),
            stats=SessionStatStore(db_path),
            registry=registry,
            trainer=Trainer(registry, random_state=0),
            forecaster=Forecaster(registry, rng=random.Random(seed)),
            source=fake_source,
            notifier=notifier,
        )

    return _build


@pytest.fixture
def engine_ctx(build_ctx):
    return build_ctx()
