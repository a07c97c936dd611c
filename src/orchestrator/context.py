"""Process-owned engine state shared by the scheduled cycles."""

import random
from dataclasses import dataclass, field
from typing import Optional

from cli.config_models import DrawcastConfig
from forecasting.engine import Forecaster
from forecasting.registry import ModelRegistry
from forecasting.trainer import Trainer
from history.source import DrawSource
from history.store import HistoryStore
from observability import Metrics
from predictions.stats import SessionStatStore
from predictions.store import ForecastStore

from .notify import LogNotifier, Notifier


@dataclass
class EngineContext:
    """Everything one fetch or verify cycle needs; built once per process (or per test)."""

    history: HistoryStore
    forecasts: ForecastStore
    stats: SessionStatStore
    registry: ModelRegistry
    trainer: Trainer
    forecaster: Forecaster
    source: DrawSource
    notifier: Notifier = field(default_factory=LogNotifier)
    metrics: Metrics = field(default_factory=Metrics)
    retain_limit: int = 1000

    def close(self):
        """Release the draw source's HTTP client."""
        self.source.close()


def build_context(
    config: DrawcastConfig,
    source: Optional[DrawSource] = None,
    notifier: Optional[Notifier] = None,
) -> EngineContext:
    """Wire stores, registry and engine from config."""
    db_path = config.paths.db
    engine = config.engine

    registry = ModelRegistry(engine.thresholds)
    rng = random.Random(engine.random_seed)

    if source is None:
        source = DrawSource(
            url=config.source.url,
            timeout=config.source.timeout,
            headers=config.source.headers or None,
            max_attempts=config.retry.max_attempts,
            min_wait=config.retry.min_wait,
            max_wait=config.retry.max_wait,
        )

    return EngineContext(
        history=HistoryStore(db_path),
        forecasts=ForecastStore(db_path),
        stats=SessionStatStore(db_path),
        registry=registry,
        trainer=Trainer(registry, window=engine.window, random_state=engine.random_seed),
        forecaster=Forecaster(
            registry,
            window=engine.window,
            suffix_width=engine.suffix_width,
            seed_issue_id=engine.seed_issue_id,
            rng=rng,
        ),
        source=source,
        notifier=notifier or LogNotifier(),
        retain_limit=engine.retain_limit,
    )
