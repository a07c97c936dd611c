"""The fetch→train→predict cycle and the verification cycle."""

import uuid
from dataclasses import replace
from typing import Optional

import structlog
import structlog.contextvars

from errors import FetchError
from history.store import QueryOrder
from predictions.store import ForecastRecord
from shared_types import Outcome

from .context import EngineContext
from .notify import safe_notify

logger = structlog.get_logger()


def _bind_run(cycle: str) -> None:
    structlog.contextvars.bind_contextvars(run_id=uuid.uuid4().hex[:8], cycle=cycle)


def _unbind_run() -> None:
    structlog.contextvars.unbind_contextvars("run_id", "cycle")


def ingest(ctx: EngineContext) -> int:
    """Fetch the latest batch and append unseen issues. Returns count appended.

    Raises FetchError; nothing is written when the fetch fails.
    """
    batch = ctx.source.fetch()
    appended = 0
    for record in batch:
        if ctx.history.append_if_absent(record):
            appended += 1
    ctx.metrics.counter("history_appended", appended)
    if appended:
        logger.info("history_updated", fetched=len(batch), appended=appended)
    return appended


def train(ctx: EngineContext) -> dict:
    """Train the registry on the retained history window."""
    history = ctx.history.query(limit=ctx.retain_limit, order=QueryOrder.OLDEST_FIRST)
    with ctx.metrics.timer("training"):
        summary = ctx.trainer.train([r.value for r in history])
    ctx.metrics.counter("tiers_trained", len(summary["trained"]))
    ctx.metrics.counter("tiers_failed", len(summary["failed"]))
    return summary


def predict_and_record(ctx: EngineContext) -> Optional[ForecastRecord]:
    """Forecast the next issue and persist it if none exists yet.

    Returns the newly created record, or None when a forecast for that
    issue was already stored.
    """
    history = ctx.history.query(limit=ctx.retain_limit, order=QueryOrder.OLDEST_FIRST)
    try:
        draft = ctx.forecaster.predict(history)
    except ValueError as e:
        logger.warning("forecast_skipped", error=str(e))
        return None

    if not ctx.forecasts.create_if_absent(draft):
        logger.debug("forecast_exists", issue_id=draft.issue_id)
        return None

    ctx.metrics.counter("forecasts_created")
    logger.info(
        "forecast_created",
        issue_id=draft.issue_id,
        value=draft.predicted_value,
        confidence=draft.confidence,
        tier=draft.model_tier,
    )
    safe_notify(ctx.notifier, draft)
    return draft


def run_fetch_cycle(ctx: EngineContext) -> dict:
    """Fetch, train when something new arrived, then forecast the next issue."""
    _bind_run("fetch")
    try:
        with ctx.metrics.timer("fetch_cycle"):
            try:
                appended = ingest(ctx)
            except FetchError as e:
                logger.warning("fetch_failed", error=str(e))
                ctx.metrics.counter("fetch_failures")
                return {"error": str(e)}

            training = train(ctx) if appended else None
            created = predict_and_record(ctx)

        return {
            "appended": appended,
            "training": training,
            "forecast": created.issue_id if created else None,
        }
    finally:
        _unbind_run()


def run_verify_cycle(ctx: EngineContext) -> dict:
    """Resolve every pending forecast whose issue has now been observed."""
    _bind_run("verify")
    try:
        with ctx.metrics.timer("verify_cycle"):
            pending = ctx.forecasts.query(outcome=Outcome.PENDING, limit=None)
            wins = losses = 0
            for forecast in pending:
                actual = ctx.history.find_by_id(forecast.issue_id)
                if actual is None:
                    continue

                outcome = Outcome.WIN if forecast.predicted_value == actual.value else Outcome.LOSS
                if not ctx.forecasts.update_once(
                    forecast.issue_id, outcome, actual.value, actual.category
                ):
                    # Another run resolved it first
                    continue

                is_win = outcome == Outcome.WIN
                if not ctx.stats.increment(wins_delta=int(is_win), losses_delta=int(not is_win)):
                    # Forecast stays resolved; the ledger accuracy still counts it
                    logger.error(
                        "session_stat_missed", issue_id=forecast.issue_id, outcome=str(outcome)
                    )
                    ctx.metrics.counter("session_stat_missed")
                wins += is_win
                losses += not is_win

                resolved = replace(
                    forecast,
                    outcome=outcome,
                    actual_value=actual.value,
                    actual_category=actual.category,
                )
                logger.info(
                    "forecast_resolved",
                    issue_id=forecast.issue_id,
                    predicted=forecast.predicted_value,
                    actual=actual.value,
                    outcome=str(outcome),
                )
                safe_notify(ctx.notifier, resolved)

        ctx.metrics.counter("forecasts_won", wins)
        ctx.metrics.counter("forecasts_lost", losses)
        return {"pending": len(pending), "resolved": wins + losses, "wins": wins, "losses": losses}
    finally:
        _unbind_run()
