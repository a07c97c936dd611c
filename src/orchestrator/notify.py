"""Notification seam for new and resolved forecasts."""

from typing import Protocol

import structlog

from predictions.store import ForecastRecord

logger = structlog.get_logger()


class Notifier(Protocol):
    def notify_pending(self, record: ForecastRecord) -> None: ...

    def notify_resolved(self, record: ForecastRecord) -> None: ...


class LogNotifier:
    """Default notifier: writes forecast events to the structured log."""

    def notify_pending(self, record: ForecastRecord) -> None:
        logger.info(
            "forecast_announced",
            issue_id=record.issue_id,
            value=record.predicted_value,
            category=str(record.predicted_category),
            confidence=record.confidence,
            tier=record.model_tier,
        )

    def notify_resolved(self, record: ForecastRecord) -> None:
        logger.info(
            "forecast_result",
            issue_id=record.issue_id,
            predicted=record.predicted_value,
            actual=record.actual_value,
            outcome=str(record.outcome),
        )


def safe_notify(notifier: Notifier, record: ForecastRecord) -> None:
    """Deliver without letting a notifier failure reach the cycle."""
    try:
        if record.is_pending:
            notifier.notify_pending(record)
        else:
            notifier.notify_resolved(record)
    except Exception as e:
        logger.warning("notify_failed", issue_id=record.issue_id, error=str(e))
