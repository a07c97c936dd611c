"""Scheduled orchestration of fetch/train/predict and verification."""

from .context import EngineContext, build_context
from .cycles import predict_and_record, run_fetch_cycle, run_verify_cycle
from .notify import LogNotifier, Notifier
from .scheduler import ForecastScheduler

__all__ = [
    "EngineContext",
    "ForecastScheduler",
    "LogNotifier",
    "Notifier",
    "build_context",
    "predict_and_record",
    "run_fetch_cycle",
    "run_verify_cycle",
]
