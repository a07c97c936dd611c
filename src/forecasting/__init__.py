"""Forecasting core: tiered models, selection, overlay and fallback."""

from errors import DrawcastError, InferenceError, PersistenceConflict, TrainingError

from .engine import Forecaster, next_issue_id
from .registry import TIER_THRESHOLDS, ModelRegistry, ModelState
from .selector import select_model
from .trainer import Trainer

__all__ = [
    "DrawcastError",
    "Forecaster",
    "InferenceError",
    "ModelRegistry",
    "ModelState",
    "PersistenceConflict",
    "TIER_THRESHOLDS",
    "Trainer",
    "TrainingError",
    "next_issue_id",
    "select_model",
]
