"""Fits every eligible tier on the current history."""

import time
import warnings
from datetime import datetime
from typing import Optional, Sequence

import numpy as np
import structlog
from sklearn.exceptions import ConvergenceWarning

from errors import TrainingError
from shared_types import ModelTier

from .registry import (
    MIN_HISTORY,
    VALIDATION_SPLIT,
    ModelRegistry,
    build_model,
    digit_distribution,
    mean_log_loss,
)
from .windowing import WINDOW, build_windows

logger = structlog.get_logger()


class Trainer:
    """Trains registry tiers; one failing tier never affects the others."""

    def __init__(
        self,
        registry: ModelRegistry,
        window: int = WINDOW,
        validation_split: float = VALIDATION_SPLIT,
        min_history: int = MIN_HISTORY,
        random_state: Optional[int] = None,
    ):
        self.registry = registry
        self.window = window
        self.validation_split = validation_split
        self.min_history = min_history
        self.random_state = random_state

    def train(self, values: Sequence[int]) -> dict:
        """Train all tiers eligible for ``len(values)``; values run oldest→newest.

        Returns {"trained": {tier: loss}, "skipped": [tier], "failed": {tier: error}}.
        """
        n = len(values)
        summary: dict = {"trained": {}, "skipped": [], "failed": {}}
        if n < self.min_history:
            logger.debug("training_skipped_min_history", history=n, floor=self.min_history)
            summary["skipped"] = [t.value for t in ModelTier]
            return summary

        X, y = build_windows(values, self.window)

        with self.registry.lock:
            for state in self.registry:
                if not state.is_eligible(n):
                    summary["skipped"].append(state.tier.value)
                    continue
                try:
                    loss = self._fit_tier(state.tier, X, y)
                except TrainingError as e:
                    logger.warning("tier_training_failed", tier=state.tier.value, error=str(e))
                    summary["failed"][state.tier.value] = str(e)
                    continue
                summary["trained"][state.tier.value] = loss

        logger.info(
            "training_complete",
            history=n,
            windows=len(X),
            trained=list(summary["trained"]),
            failed=list(summary["failed"]),
        )
        return summary

    def _split(self, X: np.ndarray, y: np.ndarray):
        """Hold out the most recent windows for validation."""
        n_val = int(len(X) * self.validation_split)
        if n_val == 0 or len(X) - n_val < 1:
            return X, y, None, None
        return X[:-n_val], y[:-n_val], X[-n_val:], y[-n_val:]

    def _fit_tier(self, tier: ModelTier, X: np.ndarray, y: np.ndarray) -> float:
        """Fit a fresh estimator; commit it to the registry only if everything succeeded."""
        if len(X) == 0:
            raise TrainingError(tier, "no training windows")

        X_train, y_train, X_val, y_val = self._split(X, y)
        started = time.monotonic()
        try:
            model = build_model(tier, self.random_state)
            with warnings.catch_warnings():
                warnings.simplefilter("ignore", ConvergenceWarning)
                warnings.simplefilter("ignore", UserWarning)
                model.fit(X_train, y_train)
            loss = mean_log_loss(digit_distribution(model, X_train), y_train)
            val_loss = (
                mean_log_loss(digit_distribution(model, X_val), y_val) if X_val is not None else None
            )
        except Exception as e:
            raise TrainingError(tier, f"{type(e).__name__}: {e}") from e

        if not np.isfinite(loss):
            raise TrainingError(tier, f"non-finite training loss {loss}")

        state = self.registry[tier]
        state.trained_model = model
        state.last_loss = loss
        state.last_val_loss = val_loss
        state.trained_at = datetime.now().isoformat()
        state.samples = len(X_train)

        logger.info(
            "tier_trained",
            tier=tier.value,
            loss=round(loss, 4),
            val_loss=round(val_loss, 4) if val_loss is not None else None,
            samples=len(X_train),
            duration_s=round(time.monotonic() - started, 3),
        )
        return loss
