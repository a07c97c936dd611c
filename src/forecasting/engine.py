"""Prediction engine. Turns history into the next forecast draft."""

import random
import re
from typing import Optional, Sequence

import numpy as np
import structlog

from errors import InferenceError
from history.store import OutcomeRecord
from predictions.store import ForecastRecord
from shared_types import BOOTSTRAP_TIER, FALLBACK_TIER, Category

from .fallback import RECENT as FALLBACK_RECENT
from .fallback import fallback_predict
from .overlay import RECENT as OVERLAY_RECENT
from .overlay import apply_overlay
from .registry import ModelRegistry, digit_distribution
from .selector import select_model
from .windowing import WINDOW, latest_window

logger = structlog.get_logger()

BOOTSTRAP_MIN = 5
BOOTSTRAP_CONFIDENCE = (0.5, 0.8)
SEED_ISSUE_ID = "20231115001"
SUFFIX_WIDTH = 4

_DIGITS_RE = re.compile(r"^\d+$")
_TRAILING_DIGITS_RE = re.compile(r"\d+$")


def next_issue_id(
    latest: Optional[str], suffix_width: int = SUFFIX_WIDTH, seed: str = SEED_ISSUE_ID
) -> str:
    """Increment the zero-padded numeric suffix of ``latest``.

    ``20231115000999`` -> ``20231115001000``. A carry out of the suffix
    moves into the digits before it (``202401019999`` -> ``202401020000``)
    so the id keeps its width and sorts after ``latest``. Only an id whose
    whole trailing digit run is nines grows longer. No id yet -> ``seed``.
    """
    if not latest:
        return seed
    if not _DIGITS_RE.match(latest[-suffix_width:]):
        raise ValueError(f"Issue id has no numeric suffix: {latest!r}")
    digits = _TRAILING_DIGITS_RE.search(latest).group()
    prefix = latest[: len(latest) - len(digits)]
    return prefix + str(int(digits) + 1).zfill(len(digits))


class Forecaster:
    """Produces one PENDING forecast for the issue after the newest observed one."""

    def __init__(
        self,
        registry: ModelRegistry,
        window: int = WINDOW,
        suffix_width: int = SUFFIX_WIDTH,
        seed_issue_id: str = SEED_ISSUE_ID,
        rng: Optional[random.Random] = None,
    ):
        self.registry = registry
        self.window = window
        self.suffix_width = suffix_width
        self.seed_issue_id = seed_issue_id
        self.rng = rng or random.Random()

    def next_issue_id(self, history: Sequence[OutcomeRecord]) -> str:
        latest = history[-1].issue_id if history else None
        return next_issue_id(latest, self.suffix_width, self.seed_issue_id)

    def predict(self, history: Sequence[OutcomeRecord]) -> ForecastRecord:
        """Forecast the next issue from history ordered oldest→newest."""
        issue_id = self.next_issue_id(history)
        values = [r.value for r in history]

        if len(values) < BOOTSTRAP_MIN:
            prediction = self.rng.randrange(10)
            confidence = self.rng.uniform(*BOOTSTRAP_CONFIDENCE)
            return self._draft(issue_id, prediction, confidence, BOOTSTRAP_TIER)

        recent = values[::-1]
        with self.registry.lock:
            selection = select_model(self.registry, len(values))
            if selection is not None:
                tier, model = selection
                try:
                    dist = digit_distribution(model, latest_window(values, self.window))[0]
                except InferenceError as e:
                    logger.warning("inference_failed", tier=tier.value, error=str(e))
                else:
                    base = int(np.argmax(dist))
                    base_confidence = float(dist.max() / dist.sum())
                    result = apply_overlay(recent[:OVERLAY_RECENT], base, base_confidence)
                    logger.debug(
                        "model_prediction",
                        tier=tier.value,
                        base=base,
                        base_confidence=round(base_confidence, 4),
                        pattern=result.pattern,
                    )
                    return self._draft(issue_id, result.prediction, result.confidence, tier.value)

        prediction, confidence = fallback_predict(recent[:FALLBACK_RECENT], self.rng)
        return self._draft(issue_id, prediction, confidence, FALLBACK_TIER)

    @staticmethod
    def _draft(issue_id: str, prediction: int, confidence: float, tier: str) -> ForecastRecord:
        return ForecastRecord(
            issue_id=issue_id,
            predicted_value=int(prediction),
            predicted_category=Category.of(int(prediction)),
            confidence=round(float(confidence), 4),
            model_tier=tier,
        )
