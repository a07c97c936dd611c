"""Model registry: one trainable estimator per complexity tier."""

import math
import threading
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import numpy as np
from sklearn.ensemble import VotingClassifier
from sklearn.neural_network import MLPClassifier
from sklearn.pipeline import FeatureUnion, Pipeline
from sklearn.preprocessing import FunctionTransformer

from errors import InferenceError
from shared_types import ModelTier

N_DIGITS = 10
EPOCHS = 20
BATCH_SIZE = 16
VALIDATION_SPLIT = 0.1
MIN_HISTORY = 10

# Minimum history length before a tier may train or be selected
TIER_THRESHOLDS: dict[ModelTier, int] = {
    ModelTier.ULTRA: 50,
    ModelTier.ONEHOT: 200,
    ModelTier.DEEP: 500,
    ModelTier.LAGSTATS: 800,
    ModelTier.WIDE: 1000,
    ModelTier.HYBRID: 1500,
    ModelTier.ENSEMBLE: 2000,
}


def validate_thresholds(thresholds: Mapping[ModelTier, int]) -> dict[ModelTier, int]:
    """Return a complete threshold table, checking it increases strictly in tier order."""
    missing = [t.value for t in ModelTier if t not in thresholds]
    if missing:
        raise ValueError(f"Missing thresholds for tiers: {missing}")
    table = {tier: int(thresholds[tier]) for tier in ModelTier}
    previous = None
    for tier, value in table.items():
        if value < 1:
            raise ValueError(f"Threshold for {tier} must be positive, got {value}")
        if previous is not None and value <= previous:
            raise ValueError(f"Thresholds must be strictly increasing; {tier}={value} <= {previous}")
        previous = value
    return table


# --- feature transforms (module-level so fitted pipelines stay picklable) ---


def _scaled(X):
    return np.asarray(X, dtype=np.float64) / (N_DIGITS - 1)


def _onehot(X):
    X = np.asarray(X, dtype=np.int64)
    return np.eye(N_DIGITS)[X].reshape(X.shape[0], -1)


def _rolling_stats(X):
    """Digit frequencies, HIGH share, odd share and last-value one-hot per window."""
    X = np.asarray(X, dtype=np.int64)
    width = max(X.shape[1], 1)
    freqs = np.stack([(X == d).sum(axis=1) for d in range(N_DIGITS)], axis=1) / width
    high = (X >= 5).mean(axis=1, keepdims=True)
    odd = (X % 2).mean(axis=1, keepdims=True)
    last = np.eye(N_DIGITS)[X[:, -1]]
    return np.hstack([freqs, high, odd, last])


def _mlp(hidden: tuple, random_state: Optional[int]) -> MLPClassifier:
    return MLPClassifier(
        hidden_layer_sizes=hidden,
        activation="relu",
        solver="adam",
        max_iter=EPOCHS,
        batch_size=BATCH_SIZE,
        learning_rate_init=1e-3,
        random_state=random_state,
    )


def build_model(tier: ModelTier, random_state: Optional[int] = None):
    """Fresh, unfitted estimator for a tier."""
    if tier == ModelTier.ULTRA:
        return Pipeline([
            ("scale", FunctionTransformer(_scaled)),
            ("mlp", _mlp((32, 32), random_state)),
        ])
    if tier == ModelTier.ONEHOT:
        return Pipeline([
            ("onehot", FunctionTransformer(_onehot)),
            ("mlp", _mlp((64, 32), random_state)),
        ])
    if tier == ModelTier.DEEP:
        return Pipeline([
            ("scale", FunctionTransformer(_scaled)),
            ("mlp", _mlp((64, 32, 32), random_state)),
        ])
    if tier == ModelTier.LAGSTATS:
        return Pipeline([
            ("features", FeatureUnion([
                ("scaled", FunctionTransformer(_scaled)),
                ("stats", FunctionTransformer(_rolling_stats)),
            ])),
            ("mlp", _mlp((64, 32), random_state)),
        ])
    if tier == ModelTier.WIDE:
        return Pipeline([
            ("onehot", FunctionTransformer(_onehot)),
            ("mlp", _mlp((128, 64, 32), random_state)),
        ])
    if tier == ModelTier.HYBRID:
        return Pipeline([
            ("features", FeatureUnion([
                ("onehot", FunctionTransformer(_onehot)),
                ("stats", FunctionTransformer(_rolling_stats)),
            ])),
            ("mlp", _mlp((128, 32), random_state)),
        ])
    if tier == ModelTier.ENSEMBLE:
        return VotingClassifier(
            estimators=[
                (member.value, build_model(member, random_state))
                for member in (ModelTier.ULTRA, ModelTier.ONEHOT, ModelTier.DEEP)
            ],
            voting="soft",
        )
    raise ValueError(f"Unknown tier: {tier}")


def digit_distribution(model: Any, X: np.ndarray) -> np.ndarray:
    """Probability rows over all ten digits, whatever subset the model was fit on.

    Raises InferenceError if the model fails or returns something unusable.
    """
    try:
        proba = np.asarray(model.predict_proba(X), dtype=np.float64)
        classes = np.asarray(model.classes_, dtype=np.int64)
    except Exception as e:
        raise InferenceError(f"model inference failed: {e}") from e

    if proba.ndim != 2 or proba.shape != (len(X), len(classes)):
        raise InferenceError(f"unexpected probability shape {proba.shape}")
    if classes.size == 0 or classes.min() < 0 or classes.max() >= N_DIGITS:
        raise InferenceError(f"model classes outside 0-9: {classes.tolist()}")
    if not np.all(np.isfinite(proba)) or np.any(proba < 0):
        raise InferenceError("non-finite or negative probabilities")

    dist = np.zeros((len(X), N_DIGITS))
    dist[:, classes] = proba
    if np.any(dist.sum(axis=1) <= 0):
        raise InferenceError("probability rows sum to zero")
    return dist


def mean_log_loss(dist: np.ndarray, y: np.ndarray) -> float:
    """Multi-class log loss of ten-digit distributions against labels."""
    rows = dist / dist.sum(axis=1, keepdims=True)
    picked = np.clip(rows[np.arange(len(y)), y], 1e-15, 1.0)
    return float(-np.mean(np.log(picked)))


@dataclass
class ModelState:
    tier: ModelTier
    eligibility_threshold: int
    trained_model: Any = None
    last_loss: float = math.inf
    last_val_loss: Optional[float] = None
    trained_at: Optional[str] = None
    samples: int = 0

    def is_eligible(self, history_len: int) -> bool:
        return self.eligibility_threshold <= history_len


class ModelRegistry:
    """Per-tier model state, keyed by the fixed tier enum.

    ``lock`` serializes training against selection/inference; hold it
    for any read-modify-write of tier state.
    """

    def __init__(self, thresholds: Optional[Mapping[ModelTier, int]] = None):
        table = validate_thresholds(thresholds or TIER_THRESHOLDS)
        self._states: dict[ModelTier, ModelState] = {
            tier: ModelState(tier=tier, eligibility_threshold=table[tier]) for tier in ModelTier
        }
        self.lock = threading.RLock()

    def __iter__(self):
        return iter(self._states.values())

    def __getitem__(self, tier: ModelTier) -> ModelState:
        return self._states[ModelTier(tier)]

    def eligible_tiers(self, history_len: int) -> list[ModelTier]:
        """Tiers whose threshold is met, trained or not."""
        return [s.tier for s in self._states.values() if s.is_eligible(history_len)]

    def snapshot(self) -> list[dict]:
        """Plain-dict view of every tier, for display."""
        with self.lock:
            return [
                {
                    "tier": s.tier.value,
                    "threshold": s.eligibility_threshold,
                    "trained": s.trained_model is not None,
                    "loss": s.last_loss,
                    "val_loss": s.last_val_loss,
                    "trained_at": s.trained_at,
                    "samples": s.samples,
                }
                for s in self._states.values()
            ]
