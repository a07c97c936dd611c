"""Shared enums and types for drawcast."""

from enum import StrEnum


class Category(StrEnum):
    LOW = "LOW"
    HIGH = "HIGH"

    @classmethod
    def of(cls, value: int) -> "Category":
        return cls.HIGH if value >= 5 else cls.LOW


class Outcome(StrEnum):
    PENDING = "PENDING"
    WIN = "WIN"
    LOSS = "LOSS"


class ModelTier(StrEnum):
    """Candidate model tiers, in selection tie-break order."""

    ULTRA = "ultra"
    ONEHOT = "onehot"
    DEEP = "deep"
    LAGSTATS = "lagstats"
    WIDE = "wide"
    HYBRID = "hybrid"
    ENSEMBLE = "ensemble"


# Tier labels for forecasts that did not come from a trained model
BOOTSTRAP_TIER = "bootstrap"
FALLBACK_TIER = "fallback"
