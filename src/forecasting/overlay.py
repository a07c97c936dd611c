"""Short-term pattern overlay applied on top of a model's prediction."""

from dataclasses import dataclass
from typing import Sequence

CONFIDENCE_CEILING = 0.95
RECENT = 10

# Confidence boost per pattern, checked in this order
PATTERN_BOOSTS = {
    "repeating": 0.15,
    "sequential": 0.20,
    "alternating": 0.10,
    "none": 0.05,
}


@dataclass(frozen=True)
class OverlayResult:
    prediction: int
    confidence: float
    pattern: str


def _boost(base: float, pattern: str) -> float:
    return min(CONFIDENCE_CEILING, base + PATTERN_BOOSTS[pattern])


def detect_pattern(recent: Sequence[int]) -> str:
    """Name the first matching pattern in ``recent`` (index 0 = most recent)."""
    v = list(recent[:RECENT])
    if not v:
        return "none"
    if v.count(v[0]) >= 3:
        return "repeating"
    if len(v) >= 3 and v[0] == (v[1] + 1) % 10 and v[1] == (v[2] + 1) % 10:
        return "sequential"
    if len(v) >= 4 and v[2] == v[0] and v[3] == v[1]:
        return "alternating"
    return "none"


def apply_overlay(recent: Sequence[int], prediction: int, confidence: float) -> OverlayResult:
    """Override or boost a base prediction from the last ten observed values.

    Confidence is raised by the pattern boost and capped at CONFIDENCE_CEILING.
    """
    pattern = detect_pattern(recent)
    if pattern in ("repeating", "sequential"):
        prediction = (recent[0] + 1) % 10
    elif pattern == "alternating":
        prediction = recent[1]
    return OverlayResult(
        prediction=int(prediction), confidence=_boost(confidence, pattern), pattern=pattern
    )
