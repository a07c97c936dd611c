"""Least-frequent-digit heuristic for when no trained model can answer."""

import random
from typing import Optional, Sequence

RECENT = 15


def fallback_candidates(recent: Sequence[int]) -> tuple[list[int], list[int]]:
    """Digits tied for the lowest count over the last RECENT values, plus all counts."""
    frequencies = [0] * 10
    for value in recent[:RECENT]:
        if 0 <= value <= 9:
            frequencies[value] += 1
    lowest = min(frequencies)
    return [d for d in range(10) if frequencies[d] == lowest], frequencies


def fallback_predict(
    recent: Sequence[int], rng: Optional[random.Random] = None
) -> tuple[int, float]:
    """Pick a least-seen digit at random. ``recent`` is most-recent-first.

    Returns (prediction, confidence) with confidence in [0.6, 0.9].
    """
    rng = rng or random.Random()
    candidates, frequencies = fallback_candidates(recent)
    prediction = rng.choice(candidates)
    total = sum(frequencies)
    share = frequencies[prediction] / total if total else 0.0
    return prediction, 0.6 + 0.3 * (1 - share)
