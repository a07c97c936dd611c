"""Tests for the short-term pattern overlay."""

import pytest

from forecasting.overlay import CONFIDENCE_CEILING, apply_overlay, detect_pattern


class TestDetectPattern:
    def test_repeating(self):
        assert detect_pattern([4, 1, 4, 7, 4, 2]) == "repeating"

    def test_repeating_needs_three(self):
        assert detect_pattern([4, 1, 4, 7, 2, 3]) == "none"

    def test_repeating_only_counts_last_ten(self):
        assert detect_pattern([4, 0, 1, 2, 5, 6, 7, 8, 9, 4, 4, 4]) == "none"

    def test_sequential(self):
        assert detect_pattern([3, 2, 1, 8]) == "sequential"

    def test_sequential_wraps(self):
        assert detect_pattern([0, 9, 8]) == "sequential"

    def test_alternating(self):
        assert detect_pattern([6, 2, 6, 2, 9]) == "alternating"

    def test_repeating_checked_before_alternating(self):
        assert detect_pattern([6, 2, 6, 2, 6]) == "repeating"

    def test_none(self):
        assert detect_pattern([0, 3, 6, 9, 2, 5, 8, 1, 4, 7]) == "none"

    def test_empty(self):
        assert detect_pattern([]) == "none"


class TestApplyOverlay:
    def test_repeating_predicts_next_digit(self):
        result = apply_overlay([9, 1, 9, 9, 2], prediction=3, confidence=0.4)
        assert result.prediction == 0
        assert result.confidence == pytest.approx(0.55)
        assert result.pattern == "repeating"

    def test_sequential_predicts_continuation(self):
        result = apply_overlay([5, 4, 3, 0], prediction=1, confidence=0.3)
        assert result.prediction == 6
        assert result.confidence == pytest.approx(0.5)

    def test_alternating_predicts_second_most_recent(self):
        result = apply_overlay([6, 2, 6, 2, 9], prediction=1, confidence=0.3)
        assert result.prediction == 2
        assert result.confidence == pytest.approx(0.4)

    def test_no_pattern_keeps_prediction(self):
        result = apply_overlay([0, 3, 6, 9, 2, 5, 8, 1, 4, 7], prediction=8, confidence=0.3)
        assert result.prediction == 8
        assert result.confidence == pytest.approx(0.35)
        assert result.pattern == "none"

    def test_confidence_capped(self):
        result = apply_overlay([5, 4, 3], prediction=1, confidence=0.9)
        assert result.confidence == CONFIDENCE_CEILING

    def test_ceiling_applies_even_to_high_base(self):
        result = apply_overlay([0, 3, 6, 9], prediction=1, confidence=0.99)
        assert result.confidence == CONFIDENCE_CEILING
