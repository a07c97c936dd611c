"""Fixed-length training windows over draw history."""

from typing import Sequence

import numpy as np

WINDOW = 20


def build_windows(values: Sequence[int], window: int = WINDOW) -> tuple[np.ndarray, np.ndarray]:
    """Turn oldest→newest values into (X, y) training pairs.

    Row ``k`` of X is ``values[k : k + window]`` and its label is
    ``values[k + window]``; ``len(values) - window`` rows when there
    are more values than the window, none otherwise.
    """
    n = len(values)
    if n <= window:
        return np.empty((0, window), dtype=np.int64), np.empty((0,), dtype=np.int64)

    arr = np.asarray(values, dtype=np.int64)
    X = np.lib.stride_tricks.sliding_window_view(arr, window)[: n - window].copy()
    y = arr[window:].copy()
    return X, y


def latest_window(values: Sequence[int], window: int = WINDOW) -> np.ndarray:
    """Most recent ``window`` values as a (1, window) row, left-padded with zeros."""
    tail = list(values[-window:]) if window else []
    padded = [0] * (window - len(tail)) + tail
    return np.asarray([padded], dtype=np.int64)
