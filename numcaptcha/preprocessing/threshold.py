"""Global Otsu threshold selection over a 256-bin histogram."""

from typing import Sequence

import numpy as np


def histogram(gray: np.ndarray) -> list[int]:
    """Count occurrences of each intensity 0..255 in a grayscale raster."""
    counts = np.bincount(gray.ravel(), minlength=256)
    return [int(c) for c in counts[:256]]


def otsu_threshold_from_histogram(hist: Sequence[int]) -> int:
    """
    Return the cut point t maximizing between-class variance.

    Pixels <= t form the background class and pixels > t the foreground.
    The scan is ascending and only a strictly greater variance replaces the
    current best, so ties resolve to the lowest t. A histogram with a single
    populated bin has zero variance everywhere and yields 0.
    """
    total = sum(hist)
    total_sum = sum(t * hist[t] for t in range(256))

    sum_b = 0
    w_b = 0
    var_max = 0.0
    threshold = 0
    for t in range(256):
        w_b += hist[t]
        if w_b == 0:
            continue
        w_f = total - w_b
        if w_f == 0:
            break
        sum_b += t * hist[t]
        m_b = sum_b / w_b
        m_f = (total_sum - sum_b) / w_f
        between = w_b * w_f * (m_b - m_f) ** 2
        if between > var_max:
            var_max = between
            threshold = t
    return threshold


def otsu_threshold(gray: np.ndarray) -> int:
    """Otsu threshold of a grayscale raster."""
    return otsu_threshold_from_histogram(histogram(gray))
