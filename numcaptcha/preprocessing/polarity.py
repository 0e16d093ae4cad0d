"""Decide whether captcha digits are lighter or darker than their background."""

import math

import numpy as np

# Central region of interest, as fractions of width and height.
ROI_BOUNDS = (0.25, 0.75)

# Mid-point of the intensity range; also returned for an empty ROI.
NEUTRAL_MEAN = 128


def roi_bounds(width: int, height: int) -> tuple[int, int, int, int]:
    """Return (x1, x2, y1, y2) of the central ROI. Upper bounds are exclusive."""
    lo, hi = ROI_BOUNDS
    return (
        math.floor(width * lo),
        math.floor(width * hi),
        math.floor(height * lo),
        math.floor(height * hi),
    )


def roi_mean(gray: np.ndarray) -> float:
    """Mean intensity of the central ROI, or NEUTRAL_MEAN when it is empty."""
    h, w = gray.shape[:2]
    x1, x2, y1, y2 = roi_bounds(w, h)
    roi = gray[y1:y2, x1:x2]
    if roi.size == 0:
        return float(NEUTRAL_MEAN)
    return float(roi.mean(dtype=np.float64))


def numbers_are_lighter(gray: np.ndarray, mean: float | None = None) -> bool:
    """
    Heuristic polarity check.

    Digits are assumed to dominate the centre of the image, so a bright
    centre means light digits on a dark surround. This only looks at the
    ROI mean and can misclassify images whose centre is mostly background.
    """
    if mean is None:
        mean = roi_mean(gray)
    return mean > NEUTRAL_MEAN
