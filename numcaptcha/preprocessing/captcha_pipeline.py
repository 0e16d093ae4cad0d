"""Preprocessing pipeline turning a numeric captcha into a clean binary image."""

import numpy as np

from numcaptcha.models import PreprocessResult
from numcaptcha.preprocessing.binarize import apply_threshold, encode_png, invert
from numcaptcha.preprocessing.common import (
    TARGET_WIDTH,
    check_dimensions,
    flatten_alpha,
    from_centered,
    median_denoise,
    resize_to_width,
    sharpen,
    to_centered,
    to_grayscale,
)
from numcaptcha.preprocessing.polarity import numbers_are_lighter, roi_mean
from numcaptcha.preprocessing.threshold import otsu_threshold


def normalize_captcha(image: np.ndarray, target_width: int = TARGET_WIDTH) -> np.ndarray:
    """
    Geometric and tonal normalization.

    Steps:
    1. Resize to the target width, preserving aspect ratio
    2. Grayscale conversion (alpha flattened onto white)
    3. 3x3 sharpen
    4. 3x3 median denoise

    Steps 1-4 run on float32 offsets from mid-gray and are rounded once at
    the end, so normalizing the inverted image yields the inverted result.

    Raises:
        InvalidImage: If the image has zero width or height.
    """
    check_dimensions(image)

    values = to_centered(flatten_alpha(image))
    values = resize_to_width(values, target_width)
    values = to_grayscale(values)
    values = sharpen(values)
    values = median_denoise(values)

    return from_centered(values)


def binarize_captcha(gray: np.ndarray) -> PreprocessResult:
    """
    Polarity correction, thresholding and encoding of a normalized image.

    The ROI polarity check decides whether the grayscale image is inverted
    so that digits always end up darker than the background. The Otsu cut
    point is taken from the buffer that is actually thresholded, which makes
    the result independent of the source's light/dark convention.

    Returns:
        PreprocessResult whose binary image has digits=black, background=white.

    Raises:
        EncodingFailure: If the binary image cannot be PNG-encoded.
    """
    mean = roi_mean(gray)
    lighter = numbers_are_lighter(gray, mean)

    source = invert(gray) if lighter else gray
    threshold = otsu_threshold(source)
    binary = apply_threshold(source, threshold)

    return PreprocessResult(
        gray=gray,
        binary=binary,
        png=encode_png(binary),
        threshold=threshold,
        roi_mean=mean,
        numbers_are_lighter=lighter,
    )


def preprocess_captcha(image: np.ndarray) -> PreprocessResult:
    """Full preprocessing for a decoded captcha image."""
    return binarize_captcha(normalize_captcha(image))
