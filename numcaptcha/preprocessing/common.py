"""Common image preprocessing utilities for captcha normalization."""

import cv2
import numpy as np

from numcaptcha.errors import InvalidImage

# Fixed working width. ROI fractions and the sharpen/median kernels are tuned
# for digit strokes at this scale.
TARGET_WIDTH = 180

# Normalization runs on float32 offsets from mid-gray. Every stage is odd in
# that representation, so inverting the input (255 - v) negates the output.
MID_GRAY = 127.5

# Mild 3x3 sharpen: centre 33, neighbours -1, normalized by 25. The odd
# divisor keeps integer inputs off rounding ties.
_SHARPEN_KERNEL = np.array(
    [[-1, -1, -1], [-1, 33, -1], [-1, -1, -1]], dtype=np.float32
) / 25.0

MEDIAN_KSIZE = 3


def check_dimensions(image: np.ndarray) -> None:
    """Raise InvalidImage if the raster has no pixels."""
    if image is None or image.ndim < 2 or image.shape[0] == 0 or image.shape[1] == 0:
        raise InvalidImage("Image has zero width or height")


def flatten_alpha(image: np.ndarray, background: int = 255) -> np.ndarray:
    """Composite a BGRA image onto a solid background. Other images pass through."""
    if image.ndim != 3 or image.shape[2] != 4:
        return image
    alpha = image[:, :, 3:4].astype(np.float32) / 255.0
    bgr = image[:, :, :3].astype(np.float32)
    flat = bgr * alpha + float(background) * (1.0 - alpha)
    return np.clip(np.rint(flat), 0, 255).astype(np.uint8)


def to_centered(image: np.ndarray) -> np.ndarray:
    """uint8 samples to float32 offsets from MID_GRAY."""
    return image.astype(np.float32) - np.float32(MID_GRAY)


def from_centered(values: np.ndarray) -> np.ndarray:
    """
    Round float32 offsets back to uint8 samples.

    Output levels sit at half-integer offsets. Ties round away from mid-gray,
    so from_centered(-x) == 255 - from_centered(x) for every nonzero x.
    """
    magnitude = np.floor(np.abs(values)) + 0.5
    levels = np.float32(MID_GRAY) + np.copysign(magnitude, values)
    return np.clip(levels, 0, 255).astype(np.uint8)


def to_grayscale(image: np.ndarray) -> np.ndarray:
    """Convert image to single-channel grayscale if it isn't already."""
    if image.ndim == 2:
        return image
    if image.shape[2] == 1:
        return image[:, :, 0]
    image = flatten_alpha(image)
    return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)


def resize_to_width(image: np.ndarray, target_width: int = TARGET_WIDTH) -> np.ndarray:
    """Resize image to a target width while preserving aspect ratio."""
    h, w = image.shape[:2]
    if w == target_width:
        return image
    new_h = max(1, int(h * target_width / w + 0.5))
    interp = cv2.INTER_AREA if target_width < w else cv2.INTER_CUBIC
    return cv2.resize(image, (target_width, new_h), interpolation=interp)


def sharpen(gray: np.ndarray) -> np.ndarray:
    """Counteract resize blur with a mild 3x3 sharpening convolution."""
    return cv2.filter2D(gray, -1, _SHARPEN_KERNEL)


def median_denoise(gray: np.ndarray, ksize: int = MEDIAN_KSIZE) -> np.ndarray:
    """Suppress speckle noise while keeping stroke edges. float32 needs ksize 3 or 5."""
    return cv2.medianBlur(gray, ksize)
