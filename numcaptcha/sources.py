"""Resolve captcha image references (data URLs or http(s) URLs) to decoded rasters."""

import base64
import binascii
import urllib.error
import urllib.request

import cv2
import numpy as np

from numcaptcha.config import DEFAULT_FETCH_TIMEOUT, DEFAULT_MAX_IMAGE_BYTES
from numcaptcha.errors import ImageFetchFailure, InvalidImage, InvalidImageSource
from numcaptcha.models import ImageSource

_USER_AGENT = "numcaptcha/1.0"


def classify_source(image_url: str) -> ImageSource:
    """Tell inline data URLs from remote URLs. Anything else is rejected."""
    if not isinstance(image_url, str) or not image_url:
        raise InvalidImageSource("Image reference must be a non-empty string")
    if image_url.startswith("data:image"):
        return ImageSource.DATA_URL
    if image_url.startswith(("http://", "https://")):
        return ImageSource.HTTP_URL
    raise InvalidImageSource("Invalid imageUrl format.")


def decode_data_url(image_url: str, max_bytes: int = DEFAULT_MAX_IMAGE_BYTES) -> bytes:
    """Return the base64 payload of a `data:image/...;base64,<data>` URL."""
    _, sep, payload = image_url.partition(",")
    if not sep or not payload:
        raise InvalidImageSource("Data URL has no payload")
    try:
        data = base64.b64decode(payload, validate=False)
    except (binascii.Error, ValueError) as e:
        raise InvalidImageSource(f"Data URL payload is not valid base64: {e}") from e
    if not data:
        raise InvalidImageSource("Data URL payload is empty")
    if len(data) > max_bytes:
        raise InvalidImageSource(f"Image payload exceeds {max_bytes} bytes")
    return data


def fetch_image(
    url: str,
    timeout: float = DEFAULT_FETCH_TIMEOUT,
    max_bytes: int = DEFAULT_MAX_IMAGE_BYTES,
) -> bytes:
    """Download image bytes. Any non-2xx answer or network error is a fetch failure."""
    req = urllib.request.Request(url, headers={"User-Agent": _USER_AGENT}, method="GET")
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            status = getattr(resp, "status", 200)
            if not 200 <= status < 300:
                raise ImageFetchFailure(
                    f"Failed to fetch image. Status: {status} {getattr(resp, 'reason', '')}".rstrip()
                )
            data = resp.read(max_bytes + 1)
    except urllib.error.HTTPError as e:
        raise ImageFetchFailure(f"Failed to fetch image. Status: {e.code} {e.reason}") from e
    except (urllib.error.URLError, TimeoutError, OSError) as e:
        raise ImageFetchFailure(f"Failed to fetch image: {e}") from e

    if len(data) > max_bytes:
        raise ImageFetchFailure(f"Image exceeds {max_bytes} bytes")
    return data


def load_image_bytes(
    image_url: str,
    timeout: float = DEFAULT_FETCH_TIMEOUT,
    max_bytes: int = DEFAULT_MAX_IMAGE_BYTES,
) -> bytes:
    """Resolve an image reference to raw image file bytes."""
    source = classify_source(image_url)
    if source == ImageSource.DATA_URL:
        return decode_data_url(image_url, max_bytes=max_bytes)
    return fetch_image(image_url, timeout=timeout, max_bytes=max_bytes)


def decode_image(data: bytes) -> np.ndarray:
    """
    Decode image file bytes into a BGR, BGRA or grayscale array.

    Raises:
        InvalidImage: If the bytes are not a decodable image or have no pixels.
    """
    if not data:
        raise InvalidImage("Empty image data")

    buffer = np.frombuffer(data, dtype=np.uint8)
    try:
        image = cv2.imdecode(buffer, cv2.IMREAD_UNCHANGED)
    except cv2.error as e:
        raise InvalidImage(f"Cannot decode image: {e}") from e
    if image is None:
        raise InvalidImage("Cannot decode image")
    if image.shape[0] == 0 or image.shape[1] == 0:
        raise InvalidImage("Image has zero width or height")

    # 16-bit PNGs
    if image.dtype == np.uint16:
        image = (image >> 8).astype(np.uint8)
    elif image.dtype != np.uint8:
        raise InvalidImage(f"Unsupported sample type: {image.dtype}")
    return image
