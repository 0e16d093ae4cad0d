"""Synthetic captcha images and a fake OCR engine for tests."""

import base64

import cv2
import numpy as np

from numcaptcha.engines.base import BaseOCREngine


class FakeEngine(BaseOCREngine):
    """Returns canned text and remembers every PNG it was given."""

    def __init__(self, text="1 2 3 4\n"):
        self.text = text
        self.calls: list[bytes] = []

    @property
    def name(self) -> str:
        return "fake"

    def recognize(self, png: bytes) -> str:
        self.calls.append(png)
        return self.text


def make_block_image(width=180, height=60, background=20, block=230):
    """Uniform background with a block covering exactly the central ROI."""
    gray = np.full((height, width), background, dtype=np.uint8)
    gray[height // 4 : 3 * height // 4, width // 4 : 3 * width // 4] = block
    return gray


def to_data_url(image: np.ndarray) -> str:
    ok, buf = cv2.imencode(".png", image)
    assert ok
    return "data:image/png;base64," + base64.b64encode(buf.tobytes()).decode("ascii")
