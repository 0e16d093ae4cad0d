"""Tesseract OCR engine restricted to decimal digits."""

import shutil
import threading

import cv2
import numpy as np

from numcaptcha.config import DEFAULT_TESSERACT_LANG
from numcaptcha.engines.base import BaseOCREngine
from numcaptcha.errors import InvalidImage, OcrEngineFailure

DIGIT_WHITELIST = "0123456789"


def is_tesseract_available() -> bool:
    """Check if the Tesseract binary is installed."""
    return shutil.which("tesseract") is not None


class TesseractDigitEngine(BaseOCREngine):
    """
    Digit-only recognition engine using Tesseract OCR.

    Requires:
    - tesseract binary installed (apt-get install tesseract-ocr)
    - pytesseract Python package (pip install pytesseract)

    Calls to recognize() are serialized: one recognition runs at a time and
    concurrent callers wait their turn.
    """

    def __init__(self, tessdata_dir: str | None = None, lang: str = DEFAULT_TESSERACT_LANG):
        try:
            import pytesseract  # noqa: F401

            self._pytesseract = pytesseract
        except ImportError as e:
            raise OcrEngineFailure(
                "pytesseract is required for Tesseract engine. "
                "Install with: pip install pytesseract"
            ) from e

        if not is_tesseract_available():
            raise OcrEngineFailure(
                "Tesseract binary not found. "
                "Install with: apt-get install tesseract-ocr (Linux) "
                "or brew install tesseract (macOS)"
            )

        self._tessdata_dir = tessdata_dir
        self._lang = lang
        self._lock = threading.Lock()
        self.config = self._build_config()
        self._check_languages()

    def _check_languages(self):
        """Fail early if the requested traineddata is not installed."""
        config = f"--tessdata-dir {self._tessdata_dir}" if self._tessdata_dir else ""
        try:
            installed = set(self._pytesseract.get_languages(config=config))
        except Exception as e:
            raise OcrEngineFailure(f"Cannot query Tesseract languages: {e}") from e

        missing = [code for code in self._lang.split("+") if code not in installed]
        if missing:
            raise OcrEngineFailure(
                f"Tesseract language data not installed: {', '.join(missing)}"
            )

    @property
    def name(self) -> str:
        return "tesseract"

    def _build_config(self) -> str:
        config_parts = [
            "--psm 7",  # Single text line
            "--oem 3",  # Default engine
            f"-c tessedit_char_whitelist={DIGIT_WHITELIST}",
        ]
        if self._tessdata_dir:
            config_parts.insert(0, f"--tessdata-dir {self._tessdata_dir}")
        return " ".join(config_parts)

    def recognize(self, png: bytes) -> str:
        """Run Tesseract on a PNG-encoded binary image."""
        image = cv2.imdecode(np.frombuffer(png, dtype=np.uint8), cv2.IMREAD_GRAYSCALE)
        if image is None:
            raise InvalidImage("Cannot decode preprocessed image for OCR")

        with self._lock:
            return self._pytesseract.image_to_string(
                image, lang=self._lang, config=self.config
            )
