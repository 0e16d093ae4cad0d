"""Public API for numeric captcha solving."""

import logging
from pathlib import Path

import numpy as np

from numcaptcha.config import (
    DEFAULT_FETCH_TIMEOUT,
    DEFAULT_MAX_IMAGE_BYTES,
    DEFAULT_TESSERACT_LANG,
)
from numcaptcha.engines.base import BaseOCREngine
from numcaptcha.models import PreprocessResult, SolveResult
from numcaptcha.parsing.digits import keep_digits
from numcaptcha.preprocessing.captcha_pipeline import preprocess_captcha
from numcaptcha.sources import decode_image, load_image_bytes

log = logging.getLogger(__name__)


class CaptchaSolver:
    """
    Main entry point for numeric captcha solving.

    Usage:
        solver = CaptchaSolver()
        result = solver.solve("data:image/png;base64,iVBORw0...")
        print(result.text)
    """

    def __init__(
        self,
        engine: BaseOCREngine | None = None,
        tessdata_dir: str | None = None,
        tesseract_lang: str = DEFAULT_TESSERACT_LANG,
        fetch_timeout: float = DEFAULT_FETCH_TIMEOUT,
        max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES,
    ):
        """
        Initialize the solver.

        Args:
            engine: Ready OCR engine. A TesseractDigitEngine is created when omitted.
            tessdata_dir: Path to Tesseract tessdata directory.
            tesseract_lang: Tesseract language code.
            fetch_timeout: Timeout in seconds for remote image downloads.
            max_image_bytes: Largest accepted image payload.

        Raises:
            OcrEngineFailure: If no engine was given and Tesseract is unusable.
        """
        if engine is None:
            from numcaptcha.engines.tesseract_engine import TesseractDigitEngine

            engine = TesseractDigitEngine(tessdata_dir=tessdata_dir, lang=tesseract_lang)
        self._engine = engine
        self._fetch_timeout = fetch_timeout
        self._max_image_bytes = max_image_bytes

    @property
    def engine(self) -> BaseOCREngine:
        return self._engine

    def solve(self, image_url: str) -> SolveResult:
        """
        Solve a captcha referenced by a data URL or an http(s) URL.

        Raises:
            InvalidImageSource: Unrecognized reference format.
            ImageFetchFailure: Remote image could not be downloaded.
            InvalidImage: Bytes are not a usable image.
        """
        data = load_image_bytes(
            image_url, timeout=self._fetch_timeout, max_bytes=self._max_image_bytes
        )
        return self.solve_bytes(data)

    def solve_file(self, image_path: str | Path) -> SolveResult:
        """Solve a captcha stored in a local image file."""
        image_path = Path(image_path)
        if not image_path.exists():
            raise FileNotFoundError(f"Image not found: {image_path}")
        return self.solve_bytes(image_path.read_bytes())

    def solve_bytes(self, data: bytes) -> SolveResult:
        """Solve a captcha from encoded image file bytes."""
        return self.solve_array(decode_image(data))

    def solve_array(self, image: np.ndarray) -> SolveResult:
        """Solve a captcha from a decoded BGR(A) or grayscale array."""
        return self.recognize(self.preprocess(image))

    def recognize(self, prepared: PreprocessResult) -> SolveResult:
        """Run OCR on an already preprocessed captcha and keep only digits."""
        raw_text = self._engine.recognize(prepared.png)
        text = keep_digits(raw_text)
        log.info('Raw OCR text: "%s", cleaned text: "%s"', raw_text.strip(), text)

        return SolveResult(
            text=text,
            raw_text=raw_text,
            threshold=prepared.threshold,
            numbers_are_lighter=prepared.numbers_are_lighter,
            width=prepared.width,
            height=prepared.height,
            engine=self._engine.name,
        )

    @staticmethod
    def preprocess(image: np.ndarray) -> PreprocessResult:
        """Run only the normalization and binarization stages."""
        return preprocess_captcha(image)
