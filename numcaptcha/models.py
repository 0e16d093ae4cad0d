"""Data models for captcha preprocessing and recognition results."""

from dataclasses import dataclass
from enum import Enum

import numpy as np


class ImageSource(Enum):
    DATA_URL = "data_url"  # data:image/...;base64,<payload>
    HTTP_URL = "http_url"


class EngineState(Enum):
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


@dataclass
class PreprocessResult:
    """Intermediate and final rasters of a single pipeline run."""

    gray: np.ndarray  # normalized grayscale, before polarity correction
    binary: np.ndarray  # strictly 0/255, digits black on white
    png: bytes  # lossless encoding of `binary` handed to OCR
    threshold: int
    roi_mean: float
    numbers_are_lighter: bool

    @property
    def width(self) -> int:
        return int(self.gray.shape[1])

    @property
    def height(self) -> int:
        return int(self.gray.shape[0])

    def to_dict(self) -> dict:
        return {
            "width": self.width,
            "height": self.height,
            "threshold": self.threshold,
            "roi_mean": round(self.roi_mean, 2),
            "numbers_are_lighter": self.numbers_are_lighter,
            "png_bytes": len(self.png),
        }


@dataclass
class SolveResult:
    """Complete captcha solving result."""

    text: str  # digits only
    raw_text: str  # engine output before filtering
    threshold: int
    numbers_are_lighter: bool
    width: int
    height: int
    engine: str = ""

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "raw_text": self.raw_text.strip(),
            "threshold": self.threshold,
            "numbers_are_lighter": self.numbers_are_lighter,
            "width": self.width,
            "height": self.height,
            "engine": self.engine,
        }
