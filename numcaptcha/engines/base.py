"""Abstract base class for captcha OCR engines."""

from abc import ABC, abstractmethod


class BaseOCREngine(ABC):
    """Base interface for digit recognition engines."""

    @abstractmethod
    def recognize(self, png: bytes) -> str:
        """
        Recognize text in a preprocessed captcha image.

        Args:
            png: PNG-encoded single-channel binary image.

        Returns:
            Raw recognized text, before any digit filtering.
        """

    @property
    @abstractmethod
    def name(self) -> str:
        """Engine identifier name."""
