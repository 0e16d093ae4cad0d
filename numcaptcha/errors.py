"""Exceptions raised by the captcha pipeline and its collaborators."""


class CaptchaError(Exception):
    """Base class for all per-request and engine failures."""

    status_code = 500
    retryable = False

    @property
    def category(self) -> str:
        return type(self).__name__


class InvalidImageSource(CaptchaError):
    """Input is neither an inline data URL nor an http(s) URL."""

    status_code = 400


class ImageFetchFailure(CaptchaError):
    """Remote image could not be fetched."""

    status_code = 502
    retryable = True


class InvalidImage(CaptchaError):
    """Image bytes could not be decoded, or decoded to zero width/height."""

    status_code = 400


class EncodingFailure(CaptchaError):
    """Binarized raster could not be encoded for the OCR engine."""


class OcrUnavailable(CaptchaError):
    """OCR engine has not finished initializing; try again shortly."""

    status_code = 503
    retryable = True


class OcrEngineFailure(CaptchaError):
    """OCR engine failed to initialize. Fatal for the process."""
