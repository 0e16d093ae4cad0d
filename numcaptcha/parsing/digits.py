"""Post-filtering of raw OCR output."""

import re

_NON_DIGIT = re.compile(r"[^0-9]")


def keep_digits(text: str) -> str:
    """Strip whitespace and every non-digit character from OCR text."""
    if not text:
        return ""
    return _NON_DIGIT.sub("", text)
