"""Text normalization utilities for ingested CSV cells."""

import html
import re
import unicodedata

# Regex patterns compiled once for efficiency
_ZW_PATTERN = re.compile(r"[\u200B-\u200D\uFEFF]")  # Zero-width characters
_WHITESPACE_PATTERN = re.compile(r"\s+")


def _drop_control_chars(value: str) -> str:
    """Turn tabs/newlines into spaces and drop other control characters."""
    return "".join(" " if ch in "\t\r\n" else ch for ch in value if ch >= " " or ch in "\t\r\n")


def normalize_field(value: str | None) -> str:
    """Normalize a single-line field (name, address, city).

    Steps:
        1. Unicode normalization (NFKC) and HTML entity decoding.
        2. Remove zero-width and control characters.
        3. Collapse runs of whitespace and trim.

    Args:
        value: Raw cell value.

    Returns:
        Cleaned single-line text ("" for None).
    """
    if not value:
        return ""

    text = unicodedata.normalize("NFKC", value)
    text = html.unescape(text)
    text = _drop_control_chars(text)
    text = _ZW_PATTERN.sub("", text)
    return _WHITESPACE_PATTERN.sub(" ", text).strip()
