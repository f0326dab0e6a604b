"""Normalization of free-text keys and values typed by the user or imported.

Tag keys are conventionally written in hex (0x0110) while values are often
genuinely numeric (ISO speed, exposure bias). The codec writes type-sensitive
binary encodings, so the stored primitive type matters.
"""

import math
import re
from typing import Optional, Union

# Entire text must be a finite decimal number: "200", "3.5", "-2", ".5", "1e3"
_DECIMAL_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_INTEGER_RE = re.compile(r"[+-]?\d+")

_DEC_DIGITS_RE = re.compile(r"\d+")
_HEX_DIGITS_RE = re.compile(r"[0-9a-fA-F]+")

Value = Union[int, float, str]


def parse_field_key(key_input) -> Optional[int]:
    """Parse a metadata field key from an integer or a decimal/hex string.

    Args:
        key_input: Integer key, or text such as "270", " 0x10E ".

    Returns:
        Non-negative integer key, or None if the input is invalid.

    Examples:
        >>> parse_field_key("0x10E")
        270
        >>> parse_field_key("270")
        270
        >>> parse_field_key("zz") is None
        True
    """
    if isinstance(key_input, bool):
        return None

    if isinstance(key_input, int):
        return key_input if key_input >= 0 else None

    if isinstance(key_input, float):
        if math.isfinite(key_input) and key_input.is_integer() and key_input >= 0:
            return int(key_input)
        return None

    if not isinstance(key_input, str):
        return None

    text = key_input.strip()
    if not text:
        return None

    if text[:2] in ("0x", "0X"):
        digits = text[2:]
        if not _HEX_DIGITS_RE.fullmatch(digits):
            return None
        return int(digits, 16)

    if not _DEC_DIGITS_RE.fullmatch(text):
        return None
    return int(text, 10)


def format_key_hex(key: int) -> str:
    """Format a key as zero-padded hex, e.g. 272 -> "0x0110"."""
    return f"0x{key:04x}"


def normalize_section(section_input) -> Optional[str]:
    """Trim a section name such as " 0th ".

    Returns:
        The trimmed name, or None for non-strings and blank text.
    """
    if not isinstance(section_input, str):
        return None
    return section_input.strip() or None


def normalize_text_value(value_input) -> Value:
    """Convert free text into the value stored on an entry.

    Blank text becomes "". Text that is entirely a finite decimal number
    becomes int or float. Anything else is returned unchanged, including
    its surrounding whitespace.

    Examples:
        >>> normalize_text_value("200")
        200
        >>> normalize_text_value("Kodak")
        'Kodak'
        >>> normalize_text_value("  ")
        ''
    """
    if isinstance(value_input, bool):
        return str(value_input)

    if isinstance(value_input, (int, float)):
        return value_input if math.isfinite(value_input) else str(value_input)

    if value_input is None:
        return ""

    text = str(value_input)
    trimmed = text.strip()
    if not trimmed:
        return ""

    if _INTEGER_RE.fullmatch(trimmed):
        return int(trimmed)

    if _DECIMAL_RE.fullmatch(trimmed):
        number = float(trimmed)
        if math.isfinite(number):
            return number

    return text
