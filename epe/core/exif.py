"""EXIF codec adapter built on piexif.

The apply protocol consumes a codec with three operations:
    load(image_bytes) -> {section: {key: value}}
    dump(sections) -> exif_bytes
    insert(exif_bytes, image_bytes) -> image_bytes

Staged entry values are plain int/float/str. Before dumping, they are
coerced to the binary type each field declares in piexif's tag table.
"""

import io
import logging
from fractions import Fraction
from typing import Any, Dict, Protocol

import piexif

from epe.core.tags import lookup_label

logger = logging.getLogger(__name__)

ExifSections = Dict[str, Any]

# Largest denominator used when turning decimals into EXIF rationals
MAX_DENOMINATOR = 10000

_INTEGER_TYPES = {
    piexif.TYPES.Byte,
    piexif.TYPES.Short,
    piexif.TYPES.Long,
    piexif.TYPES.SByte,
    piexif.TYPES.SShort,
    piexif.TYPES.SLong,
}
_RATIONAL_TYPES = {piexif.TYPES.Rational, piexif.TYPES.SRational}
_FLOAT_TYPES = {piexif.TYPES.Float, piexif.TYPES.DFloat}


class ExifCodec(Protocol):
    """External codec collaborator. Every operation may raise."""

    def load(self, image: bytes) -> ExifSections:
        ...

    def dump(self, sections: ExifSections) -> bytes:
        ...

    def insert(self, exif_bytes: bytes, image: bytes) -> bytes:
        ...


def _to_number(value: Any) -> Any:
    """Interpret numeric text as a number; other values pass through."""
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            return float(text)
    return value


def coerce_value(section: str, key: int, value: Any) -> Any:
    """Convert a staged value to the representation piexif writes for a field.

    Values already in codec form (bytes, tuples) and fields unknown to
    piexif's tag table are returned unchanged.

    Raises:
        ValueError: If the value cannot be represented in the field's type.
    """
    if isinstance(value, (bytes, tuple)):
        return value

    info = piexif.TAGS.get(section, {}).get(key)
    if not info:
        return value

    tag_type = info["type"]

    if tag_type == piexif.TYPES.Ascii:
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        return str(value).encode("utf-8")

    if tag_type in _INTEGER_TYPES:
        number = _to_number(value)
        if isinstance(number, float):
            if not number.is_integer():
                raise ValueError(f"{info['name']} requires an integer, got {value!r}")
            number = int(number)
        return number

    if tag_type in _RATIONAL_TYPES:
        fraction = Fraction(_to_number(value)).limit_denominator(MAX_DENOMINATOR)
        return (fraction.numerator, fraction.denominator)

    if tag_type in _FLOAT_TYPES:
        return float(_to_number(value))

    if tag_type == piexif.TYPES.Undefined:
        if isinstance(value, int) and 0 <= value < 256:
            return bytes((value,))
        return str(value).encode("utf-8")

    return value


class PiexifCodec:
    """ExifCodec implementation operating on in-memory JPEG bytes.

    Usage:
        codec = PiexifCodec()
        sections = codec.load(jpeg_bytes)
        sections["0th"][0x0110] = "Kodak Gold 200"
        new_jpeg = codec.insert(codec.dump(sections), jpeg_bytes)
    """

    def load(self, image: bytes) -> ExifSections:
        """Read EXIF sections from JPEG bytes."""
        return piexif.load(image)

    def dump(self, sections: ExifSections) -> bytes:
        """Coerce staged values and encode sections to an EXIF segment."""
        prepared: ExifSections = {}
        for section, fields in sections.items():
            if isinstance(fields, dict):
                prepared[section] = {
                    key: coerce_value(section, key, value)
                    for key, value in fields.items()
                }
            else:
                prepared[section] = fields
        return piexif.dump(prepared)

    def insert(self, exif_bytes: bytes, image: bytes) -> bytes:
        """Embed an EXIF segment into JPEG bytes, returning new bytes."""
        output = io.BytesIO()
        piexif.insert(exif_bytes, image, output)
        return output.getvalue()


def _format_field(value: Any) -> str:
    """Render a raw piexif value as display text."""
    if isinstance(value, bytes):
        return value.rstrip(b"\x00").decode("utf-8", errors="replace")
    if isinstance(value, tuple) and len(value) == 2 and all(isinstance(v, int) for v in value):
        numerator, denominator = value
        if denominator in (0, 1):
            return str(numerator)
        return f"{numerator}/{denominator}"
    return str(value)


def read_fields(image: bytes) -> Dict[str, Dict[str, str]]:
    """Readable view of an image's EXIF fields.

    Returns:
        {section: {label_or_hex: text}}, empty if the image has no
        readable EXIF data.
    """
    try:
        sections = piexif.load(image)
    except Exception as e:
        logger.debug(f"Could not read EXIF data: {e}")
        return {}

    result: Dict[str, Dict[str, str]] = {}
    for section, fields in sections.items():
        if not isinstance(fields, dict) or not fields:
            continue
        result[section] = {
            lookup_label(section, key) or f"0x{key:04x}": _format_field(value)
            for key, value in sorted(fields.items())
        }
    return result
