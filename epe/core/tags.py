"""Catalog of commonly edited EXIF fields.

Sections use the codec's IFD names: "0th" for primary image attributes,
"Exif" for capture parameters.
"""

from dataclasses import dataclass
from typing import List, Optional

import piexif

from epe.core.values import format_key_hex, parse_field_key

SECTIONS = ("0th", "Exif", "GPS", "Interop", "1st")


@dataclass(frozen=True)
class TagInfo:
    """A selectable metadata field."""
    section: str
    key: int
    label: str

    @property
    def key_hex(self) -> str:
        return format_key_hex(self.key)

    @property
    def display(self) -> str:
        """Menu text, e.g. 'Model [0th] (0x0110)'."""
        return f"{self.label} [{self.section}] ({self.key_hex})"


COMMON_IFD0_TAGS: List[TagInfo] = [
    TagInfo("0th", 0x010E, "ImageDescription"),
    TagInfo("0th", 0x010F, "Make"),
    TagInfo("0th", 0x0110, "Model"),
    TagInfo("0th", 0x0112, "Orientation"),
    TagInfo("0th", 0x011A, "XResolution"),
    TagInfo("0th", 0x011B, "YResolution"),
    TagInfo("0th", 0x0128, "ResolutionUnit"),
    TagInfo("0th", 0x0131, "Software"),
    TagInfo("0th", 0x0132, "DateTime"),
    TagInfo("0th", 0x013B, "Artist"),
    TagInfo("0th", 0x8298, "Copyright"),
]

COMMON_EXIF_TAGS: List[TagInfo] = [
    TagInfo("Exif", 0x829A, "ExposureTime"),
    TagInfo("Exif", 0x829D, "FNumber"),
    TagInfo("Exif", 0x8822, "ExposureProgram"),
    TagInfo("Exif", 0x8827, "ISOSpeedRatings"),
    TagInfo("Exif", 0x9201, "ShutterSpeedValue"),
    TagInfo("Exif", 0x9204, "ExposureBiasValue"),
    TagInfo("Exif", 0x9207, "MeteringMode"),
    TagInfo("Exif", 0x9209, "Flash"),
    TagInfo("Exif", 0x920A, "FocalLength"),
    TagInfo("Exif", 0x920D, "SubjectDistance"),
    TagInfo("Exif", 0xA402, "ExposureMode"),
    TagInfo("Exif", 0xA403, "WhiteBalance"),
    TagInfo("Exif", 0xA406, "SceneCaptureType"),
    TagInfo("Exif", 0xA408, "Contrast"),
    TagInfo("Exif", 0xA409, "Saturation"),
    TagInfo("Exif", 0xA40A, "Sharpness"),
]

ALL_TAGS: List[TagInfo] = COMMON_IFD0_TAGS + COMMON_EXIF_TAGS


def lookup_label(section: str, key: int) -> Optional[str]:
    """Get a human-readable name for a field.

    Checks the common catalog first, then piexif's full tag table.

    Returns:
        Field name, or None if unknown.
    """
    for tag in ALL_TAGS:
        if tag.section == section and tag.key == key:
            return tag.label

    info = piexif.TAGS.get(section, {}).get(key)
    if info:
        return info["name"]
    return None


def find_tag(reference: str) -> Optional[TagInfo]:
    """Resolve a textual field reference.

    Accepted forms:
        "Model"              catalog label (case-insensitive)
        "0th:Model"          section and label
        "0th:0x0110"         section and hex key
        "Exif:33437"         section and decimal key

    Labels outside the catalog are resolved through piexif's tag table
    when a section is given.

    Returns:
        TagInfo, or None if the reference cannot be resolved.
    """
    reference = reference.strip()
    if not reference:
        return None

    section = None
    name = reference
    if ":" in reference:
        section, name = (part.strip() for part in reference.split(":", 1))
        section = _canonical_section(section)
        if section is None:
            return None

    key = parse_field_key(name)
    if key is not None:
        if section is None:
            matches = [t for t in ALL_TAGS if t.key == key]
            return matches[0] if matches else None
        return TagInfo(section, key, lookup_label(section, key) or format_key_hex(key))

    lowered = name.lower()
    for tag in ALL_TAGS:
        if tag.label.lower() == lowered and (section is None or tag.section == section):
            return tag

    if section is not None:
        for tag_key, info in piexif.TAGS.get(section, {}).items():
            if info["name"].lower() == lowered:
                return TagInfo(section, tag_key, info["name"])

    return None


def _canonical_section(name: str) -> Optional[str]:
    """Match a section name case-insensitively against known sections."""
    for section in SECTIONS:
        if section.lower() == name.lower():
            return section
    return None
