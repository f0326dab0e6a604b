"""Data models for EXIF Preset Editor."""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union

from epe.core.utils import to_readable_size
from epe.core.values import format_key_hex

SCHEMA_VERSION = 1

EntryValue = Union[int, float, str]


@dataclass(slots=True)
class MetadataEntry:
    """One field assignment waiting to be written into images.

    Entries are replaced wholesale, never edited field by field.
    """
    id: str
    section: str
    field_key: int
    value: EntryValue
    original: Any
    label: Optional[str] = None

    @property
    def field_key_hex(self) -> str:
        """Zero-padded hex form of the key, e.g. '0x0110'."""
        return format_key_hex(self.field_key)

    @property
    def display_key(self) -> str:
        """Label if known, otherwise the hex key."""
        return self.label or self.field_key_hex


@dataclass
class PresetTarget:
    """The single metadata field a preset group populates."""
    section: str
    field_key: int
    label: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"section": self.section, "fieldKey": self.field_key, "label": self.label}


@dataclass
class PresetValue:
    """A candidate value inside a preset group.

    `value` is the text actually applied; it defaults to `label`.
    """
    id: str
    label: str
    value: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "label": self.label, "value": self.value}


@dataclass
class PresetGroup:
    """A named, reusable list of values bound to one metadata field."""
    id: str
    name: str
    target: PresetTarget
    values: List[PresetValue] = field(default_factory=list)

    def find_value(self, value_id: str) -> Optional[PresetValue]:
        """Get a value by id, or None."""
        for item in self.values:
            if item.id == value_id:
                return item
        return None

    def has_value(self, text: str) -> bool:
        """Check for a sibling value equal to text, ignoring case."""
        lowered = text.lower()
        return any(item.value.lower() == lowered for item in self.values)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "target": self.target.to_dict(),
            "values": [v.to_dict() for v in self.values],
        }


@dataclass
class PresetLibrary:
    """The persisted preset aggregate.

    active_group_id references a group in `groups` whenever `groups` is
    non-empty, and is None only when it is empty.
    """
    groups: List[PresetGroup] = field(default_factory=list)
    active_group_id: Optional[str] = None
    version: int = SCHEMA_VERSION

    def find_group(self, group_id: Optional[str]) -> Optional[PresetGroup]:
        """Get a group by id, or None."""
        for group in self.groups:
            if group.id == group_id:
                return group
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "groups": [g.to_dict() for g in self.groups],
            "activeGroupId": self.active_group_id,
        }


@dataclass
class ImportReport:
    """What normalization discarded while reading a preset document.

    used_defaults is True when nothing valid survived and the built-in
    presets were substituted, so callers can warn instead of silently
    replacing the user's data.
    """
    groups_dropped: int = 0
    values_dropped: int = 0
    used_defaults: bool = False

    @property
    def clean(self) -> bool:
        return not (self.groups_dropped or self.values_dropped or self.used_defaults)


@dataclass
class ImageItem:
    """A JPEG image held in memory for editing."""
    id: str
    name: str
    data: bytes
    path: Optional[str] = None

    @property
    def size_bytes(self) -> int:
        return len(self.data)

    @property
    def readable_size(self) -> str:
        return to_readable_size(self.size_bytes)


@dataclass
class LoadResult:
    """Outcome of loading image files."""
    loaded: List[ImageItem] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    message: str = ""


@dataclass
class ApplyResult:
    """Outcome of writing entries into a batch of images.

    On failure `images` is the untouched input batch.
    """
    success: bool
    message: str
    images: List[ImageItem] = field(default_factory=list)
    applied_count: int = 0


# (current_item, total_items, message) -> None
ProgressCallback = Callable[[int, int, str], None]
