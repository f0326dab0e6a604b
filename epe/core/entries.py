"""Store of metadata entries staged for writing into images."""

from typing import Callable, Iterator, List, Optional

from epe.core.errors import ValidationError
from epe.core.models import MetadataEntry
from epe.core.values import normalize_section, normalize_text_value, parse_field_key

KEY_ERROR_MESSAGE = "Key must be decimal or hex (prefix with 0x)."

# Ids: "add:<section>:<key>:<ordinal>" and "set:<section>:<key>". The kind
# prefixes keep the two id spaces disjoint.


class EntryStore:
    """Ordered collection of MetadataEntry objects.

    add_entry always appends, so repeated adds for one field coexist; the
    last one wins when applied. set_entry upserts by (section, field_key)
    with a stable id, so repeated sets keep a single entry.

    Usage:
        entries = EntryStore()
        entries.add_entry("0th", "0x0110", "Kodak Gold 200", label="Model")
        entries.set_entry("Exif", 34855, "200", label="ISOSpeedRatings")
        for entry in entries:
            print(entry.display_key, entry.value)
    """

    def __init__(self, on_change: Optional[Callable[[], None]] = None):
        """Initialize an empty store.

        Args:
            on_change: Optional callback invoked after every mutation.
        """
        self._entries: List[MetadataEntry] = []
        self._ordinal = 0
        self.on_change = on_change

    def _build(self, entry_id_fn, section_input, key_input, value_input, label) -> MetadataEntry:
        """Validate inputs and construct an entry (no mutation)."""
        section = normalize_section(section_input)
        if section is None:
            raise ValidationError("Section is required.")

        key = parse_field_key(key_input)
        if key is None:
            raise ValidationError(KEY_ERROR_MESSAGE)

        return MetadataEntry(
            id=entry_id_fn(section, key),
            section=section,
            field_key=key,
            value=normalize_text_value(value_input),
            original=value_input,
            label=label or None,
        )

    def add_entry(
        self,
        section: str,
        key_input,
        value_input,
        label: Optional[str] = None
    ) -> MetadataEntry:
        """Append a new entry, even if the field already has one.

        The id embeds a lifetime ordinal that never repeats, even after
        removals or clear_entries().

        Raises:
            ValidationError: If section is empty or the key is invalid.
        """
        ordinal = self._ordinal + 1
        entry = self._build(
            lambda section, key: f"add:{section}:{key}:{ordinal}",
            section, key_input, value_input, label
        )
        self._ordinal = ordinal
        self._entries.append(entry)
        self._changed()
        return entry

    def set_entry(
        self,
        section: str,
        key_input,
        value_input,
        label: Optional[str] = None
    ) -> MetadataEntry:
        """Insert or replace the entry for (section, key).

        Replaces the first existing entry for the field in place and drops
        any later duplicates, or appends when the field is new.

        Raises:
            ValidationError: If section is empty or the key is invalid.
        """
        entry = self._build(
            lambda section, key: f"set:{section}:{key}",
            section, key_input, value_input, label
        )

        updated: List[MetadataEntry] = []
        replaced = False
        for item in self._entries:
            if item.section == entry.section and item.field_key == entry.field_key:
                if not replaced:
                    updated.append(entry)
                    replaced = True
                continue
            updated.append(item)
        if not replaced:
            updated.append(entry)

        self._entries = updated
        self._changed()
        return entry

    def remove_entry(self, entry_id: str) -> None:
        """Remove the entry with this id. No error if absent."""
        self._entries = [e for e in self._entries if e.id != entry_id]
        self._changed()

    def clear_entries(self) -> None:
        """Remove all entries."""
        self._entries = []
        self._changed()

    def get_entry(self, entry_id: str) -> Optional[MetadataEntry]:
        """Get an entry by id, or None."""
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        return None

    @property
    def entries(self) -> List[MetadataEntry]:
        """Snapshot of entries in insertion order."""
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[MetadataEntry]:
        return iter(list(self._entries))

    def _changed(self) -> None:
        if self.on_change:
            self.on_change()
