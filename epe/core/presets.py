"""Preset store: named groups of candidate values bound to one EXIF field.

Every mutation is built on a copy of the library and written through to
the storage backend before it becomes current. A failed write leaves the
store as it was. Group and value counts are small, so there is no batching.
"""

import copy
import logging
from typing import Callable, List, Optional, Tuple

from epe.core import codec
from epe.core.errors import ParseError, ValidationError
from epe.core.ids import generate_id
from epe.core.models import (
    ImportReport, PresetGroup, PresetLibrary, PresetTarget, PresetValue
)
from epe.core.storage import STORAGE_KEY, MemoryStorage, StorageBackend
from epe.core.values import normalize_section, parse_field_key

logger = logging.getLogger(__name__)


class PresetStore:
    """Owns the preset library and its durable mirror.

    Usage:
        store = PresetStore(JsonFileStorage(get_config_dir()))
        store.load()

        group = store.add_group("Film", "0th", 0x0110, label="Model")
        value = store.add_value(group.id, "Kodak Gold 200")

        found = store.get_value(group.id, value.id)
        if found:
            group, value = found
    """

    def __init__(
        self,
        storage: Optional[StorageBackend] = None,
        key: str = STORAGE_KEY,
        on_change: Optional[Callable[[], None]] = None
    ):
        """Initialize store with an empty library.

        Call load() to read persisted presets (or the defaults).

        Args:
            storage: Persistence backend (default: in-memory).
            key: Storage key for the library document.
            on_change: Optional callback invoked after every mutation.
        """
        self.storage = storage if storage is not None else MemoryStorage()
        self.key = key
        self.on_change = on_change
        self._library = PresetLibrary()

    # ----- persistence -----

    def load(self) -> PresetLibrary:
        """Load the library from storage.

        Missing data yields the built-in presets. Unparsable data is logged
        and replaced by the built-in presets. The result is written back
        immediately; if that write fails, the loaded library is still used.

        Returns:
            The loaded library.
        """
        stored = self.storage.get(self.key)
        library = None
        if stored:
            try:
                library, report = codec.parse_presets_json(stored)
                if not report.clean:
                    logger.warning(
                        f"Stored presets repaired: {report.groups_dropped} group(s) and "
                        f"{report.values_dropped} value(s) dropped"
                    )
            except ParseError as e:
                logger.warning(f"Failed to parse stored presets, falling back to defaults: {e}")

        library = library or codec.default_library()
        try:
            self._commit(library)
        except OSError as e:
            logger.warning(f"Could not write presets back to storage: {e}")
            self._library = library
        return self._library

    def _draft(self) -> PresetLibrary:
        """Copy of the library for a mutation to work on."""
        return copy.deepcopy(self._library)

    def _commit(self, library: PresetLibrary) -> None:
        """Persist library, then make it current and notify listeners.

        Raises:
            OSError: If storage fails. The current library is left as it was.
        """
        self.storage.set(self.key, codec.export_json(library))
        self._library = library
        if self.on_change:
            self.on_change()

    # ----- queries -----

    @property
    def library(self) -> PresetLibrary:
        return self._library

    @property
    def groups(self) -> List[PresetGroup]:
        """Groups in insertion order."""
        return list(self._library.groups)

    @property
    def active_group_id(self) -> Optional[str]:
        return self._library.active_group_id

    def get_group(self, group_id: Optional[str]) -> Optional[PresetGroup]:
        return self._library.find_group(group_id)

    def active_group(self) -> Optional[PresetGroup]:
        """Get the active group, or None if there are no groups."""
        return self._library.find_group(self._library.active_group_id)

    def group_values(self, group_id: str) -> List[PresetValue]:
        """Values of a group in insertion order, empty if not found."""
        group = self.get_group(group_id)
        return list(group.values) if group else []

    def find_group(self, reference: str) -> Optional[PresetGroup]:
        """Resolve a group by id, or by name ignoring case."""
        group = self.get_group(reference)
        if group:
            return group
        lowered = reference.strip().lower()
        for group in self._library.groups:
            if group.name.lower() == lowered:
                return group
        return None

    def get_value(self, group_id: str, value_id: str) -> Optional[Tuple[PresetGroup, PresetValue]]:
        """Resolve a value and its group.

        Returns:
            (group, value) tuple, or None if either is missing.
        """
        group = self.get_group(group_id)
        if not group:
            return None
        value = group.find_value(value_id)
        if not value:
            return None
        return group, value

    # ----- group mutations -----

    def set_active_group(self, group_id: str) -> None:
        """Make a group active. Unknown ids are ignored."""
        if self.get_group(group_id) is None:
            return
        draft = self._draft()
        draft.active_group_id = group_id
        self._commit(draft)

    def add_group(
        self,
        name: str,
        section: str,
        field_key,
        label: Optional[str] = None
    ) -> PresetGroup:
        """Create an empty group and make it active.

        Args:
            name: Display name (trimmed, must not be empty).
            section: Section of the target field, e.g. "0th" (trimmed).
            field_key: Target field key, integer or decimal/hex text.
            label: Optional human-readable field name.

        Returns:
            The new group.

        Raises:
            ValidationError: If name, key or section is invalid.
            OSError: If the change cannot be persisted.
        """
        clean_name = name.strip() if isinstance(name, str) else ""
        if not clean_name:
            raise ValidationError("Group name is required.")

        key = parse_field_key(field_key)
        if key is None:
            raise ValidationError("Select a valid EXIF tag.")

        clean_section = normalize_section(section)
        if clean_section is None:
            raise ValidationError("Section is required.")

        group = PresetGroup(
            id=generate_id("group"),
            name=clean_name,
            target=PresetTarget(section=clean_section, field_key=key, label=label or ""),
        )
        draft = self._draft()
        draft.groups.append(group)
        draft.active_group_id = group.id
        self._commit(draft)
        return group

    def remove_group(self, group_id: str) -> None:
        """Remove a group. No error if absent.

        If the active group is removed, the first remaining group becomes
        active, or None when no groups remain.
        """
        draft = self._draft()
        draft.groups = [g for g in draft.groups if g.id != group_id]
        if draft.find_group(draft.active_group_id) is None:
            draft.active_group_id = draft.groups[0].id if draft.groups else None
        self._commit(draft)

    # ----- value mutations -----

    def add_value(self, group_id: str, raw_label: str) -> PresetValue:
        """Append a value to a group.

        Returns:
            The new value, with label and value both the trimmed input.

        Raises:
            ValidationError: If the group is missing, the label is empty, or
                a sibling value already matches ignoring case.
        """
        if not self.get_group(group_id):
            raise ValidationError("Select or create a group first.")

        trimmed = raw_label.strip() if isinstance(raw_label, str) else ""
        if not trimmed:
            raise ValidationError("Value is required.")

        draft = self._draft()
        group = draft.find_group(group_id)
        if group.has_value(trimmed):
            raise ValidationError("This value already exists in the selected group.")

        value = PresetValue(id=generate_id("value"), label=trimmed, value=trimmed)
        group.values.append(value)
        self._commit(draft)
        return value

    def remove_value(self, group_id: str, value_id: str) -> None:
        """Remove a value from a group. Missing group or value is a no-op."""
        if not self.get_group(group_id):
            return
        draft = self._draft()
        group = draft.find_group(group_id)
        group.values = [v for v in group.values if v.id != value_id]
        self._commit(draft)

    # ----- import/export -----

    def export_json(self) -> str:
        """Serialize the whole library as pretty-printed JSON."""
        return codec.export_json(self._library)

    def import_json(self, text) -> ImportReport:
        """Replace the library with an imported document.

        Invalid JSON leaves the current library untouched. Otherwise the
        normalized result replaces the library and is persisted.

        Args:
            text: JSON document as str or bytes.

        Returns:
            Report of what normalization dropped or substituted.

        Raises:
            ParseError: If text is not valid JSON.
        """
        library, report = codec.parse_presets_json(text)
        if report.used_defaults:
            logger.warning("Imported presets contained no valid groups; defaults restored")
        self._commit(library)
        return report

    def import_file(self, path: str) -> ImportReport:
        """Read a preset file and import it.

        The raw bytes go to the JSON parser, so a file that is not UTF-8
        is reported as a ParseError like any other malformed document.

        Raises:
            OSError: If the file cannot be read.
            ParseError: If the content is not valid JSON.
        """
        with open(path, "rb") as f:
            data = f.read()
        return self.import_json(data)
