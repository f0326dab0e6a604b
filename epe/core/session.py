"""Editing session: coordinates images, staged entries and presets.

Used by the CLI, and by any renderer that needs a single object to drive.
The session is constructed once and passed explicitly; there is no module
level state.
"""

import logging
import os
import threading
from dataclasses import dataclass
from datetime import date
from typing import Callable, Iterable, List, Optional, Union

from epe.core import codec as preset_codec
from epe.core.applier import apply_entries
from epe.core.config import get_config_dir
from epe.core.entries import EntryStore
from epe.core.errors import ValidationError
from epe.core.exif import ExifCodec, PiexifCodec
from epe.core.images import load_images, save_images
from epe.core.logger import ActivityLog, NullActivityLog, create_activity_log
from epe.core.models import (
    ApplyResult, ImageItem, ImportReport, LoadResult, MetadataEntry, ProgressCallback
)
from epe.core.presets import PresetStore
from epe.core.storage import JsonFileStorage
from epe.core.utils import checkout_dir, get_unique_path

logger = logging.getLogger(__name__)


def _noop() -> None:
    pass


@dataclass
class SessionListeners:
    """Change notifications for a renderer. Each is called with no arguments."""
    entries_changed: Callable[[], None] = _noop
    presets_changed: Callable[[], None] = _noop
    images_changed: Callable[[], None] = _noop


@dataclass
class ActionHandlers:
    """Bound callables a renderer wires to its remove/apply controls."""
    remove_image: Callable[[str], None]
    remove_entry: Callable[[str], None]
    remove_group: Callable[[str], None]
    remove_value: Callable[[str, str], None]
    apply_value: Callable[[str, str], MetadataEntry]
    apply: Callable[[], ApplyResult]


class EditorSession:
    """Owns one EntryStore, one PresetStore, the loaded images and a codec.

    Image loading, applying and preset import are serialized by a lock, so
    a second import started while the first is still reading cannot
    interleave with it.

    Usage:
        with EditorSession.open() as session:
            session.load_images(["/photos/roll-12"])
            session.entries.set_entry("0th", 0x013B, "Jane Doe", label="Artist")

            group = session.presets.active_group()
            session.apply_preset_value(group.id, group.values[0].id)

            result = session.apply()
            if result.success:
                session.save_images("/photos/roll-12/exif_output")
    """

    def __init__(
        self,
        presets: Optional[PresetStore] = None,
        entries: Optional[EntryStore] = None,
        codec: Optional[ExifCodec] = None,
        activity: Optional[Union[ActivityLog, NullActivityLog]] = None
    ):
        """Initialize session.

        Args:
            presets: Preset store (default: in-memory, not loaded).
            entries: Entry store (default: empty).
            codec: EXIF codec (default: PiexifCodec).
            activity: Activity log (default: disabled).
        """
        self.presets = presets if presets is not None else PresetStore()
        self.entries = entries if entries is not None else EntryStore()
        self.codec = codec if codec is not None else PiexifCodec()
        self.activity = activity if activity is not None else NullActivityLog()

        self._images: List[ImageItem] = []
        self._image_counter = 0
        self._lock = threading.Lock()
        self._listeners = SessionListeners()

    @classmethod
    def open(cls, config_dir: Optional[str] = None, verbose: bool = False) -> "EditorSession":
        """Create a session backed by presets stored in the config directory.

        Args:
            config_dir: Directory for presets and activity log
                (default: get_config_dir()).
            verbose: Write the activity log.
        """
        config_dir = config_dir or get_config_dir()
        presets = PresetStore(JsonFileStorage(config_dir))
        presets.load()
        return cls(presets=presets, activity=create_activity_log(config_dir, enabled=verbose))

    # ----- listeners and handlers -----

    def register_listeners(self, listeners: SessionListeners) -> None:
        """Install change callbacks for entries, presets and images."""
        self._listeners = listeners
        self.entries.on_change = listeners.entries_changed
        self.presets.on_change = listeners.presets_changed

    def action_handlers(self) -> ActionHandlers:
        """Build the remove/apply callables for a renderer."""
        return ActionHandlers(
            remove_image=self.remove_image,
            remove_entry=self.entries.remove_entry,
            remove_group=self.presets.remove_group,
            remove_value=self.presets.remove_value,
            apply_value=self.apply_preset_value,
            apply=self.apply,
        )

    # ----- images -----

    @property
    def images(self) -> List[ImageItem]:
        """Loaded images in load order."""
        return list(self._images)

    def _next_image_id(self) -> str:
        self._image_counter += 1
        return str(self._image_counter)

    def load_images(
        self,
        paths: Iterable[str],
        on_progress: Optional[ProgressCallback] = None
    ) -> LoadResult:
        """Read JPEG files and add them to the session.

        Non-JPEG and unreadable files are reported in result.skipped.
        """
        with self._lock:
            result = load_images(paths, self._next_image_id, on_progress)
            logger.debug(f"Loaded {len(result.loaded)} image(s), skipped {len(result.skipped)}")
            if result.loaded:
                self._images.extend(result.loaded)
                self._listeners.images_changed()
        return result

    def remove_image(self, image_id: str) -> None:
        """Remove an image from the session. No error if absent."""
        self._images = [img for img in self._images if img.id != image_id]
        self._listeners.images_changed()

    def save_images(self, dest_dir: str) -> List[str]:
        """Write the current images to dest_dir as exif-<name>.

        Returns:
            Written paths.
        """
        written = save_images(self._images, dest_dir)
        self.activity.record("save", f"{len(written)} image(s) to {dest_dir}")
        return written

    # ----- entries and presets -----

    def apply_preset_value(self, group_id: str, value_id: str) -> MetadataEntry:
        """Stage a preset value as the entry for its group's target field.

        Uses set_entry, so applying another value from the same group
        replaces the previous one.

        Raises:
            ValidationError: If the group or value no longer exists.
        """
        found = self.presets.get_value(group_id, value_id)
        if not found:
            raise ValidationError("Could not find that preset value.")
        group, value = found
        return self.entries.set_entry(
            group.target.section,
            group.target.field_key,
            value.value,
            group.target.label or None,
        )

    def apply(self, on_progress: Optional[ProgressCallback] = None) -> ApplyResult:
        """Write staged entries into every loaded image.

        All-or-nothing: on failure the session's images are unchanged.
        """
        with self._lock:
            result = apply_entries(self.entries.entries, self._images, self.codec, on_progress)
            if result.success:
                self._images = result.images
                self._listeners.images_changed()
        self.activity.record("apply" if result.success else "apply-failed", result.message)
        return result

    def import_presets(self, path: str) -> ImportReport:
        """Replace the preset library with the contents of a JSON file.

        Raises:
            OSError: If the file cannot be read.
            ParseError: If the file is not valid JSON (library unchanged).
        """
        with self._lock:
            report = self.presets.import_file(path)
        self.activity.record("import", path)
        return report

    def export_presets(self, dest_dir: str, today: Optional[date] = None) -> str:
        """Write the preset library to dest_dir/exif-presets-YYYY-MM-DD.json.

        Returns:
            Path written (with (n) suffix if the name was taken).
        """
        checkout_dir(dest_dir)
        path = get_unique_path(os.path.join(dest_dir, preset_codec.export_filename(today)))
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.presets.export_json())
        self.activity.record("export", path)
        return path

    def reset(self) -> None:
        """Drop images and entries; presets are kept."""
        self._images = []
        self._image_counter = 0
        self.entries.clear_entries()
        self._listeners.images_changed()

    def close(self) -> None:
        self.activity.close()

    def __enter__(self) -> "EditorSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
