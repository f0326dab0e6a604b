"""Activity log for EXIF Preset Editor.

Records what the user did to their images and presets (apply, import,
export, save) as one tab-separated line per action:

    2024-05-01T14:03:22<TAB>apply<TAB>2 entries applied to 3 image(s).

Diagnostics go through the standard logging module, not here.
"""

import os
from datetime import datetime
from typing import Optional, TextIO, Union

ACTIVITY_LOG_FILENAME = "activity.txt"


class ActivityLog:
    """Append-only action log, opened on first record.

    Each record is flushed immediately so an interrupted session still
    leaves a complete trail.

    Usage:
        with ActivityLog(get_config_dir()) as activity:
            activity.record("export", "/photos/exif-presets-2024-05-01.json")
    """

    def __init__(self, directory: str, filename: str = ACTIVITY_LOG_FILENAME):
        self.directory = directory
        self.path = os.path.join(directory, filename)
        self._handle: Optional[TextIO] = None

    def record(self, action: str, detail: str = "") -> None:
        """Append one action line.

        Tabs and newlines in detail are replaced by spaces to keep one
        record per line.
        """
        if self._handle is None:
            os.makedirs(self.directory, exist_ok=True)
            self._handle = open(self.path, "a", encoding="utf-8")

        clean = " ".join(detail.split())
        stamp = datetime.now().isoformat(timespec="seconds")
        self._handle.write(f"{stamp}\t{action}\t{clean}\n")
        self._handle.flush()

    @property
    def is_open(self) -> bool:
        return self._handle is not None

    def close(self) -> None:
        if self._handle:
            self._handle.close()
            self._handle = None

    def __enter__(self) -> "ActivityLog":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class NullActivityLog:
    """Stand-in used when the activity log is disabled."""

    def record(self, action: str, detail: str = "") -> None:
        pass

    def close(self) -> None:
        pass

    def __enter__(self) -> "NullActivityLog":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        pass


def create_activity_log(directory: str, enabled: bool = True) -> Union[ActivityLog, NullActivityLog]:
    """Create an activity log, or a no-op one when disabled."""
    if enabled:
        return ActivityLog(directory)
    return NullActivityLog()
