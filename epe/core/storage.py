"""Durable key-value storage for the preset library.

The preset library is the single persisted aggregate; it is written as one
JSON document under STORAGE_KEY after every mutation.
"""

import logging
import os
import tempfile
from typing import Dict, Optional, Protocol

logger = logging.getLogger(__name__)

STORAGE_KEY = "exif_preset_groups"


class StorageBackend(Protocol):
    """Synchronous put/get store. Last write wins."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, text: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class MemoryStorage:
    """Dict-backed storage for tests and ephemeral sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, text: str) -> None:
        self._data[key] = text

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStorage:
    """Stores each key as <key>.json inside a directory.

    Usage:
        storage = JsonFileStorage(get_config_dir())
        storage.set(STORAGE_KEY, text)
        text = storage.get(STORAGE_KEY)
    """

    SUFFIX = ".json"
    TEMP_PREFIX = ".store_"

    def __init__(self, directory: str):
        """Initialize storage.

        Args:
            directory: Directory holding the stored documents.
        """
        self.directory = directory
        self._cleanup_temp_files()

    def path_for(self, key: str) -> str:
        """Get the file path used for a key."""
        return os.path.join(self.directory, f"{key}{self.SUFFIX}")

    def get(self, key: str) -> Optional[str]:
        """Read the stored text for key.

        Returns:
            Stored text, or None if the file is missing or cannot be decoded.
        """
        path = self.path_for(key)
        if not os.path.exists(path):
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to read {path}: {e}")
            return None

    def set(self, key: str, text: str) -> None:
        """Write text for key atomically.

        Writes to a temporary file in the same directory, then replaces the
        target via os.replace(), so a crash mid-write never leaves a
        truncated document.

        Raises:
            OSError: If the directory cannot be created or written.
        """
        os.makedirs(self.directory, exist_ok=True)
        path = self.path_for(key)

        fd, tmp_path = tempfile.mkstemp(
            dir=self.directory, suffix=".tmp", prefix=self.TEMP_PREFIX
        )
        try:
            with open(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp_path, path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

    def delete(self, key: str) -> None:
        """Remove the stored document for key, if any."""
        try:
            os.unlink(self.path_for(key))
        except FileNotFoundError:
            pass

    def _cleanup_temp_files(self) -> None:
        """Remove orphaned temp files from interrupted writes."""
        try:
            names = os.listdir(self.directory)
        except OSError:
            return
        for name in names:
            if name.startswith(self.TEMP_PREFIX) and name.endswith(".tmp"):
                try:
                    os.unlink(os.path.join(self.directory, name))
                except OSError:
                    pass
