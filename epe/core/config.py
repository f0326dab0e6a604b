"""Per-user configuration: where presets live and small CLI preferences."""

import json
import logging
import os
from typing import Any, Dict, Optional

from epe.core.storage import JsonFileStorage

logger = logging.getLogger(__name__)

APP_DIR_NAME = "epe"
CONFIG_DIR_ENV = "EPE_CONFIG_DIR"
SETTINGS_KEY = "settings"


def get_config_dir(create: bool = True) -> str:
    """Get the directory holding presets, settings and the activity log.

    EPE_CONFIG_DIR wins when set. Otherwise %APPDATA%/epe on Windows and
    $XDG_CONFIG_HOME/epe (default ~/.config/epe) elsewhere.

    Args:
        create: Create the directory if it doesn't exist.
    """
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        config_dir = os.path.expanduser(override)
    else:
        if os.name == "nt":
            base = os.environ.get("APPDATA") or os.path.expanduser("~")
        else:
            base = os.environ.get("XDG_CONFIG_HOME") or os.path.expanduser("~/.config")
        config_dir = os.path.join(base, APP_DIR_NAME)

    if create:
        os.makedirs(config_dir, exist_ok=True)
    return config_dir


class Settings:
    """CLI preferences stored as settings.json next to the presets.

    Stored values are merged over DEFAULTS, so keys added in later versions
    pick up their defaults. A missing or unreadable file is not an error.

    Usage:
        settings = Settings(config_dir)
        dest = settings.default_destination("/photos/roll-12/a.jpg")
        ...
        settings.remember_output_dir(dest)
    """

    DEFAULTS: Dict[str, Any] = {
        "last_output_dir": "",
        "output_folder_name": "exif_output",
        "verbose": False,
    }

    def __init__(self, config_dir: Optional[str] = None):
        self._storage = JsonFileStorage(config_dir or get_config_dir())
        self._values: Dict[str, Any] = dict(self.DEFAULTS)
        self.load()

    @property
    def path(self) -> str:
        return self._storage.path_for(SETTINGS_KEY)

    def load(self) -> None:
        """Merge stored values over the defaults."""
        text = self._storage.get(SETTINGS_KEY)
        if not text:
            return
        try:
            stored = json.loads(text)
        except ValueError as e:
            logger.debug(f"Ignoring unreadable settings in {self.path}: {e}")
            return
        if isinstance(stored, dict):
            self._values.update(stored)

    def save(self) -> None:
        """Write settings; failures are logged, not raised."""
        try:
            self._storage.set(SETTINGS_KEY, json.dumps(self._values, indent=2))
        except OSError as e:
            logger.debug(f"Could not save settings to {self.path}: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value

    def default_destination(self, image_path: Optional[str]) -> str:
        """Output folder used when no destination is given.

        <folder of the first image>/<output_folder_name>, or the current
        directory's output folder for images without a path.
        """
        base = os.path.dirname(image_path) if image_path else os.getcwd()
        return os.path.join(base, self.get("output_folder_name") or self.DEFAULTS["output_folder_name"])

    def remember_output_dir(self, path: str) -> None:
        """Record the last output directory and save."""
        self.set("last_output_dir", path)
        self.save()
