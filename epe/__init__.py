"""EXIF Preset Editor - Stage EXIF fields and reusable presets, then write them into JPEGs.

High-level API:
    from epe import EditorSession

    with EditorSession.open() as session:
        session.load_images(["/photos/roll-12"])

        # Stage a field directly
        session.entries.set_entry("0th", "0x013B", "Jane Doe", label="Artist")

        # Or stage a value from a preset group
        group = session.presets.add_group("Film", "0th", 0x0110, label="Model")
        value = session.presets.add_value(group.id, "Kodak Gold 200")
        session.apply_preset_value(group.id, value.id)

        result = session.apply()
        print(result.message)
"""

__version__ = "1.2.0"

# Public API exports
from epe.core.session import EditorSession
from epe.core.entries import EntryStore
from epe.core.presets import PresetStore
from epe.core.errors import ValidationError, ParseError, ApplyFailure
from epe.core.models import (
    MetadataEntry,
    PresetGroup,
    PresetValue,
    PresetLibrary,
    ApplyResult,
    ImageItem,
)

__all__ = [
    "EditorSession",
    "EntryStore",
    "PresetStore",
    "ValidationError",
    "ParseError",
    "ApplyFailure",
    "MetadataEntry",
    "PresetGroup",
    "PresetValue",
    "PresetLibrary",
    "ApplyResult",
    "ImageItem",
    "__version__",
]
