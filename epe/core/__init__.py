"""Core logic for EXIF Preset Editor."""

from epe.core.errors import (
    EPEError,
    ValidationError,
    ParseError,
    ApplyFailure,
)

from epe.core.models import (
    MetadataEntry,
    PresetTarget,
    PresetValue,
    PresetGroup,
    PresetLibrary,
    ImportReport,
    ImageItem,
    LoadResult,
    ApplyResult,
    ProgressCallback,
)

from epe.core.ids import generate_id

from epe.core.values import (
    parse_field_key,
    normalize_text_value,
    normalize_section,
    format_key_hex,
)

from epe.core.tags import (
    TagInfo,
    COMMON_IFD0_TAGS,
    COMMON_EXIF_TAGS,
    ALL_TAGS,
    lookup_label,
    find_tag,
)

from epe.core.entries import EntryStore

from epe.core.storage import (
    STORAGE_KEY,
    MemoryStorage,
    JsonFileStorage,
)

from epe.core.codec import (
    DEFAULT_PRESETS,
    normalize_presets,
    export_json,
    parse_presets_json,
    export_filename,
)

from epe.core.presets import PresetStore

from epe.core.exif import (
    PiexifCodec,
    coerce_value,
    read_fields,
)

from epe.core.applier import apply_entries

from epe.core.images import (
    load_images,
    save_images,
)

from epe.core.logger import (
    ActivityLog,
    NullActivityLog,
    create_activity_log,
)

from epe.core.config import (
    Settings,
    get_config_dir,
)

from epe.core.session import (
    EditorSession,
    SessionListeners,
    ActionHandlers,
)

__all__ = [
    # Errors
    "EPEError",
    "ValidationError",
    "ParseError",
    "ApplyFailure",
    # Models
    "MetadataEntry",
    "PresetTarget",
    "PresetValue",
    "PresetGroup",
    "PresetLibrary",
    "ImportReport",
    "ImageItem",
    "LoadResult",
    "ApplyResult",
    "ProgressCallback",
    # Ids and values
    "generate_id",
    "parse_field_key",
    "normalize_text_value",
    "normalize_section",
    "format_key_hex",
    # Tags
    "TagInfo",
    "COMMON_IFD0_TAGS",
    "COMMON_EXIF_TAGS",
    "ALL_TAGS",
    "lookup_label",
    "find_tag",
    # Stores
    "EntryStore",
    "PresetStore",
    # Storage
    "STORAGE_KEY",
    "MemoryStorage",
    "JsonFileStorage",
    # Codec
    "DEFAULT_PRESETS",
    "normalize_presets",
    "export_json",
    "parse_presets_json",
    "export_filename",
    # EXIF
    "PiexifCodec",
    "coerce_value",
    "read_fields",
    "apply_entries",
    # Images
    "load_images",
    "save_images",
    # Activity log
    "ActivityLog",
    "NullActivityLog",
    "create_activity_log",
    # Config
    "Settings",
    "get_config_dir",
    # Session
    "EditorSession",
    "SessionListeners",
    "ActionHandlers",
]
