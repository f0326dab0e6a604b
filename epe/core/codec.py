"""Import/export codec for the preset library.

Serializes a PresetLibrary to a portable JSON document and turns untrusted
JSON back into a valid library. Invalid groups and values are dropped
(never repaired) and missing ids are generated. An empty result falls back
to the built-in presets.

Document shape:
    {
      "version": 1,
      "groups": [
        {"id": ..., "name": ...,
         "target": {"section": "0th", "fieldKey": 272, "label": "Model"},
         "values": [{"id": ..., "label": ..., "value": ...}]}
      ],
      "activeGroupId": ...
    }

Legacy documents using "ifd"/"key" in targets, hex or decimal string keys,
or bare strings as values are accepted.
"""

import copy
import logging
from datetime import date
from typing import Any, Dict, Optional, Set, Tuple

# Use orjson for faster JSON handling if available
try:
    import orjson
    _USE_ORJSON = True
except ImportError:
    import json
    _USE_ORJSON = False

from epe.core.errors import ParseError
from epe.core.ids import generate_id
from epe.core.models import (
    ImportReport, PresetGroup, PresetLibrary, PresetTarget, PresetValue
)
from epe.core.values import normalize_section, parse_field_key

logger = logging.getLogger(__name__)

DEFAULT_PRESETS: Dict[str, Any] = {
    "version": 1,
    "activeGroupId": "film",
    "groups": [
        {
            "id": "film",
            "name": "Film",
            "target": {"section": "0th", "fieldKey": 0x0110, "label": "Model"},
            "values": [
                "kodak_ultramax_400",
                "kodak_gold_200",
                "kodak_ektar_100",
                "kodak_portra_160",
                "harman_phoenix_200",
                "cinestill_800T",
                "cinestill_400D",
                "kodak_ektarchrome_e100d",
                "kodak_ektarchrome_e100",
                "kentmere_pan_100",
            ],
        },
    ],
}


def dumps(data: Any) -> str:
    """Serialize to pretty-printed (2-space indent) JSON text."""
    if _USE_ORJSON:
        return orjson.dumps(data, option=orjson.OPT_INDENT_2).decode("utf-8")
    return json.dumps(data, indent=2, ensure_ascii=False)


def loads(text) -> Any:
    """Parse JSON text.

    Raises:
        ParseError: If text is not valid JSON.
    """
    try:
        if _USE_ORJSON:
            return orjson.loads(text)
        return json.loads(text)
    except (ValueError, TypeError) as e:
        raise ParseError(f"Invalid JSON: {e}") from e


def _clean_text(raw: Any) -> str:
    """Trimmed text for strings and plain numbers, '' otherwise."""
    if isinstance(raw, str):
        return raw.strip()
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return str(raw)
    return ""


def _clean_id(raw: Any) -> Optional[str]:
    if isinstance(raw, str) and raw.strip():
        return raw
    return None


def normalize_target(target: Any) -> Optional[PresetTarget]:
    """Validate a group target.

    Returns:
        PresetTarget, or None if the section is missing or the key is not a
        valid non-negative integer.
    """
    if not isinstance(target, dict):
        return None

    section = normalize_section(target.get("section", target.get("ifd")))
    if section is None:
        return None

    key = parse_field_key(target.get("fieldKey", target.get("key")))
    if key is None:
        return None

    label = target.get("label")
    return PresetTarget(
        section=section,
        field_key=key,
        label=label if isinstance(label, str) else "",
    )


def normalize_value_item(item: Any) -> Optional[PresetValue]:
    """Validate one preset value.

    Accepts a bare string or a {id, label, value} object. The label falls
    back to value and the value falls back to label.

    Returns:
        PresetValue, or None if the label is empty after trimming.
    """
    if isinstance(item, dict):
        label = _clean_text(item.get("label")) or _clean_text(item.get("value"))
        if not label:
            return None
        value = _clean_text(item.get("value")) or label
        return PresetValue(
            id=_clean_id(item.get("id")) or generate_id("value"),
            label=label,
            value=value,
        )

    label = _clean_text(item)
    if not label:
        return None
    return PresetValue(id=generate_id("value"), label=label, value=label)


def normalize_group(raw: Any, report: ImportReport) -> Optional[PresetGroup]:
    """Validate one group, dropping invalid or duplicate values.

    Dropped values are counted on the report.

    Returns:
        PresetGroup, or None if the name is empty or the target is invalid.
    """
    if not isinstance(raw, dict):
        return None

    name = raw.get("name").strip() if isinstance(raw.get("name"), str) else ""
    target = normalize_target(raw.get("target"))
    if not name or not target:
        return None

    group = PresetGroup(
        id=_clean_id(raw.get("id")) or generate_id("group"),
        name=name,
        target=target,
    )

    raw_values = raw.get("values")
    if not isinstance(raw_values, list):
        raw_values = []

    seen_ids: Set[str] = set()
    for raw_value in raw_values:
        value = normalize_value_item(raw_value)
        if value is None or group.has_value(value.value):
            report.values_dropped += 1
            continue
        if value.id in seen_ids:
            value.id = generate_id("value")
        seen_ids.add(value.id)
        group.values.append(value)

    return group


def normalize_presets(raw: Any) -> Tuple[PresetLibrary, ImportReport]:
    """Turn an arbitrary parsed document into a valid PresetLibrary.

    Guarantees a non-empty group list and an active_group_id that
    references one of the groups.

    Returns:
        Tuple of (library, report).
    """
    report = ImportReport()
    parsed = raw if isinstance(raw, dict) else {}
    raw_groups = parsed.get("groups")
    if not isinstance(raw_groups, list):
        raw_groups = []

    library = PresetLibrary()
    seen_ids: Set[str] = set()
    for raw_group in raw_groups:
        group = normalize_group(raw_group, report)
        if group is None:
            report.groups_dropped += 1
            continue
        if group.id in seen_ids:
            group.id = generate_id("group")
        seen_ids.add(group.id)
        library.groups.append(group)

    if not library.groups:
        logger.warning("No valid preset groups found, falling back to defaults")
        library, _ = normalize_presets(copy.deepcopy(DEFAULT_PRESETS))
        report.used_defaults = True
        return library, report

    active = parsed.get("activeGroupId")
    if library.find_group(active) is None:
        active = library.groups[0].id
    library.active_group_id = active

    return library, report


def default_library() -> PresetLibrary:
    """Build a fresh copy of the built-in presets."""
    library, _ = normalize_presets(copy.deepcopy(DEFAULT_PRESETS))
    return library


def export_json(library: PresetLibrary) -> str:
    """Serialize a library to pretty-printed JSON."""
    return dumps(library.to_dict())


def parse_presets_json(text) -> Tuple[PresetLibrary, ImportReport]:
    """Parse and normalize a preset document.

    Raises:
        ParseError: If text is not valid JSON.
    """
    return normalize_presets(loads(text))


def export_filename(today: Optional[date] = None) -> str:
    """Name for an exported preset file, e.g. exif-presets-2024-05-01.json."""
    today = today or date.today()
    return f"exif-presets-{today.isoformat()}.json"
