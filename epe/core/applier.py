"""Writing staged metadata entries into a batch of images.

The batch is all-or-nothing: every output is computed before any image is
replaced, so a codec failure on the third image leaves the first two
untouched as well.
"""

import logging
from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Tuple

from epe.core.errors import ApplyFailure
from epe.core.exif import ExifCodec
from epe.core.models import ApplyResult, ImageItem, MetadataEntry, ProgressCallback

logger = logging.getLogger(__name__)

NO_IMAGES_MESSAGE = "Please load at least one image."
NO_ENTRIES_MESSAGE = "No EXIF entries to apply."
APPLY_FAILED_MESSAGE = "Failed to apply EXIF data to the image."


def merge_entries(sections: Dict, entries: Sequence[MetadataEntry]) -> Dict:
    """Merge entries into loaded EXIF sections by (section, field_key).

    Later entries overwrite earlier ones for the same field. The input
    mapping is not modified.

    Returns:
        New sections mapping.
    """
    merged = {
        name: dict(fields) if isinstance(fields, dict) else fields
        for name, fields in sections.items()
    }
    for entry in entries:
        target = merged.get(entry.section)
        if not isinstance(target, dict):
            target = {}
            merged[entry.section] = target
        target[entry.field_key] = entry.value
    return merged


def apply_to_image(image: ImageItem, entries: Sequence[MetadataEntry], codec: ExifCodec) -> ImageItem:
    """Run load -> merge -> dump -> insert for one image.

    Returns:
        New ImageItem with updated data (input is not modified).

    Raises:
        ApplyFailure: If any codec step fails. The cause is chained.
    """
    try:
        sections = codec.load(image.data)
        exif_bytes = codec.dump(merge_entries(sections, entries))
        data = codec.insert(exif_bytes, image.data)
    except Exception as e:
        raise ApplyFailure(APPLY_FAILED_MESSAGE) from e
    return replace(image, data=data)


def apply_entries(
    entries: Sequence[MetadataEntry],
    images: Sequence[ImageItem],
    codec: ExifCodec,
    on_progress: Optional[ProgressCallback] = None
) -> ApplyResult:
    """Write all entries into all images.

    Fails fast without touching the codec when there are no images or no
    entries. Any codec failure fails the whole batch with a fixed message;
    the specific cause is logged.

    Args:
        entries: Entries in staging order.
        images: Images to update.
        codec: EXIF codec.
        on_progress: Optional callback (current, total, message).

    Returns:
        ApplyResult. On success `images` holds the updated images in input
        order; on failure it holds the original images.
    """
    if not images:
        return ApplyResult(success=False, message=NO_IMAGES_MESSAGE)

    if not entries:
        return ApplyResult(success=False, message=NO_ENTRIES_MESSAGE, images=list(images))

    total = len(images)
    staged: List[ImageItem] = []
    for index, image in enumerate(images):
        if on_progress:
            on_progress(index, total, f"Writing EXIF to {image.name}")
        try:
            staged.append(apply_to_image(image, entries, codec))
        except ApplyFailure as e:
            logger.error(f"EXIF apply error for {image.name}: {e.__cause__!r}")
            return ApplyResult(success=False, message=str(e), images=list(images))

    if on_progress:
        on_progress(total, total, "Done")

    return ApplyResult(
        success=True,
        message=f"{len(entries)} entries applied to {total} image(s).",
        images=staged,
        applied_count=total,
    )


def summarize_entries(entries: Sequence[MetadataEntry]) -> List[Tuple[str, str, object]]:
    """Effective (section, key_display, value) per field after last-wins merging."""
    effective: Dict[Tuple[str, int], MetadataEntry] = {}
    for entry in entries:
        effective[(entry.section, entry.field_key)] = entry
    return [(e.section, e.display_key, e.value) for e in effective.values()]
