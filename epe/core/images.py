"""Loading JPEG images into memory and saving edited copies."""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

import filedate

from epe.core.models import ImageItem, LoadResult, ProgressCallback
from epe.core.utils import checkout_dir, get_unique_path

logger = logging.getLogger(__name__)

JPEG_EXTENSIONS = {".jpg", ".jpeg", ".jpe"}
JPEG_MAGIC = b"\xff\xd8"
OUTPUT_PREFIX = "exif-"

# Parallel readers; file reads are I/O bound
DEFAULT_READ_WORKERS = 4


def is_jpeg(data: bytes) -> bool:
    """Check for the JPEG start-of-image marker."""
    return data[:2] == JPEG_MAGIC


def expand_paths(paths: Iterable[str]) -> List[str]:
    """Expand directories to their JPEG files (non-recursive, sorted).

    Files are passed through unchanged so they can be reported as skipped
    if they turn out not to be JPEGs.
    """
    expanded: List[str] = []
    for path in paths:
        if os.path.isdir(path):
            for name in sorted(os.listdir(path)):
                full = os.path.join(path, name)
                if os.path.isfile(full) and os.path.splitext(name)[1].lower() in JPEG_EXTENSIONS:
                    expanded.append(full)
        else:
            expanded.append(path)
    return expanded


def _read_file(path: str) -> Tuple[str, Optional[bytes], Optional[str]]:
    """Read a file, returning (path, data, error)."""
    try:
        with open(path, "rb") as f:
            return path, f.read(), None
    except OSError as e:
        return path, None, str(e)


def load_images(
    paths: Iterable[str],
    next_id: Callable[[], str],
    on_progress: Optional[ProgressCallback] = None,
    workers: int = DEFAULT_READ_WORKERS
) -> LoadResult:
    """Read image files into memory, keeping only JPEGs.

    Args:
        paths: Files and/or directories.
        next_id: Factory for image ids, called once per loaded image in
            input order.
        on_progress: Optional callback (current, total, message).
        workers: Number of parallel readers.

    Returns:
        LoadResult with loaded images, skipped paths and a status message.
    """
    files = expand_paths(paths)
    result = LoadResult()

    if not files:
        result.message = "No files selected."
        return result

    total = len(files)
    with ThreadPoolExecutor(max_workers=max(1, workers)) as executor:
        # map() preserves input order so ids follow the user's selection
        for index, (path, data, error) in enumerate(executor.map(_read_file, files)):
            if on_progress:
                on_progress(index + 1, total, f"Loading {os.path.basename(path)}")
            if error is not None:
                logger.warning(f"Could not read {path}: {error}")
                result.skipped.append(path)
                continue
            if not is_jpeg(data):
                result.skipped.append(path)
                continue
            result.loaded.append(ImageItem(
                id=next_id(),
                name=os.path.basename(path),
                data=data,
                path=path,
            ))

    if not result.loaded:
        result.message = "Only JPEG images are supported."
    else:
        result.message = f"{len(result.loaded)} image(s) loaded."
    return result


def output_name(image: ImageItem) -> str:
    """File name used when saving an edited image."""
    return f"{OUTPUT_PREFIX}{image.name}"


def save_images(images: Sequence[ImageItem], dest_dir: str) -> List[str]:
    """Write images to dest_dir as exif-<name>, never overwriting.

    The source file's modification and creation times are copied onto each
    output; failing to do so is logged and not fatal.

    Returns:
        Paths written, in input order.

    Raises:
        OSError: If an image cannot be written.
        ValueError: If dest_dir exists as a file.
    """
    checkout_dir(dest_dir)
    written: List[str] = []
    for image in images:
        dest_path = get_unique_path(os.path.join(dest_dir, output_name(image)))
        with open(dest_path, "wb") as f:
            f.write(image.data)
        written.append(dest_path)

        if image.path and os.path.exists(image.path):
            try:
                stat = os.stat(image.path)
                modified = datetime.fromtimestamp(stat.st_mtime)
                created = datetime.fromtimestamp(getattr(stat, "st_birthtime", stat.st_mtime))
                filedate.File(dest_path).set(created=created, modified=modified)
            except Exception as e:
                logger.warning(f"Could not copy file dates to {dest_path}: {e}")
    return written
