"""Pytest configuration and fixtures."""

import io
import os
import shutil
import tempfile
from typing import Generator

import pytest
from PIL import Image

from epe.core.storage import MemoryStorage


@pytest.fixture
def temp_dir() -> Generator[str, None, None]:
    """Create a temporary directory for tests."""
    tmpdir = tempfile.mkdtemp()
    yield tmpdir
    shutil.rmtree(tmpdir)


@pytest.fixture
def memory_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def jpeg_bytes() -> bytes:
    """A small real JPEG with no EXIF segment."""
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), (200, 120, 40)).save(buffer, format="JPEG")
    return buffer.getvalue()


@pytest.fixture
def sample_jpeg(temp_dir: str, jpeg_bytes: bytes) -> str:
    """Write a single JPEG and return its path."""
    path = os.path.join(temp_dir, "photo.jpg")
    with open(path, "wb") as f:
        f.write(jpeg_bytes)
    return path


@pytest.fixture
def sample_folder(temp_dir: str, jpeg_bytes: bytes) -> str:
    """Create a folder of mixed files.

    Structure:
        temp_dir/roll/
        ├── a.jpg          (real JPEG)
        ├── b.JPG          (real JPEG, upper-case extension)
        ├── fake.jpg       (JPEG extension, not JPEG data)
        └── notes.txt
    """
    folder = os.path.join(temp_dir, "roll")
    os.makedirs(folder)

    for name in ("a.jpg", "b.JPG"):
        with open(os.path.join(folder, name), "wb") as f:
            f.write(jpeg_bytes)

    with open(os.path.join(folder, "fake.jpg"), "wb") as f:
        f.write(b"not really a jpeg")

    with open(os.path.join(folder, "notes.txt"), "w") as f:
        f.write("shot on a rainy day")

    return folder
