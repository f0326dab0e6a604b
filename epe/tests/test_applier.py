"""Tests for epe.core.applier module."""

from unittest.mock import MagicMock

import piexif
import pytest

from epe.core.applier import (
    APPLY_FAILED_MESSAGE,
    NO_ENTRIES_MESSAGE,
    NO_IMAGES_MESSAGE,
    apply_entries,
    apply_to_image,
    merge_entries,
    summarize_entries,
)
from epe.core.entries import EntryStore
from epe.core.errors import ApplyFailure
from epe.core.exif import PiexifCodec
from epe.core.models import ImageItem


@pytest.fixture
def entries():
    store = EntryStore()
    store.set_entry("0th", 0x0110, "Kodak Gold 200", label="Model")
    store.set_entry("Exif", 0x8827, "200", label="ISOSpeedRatings")
    return store.entries


@pytest.fixture
def images():
    return [
        ImageItem(id="1", name="a.jpg", data=b"\xff\xd8one"),
        ImageItem(id="2", name="b.jpg", data=b"\xff\xd8two"),
    ]


@pytest.fixture
def codec():
    mock = MagicMock()
    mock.load.return_value = {"0th": {0x010F: "Kodak"}, "Exif": {}}
    mock.dump.return_value = b"EXIF"
    mock.insert.side_effect = lambda exif, image: image + b"+" + exif
    return mock


class TestMergeEntries:
    """Tests for merge_entries() function."""

    def test_merges_into_sections(self, entries):
        merged = merge_entries({"0th": {0x010F: "Kodak"}}, entries)

        assert merged["0th"] == {0x010F: "Kodak", 0x0110: "Kodak Gold 200"}
        assert merged["Exif"] == {0x8827: 200}

    def test_later_entries_win(self):
        store = EntryStore()
        store.add_entry("0th", 272, "A")
        store.add_entry("0th", 272, "B")

        merged = merge_entries({}, store.entries)

        assert merged["0th"][272] == "B"

    def test_input_not_modified(self, entries):
        sections = {"0th": {0x010F: "Kodak"}}

        merge_entries(sections, entries)

        assert sections == {"0th": {0x010F: "Kodak"}}


class TestApplyToImage:
    """Tests for apply_to_image() function."""

    def test_returns_new_image(self, entries, images, codec):
        result = apply_to_image(images[0], entries, codec)

        assert result.data == b"\xff\xd8one+EXIF"
        assert result.id == "1"
        assert images[0].data == b"\xff\xd8one"

    def test_codec_error_chained(self, entries, images, codec):
        codec.dump.side_effect = ValueError("bad value")

        with pytest.raises(ApplyFailure) as exc_info:
            apply_to_image(images[0], entries, codec)

        assert isinstance(exc_info.value.__cause__, ValueError)


class TestApplyEntries:
    """Tests for apply_entries() function."""

    def test_no_images(self, entries, codec):
        result = apply_entries(entries, [], codec)

        assert not result.success
        assert result.message == NO_IMAGES_MESSAGE
        codec.load.assert_not_called()

    def test_no_images_checked_before_entries(self, codec):
        result = apply_entries([], [], codec)

        assert result.message == NO_IMAGES_MESSAGE

    def test_no_entries(self, images, codec):
        result = apply_entries([], images, codec)

        assert not result.success
        assert result.message == NO_ENTRIES_MESSAGE
        assert result.images == images
        codec.load.assert_not_called()

    def test_success(self, entries, images, codec):
        result = apply_entries(entries, images, codec)

        assert result.success
        assert result.message == "2 entries applied to 2 image(s)."
        assert result.applied_count == 2
        assert [img.data for img in result.images] == [b"\xff\xd8one+EXIF", b"\xff\xd8two+EXIF"]
        assert [img.id for img in result.images] == ["1", "2"]

    def test_dump_receives_merged_sections(self, entries, images, codec):
        apply_entries(entries, images[:1], codec)

        sections = codec.dump.call_args[0][0]
        assert sections["0th"][0x0110] == "Kodak Gold 200"
        assert sections["0th"][0x010F] == "Kodak"
        assert sections["Exif"][0x8827] == 200

    def test_failure_is_all_or_nothing(self, entries, images, codec):
        calls = []

        def insert(exif, image):
            calls.append(image)
            if len(calls) == 2:
                raise RuntimeError("codec exploded")
            return image + b"+" + exif

        codec.insert.side_effect = insert

        result = apply_entries(entries, images, codec)

        assert not result.success
        assert result.message == APPLY_FAILED_MESSAGE
        assert result.applied_count == 0
        assert [img.data for img in result.images] == [b"\xff\xd8one", b"\xff\xd8two"]

    def test_failure_cause_logged(self, entries, images, codec, caplog):
        codec.load.side_effect = ValueError("not a jpeg")

        apply_entries(entries, images, codec)

        assert "not a jpeg" in caplog.text

    def test_progress_reported(self, entries, images, codec):
        progress = MagicMock()

        apply_entries(entries, images, codec, on_progress=progress)

        assert progress.call_args_list[0][0][:2] == (0, 2)
        assert progress.call_args_list[-1][0] == (2, 2, "Done")

    def test_real_codec(self, entries, jpeg_bytes):
        images = [ImageItem(id="1", name="a.jpg", data=jpeg_bytes)]

        result = apply_entries(entries, images, PiexifCodec())

        assert result.success
        written = piexif.load(result.images[0].data)
        assert written["0th"][0x0110] == b"Kodak Gold 200"
        assert written["Exif"][0x8827] == 200

    def test_real_codec_bad_value_fails_batch(self, jpeg_bytes):
        store = EntryStore()
        store.set_entry("Exif", 0x8827, "fast")
        images = [ImageItem(id="1", name="a.jpg", data=jpeg_bytes)]

        result = apply_entries(store.entries, images, PiexifCodec())

        assert not result.success
        assert result.images[0].data == jpeg_bytes


class TestSummarizeEntries:
    """Tests for summarize_entries() function."""

    def test_last_wins(self):
        store = EntryStore()
        store.add_entry("0th", 272, "A", label="Model")
        store.add_entry("Exif", 34855, "100")
        store.add_entry("0th", 272, "B", label="Model")

        summary = summarize_entries(store.entries)

        assert summary == [("0th", "Model", "B"), ("Exif", "0x8827", 100)]
