"""Tests for epe.cli.main module."""

import json
import os
from unittest.mock import MagicMock, patch

import piexif
import pytest

from epe.cli.main import (
    create_progress_callback,
    main,
    parse_args,
    parse_entry_arg,
    split_pair,
)
from epe.core.config import Settings
from epe.core.errors import ValidationError
from epe.core.models import ApplyResult


class TestParseArgs:
    """Tests for parse_args() function."""

    def test_no_args_returns_defaults(self):
        args = parse_args([])

        assert args.image is None
        assert args.destination is None
        assert args.set is None
        assert args.preset is None
        assert args.dry_run is False
        assert args.export_presets is None

    def test_version_flag_exits(self):
        with pytest.raises(SystemExit) as exc_info:
            parse_args(["--version"])
        assert exc_info.value.code == 0

    def test_image_repeatable(self):
        args = parse_args(["-i", "a.jpg", "--image", "b.jpg"])

        assert args.image == ["a.jpg", "b.jpg"]

    def test_entry_flags_repeatable(self):
        args = parse_args(["--set", "Model=A", "--set", "Make=B", "--add", "Artist=C"])

        assert args.set == ["Model=A", "Make=B"]
        assert args.add == ["Artist=C"]

    def test_export_presets_without_dir(self):
        assert parse_args(["--export-presets"]).export_presets == ""

    def test_export_presets_with_dir(self):
        assert parse_args(["--export-presets", "/tmp"]).export_presets == "/tmp"


class TestParseEntryArg:
    """Tests for parse_entry_arg() function."""

    def test_section_and_hex_key(self):
        assert parse_entry_arg("0th:0x0110=Kodak Gold 200") == ("0th", 0x0110, "Kodak Gold 200", "Model")

    def test_catalog_label(self):
        assert parse_entry_arg("Artist=Jane Doe") == ("0th", 0x013B, "Jane Doe", "Artist")

    def test_value_may_contain_equals(self):
        assert parse_entry_arg("Model=a=b")[2] == "a=b"

    def test_unknown_section_passed_through(self):
        assert parse_entry_arg("Maker:0x10=x") == ("Maker", "0x10", "x", None)

    @pytest.mark.parametrize("arg", ["Model", "=x", "Unknown=x"])
    def test_invalid(self, arg):
        with pytest.raises(ValidationError):
            parse_entry_arg(arg)


class TestSplitPair:
    """Tests for split_pair() function."""

    def test_splits(self):
        assert split_pair(" Film = Kodak Gold 200 ", "--preset") == ("Film", "Kodak Gold 200")

    @pytest.mark.parametrize("arg", ["Film", "Film=", "=Kodak"])
    def test_invalid(self, arg):
        with pytest.raises(ValidationError):
            split_pair(arg, "--preset")


class TestCreateProgressCallback:
    """Tests for create_progress_callback() function."""

    def test_returns_callback_and_pbar(self):
        callback, pbar = create_progress_callback("Test")

        assert callable(callback)
        pbar.close()

    def test_callback_updates_pbar(self):
        callback, pbar = create_progress_callback("Test")

        callback(5, 10, "Loading a.jpg")

        assert pbar.n == 5
        assert pbar.total == 10
        pbar.close()

    def test_truncates_long_messages(self):
        with patch("epe.cli.main.shutil.get_terminal_size") as mock_size:
            mock_size.return_value = MagicMock(columns=60)
            callback, pbar = create_progress_callback("Test")

        callback(1, 2, "x" * 200)

        assert "..." in pbar.desc
        assert len(pbar.desc) < 30
        pbar.close()


class TestMainPresets:
    """Tests for preset management through main()."""

    def test_list_tags(self, temp_dir, capsys):
        assert main(["--config-dir", temp_dir, "--list-tags"]) == 0

        assert "Model [0th] (0x0110)" in capsys.readouterr().out

    def test_list_presets(self, temp_dir, capsys):
        assert main(["--config-dir", temp_dir, "--list-presets"]) == 0

        out = capsys.readouterr().out
        assert "* Film" in out
        assert "kodak_gold_200" in out

    def test_list_presets_with_undecodable_store(self, temp_dir, capsys):
        with open(os.path.join(temp_dir, "exif_preset_groups.json"), "wb") as f:
            f.write(b"\xff\xfe{garbage")

        assert main(["--config-dir", temp_dir, "--list-presets"]) == 0

        assert "* Film" in capsys.readouterr().out

    def test_add_group_and_value(self, temp_dir, capsys):
        assert main([
            "--config-dir", temp_dir,
            "--add-group", "Lens", "--tag", "Exif:0xA434",
            "--add-value", "Lens=50mm",
            "--list-presets",
        ]) == 0

        out = capsys.readouterr().out
        assert "* Lens" in out
        assert "50mm" in out
        with open(os.path.join(temp_dir, "exif_preset_groups.json"), encoding="utf-8") as f:
            stored = json.load(f)
        assert stored["groups"][1]["target"] == {"section": "Exif", "fieldKey": 0xA434, "label": "LensModel"}

    def test_add_group_requires_tag(self, temp_dir, capsys):
        assert main(["--config-dir", temp_dir, "--add-group", "Lens"]) == 1

        assert "--tag" in capsys.readouterr().out

    def test_duplicate_value_rejected(self, temp_dir, capsys):
        assert main(["--config-dir", temp_dir, "--add-value", "Film=KODAK_GOLD_200"]) == 1

        assert "already exists" in capsys.readouterr().out

    def test_remove_value_and_group(self, temp_dir):
        assert main(["--config-dir", temp_dir, "--remove-value", "Film=kodak_gold_200"]) == 0
        assert main(["--config-dir", temp_dir, "--remove-group", "Film"]) == 0

        with open(os.path.join(temp_dir, "exif_preset_groups.json"), encoding="utf-8") as f:
            stored = json.load(f)
        assert stored["groups"] == []
        assert stored["activeGroupId"] is None

    def test_unknown_group(self, temp_dir, capsys):
        assert main(["--config-dir", temp_dir, "--activate", "Nope"]) == 1

        assert "No preset group named" in capsys.readouterr().out

    def test_export_and_import(self, temp_dir):
        config = os.path.join(temp_dir, "config")
        export_dir = os.path.join(temp_dir, "export")

        assert main(["--config-dir", config, "--export-presets", export_dir]) == 0

        exported = os.listdir(export_dir)
        assert len(exported) == 1
        assert exported[0].startswith("exif-presets-")

        other = os.path.join(temp_dir, "other")
        assert main(["--config-dir", other, "--import-presets", os.path.join(export_dir, exported[0])]) == 0

    def test_import_invalid_json(self, temp_dir, capsys):
        path = os.path.join(temp_dir, "bad.json")
        with open(path, "w") as f:
            f.write("{oops")

        assert main(["--config-dir", os.path.join(temp_dir, "config"), "--import-presets", path]) == 1

        assert "Invalid JSON" in capsys.readouterr().out

    def test_import_empty_document_warns(self, temp_dir, capsys):
        path = os.path.join(temp_dir, "empty.json")
        with open(path, "w") as f:
            f.write("{}")

        assert main(["--config-dir", os.path.join(temp_dir, "config"), "--import-presets", path]) == 0

        assert "built-in presets restored" in capsys.readouterr().out


class TestMainApply:
    """Tests for applying entries through main()."""

    @pytest.fixture
    def config_dir(self, temp_dir):
        return os.path.join(temp_dir, "config")

    def test_set_writes_image(self, sample_jpeg, temp_dir, config_dir):
        dest = os.path.join(temp_dir, "out")

        with patch("epe.core.images.filedate"):
            code = main([
                "--config-dir", config_dir,
                "-i", sample_jpeg,
                "--set", "Model=Kodak Gold 200",
                "--set", "Exif:ISOSpeedRatings=200",
                "-d", dest,
            ])

        assert code == 0
        written = piexif.load(os.path.join(dest, "exif-photo.jpg"))
        assert written["0th"][0x0110] == b"Kodak Gold 200"
        assert written["Exif"][0x8827] == 200

    def test_preset_writes_image(self, sample_jpeg, temp_dir, config_dir):
        dest = os.path.join(temp_dir, "out")

        with patch("epe.core.images.filedate"):
            code = main(["--config-dir", config_dir, "-i", sample_jpeg, "--preset", "Film=kodak_gold_200", "-d", dest])

        assert code == 0
        written = piexif.load(os.path.join(dest, "exif-photo.jpg"))
        assert written["0th"][0x0110] == b"kodak_gold_200"

    def test_default_destination_and_settings(self, sample_jpeg, temp_dir, config_dir):
        with patch("epe.core.images.filedate"):
            code = main(["--config-dir", config_dir, "-i", sample_jpeg, "--set", "Artist=Jane"])

        expected = os.path.join(temp_dir, "exif_output")
        assert code == 0
        assert os.path.exists(os.path.join(expected, "exif-photo.jpg"))
        assert Settings(config_dir).get("last_output_dir") == expected

    def test_original_untouched(self, sample_jpeg, jpeg_bytes, temp_dir, config_dir):
        with patch("epe.core.images.filedate"):
            main(["--config-dir", config_dir, "-i", sample_jpeg, "--set", "Artist=Jane"])

        with open(sample_jpeg, "rb") as f:
            assert f.read() == jpeg_bytes

    def test_dry_run(self, sample_jpeg, temp_dir, config_dir, capsys):
        code = main(["--config-dir", config_dir, "-i", sample_jpeg, "--set", "Model=A", "--set", "Model=B", "--dry-run"])

        out = capsys.readouterr().out
        assert code == 0
        assert "DRY RUN" in out
        assert "Model [0th] = 'B'" in out
        assert not os.path.exists(os.path.join(temp_dir, "exif_output"))

    def test_show(self, sample_jpeg, config_dir, capsys):
        assert main(["--config-dir", config_dir, "-i", sample_jpeg, "--show"]) == 0

        assert "(no EXIF data)" in capsys.readouterr().out

    def test_invalid_key(self, sample_jpeg, config_dir, capsys):
        assert main(["--config-dir", config_dir, "-i", sample_jpeg, "--set", "0th:zz=x"]) == 1

        assert "decimal or hex" in capsys.readouterr().out

    def test_no_entries(self, sample_jpeg, config_dir):
        assert main(["--config-dir", config_dir, "-i", sample_jpeg]) == 1

    def test_no_jpegs(self, sample_folder, config_dir, capsys):
        notes = os.path.join(sample_folder, "notes.txt")

        assert main(["--config-dir", config_dir, "-i", notes, "--set", "Model=A"]) == 1

        assert "Only JPEG images are supported." in capsys.readouterr().out

    def test_entries_without_images(self, config_dir, capsys):
        assert main(["--config-dir", config_dir, "--set", "Model=A"]) == 1

        assert "no images given" in capsys.readouterr().out

    def test_apply_failure_returns_2(self, sample_jpeg, config_dir, capsys):
        failed = ApplyResult(success=False, message="Failed to apply EXIF data to the image.")

        with patch("epe.core.session.apply_entries", return_value=failed):
            code = main(["--config-dir", config_dir, "-i", sample_jpeg, "--set", "Model=A"])

        assert code == 2
        assert "Failed to apply EXIF data" in capsys.readouterr().out


class TestMainWizard:
    """Tests for wizard mode."""

    def test_wizard_cancelled(self, temp_dir):
        with patch("epe.cli.main.run_wizard", return_value=None) as mock_wizard:
            assert main(["--config-dir", temp_dir]) == 1

        mock_wizard.assert_called_once()

    def test_wizard_applies_chosen_value(self, temp_dir, sample_jpeg):
        config_dir = os.path.join(temp_dir, "config")

        with patch("epe.cli.main.run_wizard", return_value=sample_jpeg), \
                patch("epe.cli.main.choose_preset_value", side_effect=lambda group: group.values[1]), \
                patch("epe.core.images.filedate"):
            code = main(["--config-dir", config_dir])

        assert code == 0
        written = piexif.load(os.path.join(temp_dir, "exif_output", "exif-photo.jpg"))
        assert written["0th"][0x0110] == b"kodak_gold_200"

    def test_wizard_no_value_chosen(self, temp_dir, sample_jpeg):
        with patch("epe.cli.main.run_wizard", return_value=sample_jpeg), \
                patch("epe.cli.main.choose_preset_value", return_value=None):
            assert main(["--config-dir", temp_dir]) == 1
