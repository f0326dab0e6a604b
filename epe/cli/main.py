"""Command-line interface for EXIF Preset Editor."""

import argparse
import logging
import os
import shutil
import sys
from typing import Any, List, Optional, Tuple

from tqdm import tqdm

from epe import __version__
from epe.cli.wizard import choose_preset_value, run_wizard
from epe.core.applier import summarize_entries
from epe.core.config import Settings
from epe.core.errors import EPEError, ValidationError
from epe.core.exif import read_fields
from epe.core.models import PresetGroup, PresetValue
from epe.core.presets import PresetStore
from epe.core.session import EditorSession
from epe.core.tags import ALL_TAGS, find_tag
from epe.core.utils import normalize_path


# Program description
DESCRIPTION = """EXIF Preset Editor

Stage EXIF fields for a batch of JPEG images and write them in one pass.
Fields are given directly (--set 0th:Model="Kodak Gold 200") or picked from
reusable preset groups (--preset Film="Kodak Gold 200"). Preset groups are
stored in your config directory and can be exported and imported as JSON.

Edited images are saved as exif-<name> in the destination directory; the
originals are never modified.
"""

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_APPLY_FAILED = 2


def create_progress_callback(desc: str = "Processing"):
    """Create a tqdm-based progress callback.

    Args:
        desc: Description for progress bar.

    Returns:
        Tuple of (callback function, tqdm instance).
    """
    pbar = tqdm(total=100, desc=desc)

    # Leave room for progress bar elements (percentage, bar, counts)
    terminal_width = shutil.get_terminal_size().columns
    max_desc_width = max(20, min(80, terminal_width - 40))

    def callback(current: int, total: int, message: str):
        pbar.total = total
        pbar.n = current
        if len(message) > max_desc_width:
            message = message[:max_desc_width - 3] + "..."
        pbar.set_description(message)
        pbar.refresh()

    return callback, pbar


def parse_entry_arg(arg: str) -> Tuple[str, Any, str, Optional[str]]:
    """Parse an entry argument such as '0th:0x0110=Kodak' or 'Artist=Jane'.

    Returns:
        Tuple of (section, key, value, label).

    Raises:
        ValidationError: If the argument has no '=' or names an unknown tag.
    """
    field, sep, value = arg.partition("=")
    if not sep or not field.strip():
        raise ValidationError(f"Entry must look like SECTION:KEY=VALUE, got: {arg}")

    tag = find_tag(field)
    if tag:
        return tag.section, tag.key, value, tag.label

    if ":" in field:
        section, key = field.split(":", 1)
        return section.strip(), key.strip(), value, None

    raise ValidationError(f"Unknown tag: {field.strip()}. Use SECTION:KEY, e.g. 0th:0x0110")


def split_pair(arg: str, what: str) -> Tuple[str, str]:
    """Split 'GROUP=VALUE'.

    Raises:
        ValidationError: If either side is empty.
    """
    left, sep, right = arg.partition("=")
    if not sep or not left.strip() or not right.strip():
        raise ValidationError(f"{what} must look like GROUP=VALUE, got: {arg}")
    return left.strip(), right.strip()


def resolve_group(store: PresetStore, reference: str) -> PresetGroup:
    """Find a group by id or name.

    Raises:
        ValidationError: If no group matches.
    """
    group = store.find_group(reference)
    if not group:
        raise ValidationError(f"No preset group named {reference!r}.")
    return group


def resolve_value(group: PresetGroup, reference: str) -> PresetValue:
    """Find a value in a group by id, label or value (ignoring case).

    Raises:
        ValidationError: If no value matches.
    """
    found = group.find_value(reference)
    if found:
        return found
    lowered = reference.lower()
    for item in group.values:
        if item.label.lower() == lowered or item.value.lower() == lowered:
            return item
    raise ValidationError(f"Group {group.name!r} has no value {reference!r}.")


def print_tags() -> None:
    """Print the common tag catalog."""
    print("Common EXIF tags:")
    for tag in ALL_TAGS:
        print(f"  {tag.display}")


def print_presets(store: PresetStore) -> None:
    """Print preset groups; the active group is marked with '*'."""
    groups = store.groups
    if not groups:
        print("No preset groups.")
        return

    for group in groups:
        marker = "*" if group.id == store.active_group_id else " "
        target = group.target
        label = target.label or "tag"
        print(f"{marker} {group.name} -> {label} [{target.section}] (0x{target.field_key:04x})  id={group.id}")
        if not group.values:
            print("      (no values)")
        for value in group.values:
            print(f"      - {value.label}")


def run_preset_commands(session: EditorSession, parsed: argparse.Namespace) -> None:
    """Apply preset management flags in a fixed order.

    Import runs first and export last, so an export reflects every change
    made in the same run.

    Raises:
        EPEError: On validation or parse errors.
        OSError: If an import/export file cannot be accessed.
    """
    store = session.presets

    if parsed.import_presets:
        report = session.import_presets(normalize_path(parsed.import_presets))
        print(f"Imported presets from {parsed.import_presets}.")
        if report.used_defaults:
            print("Warning: the file contained no valid preset groups; built-in presets restored.")
        elif not report.clean:
            print(
                f"Warning: skipped {report.groups_dropped} invalid group(s) "
                f"and {report.values_dropped} invalid or duplicate value(s)."
            )

    if parsed.add_group:
        if not parsed.tag:
            raise ValidationError("--add-group requires --tag, e.g. --tag 0th:Model")
        tag = find_tag(parsed.tag)
        if not tag:
            raise ValidationError(f"Unknown tag: {parsed.tag}")
        group = store.add_group(parsed.add_group, tag.section, tag.key, tag.label)
        print(f"Group added: {group.name} ({tag.display})")

    for arg in parsed.add_value or []:
        group_ref, label = split_pair(arg, "--add-value")
        group = resolve_group(store, group_ref)
        store.add_value(group.id, label)
        print(f"Value added to {group.name}: {label}")

    for arg in parsed.remove_value or []:
        group_ref, value_ref = split_pair(arg, "--remove-value")
        group = resolve_group(store, group_ref)
        value = resolve_value(group, value_ref)
        store.remove_value(group.id, value.id)
        print(f"Value removed from {group.name}: {value.label}")

    for group_ref in parsed.remove_group or []:
        group = resolve_group(store, group_ref)
        store.remove_group(group.id)
        print(f"Group removed: {group.name}")

    if parsed.activate:
        group = resolve_group(store, parsed.activate)
        store.set_active_group(group.id)
        print(f"Active group: {group.name}")

    if parsed.export_presets is not None:
        dest = normalize_path(parsed.export_presets or os.getcwd())
        path = session.export_presets(dest)
        print(f"Preset JSON exported to {path}")

    if parsed.list_presets:
        print_presets(store)


def stage_entries(session: EditorSession, parsed: argparse.Namespace) -> None:
    """Stage --add, --set and --preset arguments in that order.

    Raises:
        ValidationError: On malformed specs or unknown groups/values.
    """
    for arg in parsed.add or []:
        session.entries.add_entry(*parse_entry_arg(arg))

    for arg in parsed.set or []:
        session.entries.set_entry(*parse_entry_arg(arg))

    for arg in parsed.preset or []:
        group_ref, value_ref = split_pair(arg, "--preset")
        group = resolve_group(session.presets, group_ref)
        value = resolve_value(group, value_ref)
        session.apply_preset_value(group.id, value.id)


def print_image_fields(session: EditorSession) -> None:
    """Print the current EXIF fields of every loaded image."""
    for image in session.images:
        print(f"\n{image.name} ({image.readable_size})")
        fields = read_fields(image.data)
        if not fields:
            print("  (no EXIF data)")
            continue
        for section, values in fields.items():
            print(f"  [{section}]")
            for name, text in values.items():
                print(f"    {name}: {text}")


def run_apply(
    session: EditorSession,
    settings: Settings,
    images: List[str],
    destination: Optional[str],
    dry_run: bool = False,
    show: bool = False
) -> int:
    """Load images, write staged entries and save the results.

    Args:
        session: Session with entries already staged.
        settings: User settings (output folder name, last output dir).
        images: Image files or folders.
        destination: Output directory, or None for <first image dir>/<output folder>.
        dry_run: Only report what would be written.
        show: Print current EXIF fields of the loaded images.

    Returns:
        Exit code.
    """
    callback, pbar = create_progress_callback("Loading")
    try:
        loaded = session.load_images(images, on_progress=callback)
    finally:
        pbar.close()

    for path in loaded.skipped:
        print(f"Skipped (not a readable JPEG): {path}")
    print(loaded.message)

    if show:
        print_image_fields(session)

    if not session.images:
        return EXIT_ERROR if not show else EXIT_OK

    if dry_run:
        print("\n=== DRY RUN MODE ===")
        print("No images will be modified.\n")
        effective = summarize_entries(session.entries.entries)
        if not effective:
            print("No EXIF entries staged.")
        for section, key, value in effective:
            print(f"  {key} [{section}] = {value!r}")
        print(f"\nWould write {len(effective)} field(s) to {len(session.images)} image(s).")
        print("\n=== END DRY RUN ===")
        return EXIT_OK

    if len(session.entries) == 0:
        if show:
            return EXIT_OK
        print("No EXIF entries to apply. Use --set, --add or --preset.")
        return EXIT_ERROR

    callback, pbar = create_progress_callback("Applying")
    try:
        result = session.apply(on_progress=callback)
    finally:
        pbar.close()

    print(result.message)
    if not result.success:
        return EXIT_APPLY_FAILED

    dest = destination or settings.default_destination(session.images[0].path)
    written = session.save_images(dest)
    settings.remember_output_dir(dest)

    print(f"\nSaved {len(written)} image(s) to:\n  {dest}")
    return EXIT_OK


def run_wizard_flow(session: EditorSession, settings: Settings) -> int:
    """Interactive mode: pick an image folder and a value from the active group."""
    path = run_wizard()
    if not path:
        return EXIT_ERROR

    group = session.presets.active_group()
    value = choose_preset_value(group)
    if not value:
        return EXIT_ERROR

    session.apply_preset_value(group.id, value.id)
    return run_apply(session, settings, [normalize_path(path)], None)


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        args: Arguments to parse (default: sys.argv[1:]).

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        description=DESCRIPTION,
        formatter_class=argparse.RawTextHelpFormatter
    )

    parser.add_argument(
        "-V", "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    parser.add_argument(
        "-i", "--image",
        action="append",
        help="JPEG file or folder of JPEGs to edit (repeatable)",
        type=str,
        default=None
    )

    parser.add_argument(
        "-d", "--destination",
        help="Directory where edited images are saved",
        type=str,
        default=None
    )

    parser.add_argument(
        "--set",
        action="append",
        metavar="SECTION:KEY=VALUE",
        help="Stage a field, replacing any staged value for the same field",
        default=None
    )

    parser.add_argument(
        "--add",
        action="append",
        metavar="SECTION:KEY=VALUE",
        help="Stage a field entry (repeats allowed; last one wins)",
        default=None
    )

    parser.add_argument(
        "--preset",
        action="append",
        metavar="GROUP=VALUE",
        help="Stage a value from a preset group",
        default=None
    )

    parser.add_argument(
        "--dry-run",
        help="Show what would be written without modifying images",
        action="store_true"
    )

    parser.add_argument(
        "--show",
        help="Print the current EXIF fields of the loaded images",
        action="store_true"
    )

    parser.add_argument(
        "--list-tags",
        help="List common EXIF tags",
        action="store_true"
    )

    parser.add_argument(
        "--list-presets",
        help="List preset groups and their values",
        action="store_true"
    )

    parser.add_argument(
        "--add-group",
        metavar="NAME",
        help="Create a preset group (requires --tag)",
        default=None
    )

    parser.add_argument(
        "--tag",
        metavar="REF",
        help="Target field for --add-group, e.g. Model or 0th:0x0110",
        default=None
    )

    parser.add_argument(
        "--add-value",
        action="append",
        metavar="GROUP=VALUE",
        help="Add a value to a preset group",
        default=None
    )

    parser.add_argument(
        "--remove-group",
        action="append",
        metavar="GROUP",
        help="Remove a preset group",
        default=None
    )

    parser.add_argument(
        "--remove-value",
        action="append",
        metavar="GROUP=VALUE",
        help="Remove a value from a preset group",
        default=None
    )

    parser.add_argument(
        "--activate",
        metavar="GROUP",
        help="Make a preset group active",
        default=None
    )

    parser.add_argument(
        "--import-presets",
        metavar="FILE",
        help="Replace preset groups with those in a JSON file",
        default=None
    )

    parser.add_argument(
        "--export-presets",
        metavar="DIR",
        nargs="?",
        const="",
        help="Export preset groups to DIR/exif-presets-<date>.json (default: current dir)",
        default=None
    )

    parser.add_argument(
        "--config-dir",
        metavar="DIR",
        help="Directory for stored presets and settings",
        default=None
    )

    parser.add_argument(
        "-v", "--verbose",
        help="Show informational messages and write activity.txt",
        action="store_true"
    )

    return parser.parse_args(args)


def _has_preset_actions(parsed: argparse.Namespace) -> bool:
    return any([
        parsed.import_presets,
        parsed.add_group,
        parsed.add_value,
        parsed.remove_value,
        parsed.remove_group,
        parsed.activate,
        parsed.export_presets is not None,
        parsed.list_presets,
    ])


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point for CLI.

    Args:
        args: Command-line arguments (default: sys.argv[1:]).

    Returns:
        Exit code (0 for success, 1 for errors, 2 if applying failed).
    """
    parsed = parse_args(args)

    config_dir = normalize_path(parsed.config_dir) if parsed.config_dir else None
    settings = Settings(config_dir)
    verbose = parsed.verbose or bool(settings.get("verbose", False))

    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s"
    )

    if parsed.list_tags:
        print_tags()
        if not (parsed.image or _has_preset_actions(parsed)):
            return EXIT_OK

    destination = normalize_path(parsed.destination) if parsed.destination else None

    try:
        with EditorSession.open(config_dir, verbose=verbose) as session:
            if _has_preset_actions(parsed):
                run_preset_commands(session, parsed)

            if parsed.image:
                stage_entries(session, parsed)
                images = [normalize_path(p) for p in parsed.image]
                return run_apply(
                    session, settings, images, destination,
                    dry_run=parsed.dry_run, show=parsed.show
                )

            if parsed.add or parsed.set or parsed.preset:
                print("Error: no images given. Use -i/--image.")
                return EXIT_ERROR

            if _has_preset_actions(parsed):
                return EXIT_OK

            return run_wizard_flow(session, settings)

    except EPEError as e:
        print(f"Error: {e}")
        return EXIT_ERROR
    except (OSError, ValueError) as e:
        print(f"Error: {e}")
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
