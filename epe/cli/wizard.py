"""Interactive wizard mode for EXIF Preset Editor."""

from typing import Optional

from epe.core.models import PresetGroup, PresetValue


def run_wizard() -> Optional[str]:
    """Ask for the images to edit when no image arguments were given.

    Returns:
        Stripped path, or None if blank or cancelled.
    """
    print("\nNo images given. Starting interactive mode.")

    try:
        path = input("Enter path to a JPEG or a folder of JPEGs: ")
        return path.strip() if path and path.strip() else None
    except (KeyboardInterrupt, EOFError):
        print("\nCancelled.")
        return None


def choose_preset_value(group: Optional[PresetGroup]) -> Optional[PresetValue]:
    """Ask the user to pick a value from a preset group by number.

    Returns:
        The chosen value, or None if cancelled or the group is empty.
    """
    if group is None or not group.values:
        print("The active preset group has no values. Add some with --add-value.")
        return None

    print(f"\nPreset group: {group.name}")
    for index, value in enumerate(group.values, start=1):
        print(f"  {index}. {value.label}")

    try:
        answer = input("Choose a value to apply: ").strip()
    except (KeyboardInterrupt, EOFError):
        print("\nCancelled.")
        return None

    if not answer.isdigit() or not 1 <= int(answer) <= len(group.values):
        print("Invalid choice.")
        return None
    return group.values[int(answer) - 1]
