"""Command-line interface for EXIF Preset Editor."""
