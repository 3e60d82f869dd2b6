"""Filesystem helpers for the CLI and scripts."""

from pathlib import Path

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".bmp", ".webp")


def get_files(root: Path, extensions: tuple[str, ...]) -> list[Path]:
    """Files under ``root`` whose lowercase suffix is in ``extensions``.

    ``root`` may also be a single file, returned as-is when it matches.

    Returns:
        Sorted list of matching file paths.
    """
    if root.is_file():
        return [root] if root.suffix.lower() in extensions else []
    return sorted(
        p for p in root.rglob("*") if p.is_file() and p.suffix.lower() in extensions
    )
