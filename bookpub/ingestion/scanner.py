"""Drop folder scanning."""

from pathlib import Path

from bookpub.errors import DirectoryNotFoundError, PathNotADirectoryError


def validate_drop_directory(directory: str | Path) -> Path:
    """Check that a drop directory exists and is a directory.

    Raises:
        DirectoryNotFoundError: If the path does not exist.
        PathNotADirectoryError: If the path is a file.
    """
    path = Path(directory)
    if not path.exists():
        raise DirectoryNotFoundError(f"Directory to check does not exist: {path}")
    if not path.is_dir():
        raise PathNotADirectoryError(f"The file path must be to a directory: {path}")
    return path


def list_archives(directory: str | Path, extension: str) -> list[Path]:
    """List the archive files with the given extension in a directory.

    Matching is case-insensitive and does not descend into subdirectories.

    Args:
        directory: The drop directory.
        extension: File extension, with or without the leading dot.

    Returns:
        Matching files sorted by filename.
    """
    path = validate_drop_directory(directory)
    suffix = "." + extension.lstrip(".").lower()
    return sorted(
        (entry for entry in path.iterdir() if entry.is_file() and entry.suffix.lower() == suffix),
        key=lambda entry: entry.name,
    )
