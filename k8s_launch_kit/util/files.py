"""
File utility functions.
"""

import shutil
from pathlib import Path


def ensure_dir(path: str | Path) -> Path:
    """Ensure directory exists, creating if necessary."""
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def write_text(path: str | Path, content: str) -> None:
    """Write text to file, creating parent directories if needed."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(content)


def replace_directory(path: str | Path, files: dict[str, str]) -> list[Path]:
    """
    Replace the contents of a directory with the given files.

    The directory is removed first, so files from an earlier run never mix
    with the new ones.

    Args:
        path: Directory to (re)create
        files: Mapping of filename to content

    Returns:
        Paths written, in filename order
    """
    directory = Path(path)
    if directory.exists():
        shutil.rmtree(directory)
    ensure_dir(directory)

    written = []
    for filename in sorted(files):
        target = directory / filename
        write_text(target, files[filename])
        written.append(target)
    return written
