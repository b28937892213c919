"""List the children of a folder for sibling navigation."""

from pathlib import Path

from image_page.navigate import DirectoryEntry


def list_directory(folder: Path) -> list[DirectoryEntry]:
    """Return one DirectoryEntry per child of folder (non-recursive)."""
    if not folder.is_dir():
        raise NotADirectoryError(f"Not a directory: {folder}")
    return [DirectoryEntry(name=p.name, is_dir=p.is_dir()) for p in folder.iterdir()]
