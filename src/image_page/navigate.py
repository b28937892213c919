"""Order sibling images in a directory and find a target's neighbours."""

from dataclasses import dataclass, field

IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png"})


@dataclass(frozen=True)
class DirectoryEntry:
    """One child of a directory listing."""

    name: str
    is_dir: bool = False


@dataclass
class NavigationResult:
    """Ordered siblings plus the target's position and neighbours."""

    ordered_names: list[str] = field(default_factory=list)
    target_index: int | None = None
    previous: str | None = None
    next: str | None = None

    @property
    def found(self) -> bool:
        return self.target_index is not None


def _extension(name: str) -> str:
    """Return the substring from the last '.' to the end, or '' when there is none."""
    dot = name.rfind(".")
    return name[dot:] if dot >= 0 else ""


def has_image_extension(name: str, extensions: frozenset[str] | set[str] = IMAGE_EXTENSIONS) -> bool:
    """True if the name's extension, lower-cased, is one of the accepted extensions."""
    ext = _extension(name)
    return bool(ext) and ext.lower() in extensions


def eligible_names(entries: list[DirectoryEntry], extensions: frozenset[str] | set[str] = IMAGE_EXTENSIONS) -> list[str]:
    """Return non-directory image names sorted by code point."""
    names = [e.name for e in entries if not e.is_dir and has_image_extension(e.name, extensions)]
    return sorted(names)


def navigate(
    entries: list[DirectoryEntry],
    target_name: str,
    extensions: frozenset[str] | set[str] = IMAGE_EXTENSIONS,
) -> NavigationResult:
    """Locate target_name among its eligible siblings.

    Names are compared exactly (case-sensitive); only the extension test
    ignores case. A missing target is reported as ``target_index=None`` with
    no neighbours, never as an exception.

    Args:
        entries: Snapshot of one directory listing.
        target_name: Base name of the requested file (no directory part).
        extensions: Lower-case extensions including the leading dot.

    Raises:
        ValueError: If target_name is empty.
    """
    if not target_name:
        raise ValueError("target_name must not be empty")

    ordered = eligible_names(entries, extensions)

    # Full scan: if a name somehow appears twice, the last one wins.
    found: int | None = None
    for i, name in enumerate(ordered):
        if name == target_name:
            found = i

    result = NavigationResult(ordered_names=ordered, target_index=found)
    if found is None:
        return result
    if found > 0:
        result.previous = ordered[found - 1]
    if found + 1 < len(ordered):
        result.next = ordered[found + 1]
    return result
