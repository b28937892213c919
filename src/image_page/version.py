"""Installed package version."""

from importlib.metadata import PackageNotFoundError, version as _dist_version

DIST_NAME = "image-page"


def version() -> str:
    """Return the installed version, or 'unknown' when running from a source tree."""
    try:
        return _dist_version(DIST_NAME)
    except PackageNotFoundError:
        return "unknown"
