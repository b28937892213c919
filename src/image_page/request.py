"""Parse the CGI request URI into the image and zoom being asked for."""

from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from urllib.parse import parse_qs, urlsplit

ZOOM_MODES = ("scale", "orig")
DEFAULT_ZOOM = "scale"


class RequestError(ValueError):
    """The request cannot be turned into a page."""


@dataclass
class PageRequest:
    """The parts of a request the page needs."""

    image: str
    zoom: str = DEFAULT_ZOOM
    warnings: list[str] = field(default_factory=list)


def _normalise(image: str) -> str:
    return image.replace("\\", "/")


def _parse_zoom(values: list[str], warnings: list[str]) -> str:
    """Pick the zoom mode. Unknown or repeated values fall back to the default."""
    if not values:
        return DEFAULT_ZOOM
    if len(values) > 1:
        warnings.append("too many zooms: " + ",".join(values))
        return DEFAULT_ZOOM
    value = values[0].lower()
    if value in ZOOM_MODES:
        return value
    warnings.append(f"invalid zoom: {values[0]}")
    return DEFAULT_ZOOM


def parse_request_uri(uri: str) -> PageRequest:
    """Parse REQUEST_URI. Raises RequestError if no usable image is named."""
    try:
        query = urlsplit(uri).query
    except ValueError as e:
        raise RequestError(f"could not parse REQUEST_URI: {uri}") from e
    params = parse_qs(query, keep_blank_values=True)

    warnings: list[str] = []
    zoom = _parse_zoom(params.get("zoom", []), warnings)

    files = params.get("image", [])
    if not files:
        raise RequestError(f"no files: {uri}")
    if len(files) > 1:
        warnings.append("too many files: " + ",".join(files))
    image = files[0]
    if not image.strip():
        raise RequestError(f"empty image parameter: {uri}")

    return PageRequest(image=image, zoom=zoom, warnings=warnings)


def resolve_image_path(prefix: str, image: str) -> Path:
    """Resolve the requested image to a filesystem path under prefix.

    With no prefix the image path is used as given. Raises RequestError for
    paths with a ".." component or without a file name ("/", ".").
    """
    relative = PurePosixPath(_normalise(image))
    if ".." in relative.parts:
        raise RequestError(f"path escapes prefix: {image}")
    if not relative.name:
        raise RequestError(f"no file name in image: {image}")
    if not prefix:
        return Path(relative)
    return Path(prefix).joinpath(*[p for p in relative.parts if p != "/"])


def image_directory(image: str) -> str:
    """Return the URL directory of the image ('.' when it has none)."""
    return str(PurePosixPath(_normalise(image)).parent)


def image_name(image: str) -> str:
    """Return the base name of the requested image."""
    return PurePosixPath(_normalise(image)).name
