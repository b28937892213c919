"""HTML output for the image viewer page."""

from dataclasses import dataclass
from html import escape
from pathlib import PurePosixPath
from urllib.parse import urlencode

from image_page.navigate import NavigationResult
from image_page.request import PageRequest, image_directory

CGI_HEADER = "Content-type: text/html\n\n"

DEFAULT_STYLESHEET = "../css/diary.css"
DEFAULT_ICON_DIR = "images"


@dataclass
class PageRecord:
    """One page ready for rendering."""

    image_href: str
    zoom: str
    previous_href: str | None
    next_href: str | None
    zoom_href: str
    stylesheet: str
    icon_dir: str


def _sibling_href(directory: str, name: str | None) -> str | None:
    if name is None:
        return None
    return str(PurePosixPath(directory) / name)


def build_page_record(
    request: PageRequest,
    result: NavigationResult,
    stylesheet: str = DEFAULT_STYLESHEET,
    icon_dir: str = DEFAULT_ICON_DIR,
) -> PageRecord:
    """Build a PageRecord from the parsed request and its navigation result."""
    directory = image_directory(request.image)
    other_zoom = "orig" if request.zoom == "scale" else "scale"
    return PageRecord(
        image_href=request.image,
        zoom=request.zoom,
        previous_href=_sibling_href(directory, result.previous),
        next_href=_sibling_href(directory, result.next),
        zoom_href="?" + urlencode({"image": request.image, "zoom": other_zoom}),
        stylesheet=stylesheet,
        icon_dir=icon_dir,
    )


def _icon(icon_dir: str, name: str) -> str:
    return escape(str(PurePosixPath(icon_dir) / name))


def _button(css_class: str, href: str, icon: str) -> str:
    return (
        f' <div class="{css_class}">'
        f'<a href="{escape(href)}"><img src="{icon}"></a>'
        "</div> \n"
    )


def render_page(record: PageRecord) -> str:
    """Render the viewer page: image, previous/next links and zoom toggle."""
    image_class = "center-fit" if record.zoom == "scale" else "center-orig"
    zoom_icon = "minus.png" if record.zoom == "scale" else "plus.png"

    parts = [
        "<!DOCTYPE html> \n",
        "<html> \n",
        "<head> \n",
        '<meta name="viewport" content="width=device-width, initial-scale=1.0"> \n',
        f'<link rel="stylesheet" type="text/css" href="{escape(record.stylesheet)}"> \n',
        "</head> \n",
        "<body> \n",
        '<div class="imgbox"> \n',
        f' <img src="{escape(record.image_href)}" class="{image_class}"> \n',
    ]
    if record.previous_href is not None:
        parts.append(_button("center-left", record.previous_href, _icon(record.icon_dir, "previous.png")))
    parts.append(_button("top-center", record.zoom_href, _icon(record.icon_dir, zoom_icon)))
    if record.next_href is not None:
        parts.append(_button("center-right", record.next_href, _icon(record.icon_dir, "next.png")))
    parts += [
        "</div> \n",
        "</body> \n",
        "</html> \n",
    ]
    return "".join(parts)


def render_error(messages: list[str], version: str, cwd: str) -> str:
    """Render diagnostic paragraphs for a request that could not be served."""
    lines = [
        f"<p>page, version: {escape(version)}</p>",
        f"<p>Current Working Directory: {escape(cwd)}</p>",
    ]
    lines += [f"<p>ERROR: {escape(m)}</p>" for m in messages]
    return "\n".join(lines) + "\n"
