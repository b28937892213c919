"""Tests for output module."""

from image_page.navigate import NavigationResult
from image_page.output import (
    CGI_HEADER,
    PageRecord,
    build_page_record,
    render_error,
    render_page,
)
from image_page.request import PageRequest


def _result(previous: str | None, next_: str | None) -> NavigationResult:
    return NavigationResult(
        ordered_names=["a.png", "b.jpg", "c.jpeg"],
        target_index=1,
        previous=previous,
        next=next_,
    )


def test_build_page_record_sibling_hrefs() -> None:
    """Sibling links sit in the same URL directory as the image."""
    request = PageRequest(image="/photos/2021/b.jpg", zoom="scale")
    record = build_page_record(request, _result("a.png", "c.jpeg"))
    assert record.image_href == "/photos/2021/b.jpg"
    assert record.previous_href == "/photos/2021/a.png"
    assert record.next_href == "/photos/2021/c.jpeg"
    assert record.stylesheet == "../css/diary.css"
    assert record.icon_dir == "images"


def test_build_page_record_no_directory() -> None:
    """An image with no directory links to bare sibling names."""
    request = PageRequest(image="b.jpg")
    record = build_page_record(request, _result("a.png", None))
    assert record.previous_href == "a.png"
    assert record.next_href is None


def test_build_page_record_zoom_toggle() -> None:
    """The zoom link asks for the other mode of the same image."""
    scaled = build_page_record(PageRequest(image="/p/b.jpg", zoom="scale"), _result(None, None))
    assert scaled.zoom_href == "?image=%2Fp%2Fb.jpg&zoom=orig"
    orig = build_page_record(PageRequest(image="/p/b.jpg", zoom="orig"), _result(None, None))
    assert orig.zoom_href == "?image=%2Fp%2Fb.jpg&zoom=scale"


def test_render_page_full() -> None:
    """Page carries the image, both neighbours and the zoom toggle."""
    request = PageRequest(image="/photos/b.jpg", zoom="scale")
    record = build_page_record(request, _result("a.png", "c.jpeg"), "/css/v.css", "/icons")
    html = render_page(record)
    assert html.startswith("<!DOCTYPE html>")
    assert '<link rel="stylesheet" type="text/css" href="/css/v.css">' in html
    assert '<img src="/photos/b.jpg" class="center-fit">' in html
    assert '<div class="center-left"><a href="/photos/a.png"><img src="/icons/previous.png"></a></div>' in html
    assert '<div class="center-right"><a href="/photos/c.jpeg"><img src="/icons/next.png"></a></div>' in html
    assert "/icons/minus.png" in html
    assert html.index("center-left") < html.index("top-center") < html.index("center-right")


def test_render_page_without_neighbours() -> None:
    """Missing neighbours produce no previous/next buttons."""
    record = build_page_record(PageRequest(image="only.jpg"), _result(None, None))
    html = render_page(record)
    assert "center-left" not in html
    assert "center-right" not in html
    assert "top-center" in html


def test_render_page_original_zoom() -> None:
    """Original size uses the plus icon and no fit class."""
    record = build_page_record(PageRequest(image="b.jpg", zoom="orig"), _result(None, None))
    html = render_page(record)
    assert 'class="center-orig"' in html
    assert "images/plus.png" in html
    assert "minus.png" not in html


def test_render_page_escapes_attributes() -> None:
    """Quotes and angle brackets in names are escaped."""
    record = PageRecord(
        image_href='/p/"x"<b>.jpg',
        zoom="scale",
        previous_href=None,
        next_href="/p/a&b.jpg",
        zoom_href="?image=x",
        stylesheet="s.css",
        icon_dir="images",
    )
    html = render_page(record)
    assert '"x"<b>' not in html
    assert "&quot;x&quot;&lt;b&gt;" in html
    assert "/p/a&amp;b.jpg" in html


def test_render_error() -> None:
    """Error output names the version, cwd and each message."""
    html = render_error(["file not found: <x>.jpg", "too many zooms: a,b"], "1.2.3", "/srv")
    assert "<p>page, version: 1.2.3</p>" in html
    assert "<p>Current Working Directory: /srv</p>" in html
    assert "<p>ERROR: file not found: &lt;x&gt;.jpg</p>" in html
    assert "<p>ERROR: too many zooms: a,b</p>" in html


def test_cgi_header() -> None:
    """Header ends with the blank line that separates it from the body."""
    assert CGI_HEADER == "Content-type: text/html\n\n"
