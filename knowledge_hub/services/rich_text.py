"""Rich-text-lite renderer.

Supported markup: **bold**, *italic*, [text](url), bare http(s) URLs,
![alt](src) images and newlines.

Rendering is an ordered pipeline of stages over a list of segments. A segment
is either raw text (still open to later stages) or finished markup (never
looked at again), so markup inserted by one stage cannot be re-matched by the
next. Raw text is HTML-escaped only when the segments are joined.
"""

from dataclasses import dataclass
import html
import logging
import re
from typing import Callable, Union

logger = logging.getLogger("uvicorn.error")

MAX_LINK_TEXT = 50
PREVIEW_LENGTH = 200

IMAGE_STYLE_EXPANDED = "max-width: 100%; height: auto; max-height: 250px; object-fit: contain;"
IMAGE_STYLE_THUMB = "width: 48px; height: 48px; object-fit: cover;"


@dataclass(frozen=True)
class Raw:
    text: str
    linkable: bool = True


@dataclass(frozen=True)
class Markup:
    html: str


Segment = Union[Raw, Markup]
Stage = Callable[[list[Segment], bool], list[Segment]]


def _attr(value: str) -> str:
    return html.escape(value, quote=True)


def _apply(
    segments: list[Segment],
    pattern: re.Pattern[str],
    replace: Callable[[re.Match[str], Raw], list[Segment]],
    *,
    linkable_only: bool = False,
) -> list[Segment]:
    """Run `pattern` over every raw segment, splicing in `replace` results."""
    out: list[Segment] = []
    for seg in segments:
        if isinstance(seg, Markup) or (linkable_only and not seg.linkable):
            out.append(seg)
            continue
        pos = 0
        for match in pattern.finditer(seg.text):
            if match.start() > pos:
                out.append(Raw(seg.text[pos:match.start()], seg.linkable))
            out.extend(replace(match, seg))
            pos = match.end()
        if pos < len(seg.text):
            out.append(Raw(seg.text[pos:], seg.linkable))
    return out


# ============================================================
# Stages (applied in order)
# ============================================================

BOLD_PATTERN = re.compile(r"\*\*(.+?)\*\*")
ITALIC_PATTERN = re.compile(r"\*(.+?)\*")
LINK_PATTERN = re.compile(
    r"(?P<image>!\[[^\]]*\]\([^)\s]+\))"
    r"|\[(?P<label>[^\]]+)\]\((?P<href>[^)\s]+)\)"
    r"|(?P<url>https?://[^\s<>\"]+)"
)
IMAGE_PATTERN = re.compile(r"!\[([^\]]*)\]\(([^)\s]+)\)")
_URL_TRAILING = ".,;:!?)"

# Anything else (javascript:, relative paths, ...) is left as plain text
LINK_SCHEMES = ("http://", "https://")
IMAGE_SCHEMES = ("http://", "https://", "data:image/")


def _allowed(url: str, schemes: tuple[str, ...]) -> bool:
    return url.strip().lower().startswith(schemes)


def _wrap(tag: str) -> Callable[[re.Match[str], Raw], list[Segment]]:
    def replace(match: re.Match[str], seg: Raw) -> list[Segment]:
        return [Markup(f"<{tag}>"), Raw(match.group(1), seg.linkable), Markup(f"</{tag}>")]

    return replace


def _anchor(href: str, label: str) -> list[Segment]:
    return [
        Markup(f'<a href="{_attr(href)}" target="_blank" rel="noopener noreferrer">'),
        Raw(label, linkable=False),
        Markup("</a>"),
    ]


def _link(match: re.Match[str], seg: Raw) -> list[Segment]:
    if match.group("image"):
        # left for the image stage
        return [Raw(match.group(0), seg.linkable)]
    if match.group("label") is not None:
        if not _allowed(match.group("href"), LINK_SCHEMES):
            return [Raw(match.group(0), linkable=False)]
        return _anchor(match.group("href"), match.group("label"))

    url = match.group("url")
    stripped = url.rstrip(_URL_TRAILING)
    trailing = url[len(stripped):]
    label = stripped if len(stripped) <= MAX_LINK_TEXT else stripped[:MAX_LINK_TEXT] + "..."
    out = _anchor(stripped, label)
    if trailing:
        out.append(Raw(trailing, seg.linkable))
    return out


def bold_stage(segments: list[Segment], expanded: bool) -> list[Segment]:
    return _apply(segments, BOLD_PATTERN, _wrap("strong"))


def italic_stage(segments: list[Segment], expanded: bool) -> list[Segment]:
    return _apply(segments, ITALIC_PATTERN, _wrap("em"))


def link_stage(segments: list[Segment], expanded: bool) -> list[Segment]:
    return _apply(segments, LINK_PATTERN, _link, linkable_only=True)


def image_stage(segments: list[Segment], expanded: bool) -> list[Segment]:
    if expanded:
        css, style = "rich-image rich-image--full", IMAGE_STYLE_EXPANDED
    else:
        css, style = "rich-image rich-image--thumb", IMAGE_STYLE_THUMB

    def replace(match: re.Match[str], seg: Raw) -> list[Segment]:
        alt, src = match.group(1), match.group(2)
        if not _allowed(src, IMAGE_SCHEMES):
            return [Raw(match.group(0), seg.linkable)]
        return [
            Markup(
                f'<img src="{_attr(src)}" alt="{_attr(alt)}" class="{css}" style="{style}" />'
            )
        ]

    return _apply(segments, IMAGE_PATTERN, replace)


def newline_stage(segments: list[Segment], expanded: bool) -> list[Segment]:
    return _apply(segments, re.compile(r"\n"), lambda match, seg: [Markup("<br />")])


PIPELINE: tuple[Stage, ...] = (bold_stage, italic_stage, link_stage, image_stage, newline_stage)


def join(segments: list[Segment]) -> str:
    return "".join(
        seg.html if isinstance(seg, Markup) else html.escape(seg.text, quote=False)
        for seg in segments
    )


def plain_lines(text: str) -> str:
    """Escape text and turn newlines into <br />; the degraded rendering."""
    return html.escape(text, quote=False).replace("\n", "<br />")


def render(text: str, expanded: bool = True) -> str:
    """Render rich-text-lite source to HTML.

    Args:
        text: Source text.
        expanded: Full-size images when True, 48x48 thumbnails when False.

    Returns:
        HTML string. Never raises; on any failure the text is rendered with
        line breaks only.
    """
    if not text:
        return ""
    try:
        segments: list[Segment] = [Raw(text)]
        for stage in PIPELINE:
            segments = stage(segments, expanded)
        return join(segments)
    except Exception:
        logger.warning("Rich text rendering failed, using plain line breaks", exc_info=True)
        return plain_lines(text)


def excerpt(content: str, limit: int = PREVIEW_LENGTH) -> str:
    """Collapsed preview of an entry body."""
    if len(content) <= limit:
        return content
    return content[:limit] + "..."
