"""
Rendering of stored pastes and of the operator's index page.

A request path is parsed once into a RenderRequest; the variant it carries
decides how the stored bytes are turned into a response body.
"""

import html
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable
from urllib.parse import quote

from ansi2html import Ansi2HTMLConverter
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import TextLexer, guess_lexer
from pygments.util import ClassNotFound

from paste_errors import InvalidPasteId, RenderError
from paste_store import PasteEntry

logger = logging.getLogger("pastebinit")

HTML_BEGIN = """<!DOCTYPE html>
<html lang="en-US">
<head>
<meta charset="UTF-8">
<link rel="shortcut icon" href="/static/favicon.ico" />
<link rel="stylesheet" media="all" href="/static/main.css"/>
<link rel="stylesheet" media="all" href="/static/ansi.css"/>
</head>
<body>"""

HTML_END = """</body>
</html>"""

MODIFIED_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


class Variant(Enum):
    DEFAULT = "default"
    RAW = "raw"
    HTML = "html"
    ANSI = "ansi"


# Path suffixes that select a variant; no suffix means DEFAULT
SUFFIXES = {
    "raw": Variant.RAW,
    "html": Variant.HTML,
    "ansi": Variant.ANSI,
}


@dataclass(frozen=True)
class RenderRequest:
    paste_id: str
    variant: Variant


@dataclass(frozen=True)
class Rendered:
    body: bytes
    media_type: str


def parse_paste_path(path: str) -> RenderRequest:
    """
    Split a request path into the paste identifier and requested variant.

    "/abc" is the default rendering of abc, "/abc/raw" its raw form.
    Anything deeper than two segments is not a paste.
    """
    segments = path.strip("/").split("/")
    if len(segments) == 1 and segments[0]:
        return RenderRequest(segments[0], Variant.DEFAULT)
    if len(segments) == 2 and segments[0] and segments[1] in SUFFIXES:
        return RenderRequest(segments[0], SUFFIXES[segments[1]])
    raise InvalidPasteId(f"no such paste: {path}")


def _wrap_page(content: str) -> str:
    return f"{HTML_BEGIN}<pre><code>{content}</code></pre>{HTML_END}"


def highlight_html(text: str, style: str = "default") -> str:
    """Syntax highlight text as inline-styled HTML, guessing the language"""
    try:
        lexer = guess_lexer(text)
    except ClassNotFound:
        lexer = TextLexer()
    formatter = HtmlFormatter(nowrap=True, noclasses=True, style=style)
    return highlight(text, lexer, formatter)


def ansi_html(text: str) -> str:
    """Convert terminal escape sequences into inline-styled HTML"""
    converter = Ansi2HTMLConverter(inline=True)
    return converter.convert(text, full=False)


def render_paste(data: bytes, variant: Variant, style: str = "default") -> Rendered:
    """Produce the response body and media type for one paste rendering"""
    if variant is Variant.RAW:
        return Rendered(data, "text/plain")
    if variant is Variant.HTML:
        return Rendered(data, "text/html")

    text = data.decode("utf-8", errors="replace")
    try:
        if variant is Variant.ANSI:
            content = ansi_html(text)
        else:
            content = highlight_html(text, style)
    except Exception as e:
        logger.error(f"Rendering {variant.value} failed: {e}")
        raise RenderError(f"processing paste failed: {e}") from e

    return Rendered(_wrap_page(content).encode("utf-8"), "text/html")


def build_index_html(entries: Iterable[PasteEntry], base_uri: str) -> str:
    """Render the listing of all pastes as an HTML table"""
    rows = []
    for entry in entries:
        name = html.escape(entry.name)
        href = html.escape(base_uri + quote(entry.name), quote=True)
        rows.append(
            "<tr>\n"
            f'<td><a href="{href}">{name}</a></td>\n'
            f"<td>{entry.modified.strftime(MODIFIED_FORMAT)}</td>\n"
            f"<td>{entry.size}</td>\n"
            "</tr>"
        )

    body = "".join(rows)
    return f"""{HTML_BEGIN}
<table>
\t<thead>
\t\t<tr>
\t\t\t<th>name</th><th>modified</th><th>size</th>
\t\t</tr>
\t</thead>
\t<tbody>
\t\t{body}
\t</tbody>
</table>
{HTML_END}"""
