"""Renderer implementations for transposed sheet output formats."""

from __future__ import annotations

from abc import ABC, abstractmethod

from keyshift.song_models import SheetDocument, SheetLine
from keyshift.transposer import format_offset


def _escape_html(text: str) -> str:
    """Escape the characters that are unsafe in HTML text and attribute content."""
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )



def _link_url(url: str | None) -> str | None:
    """Return ``url`` if it is an http(s) link, else None."""
    if url and url.strip().lower().startswith(("http://", "https://")):
        return url.strip()
    return None


def key_summary(document: SheetDocument) -> str:
    """One-line key description, e.g. "D (original C, +2)"."""
    if document.offset == 0:
        return document.display_key
    return f"{document.display_key} (original {document.original_key}, {format_offset(document.offset)})"


class SheetRenderer(ABC):
    """Abstract sheet renderer."""

    @property
    @abstractmethod
    def default_extension(self) -> str:
        """Default filename extension for this renderer."""

    @abstractmethod
    def render(self, document: SheetDocument) -> str:
        """Render a sheet document into a file content string."""


class HtmlSheetRenderer(SheetRenderer):
    """Render a sheet into a self-contained, printable HTML document with highlighted chords."""

    @property
    def default_extension(self) -> str:
        return ".html"

    def render(self, document: SheetDocument) -> str:
        return self.build_html(document)

    def render_line(self, line: SheetLine) -> str:
        """HTML-escape one line, wrapping each chord span in ``<span class="chord">``."""
        parts: list[str] = []
        cursor = 0
        for chord in line.chords:
            parts.append(_escape_html(line.text[cursor:chord.start]))
            parts.append(f'<span class="chord">{_escape_html(chord.symbol)}</span>')
            cursor = chord.end
        parts.append(_escape_html(line.text[cursor:]))
        return "".join(parts)

    def build_html(self, document: SheetDocument) -> str:
        """
        Wrap the sheet in a self-contained HTML document.

        The header shows the key and tempo; the sheet itself is a ``<pre>``
        block so chord columns stay aligned over their lyrics.
        """
        title_safe = _escape_html(document.title)
        heading = f"  <h1>{title_safe}</h1>\n" if document.title else ""
        meta = [
            f"<li>Key: {_escape_html(key_summary(document))}</li>",
            f"<li>Tempo: {document.bpm} BPM</li>",
            f"<li>Category: {_escape_html(document.category)}</li>",
        ]
        link = _link_url(document.reference_url)
        if link:
            url_safe = _escape_html(link)
            meta.append(f'<li><a href="{url_safe}" rel="noreferrer">Reference recording</a></li>')
        meta_html = "\n".join(f"    {item}" for item in meta)

        if document.lines:
            body = "\n".join(self.render_line(line) for line in document.lines)
        else:
            body = '<span class="empty">No content.</span>'

        return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1.0" />
  <title>{title_safe}</title>
  <style>
    *, *::before, *::after {{ box-sizing: border-box; }}
    body {{
      font-family: Georgia, serif;
      background: #f0f0f0;
      margin: 0;
      padding: 2rem;
    }}
    h1 {{
      text-align: center;
      font-size: 1.6rem;
      margin-bottom: 0.5rem;
      color: #222;
    }}
    ul.meta {{
      list-style: none;
      padding: 0;
      text-align: center;
      color: #555;
    }}
    .sheet {{
      background: #fff;
      box-shadow: 0 2px 8px rgba(0, 0, 0, 0.15);
      margin: 0 auto 3rem;
      max-width: 860px;
      padding: 1.5rem;
      font-family: "Courier New", monospace;
      font-size: 0.95rem;
      line-height: 1.5;
      white-space: pre-wrap;
    }}
    .chord {{
      font-weight: bold;
      color: #b03a2e;
    }}
    .empty {{
      font-style: italic;
      color: #999;
    }}
    @media print {{
      body {{
        background: #fff;
        padding: 0;
        margin: 0;
      }}
      .sheet {{
        box-shadow: none;
        max-width: 100%;
        padding: 0;
        margin: 0;
      }}
      .chord {{
        color: #000;
      }}
    }}
  </style>
</head>
<body>
{heading}  <ul class="meta">
{meta_html}
  </ul>
  <pre class="sheet">{body}</pre>
</body>
</html>"""


class MarkdownSheetRenderer(SheetRenderer):
    """Render a sheet as Markdown with the chords kept in a fenced block."""

    @property
    def default_extension(self) -> str:
        return ".md"

    def render(self, document: SheetDocument) -> str:
        lines = [
            f"# {document.title}",
            "",
            f"- **Key:** {key_summary(document)}",
            f"- **Tempo:** {document.bpm} BPM",
            f"- **Category:** {document.category}",
        ]
        link = _link_url(document.reference_url)
        if link:
            lines.append(f"- **Reference:** <{link}>")

        # A longer fence than any backtick run in the sheet keeps it intact.
        fence = "```"
        while fence in document.text:
            fence += "`"

        lines += ["", fence, document.text or "No content.", fence, ""]
        return "\n".join(lines)


class TextSheetRenderer(SheetRenderer):
    """The transposed sheet as plain text, ready to paste."""

    @property
    def default_extension(self) -> str:
        return ".txt"

    def render(self, document: SheetDocument) -> str:
        return document.text
