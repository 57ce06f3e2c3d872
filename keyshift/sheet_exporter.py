"""SheetExporter: renders a song's transposed performance sheet to HTML, Markdown or text."""

from __future__ import annotations

from typing import Final

from keyshift.sheet_renderers import (
    HtmlSheetRenderer,
    MarkdownSheetRenderer,
    SheetRenderer,
    TextSheetRenderer,
)
from keyshift.song_models import SheetDocument, SheetLine, Song
from keyshift.transposer import compute_display_key, find_chord_tokens, transpose_sheet

SUPPORTED_FORMATS: Final[set[str]] = {"html", "md", "txt"}


class SheetExporter:
    """
    Transpose a song's sheet and write it via a pluggable renderer.

    Supported formats:
    - ``html``: printable page with highlighted chords.
    - ``md``: Markdown with the sheet in a fenced block.
    - ``txt``: the transposed sheet only.
    """

    def __init__(self, output_format: str = "html", title: str | None = None) -> None:
        normalized = output_format.strip().lower()
        if normalized not in SUPPORTED_FORMATS:
            supported = ", ".join(sorted(SUPPORTED_FORMATS))
            raise ValueError(f"Unsupported output format '{output_format}'. Use one of: {supported}.")
        self.output_format = normalized
        self.title = title
        self.renderer = self._build_renderer(normalized)

    def _build_renderer(self, output_format: str) -> SheetRenderer:
        if output_format == "html":
            return HtmlSheetRenderer()
        if output_format == "md":
            return MarkdownSheetRenderer()
        return TextSheetRenderer()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build_document(self, song: Song, offset: int) -> SheetDocument:
        """
        Transpose ``song`` by ``offset`` semitones into a renderable document.

        Raises:
            UnknownKeyError: If the song's original key cannot be resolved.
        """
        transposed = transpose_sheet(song.lyrics, offset)
        lines: list[SheetLine] = []
        if transposed:
            lines = [
                SheetLine(text=line, chords=find_chord_tokens(line))
                for line in transposed.split("\n")
            ]

        return SheetDocument(
            title=self.title if self.title is not None else song.title,
            original_key=song.original_key,
            display_key=compute_display_key(song.original_key, offset),
            offset=offset,
            bpm=song.bpm,
            category=song.category,
            reference_url=song.reference_url,
            lines=lines,
        )

    def render(self, song: Song, offset: int) -> str:
        return self.renderer.render(self.build_document(song, offset))

    def export(self, song: Song, offset: int, output_path: str) -> None:
        """
        Render the transposed sheet and write it to disk.

        Raises:
            ValueError: If the song's key cannot be resolved.
            OSError: If the output file cannot be written.
        """
        content = self.render(song, offset)
        with open(output_path, "w", encoding="utf-8") as fh:
            fh.write(content)
