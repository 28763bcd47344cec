"""SheetExporter: writes assembled lead sheets as JSON or plain-text charts."""

from __future__ import annotations

from collections.abc import Collection
from pathlib import Path
from typing import Final

from leadsheet.sheet_models import RenderableLeadSheet
from leadsheet.sheet_renderers import JsonSheetRenderer, SheetRenderer, TextChartRenderer

SUPPORTED_FORMATS: Final[set[str]] = {"json", "text"}


class SheetExporter:
    """
    Serialize a RenderableLeadSheet via a pluggable renderer.

    Supported formats:
    - ``json``: the full entry/bracket/warning payload for a layout backend.
    - ``text``: a column-aligned proof chart of chords, melody and lyrics.
    """

    def __init__(self, output_format: str = "json") -> None:
        normalized = output_format.strip().lower()
        if normalized not in SUPPORTED_FORMATS:
            supported = ", ".join(sorted(SUPPORTED_FORMATS))
            raise ValueError(f"Unsupported output format '{output_format}'. Use one of: {supported}.")
        self.output_format = normalized
        self.renderer = self._build_renderer(normalized)

    def _build_renderer(self, output_format: str) -> SheetRenderer:
        if output_format == "json":
            return JsonSheetRenderer()
        return TextChartRenderer()

    @property
    def default_extension(self) -> str:
        return self.renderer.default_extension

    def output_path_for(
        self, title: str, directory: str | Path, taken: Collection[Path] = ()
    ) -> Path:
        """
        File name for a song inside a book directory, e.g. 'All_of_Me.json'.

        Titles that sanitize to a path already in ``taken`` get a numeric
        suffix ('All_of_Me_2.json') instead of overwriting the earlier song.
        """
        stem = "_".join(title.split())
        stem = "".join(ch for ch in stem if ch.isalnum() or ch in "_-") or "untitled"
        path = Path(directory) / f"{stem}{self.default_extension}"
        counter = 2
        while path in taken:
            path = Path(directory) / f"{stem}_{counter}{self.default_extension}"
            counter += 1
        return path

    def render(self, sheet: RenderableLeadSheet) -> str:
        return self.renderer.render(sheet)

    def export(self, sheet: RenderableLeadSheet, output_path: str | Path) -> None:
        """
        Render a lead sheet and write it to disk as UTF-8.

        Raises:
            OSError: If the output file cannot be written.
        """
        content = self.render(sheet)
        with open(output_path, "w", encoding="utf-8") as fh:
            fh.write(content)
