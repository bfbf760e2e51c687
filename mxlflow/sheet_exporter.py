"""SheetExporter: converts MusicXML files to HTML or Markdown sheet outputs."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Final

from mxlflow.layout import LayoutConfig
from mxlflow.render import ScoreRenderer
from mxlflow.score import MusicXml, read_musicxml_bytes
from mxlflow.sheet_models import ScoreDocument
from mxlflow.sheet_renderers import (
    SheetRenderer,
    VerovioHtmlRenderer,
    VexflowHtmlRenderer,
    VexflowMarkdownRenderer,
)

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS: Final[dict[str, type[SheetRenderer]]] = {
    "html": VexflowHtmlRenderer,
    "md-vexflow": VexflowMarkdownRenderer,
    "html-verovio": VerovioHtmlRenderer,
}


class SheetExporter:
    """
    Convert a MusicXML file into sheet output via a pluggable renderer.

    Supported formats:
    - ``html``: laid out with mxlflow, replayed by VexFlow in a self-contained page.
    - ``md-vexflow``: the same VexFlow payload embedded in Markdown.
    - ``html-verovio``: reference engraving of the input by verovio, inline SVG.
    """

    def __init__(
        self,
        title: str = "",
        output_format: str = "html",
        config: LayoutConfig | None = None,
        start: int = 0,
        stop: int | None = None,
    ) -> None:
        self.title = title
        normalized = output_format.strip().lower()
        if normalized not in SUPPORTED_FORMATS:
            supported = ", ".join(sorted(SUPPORTED_FORMATS))
            raise ValueError(f"Unsupported output format '{output_format}'. Use one of: {supported}.")
        self.output_format = normalized
        self.renderer = SUPPORTED_FORMATS[normalized]()
        self.config = config or LayoutConfig()
        self.start = start
        self.stop = stop

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _resolve_title(self, score: MusicXml) -> str:
        return self.title or score.title

    def _build_document(self, score: MusicXml) -> ScoreDocument:
        stop = score.measure_count if self.stop is None else min(self.stop, score.measure_count)
        start = max(0, min(self.start, stop))
        renderer = ScoreRenderer(
            score,
            config=self.config,
            start=start,
            stop=stop,
            title=self._resolve_title(score),
        )
        return renderer.document

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def render(self, musicxml_bytes: bytes) -> str:
        """
        Render MusicXML bytes into the selected format.

        Raises:
            ValueError: If the score cannot be parsed or rendered.
        """
        score = MusicXml(musicxml_bytes)
        for diagnostic in score.diagnostics:
            logger.info(f"Recovered: {diagnostic}")

        if not self.renderer.needs_score_document:
            return self.renderer.render(
                title=self._resolve_title(score),
                musicxml_bytes=musicxml_bytes,
            )
        return self.renderer.render(
            title=self._resolve_title(score),
            score_document=self._build_document(score),
        )

    def export(self, musicxml_path: str | Path, output_path: str | Path) -> None:
        """
        Convert a MusicXML file into the selected sheet format and write it to disk.

        Raises:
            ValueError: If parsing or rendering fails.
            OSError: If a file cannot be read or written.
        """
        content = self.render(read_musicxml_bytes(musicxml_path))
        with open(output_path, "w", encoding="utf-8") as fh:
            fh.write(content)
