"""Renderer implementations for sheet music output formats."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import asdict
from typing import Any, cast

from mxlflow.sheet_models import ScoreDocument

VEXFLOW_URL = "https://cdn.jsdelivr.net/npm/vexflow@4.2.3/build/esm/entry/vexflow.js"


def _escape_html(text: str) -> str:
    """Escape the three characters that are unsafe in HTML text content."""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _score_json(score_document: ScoreDocument) -> str:
    score_json = json.dumps(asdict(score_document), separators=(",", ":"))
    return score_json.replace("</", "<\\/")


def vexflow_script(container_id: str, payload_id: str) -> str:
    """
    Module script replaying a :class:`ScoreDocument` payload with VexFlow.

    Beams are created before the voices are formatted so beamed notes lose
    their flags; connectors are drawn once every stave exists.
    """
    return f"""<script type="module">
  import {{
    Accidental,
    Barline,
    Beam,
    ClefNote,
    Dot,
    Formatter,
    GhostNote,
    NoteSubGroup,
    Renderer,
    Stave,
    StaveConnector,
    StaveNote,
    Voice
  }} from "{VEXFLOW_URL}";

  const host = document.getElementById("{container_id}");
  const payloadNode = document.getElementById("{payload_id}");

  if (!host || !payloadNode) {{
    throw new Error("Missing VexFlow score container.");
  }}

  const plan = JSON.parse(payloadNode.textContent || "{{}}");
  const renderer = new Renderer(host, Renderer.Backends.SVG);
  renderer.resize(plan.width, plan.height);
  const context = renderer.getContext();
  if (typeof context.setViewBox === "function") {{
    context.setViewBox(...plan.view_box);
  }}

  const connectorTypes = {{
    "single-left": StaveConnector.type.SINGLE_LEFT,
    "single-right": StaveConnector.type.SINGLE_RIGHT,
    "brace": StaveConnector.type.BRACE,
    "bold-double-right": StaveConnector.type.BOLD_DOUBLE_RIGHT,
  }};

  const staves = plan.staves.map((spec) => {{
    const stave = new Stave(spec.x, spec.y, spec.width);
    if (spec.clef) {{
      stave.addClef(spec.clef, "default", spec.clef_annotation || undefined);
    }}
    if (spec.key) {{
      stave.addKeySignature(spec.key);
    }}
    if (spec.time) {{
      stave.addTimeSignature(spec.time);
    }}
    if (spec.end_bar) {{
      stave.setEndBarType(Barline.type.END);
    }}
    return stave.setContext(context);
  }});

  const notesById = new Map();
  const toStaveNote = (entry) => {{
    if (entry.ghost) {{
      const ghost = new GhostNote({{ duration: entry.duration }});
      notesById.set(entry.note_id, ghost);
      return ghost;
    }}
    const staveNote = new StaveNote({{
      clef: entry.clef,
      keys: entry.keys,
      duration: entry.duration,
    }});
    entry.accidentals.forEach((symbol, noteIndex) => {{
      if (symbol) {{
        staveNote.addModifier(new Accidental(symbol), noteIndex);
      }}
    }});
    for (let dot = 0; dot < entry.dots; dot++) {{
      Dot.buildAndAttach([staveNote], {{ all: true }});
    }}
    if (entry.inline_clef) {{
      const clefNote = new ClefNote(entry.inline_clef, "small", entry.inline_clef_annotation || undefined);
      staveNote.addModifier(new NoteSubGroup([clefNote]), 0);
    }}
    notesById.set(entry.note_id, staveNote);
    return staveNote;
  }};

  const voicesByStave = new Map();
  plan.voices.forEach((spec) => {{
    const voice = new Voice({{ num_beats: spec.num_beats, beat_value: spec.beat_value }});
    voice.setMode(Voice.Mode.SOFT);
    voice.addTickables(spec.notes.map(toStaveNote));
    if (!voicesByStave.has(spec.stave_id)) {{
      voicesByStave.set(spec.stave_id, []);
    }}
    voicesByStave.get(spec.stave_id).push(voice);
  }});

  const beams = plan.beams.map((spec) => new Beam(spec.note_ids.map((id) => notesById.get(id))));

  voicesByStave.forEach((voices, staveId) => {{
    new Formatter().joinVoices(voices).formatToStave(voices, staves[staveId]);
  }});

  staves.forEach((stave) => stave.draw());
  plan.connectors.forEach((spec) => {{
    new StaveConnector(staves[spec.upper], staves[spec.lower])
      .setType(connectorTypes[spec.type])
      .setContext(context)
      .draw();
  }});
  voicesByStave.forEach((voices, staveId) => {{
    voices.forEach((voice) => voice.draw(context, staves[staveId]));
  }});
  beams.forEach((beam) => beam.setContext(context).draw());
</script>"""


def build_html(title: str, body: str, extra_style: str = "") -> str:
    """
    Wrap page content in a self-contained HTML document.

    The stylesheet includes screen styles (white cards on a grey background)
    and print styles (``page-break-after: always`` per page, no shadows).
    """
    title_safe = _escape_html(title)
    heading = f"  <h1>{title_safe}</h1>\n" if title else ""

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
      margin-bottom: 2rem;
      color: #222;
    }}
    .page {{
      background: #fff;
      box-shadow: 0 2px 8px rgba(0, 0, 0, 0.15);
      margin: 0 auto 3rem;
      width: fit-content;
      max-width: 100%;
      padding: 1rem;
    }}
    .page svg {{
      display: block;
      max-width: 100%;
      height: auto;
    }}{extra_style}
    @media print {{
      body {{
        background: #fff;
        padding: 0;
        margin: 0;
      }}
      .page {{
        box-shadow: none;
        page-break-after: always;
        padding: 0;
        margin: 0;
      }}
      .page:last-child {{
        page-break-after: avoid;
      }}
    }}
  </style>
</head>
<body>
{heading}{body}
</body>
</html>"""


class SheetRenderer(ABC):
    """Abstract sheet renderer."""

    @property
    @abstractmethod
    def default_extension(self) -> str:
        """Default filename extension for this renderer."""

    @property
    def needs_score_document(self) -> bool:
        """Whether :meth:`render` consumes the laid out ``ScoreDocument``."""
        return True

    @abstractmethod
    def render(
        self,
        *,
        title: str,
        musicxml_bytes: bytes | None = None,
        score_document: ScoreDocument | None = None,
    ) -> str:
        """Render output into a file content string."""


class VexflowHtmlRenderer(SheetRenderer):
    """Render a score document into an HTML page replaying it with VexFlow."""

    @property
    def default_extension(self) -> str:
        return ".html"

    def render(
        self,
        *,
        title: str,
        musicxml_bytes: bytes | None = None,
        score_document: ScoreDocument | None = None,
    ) -> str:
        if score_document is None:
            raise ValueError("score_document is required for VexFlow HTML rendering.")

        body = (
            '  <div class="page" id="mxlflow-score"></div>\n'
            f'  <script id="mxlflow-score-data" type="application/json">{_score_json(score_document)}</script>\n'
            f'  {vexflow_script("mxlflow-score", "mxlflow-score-data")}'
        )
        return build_html(title, body)


class VexflowMarkdownRenderer(SheetRenderer):
    """Render a score document into Markdown with an embedded VexFlow script."""

    @property
    def default_extension(self) -> str:
        return ".md"

    def render(
        self,
        *,
        title: str,
        musicxml_bytes: bytes | None = None,
        score_document: ScoreDocument | None = None,
    ) -> str:
        if score_document is None:
            raise ValueError("score_document is required for md-vexflow rendering.")

        title_safe = _escape_html(title)

        return f"""# {title_safe}

This Markdown uses embedded JavaScript + VexFlow. Open it in a Markdown viewer that allows script execution.

<style>
  #mxlflow-score {{
    border: 1px solid #d8d8d8;
    border-radius: 8px;
    background: #ffffff;
    padding: 0.5rem;
    overflow-x: auto;
  }}
</style>

<div id="mxlflow-score"></div>
<script id="mxlflow-score-data" type="application/json">{_score_json(score_document)}</script>
{vexflow_script("mxlflow-score", "mxlflow-score-data")}
"""


class VerovioHtmlRenderer(SheetRenderer):
    """Engrave the input MusicXML with verovio, as a reference for the VexFlow output."""

    # Verovio A4 layout constants (verovio abstract units; ~1 unit ≈ 0.1 mm)
    _PAGE_HEIGHT: int = 2970  # A4 portrait height
    _PAGE_WIDTH: int = 2100  # A4 portrait width
    _SCALE: int = 40
    _PAGE_MARGIN: int = 100  # uniform margin on all four sides

    @property
    def default_extension(self) -> str:
        return ".html"

    @property
    def needs_score_document(self) -> bool:
        return False

    def render(
        self,
        *,
        title: str,
        musicxml_bytes: bytes | None = None,
        score_document: ScoreDocument | None = None,
    ) -> str:
        if musicxml_bytes is None:
            raise ValueError("musicxml_bytes is required for verovio rendering.")

        pages = "\n".join(f'  <div class="page">{svg}</div>' for svg in self.render_svgs(musicxml_bytes))
        return build_html(title, pages)

    def render_svgs(self, musicxml_bytes: bytes) -> list[str]:
        """
        Engrave a MusicXML document to one SVG string per page.

        Raises:
            ValueError: If verovio cannot load the MusicXML data.
        """
        import verovio

        tk = verovio.toolkit()
        tk.setOptions(
            {
                "pageHeight": self._PAGE_HEIGHT,
                "pageWidth": self._PAGE_WIDTH,
                "scale": self._SCALE,
                "pageMarginTop": self._PAGE_MARGIN,
                "pageMarginBottom": self._PAGE_MARGIN,
                "pageMarginLeft": self._PAGE_MARGIN,
                "pageMarginRight": self._PAGE_MARGIN,
                "adjustPageHeight": True,
            }
        )

        if not tk.loadData(musicxml_bytes.decode("utf-8")):
            raise ValueError("verovio could not load the MusicXML data.")

        return [self._render_page_svg(tk, page_no) for page_no in range(1, tk.getPageCount() + 1)]

    def _render_page_svg(self, toolkit: Any, page_no: int) -> str:
        # Older bindings only take positional arguments.
        try:
            return cast(str, toolkit.renderToSVG(pageNo=page_no, xmlDeclaration=False))
        except TypeError:
            return cast(str, toolkit.renderToSVG(page_no, False))
