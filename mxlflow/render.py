"""Render adapter: turn a laid out score into the VexFlow call sequence."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from mxlflow import vexmap
from mxlflow.connectors import place_connectors
from mxlflow.layout import LayoutConfig, LayoutPoint, PageLayout, layout_score
from mxlflow.measure import Measure
from mxlflow.note import Note
from mxlflow.score import MusicXml
from mxlflow.sheet_models import (
    ScoreDocument,
    VexflowBeam,
    VexflowConnector,
    VexflowNote,
    VexflowStave,
    VexflowVoice,
)

logger = logging.getLogger(__name__)


@dataclass
class DrawingSurface:
    """
    The canvas-like or SVG target the call sequence is replayed on.

    Only its size matters on the Python side; the view box is set once per
    layout so the whole page is visible.
    """

    width: float
    height: float = 0
    backend: str = "svg"
    view_box: tuple[float, float, float, float] = (0, 0, 0, 0)

    def set_view_box(self, x: float, y: float, width: float, height: float) -> None:
        self.view_box = (x, y, width, height)
        self.height = height


def _changed(current: Any, previous: Any) -> bool:
    # Inherited values are the very same object as the predecessor's.
    return current is not previous and current != previous


class RenderAdapter:
    """
    Walks a score and its page layout and emits staves, voices, beams and
    connectors as a :class:`ScoreDocument`.

    Clefs are drawn at the start of every line and where the clef at the start
    of a measure differs from the end of the previous one. Key signatures are
    drawn at the start of every line only. Time signatures are drawn on the
    first displayed measure and on changes.
    """

    def __init__(self, score: MusicXml, layout: PageLayout) -> None:
        self.score = score
        self.layout = layout

    def build(self, title: str = "") -> ScoreDocument:
        staves: list[VexflowStave] = []
        voices: list[VexflowVoice] = []
        beams: list[VexflowBeam] = []
        stave_ids: dict[tuple[int, int], int] = {}

        connectors, end_bars = place_connectors(self.layout)
        end_bar_keys = {(bar.stave_index, bar.measure_index) for bar in end_bars}

        for point in self.layout.points:
            part = self.score.parts[point.part_index]
            if point.measure_index >= len(part.measures):
                continue
            measure = part.measures[point.measure_index]
            previous = part.measures[point.measure_index - 1] if point.measure_index > 0 else None

            stave = self._stave(
                len(staves),
                point,
                measure,
                previous,
                end_bar=(point.stave_index, point.measure_index) in end_bar_keys,
            )
            stave_ids[(point.stave_index, point.measure_index)] = stave.stave_id
            staves.append(stave)

            stave_voices, note_ids = self._voices(stave, measure, point.staff)
            voices.extend(stave_voices)
            for group in measure.beam_groups(point.staff):
                ids = [note_ids[id(note)] for note in group if id(note) in note_ids]
                if len(ids) > 1:
                    beams.append(VexflowBeam(stave_id=stave.stave_id, note_ids=ids))

        vex_connectors = [
            VexflowConnector(
                upper=stave_ids[(c.upper, c.measure_index)],
                lower=stave_ids[(c.lower, c.measure_index)],
                type=c.type.value,
            )
            for c in connectors
            if (c.upper, c.measure_index) in stave_ids and (c.lower, c.measure_index) in stave_ids
        ]

        logger.debug(
            f"Render plan: {len(staves)} stave(s), {len(voices)} voice(s), "
            f"{len(beams)} beam(s), {len(vex_connectors)} connector(s)"
        )
        return ScoreDocument(
            title=title or self.score.title,
            width=self.layout.config.page_width,
            height=self.layout.height,
            view_box=list(self.layout.view_box),
            staves=staves,
            voices=voices,
            beams=beams,
            connectors=vex_connectors,
        )

    def _stave(
        self,
        stave_id: int,
        point: LayoutPoint,
        measure: Measure,
        previous: Measure | None,
        end_bar: bool,
    ) -> VexflowStave:
        start_clef = measure.start_clef_for_staff(point.staff)
        show_clef = point.first_in_line or previous is None
        if not show_clef and start_clef is not None:
            show_clef = not start_clef.same_glyph(previous.attributes.clef_for_staff(point.staff))

        key = measure.key
        show_key = key is not None and point.first_in_line

        time = measure.time
        show_time = (
            point.measure_index == self.layout.start
            or previous is None
            or _changed(time, previous.time)
        )

        return VexflowStave(
            stave_id=stave_id,
            x=point.x,
            y=point.y,
            width=self.layout.stave_width,
            measure=measure.number,
            part=point.part_index,
            staff=point.staff,
            clef=vexmap.clef_name(start_clef) if show_clef else None,
            clef_annotation=vexmap.clef_annotation(start_clef) if show_clef else None,
            key=vexmap.key_spec(key) if show_key else None,
            time=vexmap.time_spec(time) if show_time else None,
            end_bar=end_bar,
        )

    def _voices(
        self, stave: VexflowStave, measure: Measure, staff: int
    ) -> tuple[list[VexflowVoice], dict[int, str]]:
        """
        One VexFlow voice per MusicXML voice on ``staff``; chord members join
        their head and ``<forward>`` gaps become ghost notes.
        """
        stave_clef = vexmap.clef_name(measure.start_clef_for_staff(staff))
        note_ids: dict[int, str] = {}
        voices: list[VexflowVoice] = []
        time = measure.time
        next_id = 0

        for voice in measure.voices_on_staff(staff):
            entries: list[VexflowNote] = []
            last_clef = stave_clef
            gaps = sorted(
                (f for f in measure.forwards if f.staff == staff and f.voice == voice),
                key=lambda f: f.onset,
            )
            for note in measure.notes:
                if note.staff != staff or note.voice != voice or note.is_grace:
                    continue
                if note.is_in_chord and entries:
                    head = entries[-1]
                    head.keys.append(vexmap.note_key(note, head.clef))
                    head.accidentals.append(vexmap.accidental(note))
                    note_ids[id(note)] = head.note_id
                    continue

                while gaps and gaps[0].onset <= note.onset:
                    gap = gaps.pop(0)
                    for code in vexmap.gap_durations(gap.duration, gap.divisions):
                        entries.append(self._ghost(f"{stave.stave_id}:{next_id}", code, last_clef))
                        next_id += 1

                clef = vexmap.clef_name(note.clef) if note.clef is not None else stave_clef
                inline_clef = None
                if note.clef_changed and clef != last_clef:
                    inline_clef = clef
                last_clef = clef

                entry = self._note(f"{stave.stave_id}:{next_id}", note, clef, inline_clef)
                next_id += 1
                note_ids[id(note)] = entry.note_id
                entries.append(entry)

            for gap in gaps:
                for code in vexmap.gap_durations(gap.duration, gap.divisions):
                    entries.append(self._ghost(f"{stave.stave_id}:{next_id}", code, last_clef))
                    next_id += 1

            if entries:
                voices.append(
                    VexflowVoice(
                        stave_id=stave.stave_id,
                        voice=voice,
                        num_beats=time.beats,
                        beat_value=time.beat_type,
                        notes=entries,
                    )
                )
        return voices, note_ids

    def _note(self, note_id: str, note: Note, clef: str, inline_clef: str | None) -> VexflowNote:
        return VexflowNote(
            note_id=note_id,
            keys=[vexmap.note_key(note, clef)],
            duration=vexmap.duration(note),
            clef=clef,
            dots=0 if note.whole_measure_rest else note.dots,
            accidentals=[vexmap.accidental(note)],
            inline_clef=inline_clef,
            inline_clef_annotation=vexmap.clef_annotation(note.clef) if inline_clef else None,
        )

    def _ghost(self, note_id: str, code: str, clef: str) -> VexflowNote:
        return VexflowNote(
            note_id=note_id,
            keys=[vexmap.rest_key(clef)],
            duration=code,
            clef=clef,
            dots=0,
            accidentals=[None],
            ghost=True,
        )


class ScoreRenderer:
    """
    Holds a score, its drawing surface and the current page.

    Changing the displayed measure range throws the layout and the render plan
    away and rebuilds both; nothing is patched incrementally.
    """

    def __init__(
        self,
        score: MusicXml,
        config: LayoutConfig | None = None,
        surface: DrawingSurface | None = None,
        start: int = 0,
        stop: int | None = None,
        title: str = "",
    ) -> None:
        self.score = score
        self.config = config or LayoutConfig()
        self.surface = surface or DrawingSurface(width=self.config.page_width)
        self.title = title
        self._start = start
        self._stop = score.measure_count if stop is None else stop
        self.layout: PageLayout
        self.document: ScoreDocument
        self.render()

    @property
    def start_measure(self) -> int:
        return self._start

    @start_measure.setter
    def start_measure(self, value: int) -> None:
        self.set_range(value, self._stop)

    @property
    def stop_measure(self) -> int:
        return self._stop

    @stop_measure.setter
    def stop_measure(self, value: int) -> None:
        self.set_range(self._start, value)

    def set_range(self, start: int, stop: int) -> ScoreDocument:
        self._start = start
        self._stop = stop
        return self.render()

    def render(self) -> ScoreDocument:
        self.layout = layout_score(self.score, self.config, self._start, self._stop)
        self.surface.set_view_box(*self.layout.view_box)
        self.document = RenderAdapter(self.score, self.layout).build(self.title)
        return self.document
