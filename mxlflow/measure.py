"""Measure model: interleaved attribute changes and notes of one ``<measure>``."""

from __future__ import annotations

import logging
from typing import Iterator

from lxml import etree

from mxlflow.attributes import AttributeSet, Clef, Key, TimeSignature
from mxlflow.beaming import beam_groups
from mxlflow.errors import AMBIGUOUS_ATTRIBUTES, Diagnostic, MissingTimeSignature
from mxlflow.note import Forward, Note
from mxlflow.xml_accessor import XmlElement

logger = logging.getLogger(__name__)


class Measure:
    """
    One bar of one part.

    The order of ``<attributes>`` and ``<note>`` children matters: a clef
    change between two notes only affects the notes that follow it. The
    measure therefore walks its children with a cursor that starts at the
    previous measure's resolved state.

    Args:
        element:  The ``<measure>`` element.
        previous: Resolved attributes of the preceding measure of the same
                  part (an empty ``AttributeSet`` for the first one).
        number:   1-based position of the measure inside its part.
        part_id:  Id of the owning part, used in diagnostics.
    """

    def __init__(
        self,
        element: XmlElement | etree._Element,
        previous: AttributeSet,
        number: int,
        part_id: str | None = None,
    ) -> None:
        if not isinstance(element, XmlElement):
            element = XmlElement(element)
        self.element = element
        self.number = number
        self.part_id = part_id
        self.label = element.attribute("number", str(number))
        width = element.attribute("width")
        self.width = float(width) if width else None

        self.declarations: list[AttributeSet] = []
        self.notes: list[Note] = []
        self.forwards: list[Forward] = []
        self.diagnostics: list[Diagnostic] = []
        self.start_clefs: tuple[Clef, ...] = previous.clefs

        cursor = previous
        note_seen = False
        position = 0
        chord_onset = 0
        for child in element.children():
            tag = child.tag
            if tag == "attributes":
                declared = AttributeSet.from_element(child)
                self.declarations.append(declared)
                merged = declared.merge(cursor)
                if merged.ambiguous_clefs:
                    self._flag(
                        "clef declaration covers fewer staves than the part has; "
                        "inherited clefs kept for the measure start"
                    )
                if not note_seen and len(self.declarations) == 1 and not merged.ambiguous_clefs:
                    self.start_clefs = merged.clefs
                cursor = merged
            elif tag == "note":
                note_seen = True
                is_chord = child.has_child("chord")
                onset = chord_onset if is_chord else position
                staff = child.integer("staff", 1) or 1
                clef = cursor.clef_for_staff(staff)
                note = Note.from_element(
                    child,
                    clef=clef,
                    clef_changed=self._clef_differs(clef, staff),
                    onset=onset,
                )
                self.notes.append(note)
                if not is_chord:
                    chord_onset = onset
                    if not note.is_grace:
                        position = onset + note.duration
            elif tag == "backup":
                position = max(0, position - (child.integer("duration", 0) or 0))
            elif tag == "forward":
                forward = Forward.from_element(child, onset=position, divisions=cursor.divisions or 1)
                self.forwards.append(forward)
                position += forward.duration

        self.attributes = cursor

        staff_count = cursor.staff_count
        if len(self.start_clefs) != staff_count and len(cursor.clefs) == staff_count:
            if self.start_clefs:
                self._flag("not all staves have clefs at the measure start; using the final clefs")
            self.start_clefs = cursor.clefs

        if cursor.time is None:
            raise MissingTimeSignature(number, part_id)

        # Unique voices in order of appearance.
        self.voices: list[str] = list(dict.fromkeys(note.voice for note in self.notes))

    def _clef_differs(self, clef: Clef | None, staff: int) -> bool:
        if clef is None:
            return False
        start = self.start_clef_for_staff(staff)
        return start is None or not clef.same_glyph(start)

    def _flag(self, message: str) -> None:
        diagnostic = Diagnostic(AMBIGUOUS_ATTRIBUTES, message, self.number, self.part_id)
        logger.warning(str(diagnostic))
        self.diagnostics.append(diagnostic)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def staves(self) -> int:
        return self.attributes.staff_count

    @property
    def time(self) -> TimeSignature:
        return self.attributes.time

    @property
    def key(self) -> Key | None:
        return self.attributes.key

    @property
    def declares_key(self) -> bool:
        return any(d.key is not None for d in self.declarations)

    @property
    def declares_clefs(self) -> bool:
        return any(d.clefs for d in self.declarations)

    @property
    def declares_time(self) -> bool:
        return any(d.time is not None for d in self.declarations)

    @property
    def declares_staves(self) -> bool:
        return any(d.staves is not None for d in self.declarations)

    def staff_numbers(self) -> range:
        return range(1, self.staves + 1)

    def notes_by_staff(self, staff: int) -> list[Note]:
        """Notes on ``staff``, sharing the measure's own ``Note`` objects."""
        return [note for note in self.notes if note.staff == staff]

    def notes_by_voice(self, voice: str) -> list[Note]:
        return [note for note in self.notes if note.voice == voice]

    def voices_on_staff(self, staff: int) -> list[str]:
        return list(dict.fromkeys(note.voice for note in self.notes if note.staff == staff))

    def clefs(self) -> tuple[Clef, ...]:
        """Clefs active at the end of the measure."""
        return self.attributes.clefs

    def all_clefs(self) -> list[Clef]:
        """Every clef declared anywhere in this measure, in document order."""
        return [clef for declared in self.declarations for clef in declared.clefs]

    def start_clef_for_staff(self, staff: int) -> Clef | None:
        for clef in self.start_clefs:
            if clef.staff == staff:
                return clef
        return None

    def times(self) -> list[TimeSignature]:
        """The time signature repeated once per staff."""
        return [self.time] * self.staves

    def beam_groups(self, staff: int | None = None) -> Iterator[list[Note]]:
        notes = self.notes if staff is None else self.notes_by_staff(staff)
        return beam_groups(notes)

    def __repr__(self) -> str:
        return f"Measure(part={self.part_id}, number={self.number}, label={self.label!r})"
