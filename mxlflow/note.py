"""A single musical event: a pitched note, an unpitched note or a rest."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from mxlflow.attributes import Clef
from mxlflow.xml_accessor import XmlElement


class BeamState(Enum):
    NONE = "none"
    START = "start"
    CONTINUE = "continue"
    END = "end"

    @classmethod
    def from_text(cls, text: str) -> BeamState:
        """Map a MusicXML ``<beam>`` value; hooks carry no grouping information."""
        return _BEAM_VALUES.get(text.strip(), cls.NONE)


_BEAM_VALUES = {
    "begin": BeamState.START,
    "continue": BeamState.CONTINUE,
    "end": BeamState.END,
}


@dataclass(frozen=True)
class Pitch:
    step: str
    octave: int
    alter: float = 0.0

    @classmethod
    def from_element(cls, element: XmlElement) -> Pitch:
        # <unpitched> uses display-step/display-octave for its staff position.
        prefix = "display-" if element.tag == "unpitched" else ""
        return cls(
            step=element.text(f"{prefix}step").upper() or "B",
            octave=element.integer(f"{prefix}octave", 4) or 4,
            alter=element.number("alter") or 0.0,
        )

    def __str__(self) -> str:
        alter = int(self.alter)
        accidental = "#" * alter if alter > 0 else "b" * -alter
        return f"{self.step}{accidental}{self.octave}"


@dataclass(frozen=True)
class Note:
    """
    One ``<note>`` element with the state that was active when it was read.

    Attributes:
        pitch:        Sounding/displayed pitch; ``None`` for rests.
        duration:     Length in ticks (``<duration>``, relative to ``<divisions>``).
        dots:         Number of augmentation dots.
        voice:        ``<voice>`` id, ``"1"`` when absent.
        staff:        1-based staff number inside the part.
        is_in_chord:  Shares the onset of the preceding non-chord note.
        beam_state:   Primary beam marker from the source.
        note_type:    Graphic type (``quarter``, ``eighth``...), empty if absent.
        accidental:   Displayed accidental name (``sharp``, ``flat``...), if any.
        is_grace:     Grace notes carry no duration.
        onset:        Ticks from the start of the measure.
        clef:         Clef active on this note's staff.
        clef_changed: The active clef differs from the measure's start clef.
        whole_measure_rest: ``<rest measure="yes"/>``.
    """

    pitch: Pitch | None
    duration: int
    dots: int = 0
    voice: str = "1"
    staff: int = 1
    is_in_chord: bool = False
    beam_state: BeamState = BeamState.NONE
    note_type: str = ""
    accidental: str | None = None
    is_grace: bool = False
    onset: int = 0
    clef: Clef | None = None
    clef_changed: bool = False
    whole_measure_rest: bool = False

    @classmethod
    def from_element(
        cls,
        element: XmlElement,
        *,
        clef: Clef | None = None,
        clef_changed: bool = False,
        onset: int = 0,
    ) -> Note:
        rest = element.child("rest")
        pitch_element = element.child("pitch")
        if pitch_element is None:
            pitch_element = element.child("unpitched")
        pitch = None
        if rest is None and pitch_element is not None:
            pitch = Pitch.from_element(pitch_element)

        beam_state = BeamState.NONE
        for beam in element.children("beam"):
            if beam.attribute("number", "1") == "1":
                beam_state = BeamState.from_text(beam.text())
                break

        return cls(
            pitch=pitch,
            duration=element.integer("duration", 0) or 0,
            dots=len(element.children("dot")),
            voice=element.text("voice") or "1",
            staff=element.integer("staff", 1) or 1,
            is_in_chord=element.has_child("chord"),
            beam_state=beam_state,
            note_type=element.text("type"),
            accidental=element.text("accidental") or None,
            is_grace=element.has_child("grace"),
            onset=onset,
            clef=clef,
            clef_changed=clef_changed,
            whole_measure_rest=rest is not None and rest.attribute("measure") == "yes",
        )

    @property
    def is_rest(self) -> bool:
        return self.pitch is None

    @property
    def is_last_beam_note(self) -> bool:
        return self.beam_state is BeamState.END

    def __str__(self) -> str:
        what = "rest" if self.pitch is None else str(self.pitch)
        return f"{what} ({self.note_type or self.duration}, voice {self.voice}, staff {self.staff})"


@dataclass(frozen=True)
class Forward:
    """
    A ``<forward>`` gap: time that passes in one voice without a visible event.

    ``divisions`` is the ticks-per-quarter in force where the gap was read.
    """

    onset: int
    duration: int
    voice: str = "1"
    staff: int = 1
    divisions: int = 1

    @classmethod
    def from_element(cls, element: XmlElement, *, onset: int, divisions: int) -> Forward:
        return cls(
            onset=onset,
            duration=element.integer("duration", 0) or 0,
            voice=element.text("voice") or "1",
            staff=element.integer("staff", 1) or 1,
            divisions=divisions,
        )
