"""Per-measure musical state: clefs, key, time signature and staff count."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

from mxlflow.errors import ParseError
from mxlflow.xml_accessor import XmlElement

logger = logging.getLogger(__name__)

MAJOR = "major"
MINOR = "minor"


@dataclass(frozen=True)
class Clef:
    """
    A clef bound to one staff of a part.

    Attributes:
        staff:         1-based staff number inside the part.
        sign:          MusicXML sign (``G``, ``F``, ``C``, ``percussion``, ``TAB``).
        line:          Staff line the sign sits on; ``None`` for percussion/TAB.
        octave_change: ``<clef-octave-change>``, e.g. ``-1`` for a tenor-voice treble.
    """

    staff: int
    sign: str
    line: int | None = None
    octave_change: int = 0

    @classmethod
    def from_element(cls, element: XmlElement) -> Clef:
        number = element.attribute("number")
        staff = int(number) if number and number.isdigit() else 1
        return cls(
            staff=staff,
            sign=element.text("sign"),
            line=element.integer("line"),
            octave_change=element.integer("clef-octave-change", 0) or 0,
        )

    def same_glyph(self, other: Clef | None) -> bool:
        """True when ``other`` draws the same clef symbol, regardless of staff."""
        if other is None:
            return False
        return (self.sign, self.line, self.octave_change) == (
            other.sign,
            other.line,
            other.octave_change,
        )

    def __str__(self) -> str:
        line = "" if self.line is None else str(self.line)
        return f"{self.sign}{line}"


@dataclass(frozen=True)
class Key:
    """Traditional key signature: sharps (>0) or flats (<0) on the circle of fifths."""

    fifths: int
    mode: str = MAJOR

    @classmethod
    def from_element(cls, element: XmlElement) -> Key:
        mode = element.text("mode").lower()
        return cls(
            fifths=element.integer("fifths", 0) or 0,
            mode=MINOR if mode == MINOR else MAJOR,
        )

    def __str__(self) -> str:
        return f"{self.fifths:+d} {self.mode}"


@dataclass(frozen=True)
class TimeSignature:
    beats: int
    beat_type: int
    symbol: str | None = None

    @classmethod
    def from_element(cls, element: XmlElement) -> TimeSignature | None:
        if element.has_child("senza-misura") or not element.has_child("beats"):
            return None
        # Additive (3+2) and composite (3/8 + 2/4) meters are summed over the
        # smallest common beat type.
        beat_types = element.text_list("beat-type")
        pairs: list[tuple[int, int]] = []
        for index, text in enumerate(element.text_list("beats")):
            beat_type = beat_types[min(index, len(beat_types) - 1)] if beat_types else "4"
            try:
                beats = sum(int(part) for part in text.split("+") if part.strip())
                pairs.append((beats, int(beat_type)))
            except ValueError as exc:
                raise ParseError(f"Unreadable time signature {text!r}/{beat_type!r}") from exc
        if any(beat_type <= 0 for _, beat_type in pairs):
            raise ParseError("Time signature beat type must be positive")

        common = math.lcm(*(beat_type for _, beat_type in pairs))
        beats = sum(count * (common // beat_type) for count, beat_type in pairs)
        return cls(beats=beats, beat_type=common, symbol=element.attribute("symbol"))

    def __str__(self) -> str:
        return f"{self.beats}/{self.beat_type}"


@dataclass(frozen=True)
class AttributeSet:
    """
    The clef/key/time/staff-count state of one measure.

    A set read from an ``<attributes>`` element only carries the fields that
    element declares. :meth:`merge` resolves it against the previous measure's
    state; inherited fields keep the previous *objects*, so ``is`` tells an
    inherited value apart from an identical redeclaration.
    """

    clefs: tuple[Clef, ...] = ()
    key: Key | None = None
    time: TimeSignature | None = None
    staves: int | None = None
    divisions: int | None = None
    ambiguous_clefs: bool = field(default=False, compare=False)

    @classmethod
    def from_element(cls, element: XmlElement) -> AttributeSet:
        key = element.child("key")
        time = element.child("time")
        return cls(
            clefs=tuple(Clef.from_element(clef) for clef in element.children("clef")),
            key=Key.from_element(key) if key is not None else None,
            time=TimeSignature.from_element(time) if time is not None else None,
            staves=element.integer("staves"),
            divisions=element.integer("divisions"),
        )

    @property
    def staff_count(self) -> int:
        return self.staves if self.staves is not None else 1

    def is_empty(self) -> bool:
        return (
            not self.clefs
            and self.key is None
            and self.time is None
            and self.staves is None
            and self.divisions is None
        )

    def clef_for_staff(self, staff: int) -> Clef | None:
        for clef in reversed(self.clefs):
            if clef.staff == staff:
                return clef
        return None

    def merge(self, previous: AttributeSet) -> AttributeSet:
        """
        Resolve this declaration over ``previous``.

        Undeclared fields are inherited by reference, declared ones replace the
        previous value. A clef declaration covering fewer staves than the part
        has is overlaid per staff on the inherited clefs (MusicXML 2.0 files
        spread clef changes through the measure); when the inherited set was
        already complete the result is flagged with ``ambiguous_clefs``.
        """
        staves = self.staves if self.staves is not None else previous.staves
        staff_count = staves if staves is not None else 1

        ambiguous = False
        if not self.clefs:
            clefs = previous.clefs
        elif len(self.clefs) < staff_count and previous.clefs:
            by_staff = {clef.staff: clef for clef in previous.clefs}
            by_staff.update((clef.staff, clef) for clef in self.clefs)
            clefs = tuple(by_staff[staff] for staff in sorted(by_staff))
            ambiguous = len(previous.clefs) == staff_count
            logger.debug(
                f"Partial clef declaration for {len(self.clefs)} of {staff_count} staves "
                f"overlaid on {len(previous.clefs)} inherited clefs"
            )
        else:
            clefs = self.clefs

        return AttributeSet(
            clefs=clefs,
            key=self.key if self.key is not None else previous.key,
            time=self.time if self.time is not None else previous.time,
            staves=staff_count,
            divisions=self.divisions if self.divisions is not None else previous.divisions,
            ambiguous_clefs=ambiguous,
        )
