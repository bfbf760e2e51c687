"""Translate domain values into VexFlow's vocabulary."""

from __future__ import annotations

from fractions import Fraction
from typing import Final

from mxlflow.attributes import MINOR, Clef, Key, TimeSignature
from mxlflow.note import Note, Pitch

DEFAULT_CLEF: Final[str] = "treble"

_CLEFS: Final[dict[tuple[str, int | None], str]] = {
    ("G", 2): "treble",
    ("G", 1): "french",
    ("F", 4): "bass",
    ("F", 3): "baritone-f",
    ("F", 5): "subbass",
    ("C", 1): "soprano",
    ("C", 2): "mezzo-soprano",
    ("C", 3): "alto",
    ("C", 4): "tenor",
    ("C", 5): "baritone-c",
    ("percussion", None): "percussion",
    ("TAB", None): "tab",
}

_CLEF_ANNOTATIONS: Final[dict[int, str]] = {1: "8va", -1: "8vb"}

_MAJOR_KEYS: Final[dict[int, str]] = {
    -7: "Cb", -6: "Gb", -5: "Db", -4: "Ab", -3: "Eb", -2: "Bb", -1: "F",
    0: "C", 1: "G", 2: "D", 3: "A", 4: "E", 5: "B", 6: "F#", 7: "C#",
}

_MINOR_KEYS: Final[dict[int, str]] = {
    -7: "Abm", -6: "Ebm", -5: "Bbm", -4: "Fm", -3: "Cm", -2: "Gm", -1: "Dm",
    0: "Am", 1: "Em", 2: "Bm", 3: "F#m", 4: "C#m", 5: "G#m", 6: "D#m", 7: "A#m",
}

_TIME_SYMBOLS: Final[dict[str, str]] = {"common": "C", "cut": "C|"}

_DURATIONS: Final[dict[str, str]] = {
    "breve": "1/2",
    "whole": "w",
    "half": "h",
    "quarter": "q",
    "eighth": "8",
    "16th": "16",
    "32nd": "32",
    "64th": "64",
    "128th": "128",
}

# Staff position of a rest glyph, per clef.
_REST_KEYS: Final[dict[str, str]] = {
    "treble": "b/4",
    "bass": "d/3",
    "alto": "c/4",
    "tenor": "a/3",
}

_ACCIDENTALS: Final[dict[str, str]] = {
    "sharp": "#",
    "flat": "b",
    "natural": "n",
    "double-sharp": "##",
    "sharp-sharp": "##",
    "flat-flat": "bb",
    "double-flat": "bb",
}


def clef_name(clef: Clef | None) -> str:
    """VexFlow clef name; unknown or missing clefs fall back to treble."""
    if clef is None:
        return DEFAULT_CLEF
    line = None if clef.sign in ("percussion", "TAB") else clef.line
    return _CLEFS.get((clef.sign, line), DEFAULT_CLEF)


def clef_annotation(clef: Clef | None) -> str | None:
    if clef is None:
        return None
    return _CLEF_ANNOTATIONS.get(clef.octave_change)


def key_spec(key: Key) -> str:
    table = _MINOR_KEYS if key.mode == MINOR else _MAJOR_KEYS
    return table[max(-7, min(7, key.fifths))]


def time_spec(time: TimeSignature) -> str:
    if time.symbol in _TIME_SYMBOLS:
        return _TIME_SYMBOLS[time.symbol]
    return f"{time.beats}/{time.beat_type}"


def duration(note: Note) -> str:
    """
    VexFlow duration code: one ``d`` per dot, ``r`` suffixed for rests.

    Whole-measure rests and rests without ``<type>`` are drawn as whole rests
    whatever the meter; an untyped note is drawn as a quarter.
    """
    if note.is_rest and note.whole_measure_rest:
        return "wr"
    code = _DURATIONS.get(note.note_type)
    if code is None:
        code = "w" if note.is_rest else "q"
    code += "d" * note.dots
    return f"{code}r" if note.is_rest else code


def pitch_key(pitch: Pitch) -> str:
    alter = int(pitch.alter)
    accidental = "#" * alter if alter > 0 else "b" * -alter
    return f"{pitch.step.lower()}{accidental}/{pitch.octave}"


def rest_key(clef: str) -> str:
    return _REST_KEYS.get(clef, _REST_KEYS[DEFAULT_CLEF])


def note_key(note: Note, clef: str) -> str:
    if note.pitch is None:
        return rest_key(clef)
    return pitch_key(note.pitch)


def accidental(note: Note) -> str | None:
    if note.accidental is None:
        return None
    return _ACCIDENTALS.get(note.accidental)


_GHOST_LENGTHS: Final[tuple[tuple[Fraction, str], ...]] = (
    (Fraction(4), "w"),
    (Fraction(2), "h"),
    (Fraction(1), "q"),
    (Fraction(1, 2), "8"),
    (Fraction(1, 4), "16"),
    (Fraction(1, 8), "32"),
    (Fraction(1, 16), "64"),
)


def gap_durations(ticks: int, divisions: int) -> list[str]:
    """
    Undotted duration codes that add up to a gap of ``ticks``, longest first.

    A remainder shorter than a 64th is dropped.
    """
    remaining = Fraction(ticks, divisions or 1)
    codes: list[str] = []
    for length, code in _GHOST_LENGTHS:
        while remaining >= length:
            codes.append(code)
            remaining -= length
    return codes
