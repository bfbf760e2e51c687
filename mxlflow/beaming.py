"""Beam grouping over the notes of one measure."""

from __future__ import annotations

from typing import Iterable, Iterator

from mxlflow.note import BeamState, Note


def timelines(notes: Iterable[Note]) -> dict[tuple[str, int], list[Note]]:
    """Split notes into (voice, staff) timelines, each sorted by onset."""
    lines: dict[tuple[str, int], list[Note]] = {}
    for note in notes:
        lines.setdefault((note.voice, note.staff), []).append(note)
    for line in lines.values():
        line.sort(key=lambda n: n.onset)
    return lines


def beam_groups(notes: Iterable[Note]) -> Iterator[list[Note]]:
    """
    Yield the beamable groups of ``notes``, one (voice, staff) timeline at a time.

    MusicXML marks every beamed note with begin/continue/end. The renderer only
    needs the grouping, the beam count per note is derived from durations
    downstream. A group has to hold more than one note to be yielded; an ``end``
    with nothing open, a ``begin`` inside an open group or an unbeamed note in
    the middle of a group restart the accumulator instead of failing. Grace
    notes and chord members never open or break a group.
    """
    for line in timelines(notes).values():
        group: list[Note] = []
        for note in line:
            if note.is_in_chord or note.is_grace:
                continue
            state = note.beam_state
            if state is BeamState.START:
                group = [note]
            elif state is BeamState.CONTINUE:
                if group:
                    group.append(note)
            elif state is BeamState.END:
                if group:
                    group.append(note)
                    if len(group) > 1:
                        yield group
                group = []
            else:
                group = []
