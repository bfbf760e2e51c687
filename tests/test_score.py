"""Tests for Part and MusicXml score loading."""

import zipfile
from pathlib import Path

import pytest

from mxlflow.attributes import MINOR, Clef, Key, TimeSignature
from mxlflow.errors import MissingTimeSignature, ParseError
from mxlflow.score import MusicXml, load_musicxml, read_musicxml_bytes

DATA_DIR = Path(__file__).parent / "data"


def _three_measures() -> MusicXml:
    return load_musicxml(DATA_DIR / "three_measures.musicxml")


def _duet() -> MusicXml:
    return load_musicxml(DATA_DIR / "piano_and_violin.musicxml")


def test_three_measures_inherit_clef_and_time() -> None:
    score = _three_measures()
    part = score.parts[0]
    assert len(score.parts) == 1
    assert len(part.measures) == 3
    for measure in part.measures:
        assert measure.start_clef_for_staff(1) == Clef(1, "G", 2)
        assert measure.time == TimeSignature(4, 4)
    assert part.measures[1].attributes is part.measures[0].attributes
    assert part.measures[2].attributes is part.measures[1].attributes


def test_measures_with_keys_are_only_the_declaring_ones() -> None:
    part = _three_measures().parts[0]
    assert part.measures_with_key_changes() == [part.measures[0]]
    assert part.measures_with_clef_changes() == []


def test_title_part_names_and_staff_counts() -> None:
    score = _duet()
    assert score.title == "Duet"
    assert [part.name for part in score.parts] == ["Piano", "Violin"]
    assert [part.part_id for part in score.parts] == ["P1", "P2"]
    assert score.staves_per_part() == [2, 1]
    assert score.total_staves == 3
    assert score.measure_count == 3
    assert _three_measures().title == "Three Measures"


def test_staff_count_is_stable_across_a_part() -> None:
    for part in _duet().parts:
        assert {measure.staves for measure in part.measures} == {part.staff_count}


def test_attribute_state_does_not_leak_between_parts() -> None:
    piano, violin = _duet().parts
    assert violin.measures[0].staves == 1
    assert violin.measures[0].attributes.divisions == 1
    assert piano.measures[0].attributes.divisions == 2


def test_redeclared_key_counts_as_a_declaration() -> None:
    violin = _duet().parts[1]
    assert violin.measures_with_key_changes() == violin.measures[:2]
    assert violin.measures[1].key == Key(-3, MINOR)
    assert violin.measures[1].key is not violin.measures[0].key


def test_inline_clef_change_in_grand_staff() -> None:
    score = _duet()
    piano = score.parts[0]
    second = piano.measures[1]
    assert [note.clef_changed for note in second.notes_by_staff(1)] == [False, True, True]
    assert piano.measures[2].start_clef_for_staff(1) == Clef(1, "F", 4)
    assert piano.measures_with_clef_changes() == [second]
    assert len(score.diagnostics) == 1
    assert score.diagnostics[0].part_id == "P1"
    assert score.diagnostics[0].measure == 2


def test_beam_groups_and_voices() -> None:
    score = _three_measures()
    first = score.parts[0].measures[0]
    groups = list(first.beam_groups())
    assert len(groups) == 1
    assert [str(note.pitch) for note in groups[0]] == ["D5", "E5", "F#5", "G5"]
    assert first.notes[4].is_last_beam_note
    assert not first.notes[1].is_last_beam_note

    piano_last = _duet().parts[0].measures[2]
    assert [len(group) for group in piano_last.beam_groups(1)] == [2]
    assert list(piano_last.beam_groups(2)) == []
    assert piano_last.voices == ["1", "2"]


def test_string_input_and_malformed_documents() -> None:
    text = (DATA_DIR / "three_measures.musicxml").read_text(encoding="utf-8")
    assert len(MusicXml(text).parts[0].measures) == 3

    with pytest.raises(ParseError):
        MusicXml("<score-partwise><part id='P1'>")
    with pytest.raises(ParseError):
        MusicXml("<score-timewise/>")
    with pytest.raises(ParseError):
        MusicXml("<score-partwise><part-list/></score-partwise>")


def test_missing_time_signature_aborts_the_load() -> None:
    with pytest.raises(MissingTimeSignature):
        MusicXml(
            "<score-partwise><part id='P1'><measure number='1'>"
            "<note><rest/><duration>4</duration></note></measure></part></score-partwise>"
        )


def test_compressed_archive_uses_container_rootfile(tmp_path: Path) -> None:
    archive = tmp_path / "score.mxl"
    with zipfile.ZipFile(archive, "w") as zf:
        zf.writestr(
            "META-INF/container.xml",
            '<container><rootfiles><rootfile full-path="music/score.musicxml"/></rootfiles></container>',
        )
        zf.write(DATA_DIR / "piano_and_violin.musicxml", "music/score.musicxml")
        zf.writestr("other.xml", "<not-a-score/>")

    score = load_musicxml(archive)
    assert score.title == "Duet"
    assert read_musicxml_bytes(archive) == (DATA_DIR / "piano_and_violin.musicxml").read_bytes()


def test_broken_archive_is_a_parse_error(tmp_path: Path) -> None:
    archive = tmp_path / "broken.mxl"
    archive.write_bytes(b"not a zip file")
    with pytest.raises(ParseError):
        load_musicxml(archive)
