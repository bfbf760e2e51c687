"""Tests for the render adapter and the re-paging score renderer."""

from pathlib import Path

from mxlflow import vexmap
from mxlflow.attributes import MINOR, Clef, Key, TimeSignature
from mxlflow.layout import LayoutConfig, layout_score
from mxlflow.note import Note, Pitch
from mxlflow.render import DrawingSurface, RenderAdapter, ScoreRenderer
from mxlflow.score import MusicXml, load_musicxml
from mxlflow.sheet_models import VexflowBeam, VexflowConnector

DATA_DIR = Path(__file__).parent / "data"


def _document(score: MusicXml, config: LayoutConfig | None = None):
    layout = layout_score(score, config or LayoutConfig())
    return RenderAdapter(score, layout).build()


def test_three_measure_staves() -> None:
    document = _document(load_musicxml(DATA_DIR / "three_measures.musicxml"))
    assert document.title == "Three Measures"
    assert document.view_box == [0, 0, 1000, 150]

    first, second, third = document.staves
    assert (first.x, first.y, first.width) == (20, 20, 230)
    assert (first.clef, first.key, first.time) == ("treble", "C", "4/4")
    assert (second.clef, second.key, second.time) == (None, None, None)
    assert second.x == 250
    assert not second.end_bar
    assert third.end_bar


def test_three_measure_notes_and_beams() -> None:
    document = _document(load_musicxml(DATA_DIR / "three_measures.musicxml"))
    first, second, third = document.voices

    assert (first.num_beats, first.beat_value) == (4, 4)
    assert [n.duration for n in first.notes] == ["h", "8", "8", "8", "8"]
    assert [n.keys for n in first.notes] == [["c/5"], ["d/5"], ["e/5"], ["f#/5"], ["g/5"]]
    assert first.notes[3].accidentals == ["#"]
    assert document.beams == [VexflowBeam(stave_id=0, note_ids=["0:1", "0:2", "0:3", "0:4"])]

    chord, rest, dotted, flat = second.notes
    assert chord.keys == ["c/4", "e/4", "g/4"]
    assert chord.accidentals == [None, None, None]
    assert (rest.keys, rest.duration) == (["b/4"], "qr")
    assert (dotted.duration, dotted.dots) == ("qd", 1)
    assert (flat.keys, flat.accidentals) == (["bb/4"], ["b"])

    assert [(n.keys, n.duration) for n in third.notes] == [(["b/4"], "wr")]


def test_duet_clefs_keys_and_inline_clef() -> None:
    document = _document(load_musicxml(DATA_DIR / "piano_and_violin.musicxml"))
    staves = document.staves
    assert len(staves) == 9
    assert [(s.part, s.staff, s.measure) for s in staves[:4]] == [(0, 1, 1), (0, 1, 2), (0, 1, 3), (0, 2, 1)]
    assert (staves[0].clef, staves[0].key, staves[0].time) == ("treble", "Cm", "3/4")
    assert (staves[3].clef, staves[3].key) == ("bass", "Cm")
    assert staves[3].y == 120
    assert staves[1].clef is None
    assert staves[2].clef is None
    assert staves[7].key is None

    upper_second = next(v for v in document.voices if v.stave_id == 1)
    assert [n.inline_clef for n in upper_second.notes] == [None, "bass", None]
    assert [n.clef for n in upper_second.notes] == ["treble", "bass", "bass"]

    rest = next(v for v in document.voices if v.stave_id == 4).notes[0]
    assert (rest.keys, rest.duration, rest.dots) == (["d/3"], "hdr", 1)


def test_duet_connectors_and_end_bars() -> None:
    document = _document(load_musicxml(DATA_DIR / "piano_and_violin.musicxml"))
    assert len(document.connectors) == 7
    assert document.connectors[0] == VexflowConnector(upper=0, lower=3, type="single-left")
    assert VexflowConnector(upper=2, lower=5, type="bold-double-right") in document.connectors
    assert [s.stave_id for s in document.staves if s.end_bar] == [5, 8]
    assert [b.note_ids for b in document.beams] == [["2:0", "2:1"]]


def test_key_is_redrawn_at_each_line_start() -> None:
    score = load_musicxml(DATA_DIR / "piano_and_violin.musicxml")
    document = _document(score, LayoutConfig(page_width=500))
    upper = [s for s in document.staves if s.part == 0 and s.staff == 1]
    assert [s.key for s in upper] == ["Cm", None, "Cm"]
    assert [s.clef for s in upper] == ["treble", None, "bass"]


def test_score_renderer_rebuilds_on_range_change() -> None:
    score = load_musicxml(DATA_DIR / "piano_and_violin.musicxml")
    surface = DrawingSurface(width=1000)
    renderer = ScoreRenderer(score, surface=surface)
    full = renderer.document
    assert len(full.staves) == 9
    assert surface.view_box == (0, 0, 1000, 350)

    partial = renderer.set_range(1, 3)
    assert partial is renderer.document
    assert partial is not full
    assert len(partial.staves) == 6
    assert renderer.start_measure == 1
    first = partial.staves[0]
    assert (first.measure, first.clef, first.key, first.time) == (2, "treble", "Cm", "3/4")

    renderer.stop_measure = 2
    assert len(renderer.document.staves) == 3
    assert renderer.layout.stop == 2


def test_vexflow_vocabulary() -> None:
    assert vexmap.clef_name(Clef(1, "C", 3)) == "alto"
    assert vexmap.clef_name(Clef(1, "percussion")) == "percussion"
    assert vexmap.clef_name(Clef(1, "G", 5)) == "treble"
    assert vexmap.clef_name(None) == "treble"
    assert vexmap.clef_annotation(Clef(1, "G", 2, -1)) == "8vb"
    assert vexmap.key_spec(Key(2)) == "D"
    assert vexmap.key_spec(Key(-9, MINOR)) == "Abm"
    assert vexmap.time_spec(TimeSignature(2, 2, "cut")) == "C|"
    assert vexmap.time_spec(TimeSignature(5, 8)) == "5/8"
    assert vexmap.pitch_key(Pitch("B", 3, -2)) == "bbb/3"


def test_vexflow_durations() -> None:
    assert vexmap.duration(Note(pitch=Pitch("C", 4), duration=3, dots=1, note_type="quarter")) == "qd"
    assert vexmap.duration(Note(pitch=None, duration=2, note_type="16th")) == "16r"
    assert vexmap.duration(Note(pitch=None, duration=8)) == "wr"
    assert vexmap.duration(Note(pitch=None, duration=6, dots=1, note_type="half", whole_measure_rest=True)) == "wr"
    assert vexmap.duration(Note(pitch=Pitch("C", 4), duration=1)) == "q"
    rest = Note(pitch=None, duration=4)
    assert vexmap.note_key(rest, "bass") == "d/3"
    assert vexmap.note_key(rest, "percussion") == "b/4"
    assert vexmap.accidental(Note(pitch=Pitch("F", 4, 1), duration=1, accidental="sharp")) == "#"
    assert vexmap.accidental(Note(pitch=Pitch("F", 4, 1), duration=1)) is None


_TWO_VOICES_WITH_GAPS = """<score-partwise>
  <part-list><score-part id="P1"><part-name>Oboe</part-name></score-part></part-list>
  <part id="P1">
    <measure number="1">
      <attributes>
        <divisions>2</divisions>
        <time><beats>4</beats><beat-type>4</beat-type></time>
        <clef><sign>G</sign><line>2</line></clef>
      </attributes>
      <note><pitch><step>C</step><octave>5</octave></pitch><duration>8</duration><voice>1</voice><type>whole</type></note>
      <backup><duration>8</duration></backup>
      <forward><duration>2</duration><voice>2</voice></forward>
      <note><pitch><step>E</step><octave>4</octave></pitch><duration>2</duration><voice>2</voice><type>quarter</type></note>
      <forward><duration>3</duration><voice>2</voice></forward>
      <note><rest measure="yes"/><duration>1</duration><voice>2</voice><type>eighth</type><dot/></note>
    </measure>
  </part>
</score-partwise>"""


def test_forward_gaps_become_ghost_notes() -> None:
    document = _document(MusicXml(_TWO_VOICES_WITH_GAPS))
    upper, lower = document.voices
    assert [n.note_id for n in upper.notes] == ["0:0"]
    assert [(n.duration, n.ghost) for n in lower.notes] == [
        ("q", True),
        ("q", False),
        ("q", True),
        ("8", True),
        ("wr", False),
    ]
    assert [n.note_id for n in lower.notes] == ["0:1", "0:2", "0:3", "0:4", "0:5"]
    assert lower.notes[0].keys == ["b/4"]
    assert lower.notes[-1].dots == 0


def test_gap_durations() -> None:
    assert vexmap.gap_durations(2, 2) == ["q"]
    assert vexmap.gap_durations(3, 2) == ["q", "8"]
    assert vexmap.gap_durations(7, 1) == ["w", "h", "q"]
    assert vexmap.gap_durations(1, 0) == ["q"]
    assert vexmap.gap_durations(0, 4) == []
