"""Data models for the VexFlow call sequence emitted by the render adapter."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class VexflowNote:
    """A single VexFlow StaveNote (one note, a chord or a rest) or an invisible GhostNote."""

    note_id: str
    keys: list[str]
    duration: str
    clef: str
    dots: int
    accidentals: list[str | None]
    inline_clef: str | None = None
    inline_clef_annotation: str | None = None
    ghost: bool = False


@dataclass(frozen=True)
class VexflowStave:
    """One stave instance: a staff of a part in one measure."""

    stave_id: int
    x: float
    y: float
    width: float
    measure: int
    part: int
    staff: int
    clef: str | None = None
    clef_annotation: str | None = None
    key: str | None = None
    time: str | None = None
    end_bar: bool = False


@dataclass(frozen=True)
class VexflowVoice:
    """The notes of one voice on one stave, formatted against a time signature."""

    stave_id: int
    voice: str
    num_beats: int
    beat_value: int
    notes: list[VexflowNote]


@dataclass(frozen=True)
class VexflowBeam:
    stave_id: int
    note_ids: list[str]


@dataclass(frozen=True)
class VexflowConnector:
    upper: int
    lower: int
    type: str


@dataclass(frozen=True)
class ScoreDocument:
    """Renderer-neutral drawing plan for one page of a score."""

    title: str
    width: float
    height: float
    view_box: list[float]
    staves: list[VexflowStave] = field(default_factory=list)
    voices: list[VexflowVoice] = field(default_factory=list)
    beams: list[VexflowBeam] = field(default_factory=list)
    connectors: list[VexflowConnector] = field(default_factory=list)
