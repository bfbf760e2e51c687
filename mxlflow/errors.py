"""Exceptions and diagnostics raised while loading a MusicXML score."""

from dataclasses import dataclass

AMBIGUOUS_ATTRIBUTES = "ambiguous-attributes"


class MusicXmlError(ValueError):
    """Base class for every fatal MusicXML loading error."""


class ParseError(MusicXmlError):
    """The document is not well-formed XML or not a partwise score."""


class InvalidNode(MusicXmlError):
    """A model constructor received something that is not an XML element."""

    def __init__(self, node: object) -> None:
        super().__init__(f'The node "{node!r}" is not a valid document node')
        self.node = node


class MissingTimeSignature(MusicXmlError):
    """A measure has no time signature, even after inheritance."""

    def __init__(self, measure: int, part_id: str | None = None) -> None:
        where = f"part '{part_id}', " if part_id else ""
        super().__init__(f"No time signature resolvable for {where}measure {measure}")
        self.measure = measure
        self.part_id = part_id


@dataclass(frozen=True)
class Diagnostic:
    """
    A recoverable ambiguity that was resolved with a documented fallback.

    Attributes:
        code:    Machine readable kind, e.g. ``AMBIGUOUS_ATTRIBUTES``.
        message: Human readable explanation.
        measure: 1-based measure number inside the part.
        part_id: Id of the part, when known.
    """

    code: str
    message: str
    measure: int
    part_id: str | None = None

    def __str__(self) -> str:
        where = f"part {self.part_id}, " if self.part_id else ""
        return f"[{self.code}] {where}measure {self.measure}: {self.message}"
