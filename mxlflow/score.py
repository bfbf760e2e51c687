"""Score model and MusicXML document loading."""

from __future__ import annotations

import logging
import zipfile
from pathlib import Path

from lxml import etree

from mxlflow.errors import Diagnostic, ParseError
from mxlflow.part import Part
from mxlflow.xml_accessor import XmlElement, local_name

logger = logging.getLogger(__name__)

_CONTAINER_PATH = "META-INF/container.xml"


def _xml_parser() -> etree.XMLParser:
    # MusicXML files reference a remote DTD; never fetch or expand it.
    return etree.XMLParser(resolve_entities=False, no_network=True, load_dtd=False)


def parse_document(data: str | bytes) -> etree._Element:
    """Parse MusicXML text into its root element."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    try:
        return etree.fromstring(data, parser=_xml_parser())
    except etree.XMLSyntaxError as exc:
        raise ParseError(f"Malformed MusicXML document: {exc}") from exc


class MusicXml:
    """
    A partwise MusicXML score.

    Accepts the document text/bytes or an already parsed root element. Any
    structural error aborts construction; recoverable ambiguities are listed
    in :attr:`diagnostics`.
    """

    def __init__(self, data: str | bytes | etree._Element) -> None:
        root = data if isinstance(data, etree._Element) else parse_document(data)
        if not isinstance(root.tag, str) or local_name(root) != "score-partwise":
            name = local_name(root) if isinstance(root.tag, str) else repr(root)
            raise ParseError(f"Expected a <score-partwise> document, got <{name}>")
        self.root = XmlElement(root)

        part_names = self._read_part_names()
        self.parts: list[Part] = [
            Part(element, part_names.get(element.attribute("id", "") or "", ""))
            for element in self.root.children("part")
        ]
        if not self.parts:
            raise ParseError("The score contains no <part>")

        self.title = self._read_title()
        logger.debug(
            f"Loaded '{self.title}': {len(self.parts)} part(s), "
            f"{self.measure_count} measure(s), {self.total_staves} stave(s) per system"
        )

    def _read_part_names(self) -> dict[str, str]:
        part_list = self.root.child("part-list")
        if part_list is None:
            return {}
        return {
            score_part.attribute("id", "") or "": score_part.text("part-name")
            for score_part in part_list.children("score-part")
        }

    def _read_title(self) -> str:
        work = self.root.child("work")
        if work is not None and work.text("work-title"):
            return work.text("work-title")
        return self.root.text("movement-title")

    @property
    def measure_count(self) -> int:
        return len(self.parts[0].measures)

    @property
    def total_staves(self) -> int:
        """Staves in one system: the sum of every part's staff count."""
        return sum(part.staff_count for part in self.parts)

    def staves_per_part(self) -> list[int]:
        return [part.staff_count for part in self.parts]

    @property
    def diagnostics(self) -> list[Diagnostic]:
        return [d for part in self.parts for d in part.diagnostics]


def _read_mxl(path: Path) -> bytes:
    """Extract the root score file of a compressed ``.mxl`` archive."""
    try:
        with zipfile.ZipFile(path) as archive:
            names = archive.namelist()
            if _CONTAINER_PATH in names:
                container = etree.fromstring(archive.read(_CONTAINER_PATH), parser=_xml_parser())
                for rootfile in container.iter("{*}rootfile"):
                    full_path = rootfile.get("full-path")
                    if full_path in names:
                        return archive.read(full_path)
            candidates = [
                name
                for name in names
                if not name.startswith("META-INF/") and name.lower().endswith((".xml", ".musicxml"))
            ]
            if not candidates:
                raise ParseError(f"No MusicXML file found inside '{path}'")
            return archive.read(candidates[0])
    except zipfile.BadZipFile as exc:
        raise ParseError(f"'{path}' is not a valid .mxl archive: {exc}") from exc
    except etree.XMLSyntaxError as exc:
        raise ParseError(f"Malformed container in '{path}': {exc}") from exc


def read_musicxml_bytes(path: str | Path) -> bytes:
    """Raw MusicXML bytes of an ``.xml``/``.musicxml`` file or an ``.mxl`` archive."""
    path = Path(path)
    if path.suffix.lower() == ".mxl":
        return _read_mxl(path)
    return path.read_bytes()


def load_musicxml(path: str | Path) -> MusicXml:
    """
    Load a score from disk.

    Raises:
        ParseError:           Malformed XML, unsupported root or bad archive.
        MissingTimeSignature: A measure has no resolvable time signature.
        OSError:              The file cannot be read.
    """
    return MusicXml(read_musicxml_bytes(path))
