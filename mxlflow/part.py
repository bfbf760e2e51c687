"""Part model: the measures of one instrument across the whole score."""

from __future__ import annotations

from lxml import etree

from mxlflow.attributes import AttributeSet
from mxlflow.errors import Diagnostic
from mxlflow.measure import Measure
from mxlflow.xml_accessor import XmlElement


class Part:
    """
    Ordered measures of one ``<part>``.

    Each measure is built with the resolved attributes of its predecessor, so
    clef/key/time/staff state flows from measure to measure inside the part
    and never across parts.
    """

    def __init__(self, element: XmlElement | etree._Element, name: str = "") -> None:
        if not isinstance(element, XmlElement):
            element = XmlElement(element)
        self.element = element
        self.part_id = element.attribute("id", "") or ""
        self.name = name

        self.measures: list[Measure] = []
        previous = AttributeSet()
        for number, child in enumerate(element.children("measure"), start=1):
            measure = Measure(child, previous, number, self.part_id)
            self.measures.append(measure)
            previous = measure.attributes

    @property
    def staff_count(self) -> int:
        return max((m.staves for m in self.measures), default=1)

    def staff_numbers(self) -> range:
        return range(1, self.staff_count + 1)

    def measures_with_key_changes(self) -> list[Measure]:
        """Measures that declare a key signature themselves."""
        return [m for m in self.measures if m.declares_key]

    def measures_with_clef_changes(self) -> list[Measure]:
        """Measures that declare clefs but no key signature."""
        return [m for m in self.measures if m.declares_clefs and not m.declares_key]

    @property
    def diagnostics(self) -> list[Diagnostic]:
        return [d for m in self.measures for d in m.diagnostics]

    def __repr__(self) -> str:
        return f"Part(id={self.part_id!r}, measures={len(self.measures)}, staves={self.staff_count})"
