"""Thin, music-agnostic helper over an lxml element."""

from __future__ import annotations

from typing import Iterator

from lxml import etree

from mxlflow.errors import InvalidNode


def local_name(node: etree._Element) -> str:
    """Tag name of ``node`` without any ``{namespace}`` prefix."""
    return etree.QName(node).localname


class XmlElement:
    """
    Wraps one element of a parsed document and gives name based access to
    its children, siblings, text and attributes.

    Only direct children are searched; MusicXML nests the same tag names at
    different depths (``<staff>`` inside ``<note>`` vs. ``<staves>`` inside
    ``<attributes>``) so a descendant search would mix levels.
    """

    def __init__(self, node: etree._Element) -> None:
        if not isinstance(node, etree._Element) or not isinstance(node.tag, str):
            raise InvalidNode(node)
        self.node = node

    @property
    def tag(self) -> str:
        return local_name(self.node)

    def _iter_children(self, name: str = "") -> Iterator[etree._Element]:
        for child in self.node:
            if not isinstance(child.tag, str):
                continue
            if name == "" or local_name(child) == name:
                yield child

    def child(self, name: str) -> XmlElement | None:
        """First direct child called ``name``, or ``None``."""
        for child in self._iter_children(name):
            return XmlElement(child)
        return None

    def children(self, name: str = "") -> list[XmlElement]:
        """Direct element children called ``name`` (all of them when empty)."""
        return [XmlElement(child) for child in self._iter_children(name)]

    def siblings(self, name: str) -> list[XmlElement]:
        """Elements called ``name`` sharing this element's parent, self included."""
        parent = self.node.getparent()
        if parent is None:
            return [self] if self.tag == name else []
        return XmlElement(parent).children(name)

    def find_previous(self, name: str, vicinity: int = 2) -> tuple[XmlElement | None, int]:
        """
        Look back at most ``vicinity`` element siblings for one called ``name``.

        Returns the element and its distance (0 = immediately before), or
        ``(None, 0)``.
        """
        distance = 0
        previous = self.node.getprevious()
        while previous is not None and distance <= vicinity:
            if isinstance(previous.tag, str):
                if local_name(previous) == name:
                    return XmlElement(previous), distance
                distance += 1
            previous = previous.getprevious()
        return None, 0

    def has_child(self, name: str) -> bool:
        return self.child(name) is not None

    def text(self, name: str = "") -> str:
        """
        Stripped text of the children called ``name`` joined by newlines, or the
        element's own text when ``name`` is empty.
        """
        if name == "":
            return (self.node.text or "").strip()
        return "\n".join(self.text_list(name)).strip()

    def text_list(self, name: str) -> list[str]:
        return [(child.text or "").strip() for child in self._iter_children(name)]

    def number(self, name: str) -> float | None:
        """Numeric value of the first child called ``name``; ``None`` if absent or not a number."""
        child = self.child(name)
        if child is None:
            return None
        try:
            return float(child.text())
        except ValueError:
            return None

    def integer(self, name: str, default: int | None = None) -> int | None:
        value = self.number(name)
        return default if value is None else int(value)

    def attribute(self, name: str, default: str | None = None) -> str | None:
        return self.node.get(name, default)

    def __repr__(self) -> str:
        return f"XmlElement(<{self.tag}>)"
