"""Connector topology between simultaneous staves of a line."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from mxlflow.layout import PageLayout


class ConnectorType(str, Enum):
    SINGLE_LEFT = "single-left"
    SINGLE_RIGHT = "single-right"
    BRACE = "brace"
    BOLD_DOUBLE_RIGHT = "bold-double-right"


@dataclass(frozen=True)
class Connector:
    """A connector between the stave instances of two adjacent rows of one measure."""

    measure_index: int
    upper: int
    lower: int
    type: ConnectorType


@dataclass(frozen=True)
class EndBarline:
    """A terminal barline on one stave instance instead of a cross-part connector."""

    measure_index: int
    stave_index: int


def place_line_connectors(
    layout: PageLayout, line: int
) -> tuple[list[Connector], list[EndBarline]]:
    """
    Connectors and end barlines of one line of ``layout``.

    * Rows of the same part are joined on the right of every measure.
    * The first measure of the line gets a left barline across every pair of
      rows and a brace between rows of the same part.
    * The last measure of the range closes rows of the same part with a bold
      double barline; the last row of each part gets an end barline instead.
    """
    connectors: list[Connector] = []
    end_bars: list[EndBarline] = []
    rows = layout.rows
    for measure_index in layout.measures_in_line(line):
        first = layout.is_first_in_line(measure_index)
        last = layout.is_last_measure(measure_index)
        for upper in range(len(rows) - 1):
            lower = upper + 1
            same_part = rows[upper].part_index == rows[lower].part_index
            if first:
                connectors.append(Connector(measure_index, upper, lower, ConnectorType.SINGLE_LEFT))
                if same_part:
                    connectors.append(Connector(measure_index, upper, lower, ConnectorType.BRACE))
            if same_part:
                connectors.append(Connector(measure_index, upper, lower, ConnectorType.SINGLE_RIGHT))
                if last:
                    connectors.append(
                        Connector(measure_index, upper, lower, ConnectorType.BOLD_DOUBLE_RIGHT)
                    )
        if last:
            for index, row in enumerate(rows):
                is_part_bottom = index == len(rows) - 1 or rows[index + 1].part_index != row.part_index
                if is_part_bottom:
                    end_bars.append(EndBarline(measure_index, index))
    return connectors, end_bars


def place_connectors(layout: PageLayout) -> tuple[list[Connector], list[EndBarline]]:
    """Run :func:`place_line_connectors` for every line of the page."""
    connectors: list[Connector] = []
    end_bars: list[EndBarline] = []
    for line in range(layout.lines_per_page):
        line_connectors, line_end_bars = place_line_connectors(layout, line)
        connectors.extend(line_connectors)
        end_bars.extend(line_end_bars)
    return connectors, end_bars
