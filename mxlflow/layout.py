"""Pagination: map measures of every stave onto lines and systems of a page."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Sequence

from mxlflow.score import MusicXml

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LayoutConfig:
    """
    Page geometry, in the drawing surface's units.

    ``page_width`` is always passed in explicitly; nothing is read from the
    environment.
    """

    page_width: float = 1000
    min_stave_width: float = 250
    stave_space: float = 100
    x_offset: float = 20
    y_offset: float = 20
    system_margin: float = 50


@dataclass(frozen=True)
class StaveRow:
    """One horizontal stave of a system: a staff of a part."""

    part_index: int
    staff: int


@dataclass(frozen=True)
class LayoutPoint:
    """
    Top-left corner of one stave instance.

    Attributes:
        measure_index: Index into the part's measure list.
        stave_index:   Row among all staves of the system.
        system_index:  Line on the page.
        column:        Position of the measure inside its line.
    """

    x: float
    y: float
    measure_index: int
    stave_index: int
    system_index: int
    part_index: int
    staff: int
    column: int
    first_in_line: bool


@dataclass(frozen=True)
class PageLayout:
    config: LayoutConfig
    start: int
    stop: int
    measures_per_line: int
    lines_per_page: int
    stave_width: float
    system_space: float
    rows: tuple[StaveRow, ...]
    points: tuple[LayoutPoint, ...]

    @property
    def total_measures(self) -> int:
        return max(0, self.stop - self.start)

    @property
    def height(self) -> float:
        return self.system_space * self.lines_per_page

    @property
    def view_box(self) -> tuple[float, float, float, float]:
        return (0, 0, self.config.page_width, self.height)

    def is_first_in_line(self, measure_index: int) -> bool:
        return (measure_index - self.start) % self.measures_per_line == 0

    def is_last_measure(self, measure_index: int) -> bool:
        return measure_index == self.stop - 1

    def line_of(self, measure_index: int) -> int:
        return (measure_index - self.start) // self.measures_per_line

    def measures_in_line(self, line: int) -> range:
        first = self.start + line * self.measures_per_line
        return range(first, min(first + self.measures_per_line, self.stop))

    def points_in_line(self, line: int) -> list[LayoutPoint]:
        return [point for point in self.points if point.system_index == line]


def stave_rows(score: MusicXml) -> tuple[StaveRow, ...]:
    """Rows of one system, top to bottom: every staff of every part."""
    return tuple(
        StaveRow(part_index, staff)
        for part_index, part in enumerate(score.parts)
        for staff in part.staff_numbers()
    )


def compute_layout(
    rows: Sequence[StaveRow],
    config: LayoutConfig,
    start: int,
    stop: int,
) -> PageLayout:
    """
    Lay out the measures ``[start, stop)`` of ``rows`` staves on a page.

    The stave width is stretched so the measures of a line fill the page; only
    the last line of the range may be short. Systems are ``system_margin``
    apart so they never overlap.
    """
    rows = tuple(rows)
    total = max(0, stop - start)
    measures_per_line = max(1, math.floor(config.page_width / config.min_stave_width))
    stave_width = math.floor(config.page_width / measures_per_line + 0.5) - config.x_offset
    lines_per_page = math.ceil(total / measures_per_line)
    system_space = config.stave_space * len(rows) + config.system_margin

    points: list[LayoutPoint] = []
    for s, row in enumerate(rows):
        index = 0
        for line in range(lines_per_page):
            for m in range(measures_per_line):
                if index >= total:
                    break
                points.append(
                    LayoutPoint(
                        x=stave_width * m + config.x_offset,
                        y=line * system_space + s * config.stave_space + config.y_offset,
                        measure_index=start + index,
                        stave_index=s,
                        system_index=line,
                        part_index=row.part_index,
                        staff=row.staff,
                        column=m,
                        first_in_line=m == 0,
                    )
                )
                index += 1

    logger.debug(
        f"Layout [{start}, {stop}): {measures_per_line} measure(s) per line, "
        f"{lines_per_page} line(s), stave width {stave_width}, {len(points)} stave instance(s)"
    )
    return PageLayout(
        config=config,
        start=start,
        stop=stop,
        measures_per_line=measures_per_line,
        lines_per_page=lines_per_page,
        stave_width=stave_width,
        system_space=system_space,
        rows=rows,
        points=tuple(points),
    )


def layout_score(
    score: MusicXml,
    config: LayoutConfig,
    start: int = 0,
    stop: int | None = None,
) -> PageLayout:
    """Layout for ``score``; ``stop`` defaults to the end of the first part."""
    if stop is None:
        stop = score.measure_count
    return compute_layout(stave_rows(score), config, start, stop)
