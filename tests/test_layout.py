"""Unit tests for the pagination layout engine."""

from pathlib import Path

from mxlflow.layout import LayoutConfig, StaveRow, compute_layout, layout_score, stave_rows
from mxlflow.score import load_musicxml

DATA_DIR = Path(__file__).parent / "data"

_ONE_STAVE = [StaveRow(0, 1)]


def test_measures_and_lines_per_page() -> None:
    layout = compute_layout(_ONE_STAVE, LayoutConfig(page_width=1000, min_stave_width=250), 0, 10)
    assert layout.measures_per_line == 4
    assert layout.lines_per_page == 3
    assert layout.stave_width == 230
    assert [len(layout.points_in_line(line)) for line in range(3)] == [4, 4, 2]


def test_point_coordinates() -> None:
    config = LayoutConfig(page_width=1000, min_stave_width=250, stave_space=100, x_offset=20, y_offset=20)
    layout = compute_layout([StaveRow(0, 1), StaveRow(0, 2)], config, 0, 6)
    assert layout.system_space == 250
    assert len(layout.points) == 12

    point = layout.points[5]
    assert (point.stave_index, point.system_index, point.column) == (0, 1, 1)
    assert point.measure_index == 5
    assert point.x == 230 * 1 + 20
    assert point.y == 1 * 250 + 0 * 100 + 20

    lower = layout.points[6]
    assert (lower.stave_index, lower.staff, lower.measure_index) == (1, 2, 0)
    assert lower.y == 0 * 250 + 1 * 100 + 20
    assert lower.first_in_line


def test_systems_never_overlap() -> None:
    config = LayoutConfig()
    layout = compute_layout([StaveRow(0, 1), StaveRow(0, 2), StaveRow(1, 1)], config, 0, 8)
    bottom_of_first_system = max(p.y for p in layout.points if p.system_index == 0)
    top_of_second_system = min(p.y for p in layout.points if p.system_index == 1)
    assert top_of_second_system - bottom_of_first_system > config.stave_space


def test_first_in_line_and_last_measure_follow_the_range() -> None:
    layout = compute_layout(_ONE_STAVE, LayoutConfig(page_width=1000), 3, 9)
    assert [p.measure_index for p in layout.points] == [3, 4, 5, 6, 7, 8]
    assert [m for m in range(3, 9) if layout.is_first_in_line(m)] == [3, 7]
    assert layout.is_last_measure(8)
    assert list(layout.measures_in_line(1)) == [7, 8]
    assert layout.line_of(6) == 0


def test_view_box_covers_every_line() -> None:
    layout = compute_layout(_ONE_STAVE, LayoutConfig(page_width=800, min_stave_width=200), 0, 5)
    assert layout.lines_per_page == 2
    assert layout.height == 2 * layout.system_space
    assert layout.view_box == (0, 0, 800, layout.height)


def test_narrow_page_still_fits_one_measure_per_line() -> None:
    layout = compute_layout(_ONE_STAVE, LayoutConfig(page_width=120, min_stave_width=250), 0, 2)
    assert layout.measures_per_line == 1
    assert layout.lines_per_page == 2


def test_relayout_is_a_fresh_computation() -> None:
    config = LayoutConfig()
    first = compute_layout(_ONE_STAVE, config, 0, 4)
    second = compute_layout(_ONE_STAVE, config, 0, 4)
    assert first == second
    assert first is not second


def test_score_rows_list_every_staff_of_every_part() -> None:
    score = load_musicxml(DATA_DIR / "piano_and_violin.musicxml")
    assert stave_rows(score) == (StaveRow(0, 1), StaveRow(0, 2), StaveRow(1, 1))

    layout = layout_score(score, LayoutConfig())
    assert layout.stop == 3
    assert len(layout.points) == 9
    assert layout.system_space == 100 * 3 + 50
