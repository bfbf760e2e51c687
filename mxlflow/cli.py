"""mxlflow CLI entry point."""

import logging
import sys
from pathlib import Path

import click

from mxlflow import __version__
from mxlflow.errors import MusicXmlError
from mxlflow.layout import LayoutConfig, layout_score
from mxlflow.score import MusicXml, load_musicxml

FORMAT_SUFFIXES = {"html": ".html", "md-vexflow": ".md", "html-verovio": ".html"}


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _load(musicxml_file: str) -> MusicXml:
    """Load a score or exit with a readable error."""
    try:
        return load_musicxml(musicxml_file)
    except MusicXmlError as exc:
        click.echo(f"  ERROR: Could not parse score — {exc}", err=True)
        sys.exit(1)
    except OSError as exc:
        click.echo(f"  ERROR: Could not read file — {exc}", err=True)
        sys.exit(1)


def _layout_options(func):
    func = click.option(
        "--stop",
        type=click.IntRange(min=1),
        default=None,
        help="Display measures up to this index (exclusive). Defaults to the last measure.",
    )(func)
    func = click.option(
        "--start",
        type=click.IntRange(min=0),
        default=0,
        show_default=True,
        help="Index of the first measure to display (0-based).",
    )(func)
    func = click.option(
        "--min-stave-width",
        type=click.FloatRange(min=1),
        default=LayoutConfig.min_stave_width,
        show_default=True,
        help="Narrowest acceptable stave; decides how many measures fit on a line.",
    )(func)
    func = click.option(
        "--width",
        type=click.FloatRange(min=1),
        default=LayoutConfig.page_width,
        show_default=True,
        help="Page width in drawing units.",
    )(func)
    return func


# ── CLI group ──────────────────────────────────────────────────────────────────

@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="mxlflow")
@click.option("--verbose", "-v", is_flag=True, help="Log parsing and layout details.")
def main(verbose: bool) -> None:
    """mxlflow — MusicXML layout and VexFlow sheet rendering."""
    _configure_logging(verbose)


# ── render subcommand ──────────────────────────────────────────────────────────

@main.command()
@click.argument("musicxml_file", type=click.Path(exists=True, dir_okay=False, readable=True))
@click.option(
    "--output",
    "-o",
    default=None,
    metavar="PATH",
    help="Destination sheet file path. Defaults to extension based on --format.",
)
@click.option(
    "--title",
    default=None,
    metavar="TEXT",
    help="Title shown in the output header. Defaults to the score's work or movement title.",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(sorted(FORMAT_SUFFIXES), case_sensitive=False),
    default="html",
    show_default=True,
    help="html / md-vexflow: laid out by mxlflow and drawn by VexFlow; html-verovio: reference engraving.",
)
@_layout_options
def render(
    musicxml_file: str,
    output: str | None,
    title: str | None,
    output_format: str,
    width: float,
    min_stave_width: float,
    start: int,
    stop: int | None,
) -> None:
    """
    Render a MusicXML file as sheet music output (HTML or Markdown).

    MUSICXML_FILE is the path to a .musicxml, .xml or compressed .mxl file.

    \b
    Examples:
      mxlflow render score.musicxml
      mxlflow render score.mxl -o score.html --width 1400
      mxlflow render score.xml --format md-vexflow --start 8 --stop 16
    """
    from mxlflow.sheet_exporter import SheetExporter

    source = Path(musicxml_file)
    normalized_format = output_format.lower()
    resolved_output = (
        output if output is not None else str(source.with_suffix(FORMAT_SUFFIXES[normalized_format]))
    )

    click.echo(f"mxlflow v{__version__}")
    click.echo(f"  Score  : {musicxml_file}")
    click.echo(f"  Format : {normalized_format}")
    click.echo(f"  Output : {resolved_output}")
    click.echo()

    exporter = SheetExporter(
        title=title if title is not None else "",
        output_format=normalized_format,
        config=LayoutConfig(page_width=width, min_stave_width=min_stave_width),
        start=start,
        stop=stop,
    )
    try:
        exporter.export(musicxml_file, resolved_output)
    except OSError as exc:
        click.echo(f"  ERROR: Could not write output file — {exc}", err=True)
        sys.exit(1)
    except ValueError as exc:
        click.echo(f"  ERROR: Could not render score — {exc}", err=True)
        sys.exit(1)

    click.echo(f"Done!  Open '{resolved_output}' in a browser (Markdown needs a viewer that runs scripts).")


# ── inspect subcommand ─────────────────────────────────────────────────────────

@main.command()
@click.argument("musicxml_file", type=click.Path(exists=True, dir_okay=False, readable=True))
@_layout_options
def inspect(
    musicxml_file: str,
    width: float,
    min_stave_width: float,
    start: int,
    stop: int | None,
) -> None:
    """
    Print parts, attribute changes, the page grid and diagnostics of a score.

    \b
    Examples:
      mxlflow inspect score.musicxml
      mxlflow inspect score.musicxml --width 1400 --start 4
    """
    score = _load(musicxml_file)

    click.echo(f"Title  : {score.title or '(untitled)'}")
    click.echo(f"Parts  : {len(score.parts)}  |  Staves per system: {score.total_staves}")
    click.echo()
    for part in score.parts:
        click.echo(f"[{part.part_id}] {part.name or '(unnamed)'}: "
                   f"{len(part.measures)} measure(s), {part.staff_count} staff/staves")
        for measure in part.measures:
            changes = []
            if measure.declares_clefs:
                changes.append("clefs " + " ".join(str(c) for c in measure.all_clefs()))
            if measure.declares_key and measure.key is not None:
                changes.append(f"key {measure.key}")
            if measure.declares_time:
                changes.append(f"time {measure.time}")
            if measure.declares_staves:
                changes.append(f"staves {measure.staves}")
            if changes:
                click.echo(f"    m{measure.label:<4} {', '.join(changes)}")

    stop = score.measure_count if stop is None else min(stop, score.measure_count)
    layout = layout_score(
        score,
        LayoutConfig(page_width=width, min_stave_width=min_stave_width),
        min(start, stop),
        stop,
    )
    click.echo()
    click.echo(f"Layout : {layout.measures_per_line} measure(s) per line, "
               f"{layout.lines_per_page} line(s), stave width {layout.stave_width}, "
               f"page height {layout.height}")

    if score.diagnostics:
        click.echo()
        click.echo(f"Diagnostics ({len(score.diagnostics)}):")
        for diagnostic in score.diagnostics:
            click.echo(f"  {diagnostic}")
