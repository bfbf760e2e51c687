"""mxlflow: MusicXML attribute propagation, page layout and VexFlow rendering."""

__version__ = "0.3.0"
