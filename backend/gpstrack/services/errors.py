"""
Ingestion errors.

``ParseError`` subclasses are terminal for one load operation and carry a
single human-readable message. ``IncompleteSample`` is raised for one bad
record and is always caught inside the parser that raised it.
"""


class ParseError(ValueError):
    """A log could not be turned into a usable track."""

    code = "parse_error"


class MalformedInput(ParseError):
    """The document is not well-formed (e.g. broken XML)."""

    code = "malformed_input"


class EmptyTrack(ParseError):
    """Parsing produced zero usable points."""

    code = "empty_track"


class UnsupportedFormat(ParseError):
    """No parser recognizes the file extension or content."""

    code = "unsupported_format"


class IncompleteSample(ValueError):
    """A single record is missing required fields; skip it."""
