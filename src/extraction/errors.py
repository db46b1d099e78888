"""
Error kinds raised while indexing a FASTA file and extracting regions from it.

I/O failures are not wrapped: they surface as the built-in OSError (IOError).
"""


class ExtractionError(Exception):
    """Base class for all errors raised by the extraction package."""


class FormatError(ExtractionError):
    """The FASTA file or its index is malformed."""


class NotFound(ExtractionError, KeyError):
    """A region names a reference that is not in the index."""

    def __str__(self) -> str:
        # KeyError would repr() the message
        return str(self.args[0]) if self.args else ""


class RangeError(ExtractionError, ValueError):
    """Coordinates fall outside the bounds of a record."""


class ParseError(ExtractionError, ValueError):
    """A region specification could not be parsed."""
