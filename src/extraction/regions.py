"""
Parsing of region lists in samtools region notation.

Each line holds one region: ``chr1`` (whole record), ``chr1:100-200`` or
``chr1:150`` (a single base). A leading ``-`` marks the region for reverse
complementation. Blank lines and lines starting with ``#`` are ignored.

Reference names may themselves contain colons (``HLA-A*01:01``). When the
known record names are passed in, a line naming a record exactly is taken as
that whole record before any coordinate suffix is looked for.
"""

import logging
import re
from dataclasses import dataclass
from typing import Container, Iterable, List, Optional, Union

from extraction.errors import ParseError

logger = logging.getLogger(__name__)

REVERSE_PREFIX = "-"
COMMENT_PREFIX = "#"

_COORDINATES = re.compile(r"^(?P<start>[0-9][0-9,]*)(?:-(?P<end>[0-9][0-9,]*))?$")
# suffixes that look like an attempt at coordinates, e.g. "5-", "-7", "3-x"
_COORDINATE_LIKE = re.compile(r"^[0-9,\-]+$")


@dataclass(frozen=True)
class Region:
    """A 1-based, inclusive interval of a reference; no coordinates means the whole record."""
    name: str
    start: Optional[int] = None
    end: Optional[int] = None
    reverse: bool = False

    @property
    def is_whole(self) -> bool:
        return self.start is None

    def __str__(self) -> str:
        if self.is_whole:
            return self.name
        return f"{self.name}:{self.start}-{self.end}"

    @classmethod
    def parse(cls, text: str, names: Optional[Container[str]] = None) -> "Region":
        """Parse a single region specification, with an optional leading '-'.

        If names is given and the specification is one of them, it is the whole
        record of that name even when it ends in something like ':1-5'.

        Raises:
            ParseError: if the text is not a valid region
        """
        spec = text.strip()
        reverse = spec.startswith(REVERSE_PREFIX)
        if reverse:
            spec = spec[len(REVERSE_PREFIX):]
        if not spec:
            raise ParseError(f"Region without reference name: '{text}'")
        if any(c.isspace() for c in spec):
            raise ParseError(f"Region contains whitespace: '{text}'")
        if names is not None and spec in names:
            return cls(spec, reverse=reverse)

        name, sep, suffix = spec.rpartition(":")
        if not sep:
            return cls(spec, reverse=reverse)
        match = _COORDINATES.match(suffix)
        if match is None:
            if _COORDINATE_LIKE.match(suffix):
                raise ParseError(f"Malformed coordinates in region '{text}'")
            # a colon belonging to the reference name itself
            return cls(spec, reverse=reverse)
        if not name:
            raise ParseError(f"Region without reference name: '{text}'")

        start = int(match.group("start").replace(",", ""))
        end = int(match.group("end").replace(",", "")) if match.group("end") else start
        if start < 1:
            raise ParseError(f"Region start must be positive: '{text}'")
        if start > end:
            raise ParseError(f"Region start is after its end: '{text}'")
        return cls(name, start, end, reverse)


def parse_region_line(line: Union[str, bytes], names: Optional[Container[str]] = None) -> Optional[Region]:
    """Parse one line of a region list; blank and comment lines give None."""
    if isinstance(line, bytes):
        try:
            line = line.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ParseError(f"Line is not valid UTF-8: {line!r}") from e
    stripped = line.strip()
    if not stripped or stripped.startswith(COMMENT_PREFIX):
        return None
    return Region.parse(stripped, names)


def parse_regions(lines: Iterable[Union[str, bytes]], strict: bool = False,
                  names: Optional[Container[str]] = None) -> List[Region]:
    """Parse region lines in order, keeping duplicates.

    Args:
        lines: Lines of a region list
        strict: Raise on the first malformed line instead of skipping it
        names: Known record names, matched whole before coordinates are split off

    Returns:
        List of parsed regions in input order
    """
    regions = []
    for line_number, line in enumerate(lines, start=1):
        try:
            region = parse_region_line(line, names)
        except ParseError as e:
            if strict:
                raise ParseError(f"Line {line_number}: {e}") from e
            logger.warning(f"Skipping line {line_number}: {e}")
            continue
        if region is not None:
            regions.append(region)
    return regions


def read_regions(path: str, strict: bool = False, names: Optional[Container[str]] = None) -> List[Region]:
    with open(path, "rb") as f:
        regions = parse_regions(f, strict=strict, names=names)
    logger.info(f"Read {len(regions)} regions from {path}")
    return regions
