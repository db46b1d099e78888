"""
FASTA index (.fai) construction and persistence.

The index holds one row per record with the columns used by samtools faidx:
name, length, offset, line_bases and line_bytes. With it, any 1-based
coordinate of a record maps to a byte position in the FASTA file without
scanning the file again.
"""

import argparse
import csv
import logging
import os
import tempfile
from dataclasses import dataclass
from typing import List, Optional

import pandas as pd

from extraction.errors import FormatError

logger = logging.getLogger(__name__)

INDEX_SUFFIX = ".fai"
INDEX_COLUMNS = ["name", "length", "offset", "line_bases", "line_bytes"]


@dataclass(frozen=True)
class IndexEntry:
    """Location and line layout of one record inside a FASTA file."""
    name: str
    length: int      # number of bases
    offset: int      # byte offset of the first base
    line_bases: int  # bases per full line
    line_bytes: int  # bytes per full line, terminator included

    def byte_position(self, position: int) -> int:
        """Byte offset of a 0-based position of this record."""
        full_lines, remainder = divmod(position, self.line_bases)
        return self.offset + full_lines * self.line_bytes + remainder


def default_index_path(fasta_path: str) -> str:
    return fasta_path + INDEX_SUFFIX


class _RecordScan:
    """Accumulates line metrics of the record currently being scanned."""

    def __init__(self, name: str, offset: int, header_line: int) -> None:
        self.name = name
        self.offset = offset
        self.header_line = header_line
        self.length = 0
        self.line_bases = 0
        self.line_bytes = 0
        # set once a line shorter than line_bases (or blank) was seen
        self.short_line: Optional[int] = None

    def add_line(self, line: bytes, line_number: int) -> None:
        if not line.strip():
            # blank lines may only trail the record
            if self.short_line is None:
                self.short_line = line_number
            return
        if self.short_line is not None:
            raise FormatError(
                f"Inconsistent line width in record '{self.name}' at line {self.short_line}: "
                f"only the last line of a record may be shorter than {self.line_bases} bases"
            )
        bases = len(line.rstrip(b"\r\n"))
        if self.line_bases == 0:
            self.line_bases = bases
            self.line_bytes = len(line)
        elif bases > self.line_bases:
            raise FormatError(
                f"Line {line_number} of record '{self.name}' has {bases} bases, "
                f"expected at most {self.line_bases}"
            )
        elif bases == self.line_bases and len(line) != self.line_bytes:
            # a full line ending the file without a newline is still consistent
            if len(line) != bases:
                raise FormatError(
                    f"Inconsistent line terminator in record '{self.name}' at line {line_number}"
                )
            self.short_line = line_number
        elif bases < self.line_bases:
            self.short_line = line_number
        self.length += bases

    def to_entry(self) -> IndexEntry:
        if self.length == 0:
            raise FormatError(f"Record '{self.name}' (line {self.header_line}) has no sequence")
        return IndexEntry(
            name=self.name,
            length=self.length,
            offset=self.offset,
            line_bases=self.line_bases,
            line_bytes=self.line_bytes,
        )


def build_index(fasta_path: str) -> List[IndexEntry]:
    """Scan a FASTA file once and return its index entries in file order.

    Args:
        fasta_path: Path to the FASTA file

    Returns:
        List of IndexEntry objects, one per record

    Raises:
        FormatError: on inconsistent line widths, empty or duplicated records,
            or sequence data before the first header
    """
    entries: List[IndexEntry] = []
    seen = set()
    current: Optional[_RecordScan] = None
    position = 0
    with open(fasta_path, "rb") as handle:
        for line_number, line in enumerate(handle, start=1):
            position += len(line)
            if line.startswith(b">"):
                if current is not None:
                    entries.append(current.to_entry())
                fields = line[1:].split()
                if not fields:
                    raise FormatError(f"Empty record name at line {line_number}")
                try:
                    name = fields[0].decode("utf-8")
                except UnicodeDecodeError as e:
                    raise FormatError(f"Record name at line {line_number} is not valid UTF-8") from e
                if name in seen:
                    raise FormatError(f"Duplicate record name '{name}' at line {line_number}")
                seen.add(name)
                current = _RecordScan(name, position, line_number)
            elif current is None:
                if line.strip():
                    raise FormatError(f"Sequence data before the first header at line {line_number}")
            else:
                current.add_line(line, line_number)
    if current is not None:
        entries.append(current.to_entry())
    logger.info(f"Indexed {len(entries)} records in {fasta_path}")
    return entries


def write_index(entries: List[IndexEntry], index_path: str) -> None:
    """Persist index entries as a tab separated .fai file, replacing it atomically."""
    table = pd.DataFrame(
        [[e.name, e.length, e.offset, e.line_bases, e.line_bytes] for e in entries],
        columns=INDEX_COLUMNS,
    )
    directory = os.path.dirname(os.path.abspath(index_path))
    fd, tmp_path = tempfile.mkstemp(prefix=".", suffix=INDEX_SUFFIX, dir=directory)
    try:
        with os.fdopen(fd, "w", newline="") as out:
            table.to_csv(out, sep="\t", header=False, index=False, quoting=csv.QUOTE_NONE, lineterminator="\n")
        os.replace(tmp_path, index_path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise


def read_index(index_path: str) -> List[IndexEntry]:
    """Load the entries of an existing .fai file."""
    if os.path.getsize(index_path) == 0:
        return []
    try:
        table = pd.read_csv(
            index_path,
            sep="\t",
            header=None,
            usecols=range(len(INDEX_COLUMNS)),
            names=INDEX_COLUMNS,
            dtype={"name": str},
            keep_default_na=False,
            na_filter=False,
            quoting=csv.QUOTE_NONE,
        )
    except (ValueError, pd.errors.ParserError) as e:
        raise FormatError(f"Malformed index {index_path}: {e}") from e
    entries = []
    for row in table.itertuples(index=False):
        try:
            entry = IndexEntry(
                name=row.name,
                length=int(row.length),
                offset=int(row.offset),
                line_bases=int(row.line_bases),
                line_bytes=int(row.line_bytes),
            )
        except ValueError as e:
            raise FormatError(f"Malformed index row for '{row.name}' in {index_path}") from e
        if entry.length <= 0 or entry.line_bases <= 0 or entry.line_bytes < entry.line_bases:
            raise FormatError(f"Invalid line layout for '{entry.name}' in {index_path}")
        entries.append(entry)
    return entries


def index_is_fresh(fasta_path: str, index_path: str) -> bool:
    """An index is fresh if it exists and was not modified before the FASTA file."""
    if not os.path.isfile(index_path):
        return False
    return os.path.getmtime(index_path) >= os.path.getmtime(fasta_path)


def load_or_build_index(fasta_path: str, index_path: Optional[str] = None, rebuild: bool = False) -> List[IndexEntry]:
    """Load a fresh companion index, or scan the FASTA file and persist a new one."""
    if not os.path.isfile(fasta_path):
        raise FileNotFoundError(f"FASTA file not found: {fasta_path}")
    index_path = index_path or default_index_path(fasta_path)
    if not rebuild and index_is_fresh(fasta_path, index_path):
        logger.info(f"Loading index {index_path}")
        return read_index(index_path)
    if os.path.exists(index_path):
        logger.info(f"Index {index_path} is older than {fasta_path}, rebuilding")
    entries = build_index(fasta_path)
    try:
        write_index(entries, index_path)
    except OSError as e:
        logger.warning(f"Could not write index {index_path}: {e}")
    return entries


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build the .fai index of a FASTA file.")
    parser.add_argument("fasta", type=str, help="Path to the FASTA file.")
    parser.add_argument("--index", "-i", type=str, default=None, help="Index path (default: <fasta>.fai).")
    return parser.parse_args()


if __name__ == "__main__":
    args = parse_args()
    write_index(build_index(args.fasta), args.index or default_index_path(args.fasta))
