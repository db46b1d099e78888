import logging
import os
import sys
import tempfile
from typing import BinaryIO, Iterable, Optional

from extraction.sequences import SequenceRecord

logger = logging.getLogger(__name__)

DEFAULT_LINE_WIDTH = 80
STDOUT = "-"


def format_record(record: SequenceRecord, line_width: int = DEFAULT_LINE_WIDTH) -> bytes:
    """FASTA text of a record, sequence wrapped at line_width (0 disables wrapping)."""
    if line_width < 0:
        raise ValueError(f"line_width must not be negative, got {line_width}")
    lines = [b">" + record.header.encode("utf-8")]
    seq = record.sequence
    if line_width == 0:
        if seq:
            lines.append(seq)
    else:
        lines.extend(seq[i:i + line_width] for i in range(0, len(seq), line_width))
    return b"\n".join(lines) + b"\n"


def write_records(records: Iterable[SequenceRecord], handle: BinaryIO, line_width: int = DEFAULT_LINE_WIDTH) -> int:
    count = 0
    for record in records:
        handle.write(format_record(record, line_width))
        count += 1
    return count


def write_fasta(records: Iterable[SequenceRecord], output: Optional[str] = None, line_width: int = DEFAULT_LINE_WIDTH) -> None:
    """Write records to a file, or to standard output when output is None or '-'.

    A file is first written next to its destination and moved into place once
    complete, so a failed run never leaves a truncated or clobbered file behind.
    """
    if output is None or output == STDOUT:
        count = write_records(records, sys.stdout.buffer, line_width)
        sys.stdout.buffer.flush()
        logger.info(f"Wrote {count} records to stdout")
        return

    directory = os.path.dirname(os.path.abspath(output))
    fd, tmp_path = tempfile.mkstemp(prefix=".", suffix=".tmp", dir=directory)
    try:
        with os.fdopen(fd, "wb") as out:
            count = write_records(records, out, line_width)
        # mkstemp files are private, keep the permissions of the file being replaced
        mode = os.stat(output).st_mode if os.path.exists(output) else 0o644
        os.chmod(tmp_path, mode & 0o7777)
        os.replace(tmp_path, output)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise
    logger.info(f"Wrote {count} records to {output}")
