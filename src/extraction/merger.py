import logging
import os
from typing import Optional

from extraction.extractor import ExtractionResult
from extraction.sequences import SequenceRecord

logger = logging.getLogger(__name__)

GAP_SYMBOL = b"N"


def merged_contig_name(regions_path: str, override: Optional[str] = None) -> str:
    """Name of the merged contig: the override, else the region list's file name without extension."""
    if override is not None:
        return override
    return os.path.splitext(os.path.basename(regions_path))[0]


def merge_result(result: ExtractionResult, name: str, gap_size: int = 0, gap_symbol: bytes = GAP_SYMBOL) -> SequenceRecord:
    """Concatenate all extracts into a single record.

    Extracts are taken key by key in first-seen order, and within a key in the
    order they were appended. gap_size filler symbols go between consecutive
    extracts only, never before the first or after the last one. An empty
    result still gives one (empty) record.
    """
    if gap_size < 0:
        raise ValueError(f"gap_size must not be negative, got {gap_size}")
    gap = gap_symbol * gap_size
    pieces = [segment for key in result.keys for segment in result.segments(key)]
    sequence = gap.join(pieces)
    logger.info(f"Merged {len(pieces)} extracts into '{name}' ({len(sequence)} bases)")
    return SequenceRecord(name, sequence)
