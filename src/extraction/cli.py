"""
Extract regions from an indexed FASTA file.

Usage example:
    extract-regions genome.fa regions.txt -o extracted.fa
    extract-regions genome.fa regions.txt -m -c scaffold -g 100 -o scaffold.fa

The regions file holds one samtools style region per line (chr1, chr1:1-1000,
chr1:500). A '-' in front of a region reverse complements the extract. The
FASTA index (<fasta>.fai) is built when missing or older than the FASTA file.
"""

import argparse
import logging
import sys
from typing import List, Optional

from extraction.config import ExtractionConfig
from extraction.errors import ExtractionError
from extraction.extractor import Extractor
from extraction.indexed_store import IndexedStore
from extraction.logging_utils import setup_logging
from extraction.merger import merge_result, merged_contig_name
from extraction.regions import read_regions
from extraction.writer import DEFAULT_LINE_WIDTH, write_fasta

logger = logging.getLogger(__name__)


def run(config: ExtractionConfig) -> None:
    """Index, parse, extract, optionally merge, and write."""
    with IndexedStore(config.fasta_path, rebuild_index=config.rebuild_index) as store:
        regions = read_regions(config.regions_path, strict=config.strict, names=store)
        extractor = Extractor(store, merge=config.merge, workers=config.threads, progress=config.verbose)
        result = extractor.extract(regions)
    if config.merge:
        name = merged_contig_name(config.regions_path, config.contig_name)
        records = [merge_result(result, name, config.gap_size)]
    else:
        records = result.records()
    write_fasta(records, config.output, line_width=config.line_width)


def parse_args(argv: Optional[List[str]] = None) -> ExtractionConfig:
    parser = argparse.ArgumentParser(
        description="Extract regions from a FASTA file, optionally reverse complemented or merged into one contig.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("fasta", type=str, help="A FASTA formatted file.")
    parser.add_argument("regions", type=str, help="A list of regions to extract in samtools region format (chr1:1-1000, chr1); "
                                                  "a '-' in front of a region reverse complements it.")
    parser.add_argument("--output", "-o", type=str, default=None, help="Output to this location (default: stdout).")
    parser.add_argument("--merge_contigs", "-m", action="store_true",
                        help="Output a single merged contig instead of one record per region.")
    parser.add_argument("--contig_name", "-c", type=str, default=None,
                        help="Name of the merged contig (default: regions file name without extension). Requires -m.")
    parser.add_argument("--gap_size", "-g", type=int, default=None,
                        help="Insert this many N between merged sequences (default: 0). Requires -m.")
    parser.add_argument("--line_width", "-w", type=int, default=DEFAULT_LINE_WIDTH,
                        help=f"Wrap output sequences at this width, 0 for no wrapping (default: {DEFAULT_LINE_WIDTH}).")
    parser.add_argument("--strict", action="store_true", help="Abort on malformed region lines instead of skipping them.")
    parser.add_argument("--threads", "-t", type=int, default=1, help="Number of threads querying the FASTA file.")
    parser.add_argument("--rebuild_index", action="store_true", help="Rebuild the FASTA index even if it is up to date.")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log progress to stderr.")
    parser.add_argument("--quiet", "-q", action="store_true", help="Only log errors.")
    args = parser.parse_args(argv)

    if not args.merge_contigs:
        if args.contig_name is not None:
            parser.error("-c/--contig_name requires -m/--merge_contigs")
        if args.gap_size is not None:
            parser.error("-g/--gap_size requires -m/--merge_contigs")
    try:
        return ExtractionConfig.from_args(args)
    except ValueError as e:
        parser.error(str(e))


def main(argv: Optional[List[str]] = None) -> int:
    config = parse_args(argv)
    setup_logging(verbose=config.verbose, quiet=config.quiet)
    try:
        run(config)
    except ExtractionError as e:
        logger.error(str(e))
        return 1
    except OSError as e:
        logger.error(f"I/O error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
