import argparse
from dataclasses import dataclass
from typing import Optional

from extraction.writer import DEFAULT_LINE_WIDTH


@dataclass
class ExtractionConfig:
    """Settings of one extraction run."""
    fasta_path: str
    regions_path: str
    output: Optional[str] = None  # None writes to stdout
    merge: bool = False
    contig_name: Optional[str] = None
    gap_size: int = 0
    line_width: int = DEFAULT_LINE_WIDTH
    strict: bool = False
    threads: int = 1
    rebuild_index: bool = False
    verbose: bool = False
    quiet: bool = False

    def validate(self) -> None:
        if not self.merge and self.contig_name is not None:
            raise ValueError("a contig name requires merge mode")
        if self.contig_name == "":
            raise ValueError("the contig name must not be empty")
        if not self.merge and self.gap_size:
            raise ValueError("a gap size requires merge mode")
        if self.gap_size < 0:
            raise ValueError(f"gap size must not be negative, got {self.gap_size}")
        if self.line_width < 0:
            raise ValueError(f"line width must not be negative, got {self.line_width}")
        if self.threads < 1:
            raise ValueError(f"threads must be at least 1, got {self.threads}")
        if self.verbose and self.quiet:
            raise ValueError("verbose and quiet are mutually exclusive")

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> 'ExtractionConfig':
        config = cls(
            fasta_path=args.fasta,
            regions_path=args.regions,
            output=args.output,
            merge=args.merge_contigs,
            contig_name=args.contig_name,
            gap_size=args.gap_size if args.gap_size is not None else 0,
            line_width=args.line_width,
            strict=args.strict,
            threads=args.threads,
            rebuild_index=args.rebuild_index,
            verbose=args.verbose,
            quiet=args.quiet,
        )
        config.validate()
        return config
