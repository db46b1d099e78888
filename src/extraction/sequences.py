from dataclasses import dataclass
from typing import Optional


# IUPAC DNA codes, both cases. Anything else, U included, is left untouched.
_COMPLEMENT_FROM = b"ACGTMRWSYKVHDBNacgtmrwsykvhdbn"
_COMPLEMENT_TO = b"TGCAKYWSRMBDHVNtgcakywsrmbdhvn"
COMPLEMENT_TABLE = bytes.maketrans(_COMPLEMENT_FROM, _COMPLEMENT_TO)


@dataclass(frozen=True)
class SequenceRecord:
    """A named FASTA entry."""
    name: str
    sequence: bytes
    description: Optional[str] = None

    def __len__(self) -> int:
        return len(self.sequence)

    @property
    def header(self) -> str:
        if self.description:
            return f"{self.name} {self.description}"
        return self.name


def complement(seq: bytes) -> bytes:
    return seq.translate(COMPLEMENT_TABLE)


def reverse_complement(seq: bytes) -> bytes:
    """Reverse a sequence and complement every base, keeping its case."""
    return complement(seq)[::-1]
