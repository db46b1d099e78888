import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterator, List

from tqdm import tqdm

from extraction.indexed_store import IndexedStore
from extraction.regions import Region
from extraction.sequences import SequenceRecord, reverse_complement

logger = logging.getLogger(__name__)

REVERSE_SUFFIX = "/rc"


def region_key(region: Region, merge: bool = False) -> str:
    """Output name of an extracted region.

    In merge mode all regions of a reference share the bare reference name.
    Otherwise the name carries the coordinates and, for reverse complemented
    regions, the samtools style "/rc" suffix.
    """
    if merge:
        return region.name
    key = str(region)
    if region.reverse:
        key += REVERSE_SUFFIX
    return key


class ExtractionResult:
    """Extracted sequences keyed by output name, in first-seen order.

    Appending to an existing key concatenates; nothing is deduplicated. The
    length of every appended piece is kept so that merged output can be gapped
    between individual extracts.
    """

    def __init__(self) -> None:
        self.keys: List[str] = []
        self._buffers: Dict[str, bytearray] = {}
        self._segments: Dict[str, List[int]] = {}

    def append(self, key: str, seq: bytes) -> None:
        if key not in self._buffers:
            self.keys.append(key)
            self._buffers[key] = bytearray()
            self._segments[key] = []
        self._buffers[key] += seq
        self._segments[key].append(len(seq))

    def __len__(self) -> int:
        return len(self.keys)

    def __contains__(self, key: object) -> bool:
        return key in self._buffers

    def __getitem__(self, key: str) -> bytes:
        return bytes(self._buffers[key])

    def segment_count(self) -> int:
        return sum(len(self._segments[key]) for key in self.keys)

    def segments(self, key: str) -> Iterator[bytes]:
        """The individual extracts appended under a key, in append order."""
        buffer = self._buffers[key]
        position = 0
        for length in self._segments[key]:
            yield bytes(buffer[position:position + length])
            position += length

    def records(self) -> List[SequenceRecord]:
        return [SequenceRecord(key, bytes(self._buffers[key])) for key in self.keys]


class Extractor:
    """Pulls regions out of an IndexedStore into an ExtractionResult.

    Args:
        store: Opened store to query
        merge: Collapse keys to reference names (merge-to-single-contig mode)
        workers: Number of threads querying the store; results keep input order
        progress: Show a progress bar on stderr
    """

    def __init__(self, store: IndexedStore, merge: bool = False, workers: int = 1, progress: bool = False) -> None:
        if workers < 1:
            raise ValueError(f"workers must be at least 1, got {workers}")
        self.store = store
        self.merge = merge
        self.workers = workers
        self.progress = progress

    def extract_region(self, region: Region) -> bytes:
        seq = self.store.fetch(region)
        if region.reverse:
            seq = reverse_complement(seq)
        return seq

    def extract(self, regions: List[Region]) -> ExtractionResult:
        result = ExtractionResult()
        bar = tqdm(total=len(regions), desc="Extracting regions", unit="region", disable=not self.progress)
        try:
            if self.workers == 1:
                sequences = map(self.extract_region, regions)
                self._collect(result, regions, sequences, bar)
            else:
                with ThreadPoolExecutor(max_workers=self.workers) as executor:
                    # map() yields in submission order, so keys are first-seen as in a sequential run
                    sequences = executor.map(self.extract_region, regions)
                    self._collect(result, regions, sequences, bar)
        finally:
            bar.close()
        logger.info(f"Extracted {len(regions)} regions into {len(result)} sequences")
        return result

    def _collect(self, result: ExtractionResult, regions: List[Region], sequences: Iterator[bytes], bar: tqdm) -> None:
        for region, seq in zip(regions, sequences):
            logger.debug(f"{region}: {len(seq)} bases")
            result.append(region_key(region, self.merge), seq)
            bar.update(1)
