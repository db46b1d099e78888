import threading
from typing import Dict, List, Optional

from extraction.errors import FormatError, NotFound, RangeError
from extraction.fasta_index import IndexEntry, load_or_build_index
from extraction.regions import Region


class IndexedStore:
    """Random access to the records of an indexed FASTA file.

    Queries are plain (name, start, end) -> bytes calls with 1-based inclusive
    coordinates. The store keeps a single read handle open; seek and read are
    done under a lock so queries may come from several threads.
    """

    def __init__(self, fasta_path: str, index_path: Optional[str] = None, rebuild_index: bool = False) -> None:
        self.fasta_path = fasta_path
        entries = load_or_build_index(fasta_path, index_path=index_path, rebuild=rebuild_index)
        self._entries: Dict[str, IndexEntry] = {entry.name: entry for entry in entries}
        self._names: List[str] = [entry.name for entry in entries]
        self._handle = open(fasta_path, "rb")
        self._lock = threading.Lock()

    @property
    def names(self) -> List[str]:
        return list(self._names)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._names)

    def __enter__(self) -> "IndexedStore":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        self._handle.close()

    def entry(self, name: str) -> IndexEntry:
        try:
            return self._entries[name]
        except KeyError:
            raise NotFound(f"Reference '{name}' not found in {self.fasta_path}") from None

    def length(self, name: str) -> int:
        return self.entry(name).length

    def get(self, name: str, start: int, end: int) -> bytes:
        """Return bases start..end (1-based, inclusive) of a record.

        Raises:
            NotFound: if the record is not in the index
            RangeError: unless 1 <= start <= end <= length
        """
        entry = self.entry(name)
        if not 1 <= start <= end <= entry.length:
            raise RangeError(
                f"Region {name}:{start}-{end} is outside of {name} (length {entry.length})"
            )
        first = entry.byte_position(start - 1)
        # the last requested base is included, so read up to one byte past it
        last = entry.byte_position(end - 1) + 1
        with self._lock:
            self._handle.seek(first)
            data = self._handle.read(last - first)
        if len(data) != last - first:
            raise FormatError(f"Unexpected end of file while reading {name}:{start}-{end} from {self.fasta_path}")
        seq = data.replace(b"\n", b"").replace(b"\r", b"")
        if len(seq) != end - start + 1:
            raise FormatError(
                f"Read {len(seq)} bases for {name}:{start}-{end}, the index does not match {self.fasta_path}"
            )
        return seq

    def get_whole(self, name: str) -> bytes:
        return self.get(name, 1, self.length(name))

    def fetch(self, region: Region) -> bytes:
        """Resolve a Region against the store; missing coordinates mean the record bounds."""
        length = self.length(region.name)
        start = region.start if region.start is not None else 1
        end = region.end if region.end is not None else length
        return self.get(region.name, start, end)
