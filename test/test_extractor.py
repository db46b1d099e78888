import unittest
import os
import random
import shutil
import tempfile
import sys
sys.path.append(os.path.join(os.path.dirname(__file__), '..', 'src'))

from extraction.errors import NotFound, RangeError
from extraction.extractor import ExtractionResult, Extractor, region_key
from extraction.indexed_store import IndexedStore
from extraction.regions import Region, parse_regions
from extraction.sequences import SequenceRecord, complement, reverse_complement


class TestReverseComplement(unittest.TestCase):

    def test_example(self):
        self.assertEqual(reverse_complement(b"ACGTA"), b"TACGT")

    def test_case_is_preserved(self):
        self.assertEqual(reverse_complement(b"AcGt"), b"aCgT")

    def test_ambiguity_codes(self):
        self.assertEqual(complement(b"RYKMBVDHNSW"), b"YRMKVBHDNSW")
        self.assertEqual(reverse_complement(b"RYKMBVDHN"), b"NDHBVKMRY")

    def test_uracil_passes_through(self):
        self.assertEqual(reverse_complement(b"AUGc"), b"gCUT")
        self.assertEqual(reverse_complement(reverse_complement(b"AUGu")), b"AUGu")

    def test_unknown_symbols_pass_through(self):
        self.assertEqual(reverse_complement(b"AX-.*"), b"*.-XT")

    def test_involution(self):
        rng = random.Random(7)
        alphabet = b"ACGTUMRWSYKVHDBNacgtumrwsykvhdbn-.X"
        for _ in range(50):
            seq = bytes(rng.choice(alphabet) for _ in range(rng.randint(0, 40)))
            self.assertEqual(reverse_complement(reverse_complement(seq)), seq)

    def test_empty(self):
        self.assertEqual(reverse_complement(b""), b"")


class TestRegionKey(unittest.TestCase):

    def test_non_merge_keys(self):
        self.assertEqual(region_key(Region("chr1")), "chr1")
        self.assertEqual(region_key(Region("chr1", 1, 4)), "chr1:1-4")
        self.assertEqual(region_key(Region("chr1", 1, 4, True)), "chr1:1-4/rc")
        self.assertEqual(region_key(Region("chr1", reverse=True)), "chr1/rc")

    def test_merge_keys(self):
        self.assertEqual(region_key(Region("chr1", 1, 4), merge=True), "chr1")
        self.assertEqual(region_key(Region("chr1", 5, 8, True), merge=True), "chr1")
        self.assertEqual(region_key(Region("chr2"), merge=True), "chr2")


class TestExtractionResult(unittest.TestCase):

    def test_first_seen_order(self):
        result = ExtractionResult()
        result.append("b", b"AA")
        result.append("a", b"CC")
        result.append("b", b"GG")
        self.assertEqual(result.keys, ["b", "a"])
        self.assertEqual(len(result), 2)
        self.assertEqual(result["b"], b"AAGG")
        self.assertEqual(result["a"], b"CC")
        self.assertIn("a", result)
        self.assertNotIn("c", result)

    def test_segments(self):
        result = ExtractionResult()
        result.append("x", b"ACG")
        result.append("x", b"T")
        result.append("y", b"")
        self.assertEqual(list(result.segments("x")), [b"ACG", b"T"])
        self.assertEqual(list(result.segments("y")), [b""])
        self.assertEqual(result.segment_count(), 3)

    def test_records(self):
        result = ExtractionResult()
        result.append("z", b"TT")
        result.append("a", b"GG")
        self.assertEqual(result.records(), [SequenceRecord("z", b"TT"), SequenceRecord("a", b"GG")])

    def test_empty(self):
        result = ExtractionResult()
        self.assertEqual(result.keys, [])
        self.assertEqual(result.records(), [])
        self.assertEqual(result.segment_count(), 0)


class TestExtractor(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.fasta_path = os.path.join(self.temp_dir, "genome.fa")
        with open(self.fasta_path, "w") as f:
            f.write(">chr1\nACGT\nACGT\n>chr2\nACGTA\n>chr3\nGGGCCCAAAT\nTT\n")
        self.store = IndexedStore(self.fasta_path)

    def tearDown(self):
        self.store.close()
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_separate_regions(self):
        regions = parse_regions(["chr1:1-4", "chr1:5-8"])
        result = Extractor(self.store).extract(regions)
        self.assertEqual(result.keys, ["chr1:1-4", "chr1:5-8"])
        self.assertEqual(result["chr1:1-4"], b"ACGT")
        self.assertEqual(result["chr1:5-8"], b"ACGT")

    def test_merge_mode_collapses_keys(self):
        regions = parse_regions(["chr1:1-4", "chr2:2-3", "chr1:5-8"])
        result = Extractor(self.store, merge=True).extract(regions)
        self.assertEqual(result.keys, ["chr1", "chr2"])
        self.assertEqual(result["chr1"], b"ACGTACGT")
        self.assertEqual(list(result.segments("chr1")), [b"ACGT", b"ACGT"])
        self.assertEqual(result["chr2"], b"CG")

    def test_reverse_complement_region(self):
        result = Extractor(self.store).extract(parse_regions(["-chr2:1-5"]))
        self.assertEqual(result.keys, ["chr2:1-5/rc"])
        self.assertEqual(result["chr2:1-5/rc"], b"TACGT")

    def test_whole_record(self):
        result = Extractor(self.store).extract(parse_regions(["chr3", "-chr3"]))
        self.assertEqual(result["chr3"], b"GGGCCCAAATTT")
        self.assertEqual(result["chr3/rc"], b"AAATTTGGGCCC")

    def test_repeated_regions_are_appended(self):
        result = Extractor(self.store).extract(parse_regions(["chr2:1-2", "chr1:1-1", "chr2:1-2"]))
        self.assertEqual(result.keys, ["chr2:1-2", "chr1:1-1"])
        self.assertEqual(result["chr2:1-2"], b"ACAC")

    def test_forward_and_reverse_of_same_region(self):
        result = Extractor(self.store).extract(parse_regions(["chr2:1-5", "-chr2:1-5"]))
        self.assertEqual(result.keys, ["chr2:1-5", "chr2:1-5/rc"])
        self.assertEqual(reverse_complement(result["chr2:1-5/rc"]), result["chr2:1-5"])

    def test_unknown_reference(self):
        with self.assertRaises(NotFound):
            Extractor(self.store).extract(parse_regions(["chr1:1-4", "chrUn:1-4"]))

    def test_out_of_range(self):
        with self.assertRaises(RangeError):
            Extractor(self.store).extract(parse_regions(["chr2:3-9"]))

    def test_no_regions(self):
        result = Extractor(self.store).extract([])
        self.assertEqual(result.keys, [])

    def test_threads_keep_input_order(self):
        rng = random.Random(3)
        lines = []
        for _ in range(200):
            name, length = rng.choice([("chr1", 8), ("chr2", 5), ("chr3", 12)])
            start = rng.randint(1, length)
            end = rng.randint(start, length)
            prefix = "-" if rng.random() < 0.5 else ""
            lines.append(f"{prefix}{name}:{start}-{end}")
        regions = parse_regions(lines)

        for merge in (False, True):
            sequential = Extractor(self.store, merge=merge).extract(regions)
            threaded = Extractor(self.store, merge=merge, workers=4).extract(regions)
            self.assertEqual(threaded.keys, sequential.keys)
            self.assertEqual(threaded.records(), sequential.records())

    def test_threads_propagate_errors(self):
        regions = parse_regions(["chr1:1-4"] * 10 + ["chrUn"])
        with self.assertRaises(NotFound):
            Extractor(self.store, workers=3).extract(regions)

    def test_invalid_worker_count(self):
        with self.assertRaises(ValueError):
            Extractor(self.store, workers=0)

    def test_progress_bar(self):
        result = Extractor(self.store, progress=True).extract(parse_regions(["chr1:1-2"]))
        self.assertEqual(result["chr1:1-2"], b"AC")

    def test_deterministic(self):
        regions = parse_regions(["-chr3:2-11", "chr1", "chr2:4"])
        first = Extractor(self.store).extract(regions).records()
        second = Extractor(self.store).extract(regions).records()
        self.assertEqual(first, second)


if __name__ == '__main__':
    unittest.main()
