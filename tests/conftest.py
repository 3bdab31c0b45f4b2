from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterator, List, Optional

import pysam
import pytest

from allelesep.adapters import ReadAccessor, Variant, VariantSource
from allelesep.errors import MissingSampleError
from allelesep.models import GenomicInterval, GenotypeCall, to_base
from allelesep.toy_data import make_toy_data


def gt(text: str) -> GenotypeCall:
    """Parse 'A/A' or 'A|G' style text into a GenotypeCall."""
    sep = "|" if "|" in text else "/"
    alleles = tuple(None if a == "." else a for a in text.split(sep))
    return GenotypeCall(alleles=alleles, phased=sep == "|")


class FakeRead(ReadAccessor):
    def __init__(self, chrom: str, start0: int, end0: int, bases: Optional[Dict[int, str]] = None) -> None:
        self._interval = GenomicInterval(chrom, start0, end0)
        self.bases = bases or {}

    @property
    def name(self) -> str:
        return "fake"

    @property
    def interval(self) -> Optional[GenomicInterval]:
        return self._interval

    def base_at(self, pos0: int) -> str:
        return to_base(self.bases.get(pos0))


class FakeVariant(Variant):
    def __init__(self, pos0: int, calls: Dict[str, str]) -> None:
        self._pos0 = pos0
        self.calls = calls

    @property
    def pos0(self) -> int:
        return self._pos0

    def genotype_call_for(self, sample: str) -> GenotypeCall:
        if sample not in self.calls:
            raise MissingSampleError(sample)
        return gt(self.calls[sample])


class FakeVariantSource(VariantSource):
    """In-memory source that records which variants were pulled."""

    def __init__(self, variants_by_contig: Dict[str, List[FakeVariant]]) -> None:
        self.variants_by_contig = variants_by_contig
        self.consumed: List[int] = []
        self.queries: List[tuple] = []

    @property
    def samples(self) -> List[str]:
        return ["P1", "P2"]

    def query(self, chrom: str, start0: int, end0: int) -> Iterator[Variant]:
        self.queries.append((chrom, start0, end0))
        for v in self.variants_by_contig.get(chrom, []):
            if GenomicInterval(chrom, start0, end0).contains(v.pos0):
                self.consumed.append(v.pos0)
                yield v


_HEADER = pysam.AlignmentHeader.from_dict({"HD": {"VN": "1.6"}, "SQ": [{"SN": "chr1", "LN": 1000}]})


def make_segment(seq: str, start: int = 100, cigar: Optional[list] = None) -> pysam.AlignedSegment:
    a = pysam.AlignedSegment(_HEADER)
    a.query_name = "r1"
    a.query_sequence = seq
    a.flag = 0
    a.reference_id = 0
    a.reference_start = start
    a.mapping_quality = 60
    a.cigartuples = cigar if cigar is not None else [(0, len(seq))]
    a.query_qualities = pysam.qualitystring_to_array("I" * len(seq))
    return a


@pytest.fixture
def toy(tmp_path: Path) -> Dict[str, object]:
    return make_toy_data(outdir=tmp_path / "toy")
