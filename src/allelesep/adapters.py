"""Read and variant sources consumed by the classifier.

The classifier only sees the abstract interfaces below; the pysam-backed
implementations adapt BAM alignments and VCF records to them.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Iterator, List, Optional

import pysam

from .errors import MissingSampleError
from .models import UNKNOWN_BASE, GenomicInterval, GenotypeCall, to_base

logger = logging.getLogger(__name__)


class ReadAccessor(ABC):
    """An aligned read as seen by the classifier."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @property
    @abstractmethod
    def interval(self) -> Optional[GenomicInterval]:
        """Aligned reference span, or None for an unmapped read."""
        pass

    @abstractmethod
    def base_at(self, pos0: int) -> str:
        """Read base aligned to reference position ``pos0`` (N if none)."""
        pass


class Variant(ABC):
    """A variant record with per-sample genotype calls."""

    @property
    @abstractmethod
    def pos0(self) -> int:
        pass

    @abstractmethod
    def genotype_call_for(self, sample: str) -> GenotypeCall:
        """Return the sample's call; raise MissingSampleError if absent."""
        pass


class VariantSource(ABC):
    """Random-access lookup of variants by genomic interval."""

    @property
    @abstractmethod
    def samples(self) -> List[str]:
        pass

    @abstractmethod
    def query(self, chrom: str, start0: int, end0: int) -> Iterator[Variant]:
        """Yield variants with ``start0 <= pos0 < end0`` in source order."""
        pass


def extract_base_at_position(read: pysam.AlignedSegment, pos0: int) -> str:
    """Return the read base aligned to reference position ``pos0``.

    Walks the CIGAR once. Positions outside the read, inside a deletion or
    reference skip, or covered by a base outside ACGT give N.
    """
    if read.is_unmapped or read.cigartuples is None:
        return UNKNOWN_BASE
    seq = read.query_sequence
    if seq is None:
        return UNKNOWN_BASE

    ref_pos = read.reference_start
    query_pos = 0
    if pos0 < ref_pos:
        return UNKNOWN_BASE

    for op, length in read.cigartuples:
        if op in (0, 7, 8):  # M, =, X: consumes query and ref
            if pos0 < ref_pos + length:
                qpos = query_pos + (pos0 - ref_pos)
                if 0 <= qpos < len(seq):
                    return to_base(seq[qpos])
                return UNKNOWN_BASE
            ref_pos += length
            query_pos += length
        elif op in (1, 4):  # I, S: consumes query only
            query_pos += length
        elif op in (2, 3):  # D, N: consumes ref only
            if pos0 < ref_pos + length:
                return UNKNOWN_BASE
            ref_pos += length
        # H, P and unknown ops consume neither

    return UNKNOWN_BASE


class AlignedRead(ReadAccessor):
    """ReadAccessor over a pysam AlignedSegment."""

    def __init__(self, segment: pysam.AlignedSegment) -> None:
        self.segment = segment

    @property
    def name(self) -> str:
        return str(self.segment.query_name)

    @property
    def interval(self) -> Optional[GenomicInterval]:
        seg = self.segment
        if seg.is_unmapped or seg.reference_name is None or seg.reference_end is None:
            return None
        return GenomicInterval(
            chrom=seg.reference_name,
            start0=int(seg.reference_start),
            end0=int(seg.reference_end),
        )

    def base_at(self, pos0: int) -> str:
        return extract_base_at_position(self.segment, pos0)


class VcfVariant(Variant):
    """Variant over a pysam VariantRecord."""

    def __init__(self, record: pysam.VariantRecord) -> None:
        self.record = record

    @property
    def pos0(self) -> int:
        return int(self.record.start)

    def genotype_call_for(self, sample: str) -> GenotypeCall:
        try:
            call = self.record.samples[sample]
        except KeyError:
            raise MissingSampleError(
                sample, where=f"{self.record.contig}:{self.record.pos}"
            ) from None
        alleles = call.alleles or (None, None)
        return GenotypeCall(alleles=tuple(alleles), phased=bool(call.phased))


class VcfVariantSource(VariantSource):
    """VariantSource over an indexed VCF/BCF opened with pysam.

    Only records that start inside the queried interval are yielded, so a
    deletion that begins upstream of a read is not counted against it.
    """

    def __init__(self, vcf_path: str) -> None:
        self.vcf_path = str(vcf_path)
        self._vcf = pysam.VariantFile(self.vcf_path)
        self._contigs = set(self._vcf.header.contigs)
        logger.debug("Opened VCF %s (samples: %s)", self.vcf_path, list(self._vcf.header.samples))

    @property
    def samples(self) -> List[str]:
        return list(self._vcf.header.samples)

    def query(self, chrom: str, start0: int, end0: int) -> Iterator[Variant]:
        if chrom not in self._contigs:
            return
        interval = GenomicInterval(chrom, start0, end0)
        for rec in self._vcf.fetch(chrom, start0, end0):
            if interval.contains(rec.start):
                yield VcfVariant(rec)

    def close(self) -> None:
        self._vcf.close()

    def __enter__(self) -> "VcfVariantSource":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

