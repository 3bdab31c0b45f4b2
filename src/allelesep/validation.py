from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Sequence

from .adapters import VcfVariantSource

logger = logging.getLogger(__name__)


_UCSC_PREFIX = "chr"


def check_bam_index(bam_path: str | Path) -> bool:
    """Return True if the BAM has an index; log a warning otherwise.

    Reads are streamed in file order, so the index is not required.
    """
    bam = Path(bam_path)
    bai1 = bam.with_suffix(bam.suffix + ".bai")
    bai2 = bam.with_suffix(".bai")
    if bai1.exists() or bai2.exists():
        return True
    logger.warning("BAM is not indexed (optional). To index it run: samtools index %s", bam)
    return False


def check_vcf_index(vcf_path: str | Path) -> None:
    """Ensure the VCF supports region queries; raise ValueError with fix instructions."""
    vcf = Path(vcf_path)
    if vcf.suffixes[-2:] == [".vcf", ".gz"]:
        tbi = vcf.with_suffix(vcf.suffix + ".tbi")
        csi = vcf.with_suffix(vcf.suffix + ".csi")
        if not (tbi.exists() or csi.exists()):
            raise ValueError("VCF is not tabix indexed. Run: tabix -p vcf " + str(vcf))
    elif vcf.suffix == ".bcf":
        if not vcf.with_suffix(vcf.suffix + ".csi").exists():
            raise ValueError("BCF is not indexed. Run: bcftools index " + str(vcf))
    elif vcf.suffix == ".vcf":
        raise ValueError(
            "VCF is uncompressed (.vcf); region queries need bgzip+tabix. Run: bgzip -c "
            + str(vcf)
            + " > "
            + str(vcf)
            + ".gz; tabix -p vcf "
            + str(vcf)
            + ".gz"
        )
    else:
        raise ValueError(f"Unrecognised variant file extension: {vcf.name}")


def check_samples(samples: Sequence[str], sample1: str, sample2: str) -> None:
    """Raise ValueError unless two distinct samples are both in ``samples``."""
    if sample1 == sample2:
        raise ValueError(f"Genotype 1 and genotype 2 are the same sample: {sample1!r}")
    for s in (sample1, sample2):
        if s not in samples:
            raise ValueError(f"VCF file does not contain genotype {s!r}. Samples: {list(samples)}")


def check_vcf_samples(vcf_path: str | Path, sample1: str, sample2: str) -> List[str]:
    """Ensure both genotype samples exist in the VCF header.

    Returns the header sample list.
    """
    with VcfVariantSource(str(vcf_path)) as source:
        samples = list(source.samples)
    check_samples(samples, sample1, sample2)
    return samples


def detect_contig_style(contigs: Iterable[str]) -> str:
    """Infer contig style: 'ucsc' if most contigs start with 'chr', else 'ensembl'."""
    names = [c for c in contigs if c]
    if not names:
        return "unknown"
    chr_like = [c for c in names if c.startswith(_UCSC_PREFIX)]
    if len(chr_like) >= max(1, int(0.5 * len(names))):
        return "ucsc"
    return "ensembl"
