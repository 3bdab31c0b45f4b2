from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Optional

import numpy as np
import pysam
from tqdm import tqdm

from .adapters import AlignedRead, VcfVariantSource
from .classify import ReadClassifier
from .contigs import ChromosomeNameTranslator
from .models import Classification
from .utils import ensure_outdir, strip_bam_suffix, write_json
from .validation import check_samples

logger = logging.getLogger(__name__)

PROGRESS_INTERVAL = 100_000

# Reads with more informative sites than this share the last histogram bin.
MAX_INFORMATIVE_BIN = 20

# Column order of the per-contig count matrix.
CLASS_ORDER = [
    Classification.VAR1,
    Classification.VAR2,
    Classification.AMBIGUOUS,
    Classification.CONFLICT,
]
_CLASS_INDEX = {c: i for i, c in enumerate(CLASS_ORDER)}

_AMBIGUOUS_LABEL = "ambiguous"
_CONFLICT_LABEL = "conflicting"


@dataclass(frozen=True)
class SeparationConfig:
    """Inputs and settings for one separation run."""

    bam_path: str
    vcf_path: str
    genotype1: str
    genotype2: str
    outdir: str
    prefix: str
    convert_chrom_names: bool = False

    def output_paths(self) -> Dict[Classification, Path]:
        out = Path(self.outdir)
        return {
            Classification.VAR1: out / f"{self.prefix}.{self.genotype1}.bam",
            Classification.VAR2: out / f"{self.prefix}.{self.genotype2}.bam",
            Classification.AMBIGUOUS: out / f"{self.prefix}.{_AMBIGUOUS_LABEL}.bam",
            Classification.CONFLICT: out / f"{self.prefix}.{_CONFLICT_LABEL}.bam",
        }


def make_config(
    *,
    bam_path: str,
    vcf_path: str,
    genotype1: str,
    genotype2: str,
    outdir: Optional[str | Path] = None,
    prefix: Optional[str] = None,
    convert_chrom_names: bool = False,
) -> SeparationConfig:
    """Build a SeparationConfig, deriving default output locations from the BAM path."""
    bam = Path(bam_path)
    reserved = {_AMBIGUOUS_LABEL, _CONFLICT_LABEL}
    for g in (genotype1, genotype2):
        if g in reserved:
            raise ValueError(f"Genotype name {g!r} clashes with an output file name ({sorted(reserved)})")
    return SeparationConfig(
        bam_path=str(bam_path),
        vcf_path=str(vcf_path),
        genotype1=genotype1,
        genotype2=genotype2,
        outdir=str(outdir) if outdir is not None else str(bam.parent),
        prefix=prefix if prefix is not None else strip_bam_suffix(bam.name),
        convert_chrom_names=convert_chrom_names,
    )


def separate_bam(
    config: SeparationConfig,
    *,
    translator: Optional[ChromosomeNameTranslator] = None,
    progress: bool = True,
) -> Dict[str, object]:
    """Classify every read of the BAM and route it to one of four output BAMs.

    Returns a summary dict (also written to ``outdir/summary.json``). A
    TranslationError or MissingSampleError aborts the run.
    """
    t0 = time.time()
    outdir_path = ensure_outdir(config.outdir)
    paths = config.output_paths()

    bam = pysam.AlignmentFile(config.bam_path, "rb")
    variant_source = VcfVariantSource(config.vcf_path)
    writers: Dict[Classification, pysam.AlignmentFile] = {}

    classifier = ReadClassifier(
        variant_source=variant_source,
        sample1=config.genotype1,
        sample2=config.genotype2,
        translate=config.convert_chrom_names,
        translator=translator or ChromosomeNameTranslator(),
    )

    counts = {
        "reads_total": 0,
        "reads_unmapped": 0,
        "reads_with_evidence": 0,
        "class_var1": 0,
        "class_var2": 0,
        "class_ambiguous": 0,
        "class_conflict": 0,
    }
    by_contig: Dict[str, np.ndarray] = {}
    informative_hist = np.zeros(MAX_INFORMATIVE_BIN + 2, dtype=np.int64)

    try:
        check_samples(variant_source.samples, config.genotype1, config.genotype2)

        for cls, path in paths.items():
            writers[cls] = pysam.AlignmentFile(str(path), "wb", template=bam)

        it: Iterable[pysam.AlignedSegment] = bam.fetch(until_eof=True)
        if progress:
            it = tqdm(it, unit="read", desc="Separating reads")

        for segment in it:
            counts["reads_total"] += 1
            if segment.is_unmapped:
                counts["reads_unmapped"] += 1

            read = AlignedRead(segment)
            cls, informative = classifier.evaluate(read)
            informative_hist[min(informative, MAX_INFORMATIVE_BIN + 1)] += 1
            if informative > 0:
                counts["reads_with_evidence"] += 1

            writers[cls].write(segment)
            counts[f"class_{cls.value}"] += 1

            chrom = segment.reference_name or "*"
            row = by_contig.get(chrom)
            if row is None:
                row = by_contig[chrom] = np.zeros(len(CLASS_ORDER), dtype=np.int64)
            row[_CLASS_INDEX[cls]] += 1

            if counts["reads_total"] % PROGRESS_INTERVAL == 0:
                logger.info("Processing read %d.", counts["reads_total"])
    finally:
        for w in writers.values():
            w.close()
        variant_source.close()
        bam.close()

    dt = time.time() - t0

    logger.info("%d reads assigned to %s.", counts["class_var1"], config.genotype1)
    logger.info("%d reads assigned to %s.", counts["class_var2"], config.genotype2)
    logger.info("%d reads were ambiguous.", counts["class_ambiguous"])
    logger.info("%d reads were in conflict.", counts["class_conflict"])

    summary = {
        "bam_path": config.bam_path,
        "vcf_path": config.vcf_path,
        "genotype1": config.genotype1,
        "genotype2": config.genotype2,
        "convert_chrom_names": bool(config.convert_chrom_names),
        "outputs": {cls.value: str(p) for cls, p in paths.items()},
        "counts": counts,
        "counts_by_contig": {
            chrom: {c.value: int(row[i]) for i, c in enumerate(CLASS_ORDER)}
            for chrom, row in by_contig.items()
        },
        "informative_hist": {
            "bins": [str(i) for i in range(MAX_INFORMATIVE_BIN + 1)] + [f"{MAX_INFORMATIVE_BIN + 1}+"],
            "counts": informative_hist.tolist(),
        },
        "runtime_seconds": float(dt),
    }

    write_json(outdir_path / "summary.json", summary)
    return summary
