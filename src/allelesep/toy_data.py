from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Tuple

import pysam

from .utils import ensure_outdir, write_json

TOY_SAMPLES = ("PARENT1", "PARENT2")


def _write_fasta(path: Path, contig: str, seq: str) -> None:
    lines = [f">{contig}"]
    for i in range(0, len(seq), 60):
        lines.append(seq[i : i + 60])
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def _mutate_base(base: str, *avoid: str) -> str:
    for alt in ["A", "C", "G", "T"]:
        if alt != base and alt not in avoid:
            return alt
    return "A"


def _make_read(
    name: str,
    start0: int,
    seq: str,
    mapq: int = 60,
) -> pysam.AlignedSegment:
    a = pysam.AlignedSegment()
    a.query_name = name
    a.query_sequence = seq
    a.flag = 0
    a.reference_id = 0
    a.reference_start = start0
    a.mapping_quality = mapq
    a.cigartuples = [(0, len(seq))]
    a.query_qualities = pysam.qualitystring_to_array("I" * len(seq))
    return a


def _read_seq(ref_seq: str, start0: int, length: int, edits: Dict[int, str]) -> str:
    seq = list(ref_seq[start0 : start0 + length])
    for pos0, base in edits.items():
        rel = pos0 - start0
        if 0 <= rel < len(seq):
            seq[rel] = base
    return "".join(seq)


def make_toy_data(*, outdir: str | Path, vcf_contig: str = "chr1") -> Dict[str, str]:
    """Create a tiny two-parent reference, BAM, and VCF for demos/tests.

    The BAM uses contig ``chr1``; pass ``vcf_contig="1"`` to write the VCF in
    the other notation. Sites (0-based):

    - 50, 120: PARENT1 homozygous REF, PARENT2 homozygous ALT (informative)
    - 80: PARENT1 heterozygous (uninformative)
    - 160: both parents homozygous ALT (uninformative)

    Reads are built so that 3 go to PARENT1, 3 to PARENT2, 3 are ambiguous and
    2 are conflicting.

    Returns
    -------
    dict
        Paths to the generated files plus the expected per-read classes.
    """
    outdir_p = ensure_outdir(outdir)

    contig = "chr1"
    ref_seq = ("ACGT" * 50)[:200]
    ref_fa = outdir_p / "toy_ref.fa"
    _write_fasta(ref_fa, contig, ref_seq)
    pysam.faidx(str(ref_fa))

    site_gts = {50: ((0, 0), (1, 1)), 80: ((0, 1), (1, 1)), 120: ((0, 0), (1, 1)), 160: ((1, 1), (1, 1))}
    sites: List[Tuple[int, str, str]] = []
    for pos0 in sorted(site_gts):
        ref_base = ref_seq[pos0]
        sites.append((pos0, ref_base, _mutate_base(ref_base)))
    alt = {pos0: a for pos0, _, a in sites}
    third_120 = _mutate_base(ref_seq[120], alt[120])

    # name -> (start0, length, edits, expected class)
    layout: Dict[str, Tuple[int, int, Dict[int, str], str]] = {}
    for i in range(3):
        layout[f"gt1_{i}"] = (30 + i, 40, {}, "var1")
        layout[f"gt2_{i}"] = (35 + i, 40, {50: alt[50]}, "var2")
        layout[f"amb_{i}"] = (140 + i, 40, {160: alt[160]}, "ambiguous")
    layout["conf_third_base"] = (100, 40, {120: third_120}, "conflict")
    layout["conf_both"] = (45, 80, {120: alt[120]}, "conflict")

    reads = [
        _make_read(name, start0, _read_seq(ref_seq, start0, length, edits))
        for name, (start0, length, edits, _) in layout.items()
    ]
    reads.sort(key=lambda r: r.reference_start)

    bam_path = outdir_p / "hybrid.bam"
    header = {
        "HD": {"VN": "1.6", "SO": "coordinate"},
        "SQ": [{"SN": contig, "LN": len(ref_seq)}],
    }
    with pysam.AlignmentFile(str(bam_path), "wb", header=header) as bam:
        for r in reads:
            bam.write(r)
    pysam.index(str(bam_path))

    vcf_path = outdir_p / "parents.vcf"
    vheader = pysam.VariantHeader()
    vheader.add_meta("fileformat", "VCFv4.2")
    for s in TOY_SAMPLES:
        vheader.add_sample(s)
    vheader.contigs.add(vcf_contig, length=len(ref_seq))
    vheader.formats.add("GT", number=1, type="String", description="Genotype")

    with pysam.VariantFile(str(vcf_path), "w", header=vheader) as vcf:
        for pos0, ref_base, alt_base in sites:
            rec = vcf.new_record(
                contig=vcf_contig,
                start=pos0,
                stop=pos0 + 1,
                alleles=(ref_base, alt_base),
                qual=60,
                filter="PASS",
            )
            for s, gt in zip(TOY_SAMPLES, site_gts[pos0]):
                rec.samples[s]["GT"] = gt
            vcf.write(rec)

    vcf_gz = outdir_p / "parents.vcf.gz"
    pysam.tabix_compress(str(vcf_path), str(vcf_gz), force=True)
    pysam.tabix_index(str(vcf_gz), preset="vcf", force=True)

    summary = {
        "ref_fa": str(ref_fa),
        "bam": str(bam_path),
        "vcf": str(vcf_gz),
        "outdir": str(outdir_p),
        "expected": {name: entry[3] for name, entry in layout.items()},
    }

    write_json(outdir_p / "toy_summary.json", summary)
    return summary
