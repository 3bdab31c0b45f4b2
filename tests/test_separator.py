from pathlib import Path

import pysam
import pytest

from allelesep.errors import TranslationError
from allelesep.separator import make_config, separate_bam
from allelesep.toy_data import make_toy_data


def _names(path) -> set:
    with pysam.AlignmentFile(str(path), "rb") as bam:
        return {r.query_name for r in bam.fetch(until_eof=True)}


def _expected(toy, cls: str) -> set:
    return {name for name, c in toy["expected"].items() if c == cls}


def test_separate_routes_reads(toy, tmp_path: Path):
    config = make_config(
        bam_path=toy["bam"],
        vcf_path=toy["vcf"],
        genotype1="PARENT1",
        genotype2="PARENT2",
        outdir=tmp_path / "out",
    )
    summary = separate_bam(config, progress=False)

    counts = summary["counts"]
    assert counts["reads_total"] == 11
    assert counts["class_var1"] == 3
    assert counts["class_var2"] == 3
    assert counts["class_ambiguous"] == 3
    assert counts["class_conflict"] == 2

    out = tmp_path / "out"
    assert _names(out / "hybrid.PARENT1.bam") == _expected(toy, "var1")
    assert _names(out / "hybrid.PARENT2.bam") == _expected(toy, "var2")
    assert _names(out / "hybrid.ambiguous.bam") == _expected(toy, "ambiguous")
    assert _names(out / "hybrid.conflicting.bam") == _expected(toy, "conflict")
    assert (out / "summary.json").exists()
    assert summary["counts_by_contig"]["chr1"]["conflict"] == 2

    # amb_* reads cover no informative site, conf_both covers two
    hist = summary["informative_hist"]
    assert hist["counts"][:3] == [3, 7, 1]
    assert sum(hist["counts"]) == 11
    assert hist["bins"][-1] == "21+"
    assert counts["reads_with_evidence"] == 8


def test_swapping_genotypes_swaps_outputs(toy, tmp_path: Path):
    config = make_config(
        bam_path=toy["bam"],
        vcf_path=toy["vcf"],
        genotype1="PARENT2",
        genotype2="PARENT1",
        outdir=tmp_path / "out",
        prefix="swapped",
    )
    separate_bam(config, progress=False)
    assert _names(tmp_path / "out" / "swapped.PARENT2.bam") == _expected(toy, "var2")


def test_separate_with_chromosome_conversion(tmp_path: Path):
    toy = make_toy_data(outdir=tmp_path / "toy", vcf_contig="1")
    base = dict(bam_path=toy["bam"], vcf_path=toy["vcf"], genotype1="PARENT1", genotype2="PARENT2")

    plain = separate_bam(make_config(outdir=tmp_path / "plain", **base), progress=False)
    assert plain["counts"]["class_ambiguous"] == 11

    converted = separate_bam(
        make_config(outdir=tmp_path / "conv", convert_chrom_names=True, **base), progress=False
    )
    assert converted["counts"]["class_var1"] == 3
    assert converted["counts"]["class_conflict"] == 2


def test_untranslatable_chromosome_aborts_run(tmp_path: Path):
    toy = make_toy_data(outdir=tmp_path / "toy")
    bam_in = Path(toy["bam"])
    renamed = tmp_path / "renamed.bam"
    with pysam.AlignmentFile(str(bam_in), "rb") as src:
        header = src.header.to_dict()
        header["SQ"][0]["SN"] = "scaffold_7"
        with pysam.AlignmentFile(str(renamed), "wb", header=header) as dst:
            for r in src.fetch(until_eof=True):
                dst.write(r)

    config = make_config(
        bam_path=str(renamed),
        vcf_path=toy["vcf"],
        genotype1="PARENT1",
        genotype2="PARENT2",
        outdir=tmp_path / "out",
        convert_chrom_names=True,
    )
    with pytest.raises(TranslationError):
        separate_bam(config, progress=False)
    assert not (tmp_path / "out" / "summary.json").exists()


def test_missing_sample_rejected_before_any_output(toy, tmp_path: Path):
    config = make_config(
        bam_path=toy["bam"],
        vcf_path=toy["vcf"],
        genotype1="PARENT1",
        genotype2="PARENT3",
        outdir=tmp_path / "out",
    )
    with pytest.raises(ValueError, match="PARENT3"):
        separate_bam(config, progress=False)
    assert not (tmp_path / "out" / "hybrid.PARENT1.bam").exists()
    assert not (tmp_path / "out" / "summary.json").exists()


def test_reserved_genotype_name_rejected(toy, tmp_path: Path):
    with pytest.raises(ValueError):
        make_config(
            bam_path=toy["bam"],
            vcf_path=toy["vcf"],
            genotype1="ambiguous",
            genotype2="PARENT2",
            outdir=tmp_path,
        )


def test_default_outputs_sit_next_to_bam(toy):
    config = make_config(bam_path=toy["bam"], vcf_path=toy["vcf"], genotype1="PARENT1", genotype2="PARENT2")
    assert Path(config.outdir) == Path(toy["bam"]).parent
    assert config.prefix == "hybrid"
