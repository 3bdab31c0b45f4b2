import json
import subprocess
import sys
from pathlib import Path

from allelesep.toy_data import make_toy_data


def _run_cli(args: list[str]) -> subprocess.CompletedProcess:
    return subprocess.run(
        [sys.executable, "-m", "allelesep"] + args,
        check=False,
        capture_output=True,
        text=True,
    )


def _separate_args(toy, outdir: Path, *extra: str) -> list[str]:
    return [
        "separate",
        "--bam",
        toy["bam"],
        "--vcf",
        toy["vcf"],
        "--gt1",
        "PARENT1",
        "--gt2",
        "PARENT2",
        "--outdir",
        str(outdir),
        *extra,
    ]


def test_quickstart_output() -> None:
    cp = _run_cli(["quickstart"])
    assert cp.returncode == 0
    assert "allelesep separate" in cp.stdout


def test_separate_dry_run_does_not_write_outputs(tmp_path: Path) -> None:
    toy = make_toy_data(outdir=tmp_path / "toy")
    outdir = tmp_path / "out"
    cp = _run_cli(_separate_args(toy, outdir, "--dry-run"))
    assert cp.returncode == 0
    assert "Dry-run" in cp.stdout
    assert "hybrid.PARENT1.bam" in cp.stdout
    assert not (outdir / "summary.json").exists()


def test_make_toy_data_and_separate(tmp_path: Path) -> None:
    toy_dir = tmp_path / "toy"
    cp = _run_cli(["make-toy-data", "--outdir", str(toy_dir)])
    assert cp.returncode == 0

    outdir = tmp_path / "out"
    toy = {"bam": str(toy_dir / "hybrid.bam"), "vcf": str(toy_dir / "parents.vcf.gz")}
    cp = _run_cli(_separate_args(toy, outdir, "-v"))
    assert cp.returncode == 0, cp.stderr
    assert (outdir / "report.html").exists()
    assert (outdir / "hybrid.conflicting.bam").exists()
    assert (outdir / "plots" / "informative_hist.png").exists()
    assert "3 reads assigned to PARENT1." in cp.stderr

    summary = json.loads((outdir / "summary.json").read_text(encoding="utf-8"))
    assert summary["counts"]["class_var2"] == 3


def test_missing_sample_is_fatal(tmp_path: Path) -> None:
    toy = make_toy_data(outdir=tmp_path / "toy")
    args = _separate_args(toy, tmp_path / "out")
    args[args.index("PARENT2")] = "NOBODY"
    cp = _run_cli(args)
    assert cp.returncode != 0
    assert "does not contain genotype 'NOBODY'" in cp.stderr
    assert not (tmp_path / "out" / "summary.json").exists()


def test_contig_mismatch_warns_and_convert_fixes(tmp_path: Path) -> None:
    toy = make_toy_data(outdir=tmp_path / "toy", vcf_contig="1")

    cp = _run_cli(_separate_args(toy, tmp_path / "plain", "--no-report"))
    assert cp.returncode == 0
    assert "did you mean --convert" in cp.stderr

    cp = _run_cli(_separate_args(toy, tmp_path / "conv", "--convert", "--no-report"))
    assert cp.returncode == 0
    summary = json.loads((tmp_path / "conv" / "summary.json").read_text(encoding="utf-8"))
    assert summary["counts"]["class_var1"] == 3


def test_uncompressed_vcf_is_rejected(tmp_path: Path) -> None:
    toy = make_toy_data(outdir=tmp_path / "toy")
    toy = dict(toy, vcf=str(Path(toy["vcf"]).with_suffix("")))
    cp = _run_cli(_separate_args(toy, tmp_path / "out"))
    assert cp.returncode == 2
    assert "bgzip" in cp.stderr
