from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import pysam

from . import __version__
from .plotting import plot_class_counts, plot_contig_breakdown, plot_informative_hist
from .report import render_report
from .separator import make_config, separate_bam
from .toy_data import make_toy_data
from .utils import ensure_outdir
from .validation import check_bam_index, check_vcf_index, check_vcf_samples, detect_contig_style


def _setup_logging(verbosity: int, *, logfile: Optional[Path] = None) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    log_fmt = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    logging.basicConfig(level=level, format=log_fmt, stream=sys.stderr)

    if logfile is not None:
        logfile.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(logfile)
        fh.setLevel(level)
        fh.setFormatter(logging.Formatter(log_fmt))
        logging.getLogger().addHandler(fh)


def _path_exists(p: str) -> str:
    if not Path(p).exists():
        raise argparse.ArgumentTypeError(f"Path does not exist: {p}")
    return p


def _log_path(outdir: Path, name: str) -> Path:
    return outdir / "logs" / name


def _handle_error(err: Exception, *, log_path: Optional[Path] = None) -> int:
    msg = f"{err.__class__.__name__}: {err}"

    sys.stderr.write(msg + "\n")
    if log_path is not None and log_path.exists():
        sys.stderr.write(f"See log: {log_path}\n")
    return 2


def _vcf_contigs(vcf_path: str) -> list[str]:
    with pysam.VariantFile(vcf_path) as vcf:
        return list(vcf.header.contigs)


def _bam_contigs(bam_path: str) -> list[str]:
    with pysam.AlignmentFile(bam_path, "rb") as bam:
        return list(bam.header.references)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="allelesep",
        description=(
            "AlleleSep: split a BAM of reads from a hybrid or pooled sample into per-parent "
            "BAMs using homozygous SNVs that distinguish the two parental genotypes."
        ),
    )
    p.add_argument("--version", action="version", version=f"allelesep {__version__}")

    sub = p.add_subparsers(dest="cmd", required=True)

    # -----------------
    # quickstart
    # -----------------
    sub.add_parser("quickstart", help="Print ready-to-run recipes.")

    # -----------------
    # make-toy-data
    # -----------------
    t = sub.add_parser(
        "make-toy-data",
        help="Generate a tiny reference, BAM, and two-parent VCF for demos/tests.",
    )
    t.add_argument("--outdir", required=True, help="Output directory for toy data.")
    t.add_argument(
        "--ensembl-vcf",
        action="store_true",
        help="Name the VCF contig '1' instead of 'chr1' (exercises --convert).",
    )
    t.add_argument("--dry-run", action="store_true", help="Validate paths without writing files.")

    # -----------------
    # separate
    # -----------------
    s = sub.add_parser(
        "separate",
        help="Assign each read to genotype 1, genotype 2, ambiguous or conflicting.",
    )
    s.add_argument("--vcf", required=True, type=_path_exists, help="Input VCF (.vcf.gz + .tbi, or .bcf + .csi).")
    s.add_argument("--bam", required=True, type=_path_exists, help="Input BAM of reads to separate.")
    s.add_argument("--gt1", required=True, metavar="NAME", help="VCF sample name of genotype 1.")
    s.add_argument("--gt2", required=True, metavar="NAME", help="VCF sample name of genotype 2.")
    s.add_argument(
        "--convert",
        action="store_true",
        help='Chromosome names in the BAM and VCF do not agree (e.g., "chr1" and "1").',
    )
    s.add_argument("--outdir", default=None, help="Output directory (default: next to the BAM).")
    s.add_argument(
        "--prefix",
        default=None,
        help="Output file prefix (default: BAM file name without .bam).",
    )
    s.add_argument("--no-report", action="store_true", help="Skip the HTML report and plots.")
    s.add_argument("--dry-run", action="store_true", help="Validate inputs and print planned outputs.")
    s.add_argument("--resume", action="store_true", help="Skip if outputs already exist.")
    s.add_argument("-v", "--verbose", action="count", default=0, help="Increase verbosity (-v/-vv).")

    return p


# -----------------
# Command handlers
# -----------------

def cmd_quickstart() -> int:
    lines = [
        "AlleleSep quickstart (copy/paste):",
        "",
        "1) Split a hybrid BAM by parent:",
        "   allelesep separate \\",
        "     --bam hybrid.bam \\",
        "     --vcf parents.vcf.gz \\",
        "     --gt1 CAST --gt2 B6 \\",
        "     --outdir results/",
        "   Outputs: results/hybrid.CAST.bam, results/hybrid.B6.bam,",
        "            results/hybrid.ambiguous.bam, results/hybrid.conflicting.bam",
        "",
        "2) BAM uses 'chr1' but the VCF uses '1':",
        "   allelesep separate --bam hybrid.bam --vcf parents.vcf.gz --gt1 CAST --gt2 B6 --convert",
        "",
        "3) Try it on toy data:",
        "   allelesep make-toy-data --outdir toy/",
        "   allelesep separate --bam toy/hybrid.bam --vcf toy/parents.vcf.gz \\",
        "     --gt1 PARENT1 --gt2 PARENT2 --outdir toy/out",
        "",
        "Tip: use --dry-run to validate inputs without writing anything.",
    ]
    print("\n".join(lines))
    return 0


def cmd_make_toy_data(args: argparse.Namespace) -> int:
    outdir = Path(args.outdir).expanduser().resolve()
    if args.dry_run:
        print(f"Would write toy data into: {outdir}")
        return 0

    summary = make_toy_data(outdir=outdir, vcf_contig="1" if args.ensembl_vcf else "chr1")
    print(json.dumps(summary, indent=2))
    return 0


def cmd_separate(args: argparse.Namespace) -> int:
    outdir = Path(args.outdir or Path(args.bam).parent).expanduser().resolve()
    log_path = _log_path(outdir, "separate.log")
    _setup_logging(args.verbose, logfile=None if args.dry_run else log_path)

    logger = logging.getLogger("allelesep")
    logger.info("allelesep %s", __version__)

    try:
        check_bam_index(args.bam)
        check_vcf_index(args.vcf)
        check_vcf_samples(args.vcf, args.gt1, args.gt2)

        config = make_config(
            bam_path=args.bam,
            vcf_path=args.vcf,
            genotype1=args.gt1,
            genotype2=args.gt2,
            outdir=outdir,
            prefix=args.prefix,
            convert_chrom_names=bool(args.convert),
        )

        bam_style = detect_contig_style(_bam_contigs(args.bam))
        vcf_style = detect_contig_style(_vcf_contigs(args.vcf))
        if bam_style != vcf_style and "unknown" not in (bam_style, vcf_style) and not args.convert:
            logger.warning(
                "Contig style mismatch detected (BAM=%s, VCF=%s). "
                "No reads will overlap variants; did you mean --convert?",
                bam_style,
                vcf_style,
            )

        if args.dry_run:
            print("Dry-run: inputs look OK.")
            print(f"BAM contig style: {bam_style}")
            print(f"VCF contig style: {vcf_style}")
            print("Planned outputs:")
            for cls, path in config.output_paths().items():
                print(f"  {cls.value} -> {path}")
            print(f"  summary.json -> {outdir / 'summary.json'}")
            return 0

        outdir = ensure_outdir(outdir)

        if args.resume and (outdir / "summary.json").exists():
            logger.info("Resume enabled: summary.json already exists in %s", outdir)
            print(str(outdir / "summary.json"))
            return 0

        run = separate_bam(config, progress=True)

        if args.no_report:
            print(str(outdir / "summary.json"))
            return 0

        plots_dir = outdir / "plots"
        plots_dir.mkdir(parents=True, exist_ok=True)
        class_counts_png = plots_dir / "class_counts.png"
        contig_png = plots_dir / "contig_breakdown.png"
        informative_png = plots_dir / "informative_hist.png"

        plot_class_counts(
            class_counts=run["counts"],
            genotype1=config.genotype1,
            genotype2=config.genotype2,
            out_png=class_counts_png,
        )
        plot_contig_breakdown(
            counts_by_contig=run["counts_by_contig"],
            genotype1=config.genotype1,
            genotype2=config.genotype2,
            out_png=contig_png,
        )
        plot_informative_hist(informative_hist=run["informative_hist"], out_png=informative_png)

        report_path = render_report(
            outdir=outdir,
            version=__version__,
            run=run,
            plots={
                "class_counts": str(Path("plots") / class_counts_png.name),
                "contig_breakdown": str(Path("plots") / contig_png.name),
                "informative_hist": str(Path("plots") / informative_png.name),
            },
        )

        logger.info("Report written: %s", report_path)
        print(str(report_path))
        return 0
    except Exception as e:
        return _handle_error(e, log_path=None if args.dry_run else log_path)


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.cmd == "quickstart":
        return cmd_quickstart()
    if args.cmd == "make-toy-data":
        return cmd_make_toy_data(args)
    if args.cmd == "separate":
        return cmd_separate(args)

    parser.error(f"Unknown command: {args.cmd}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
