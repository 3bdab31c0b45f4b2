from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict

import matplotlib.pyplot as plt

logger = logging.getLogger(__name__)


def plot_class_counts(
    *,
    class_counts: Dict[str, int],
    genotype1: str,
    genotype2: str,
    out_png: str | Path,
    title: str = "Read assignments",
) -> None:
    out_png = Path(out_png)
    out_png.parent.mkdir(parents=True, exist_ok=True)

    labels = [genotype1, genotype2, "Ambiguous", "Conflicting"]
    values = [
        int(class_counts.get("class_var1", 0)),
        int(class_counts.get("class_var2", 0)),
        int(class_counts.get("class_ambiguous", 0)),
        int(class_counts.get("class_conflict", 0)),
    ]

    plt.figure()
    plt.bar(labels, values)
    plt.ylabel("Read count")
    plt.title(title)
    plt.xticks(rotation=15, ha="right")
    plt.tight_layout()
    plt.savefig(out_png, dpi=160)
    plt.close()


def plot_contig_breakdown(
    *,
    counts_by_contig: Dict[str, Dict[str, int]],
    genotype1: str,
    genotype2: str,
    out_png: str | Path,
    title: str = "Assignments per contig",
) -> None:
    """Stacked bar chart of classifications per contig."""
    out_png = Path(out_png)
    out_png.parent.mkdir(parents=True, exist_ok=True)

    contigs = list(counts_by_contig)
    series = [
        ("var1", genotype1),
        ("var2", genotype2),
        ("ambiguous", "Ambiguous"),
        ("conflict", "Conflicting"),
    ]

    plt.figure(figsize=(max(6.0, 0.4 * len(contigs)), 4.5))
    bottom = [0] * len(contigs)
    for key, label in series:
        vals = [int(counts_by_contig[c].get(key, 0)) for c in contigs]
        plt.bar(contigs, vals, bottom=bottom, label=label)
        bottom = [b + v for b, v in zip(bottom, vals)]
    plt.ylabel("Read count")
    plt.title(title)
    plt.xticks(rotation=90)
    plt.legend()
    plt.tight_layout()
    plt.savefig(out_png, dpi=160)
    plt.close()


def plot_informative_hist(
    *,
    informative_hist: Dict[str, list],
    out_png: str | Path,
    title: str = "Informative sites per read",
) -> None:
    out_png = Path(out_png)
    out_png.parent.mkdir(parents=True, exist_ok=True)

    labels = list(informative_hist["bins"])
    ys = [int(v) for v in informative_hist["counts"]]
    # Drop an empty overflow bin
    if ys and ys[-1] == 0:
        labels, ys = labels[:-1], ys[:-1]

    plt.figure()
    plt.bar(range(len(ys)), ys)
    plt.xlabel("Number of informative sites in read")
    plt.ylabel("Read count")
    plt.title(title)
    plt.xticks(range(len(labels)), labels, rotation=0)
    plt.tight_layout()
    plt.savefig(out_png, dpi=160)
    plt.close()
