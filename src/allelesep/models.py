from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

BASES = frozenset("ACGT")
UNKNOWN_BASE = "N"


def to_base(symbol: Optional[str]) -> str:
    """Normalise a single symbol to A/C/G/T, or N for anything else."""
    if symbol is None:
        return UNKNOWN_BASE
    s = symbol.upper()
    return s if s in BASES else UNKNOWN_BASE


class Classification(str, Enum):
    """Verdict for a read (or for a read at one variant).

    VAR1:      consistent with genotype 1
    VAR2:      consistent with genotype 2
    AMBIGUOUS: no discriminating evidence
    CONFLICT:  evidence for both genotypes, or for neither
    """

    VAR1 = "var1"
    VAR2 = "var2"
    AMBIGUOUS = "ambiguous"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class GenomicInterval:
    """Reference span of an aligned read.

    Coordinates are 0-based half-open, matching pysam: ``start0`` is the first
    aligned reference base and ``end0 - 1`` the last.
    """

    chrom: str
    start0: int
    end0: int

    def contains(self, pos0: int) -> bool:
        return self.start0 <= pos0 < self.end0


@dataclass(frozen=True)
class GenotypeCall:
    """Diploid genotype call for one sample at one site.

    ``alleles`` holds allele strings as they appear in the VCF (None for a
    missing allele).
    """

    alleles: Tuple[Optional[str], ...]
    phased: bool = False

    @property
    def separator(self) -> str:
        return "|" if self.phased else "/"

    def to_string(self) -> str:
        return self.separator.join("." if a is None else a for a in self.alleles)

    def same_genotype(self, other: "GenotypeCall") -> bool:
        # Phasing and allele order are ignored.
        return sorted(self._keys()) == sorted(other._keys())

    def homozygous_base(self) -> Optional[str]:
        """Return the allele of a single-base homozygous call, else None.

        Only the exact form ``X/X`` (or ``X|X``) with X in ACGT is informative;
        heterozygous, missing, multi-allelic, indel, ``N`` and ``*`` calls are not.
        """
        text = self.to_string()
        if len(text) != 3:
            return None
        allele = text[0].upper()
        if allele != text[2].upper() or allele not in BASES:
            return None
        return allele

    def _keys(self) -> list[str]:
        return ["." if a is None else a.upper() for a in self.alleles]

    def __str__(self) -> str:
        return self.to_string()
