"""AlleleSep: assign reads from a hybrid sample to one of two parental genotypes.

Most users should use the CLI:

    allelesep separate --bam ... --vcf ... --gt1 ... --gt2 ...

The classification core is importable for use with other read/variant sources:

    from allelesep.classify import classify_read, classify_snp, combine

"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
