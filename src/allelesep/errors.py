from __future__ import annotations


class AlleleSepError(Exception):
    """Base class for errors raised by allelesep."""


class TranslationError(AlleleSepError, LookupError):
    """A chromosome name has no counterpart in the translation table."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(
            f"Chromosome {name!r} not found in the lookup table. Only 'chr1'-to-'1' "
            "style conversions (and vice versa) are supported, plus 'chrM'-to-'MT'."
        )


class MissingSampleError(AlleleSepError, LookupError):
    """A sample is absent from a variant record's genotype panel."""

    def __init__(self, sample: str, where: str = "") -> None:
        self.sample = sample
        msg = f"Sample {sample!r} has no genotype"
        if where:
            msg += f" at {where}"
        super().__init__(msg + ". Check --gt1/--gt2 against the VCF header.")
