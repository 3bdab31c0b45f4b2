from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, Optional, Tuple

from .adapters import ReadAccessor, Variant, VariantSource
from .contigs import ChromosomeNameTranslator
from .models import Classification

logger = logging.getLogger(__name__)

_DEFAULT_TRANSLATOR = ChromosomeNameTranslator()

_V1 = Classification.VAR1
_V2 = Classification.VAR2
_AM = Classification.AMBIGUOUS
_CF = Classification.CONFLICT

# AMBIGUOUS is the identity, CONFLICT is absorbing, VAR1 and VAR2 join to CONFLICT.
_COMBINE: Dict[Tuple[Classification, Classification], Classification] = {
    (_V1, _V1): _V1, (_V1, _V2): _CF, (_V1, _AM): _V1, (_V1, _CF): _CF,
    (_V2, _V1): _CF, (_V2, _V2): _V2, (_V2, _AM): _V2, (_V2, _CF): _CF,
    (_AM, _V1): _V1, (_AM, _V2): _V2, (_AM, _AM): _AM, (_AM, _CF): _CF,
    (_CF, _V1): _CF, (_CF, _V2): _CF, (_CF, _AM): _CF, (_CF, _CF): _CF,
}  # fmt: skip


def combine(a: Classification, b: Classification) -> Classification:
    """Combine two classifications."""
    return _COMBINE[(a, b)]


def fold_classifications(classifications: Iterable[Classification]) -> Classification:
    """Reduce per-variant classifications into one verdict.

    Stops pulling from ``classifications`` at the first CONFLICT.
    """
    result = Classification.AMBIGUOUS
    for c in classifications:
        result = combine(result, c)
        if result is Classification.CONFLICT:
            break
    return result


def classify_snp(
    read: ReadAccessor,
    variant: Variant,
    sample1: str,
    sample2: str,
) -> Classification:
    """Classify a read against a single variant."""
    gt1 = variant.genotype_call_for(sample1)
    gt2 = variant.genotype_call_for(sample2)

    if gt1.same_genotype(gt2):
        return Classification.AMBIGUOUS

    # Only simple homozygous single-base calls discriminate
    base1 = gt1.homozygous_base()
    base2 = gt2.homozygous_base()
    if base1 is None or base2 is None:
        return Classification.AMBIGUOUS

    assert base1 != base2, f"distinct genotypes {gt1} and {gt2} share a base"

    b = read.base_at(variant.pos0)
    if b == base1:
        return Classification.VAR1
    if b == base2:
        return Classification.VAR2
    return Classification.CONFLICT


def classify_read_with_evidence(
    read: ReadAccessor,
    variant_source: VariantSource,
    sample1: str,
    sample2: str,
    *,
    translate: bool = False,
    translator: Optional[ChromosomeNameTranslator] = None,
) -> Tuple[Classification, int]:
    """Classify a read and count the informative sites that were consulted.

    A site is informative when its per-site classification is not AMBIGUOUS.
    Sites after the first CONFLICT are not consulted and not counted.
    """
    interval = read.interval
    if interval is None:
        return Classification.AMBIGUOUS, 0

    chrom = interval.chrom
    if translate:
        chrom = (translator or _DEFAULT_TRANSLATOR).translate(chrom)

    informative = 0

    def per_site() -> Iterator[Classification]:
        nonlocal informative
        for v in variant_source.query(chrom, interval.start0, interval.end0):
            c = classify_snp(read, v, sample1, sample2)
            if c is not Classification.AMBIGUOUS:
                informative += 1
            yield c

    result = fold_classifications(per_site())
    return result, informative


def classify_read(
    read: ReadAccessor,
    variant_source: VariantSource,
    sample1: str,
    sample2: str,
    *,
    translate: bool = False,
    translator: Optional[ChromosomeNameTranslator] = None,
) -> Classification:
    """Assign a read to a genotype by considering all variants it overlaps.

    A read without an aligned interval, or overlapping no variants, is
    AMBIGUOUS. With ``translate`` the read's chromosome is renamed before the
    lookup; an unknown name raises TranslationError.
    """
    result, _ = classify_read_with_evidence(
        read, variant_source, sample1, sample2, translate=translate, translator=translator
    )
    return result


@dataclass(frozen=True)
class ReadClassifier:
    """Run-wide classification settings bound to one variant source."""

    variant_source: VariantSource
    sample1: str
    sample2: str
    translate: bool = False
    translator: ChromosomeNameTranslator = field(default_factory=ChromosomeNameTranslator)

    def __call__(self, read: ReadAccessor) -> Classification:
        return self.evaluate(read)[0]

    def evaluate(self, read: ReadAccessor) -> Tuple[Classification, int]:
        """Return the read's classification and its informative-site count."""
        c, informative = classify_read_with_evidence(
            read,
            self.variant_source,
            self.sample1,
            self.sample2,
            translate=self.translate,
            translator=self.translator,
        )
        logger.debug("%s classified as %s (%d informative sites)", read.name, c.name, informative)
        return c, informative
