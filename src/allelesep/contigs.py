from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from .errors import TranslationError

_UCSC_PREFIX = "chr"

# chrN <-> N for these names; the mitochondrion is the single exception.
_NUMBERED = [str(i) for i in range(1, 23)] + ["X", "Y"]
_MITO = ("chrM", "MT")


def build_default_table(names: Optional[Iterable[str]] = None) -> Mapping[str, str]:
    """Build the bidirectional UCSC <-> Ensembl chromosome name table.

    ``names`` are the Ensembl-style chromosome names to cover (default:
    1-22, X, Y). The returned mapping is read-only and holds both directions,
    so ``table["chr1"] == "1"`` and ``table["1"] == "chr1"``.
    """
    table = {}
    for name in names if names is not None else _NUMBERED:
        table[f"{_UCSC_PREFIX}{name}"] = name
        table[name] = f"{_UCSC_PREFIX}{name}"
    ucsc, ensembl = _MITO
    table[ucsc] = ensembl
    table[ensembl] = ucsc
    return MappingProxyType(table)


DEFAULT_TABLE = build_default_table()


class ChromosomeNameTranslator:
    """Translate chromosome names between 'chr1' and '1' notations."""

    def __init__(self, table: Mapping[str, str] = DEFAULT_TABLE) -> None:
        self._table = MappingProxyType(dict(table))

    def translate(self, name: str) -> str:
        try:
            return self._table[name]
        except KeyError:
            raise TranslationError(name) from None
