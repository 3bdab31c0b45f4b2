import pytest

from allelesep.models import GenomicInterval, GenotypeCall, to_base

from conftest import gt


def test_to_base():
    assert to_base("a") == "A"
    assert to_base("T") == "T"
    assert to_base("*") == "N"
    assert to_base(None) == "N"


def test_genotype_text_form():
    assert gt("A/A").to_string() == "A/A"
    assert str(gt("A|G")) == "A|G"
    assert GenotypeCall(alleles=(None, None)).to_string() == "./."


def test_same_genotype_ignores_order_and_phase():
    assert gt("A/G").same_genotype(gt("G|A"))
    assert not gt("A/A").same_genotype(gt("A/G"))


@pytest.mark.parametrize(
    "text,expected",
    [("A/A", "A"), ("t|t", "T"), ("A/G", None), ("AT/AT", None), ("./.", None), ("A", None), ("*/*", None), ("N/N", None)],
)
def test_homozygous_base(text, expected):
    assert gt(text).homozygous_base() == expected


def test_interval_contains_is_half_open():
    iv = GenomicInterval("chr1", 10, 20)
    assert iv.contains(10)
    assert iv.contains(19)
    assert not iv.contains(20)
