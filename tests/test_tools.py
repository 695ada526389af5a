import pytest

from scopa.tools import (
    check_alleles,
    chi_square_cdf_1df,
    flip,
    hwe,
    pheno_mask,
    tokenize,
)


def test_tokenize_collapses_whitespace():
    assert tokenize("a  b\tc\r", " ") == ["a", "b", "c"]


def test_tokenize_other_delimiters():
    assert tokenize(",x,,y,", ",") == ["x", "y"]


def test_tokenize_empty_line():
    assert tokenize("   \t ", " ") == []


def test_check_alleles_converts_numbers():
    assert check_alleles("1", "4") == ("A", "T")
    assert check_alleles("2", "3") == ("C", "G")


def test_check_alleles_rejects_bad_pairs():
    assert check_alleles("A", "A") is None
    assert check_alleles("A", "X") is None
    assert check_alleles("1", "A") is None


def test_flip_round_trip():
    for base in "ACGT":
        assert flip(flip(base)) == base
        assert flip(base) != base
    assert flip("X") == "N"


@pytest.mark.parametrize("size", [1, 3, 5])
def test_pheno_mask_is_binary_representation(size):
    for variant in range(2**size):
        mask = pheno_mask(variant, size)
        assert len(mask) == size
        assert sum(bit << (size - 1 - i) for i, bit in enumerate(mask)) == variant


def test_pheno_mask_empty():
    assert pheno_mask(3, 0) == []


def test_chi_square_cdf():
    assert chi_square_cdf_1df(0.0) == 0.0
    assert chi_square_cdf_1df(3.841458820694124) == pytest.approx(0.95, abs=1e-9)
    assert chi_square_cdf_1df(1.0) < chi_square_cdf_1df(2.0)


def test_chi_square_cdf_negative_raises():
    with pytest.raises(ValueError):
        chi_square_cdf_1df(-1.0)


def test_hwe_perfect_equilibrium():
    assert hwe(25, 50, 25) == "1"


def test_hwe_strong_deviation():
    assert float(hwe(50, 0, 50)) < float(hwe(30, 40, 30))
    assert float(hwe(50, 0, 50)) < 0.05


def test_hwe_invalid_counts():
    assert hwe(0, 0, 0) == "NA"
    assert hwe(-1, 5, 5) == "NA"