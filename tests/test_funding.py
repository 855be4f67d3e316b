import pytest

from bundle_rescue.errors import FundingOverflow
from bundle_rescue.funding import TRANSFER_GAS_LIMIT, UINT256_MAX, compute_funding
from bundle_rescue.models import Identity

from conftest import ORIGIN, SPONSOR


def test_funding_covers_total_gas_at_price():
    op, value = compute_funding([100_000, 50_000], 40 * 10**9, SPONSOR, ORIGIN)

    assert value == 150_000 * 40 * 10**9
    assert op.value == value
    assert op.target == ORIGIN
    assert op.origin == SPONSOR
    assert op.signer is Identity.SPONSOR
    assert op.calldata == b""
    assert op.estimated_gas == TRANSFER_GAS_LIMIT == 21_000


def test_funding_beyond_64_bits_is_exact():
    estimates = [2**40, 2**40]
    price = 2**30

    _, value = compute_funding(estimates, price, SPONSOR, ORIGIN)

    assert value == 2**71
    assert value > 2**64 - 1


def test_funding_beyond_uint256_is_rejected():
    with pytest.raises(FundingOverflow):
        compute_funding([2**200], 2**60, SPONSOR, ORIGIN)


def test_funding_is_recomputed_per_price():
    _, low = compute_funding([100_000], 10, SPONSOR, ORIGIN)
    _, high = compute_funding([100_000], 11, SPONSOR, ORIGIN)
    assert (low, high) == (1_000_000, 1_100_000)


def test_negative_inputs_are_rejected():
    with pytest.raises(ValueError):
        compute_funding([-1], 10, SPONSOR, ORIGIN)
    assert UINT256_MAX == 2**256 - 1
