"""Sponsor funding: the value transfer that pays for the origin's gas."""

from typing import Sequence, Tuple

from .errors import FundingOverflow
from .models import Identity, Operation

UINT256_MAX = 2**256 - 1
# intrinsic gas of a plain value transfer
TRANSFER_GAS_LIMIT = 21_000


def compute_funding(
    gas_estimates: Sequence[int], gas_price: int, sponsor: str, origin: str
) -> Tuple[Operation, int]:
    """
    Return (funding operation, funding value) for one attempt's gas price.

    value = sum(gas_estimates) * gas_price, checked against uint256.
    The operation is a value-only transfer from sponsor to origin.
    """
    if gas_price < 0 or any(g < 0 for g in gas_estimates):
        raise ValueError("gas estimates and gas price must be non-negative")
    total_gas = sum(gas_estimates)
    if total_gas > UINT256_MAX:
        raise FundingOverflow(total_gas)
    value = total_gas * gas_price
    if value > UINT256_MAX:
        raise FundingOverflow(value)

    funding = Operation(
        target=origin,
        calldata=b"",
        value=value,
        origin=sponsor,
        signer=Identity.SPONSOR,
        estimated_gas=TRANSFER_GAS_LIMIT,
    )
    return funding, value
