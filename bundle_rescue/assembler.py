"""Bundle assembly: ordering, uniform pricing and per-slot gas limits."""

import logging
from typing import Sequence

from .funding import TRANSFER_GAS_LIMIT, compute_funding
from .models import Bundle, Identity, Operation, SignedBundle, SignedSlot

log = logging.getLogger(__name__)


def assemble(
    funding_op: Operation,
    operations: Sequence[Operation],
    gas_estimates: Sequence[int],
    gas_price: int,
    sponsor: str,
    origin: str,
) -> Bundle:
    """
    Build the unsigned slot sequence: funding first, then the operations in
    caller order, all at one gas price.

    Pure; identical inputs give an identical Bundle.
    """
    if not operations:
        raise ValueError("cannot assemble a bundle with no operations")
    if len(operations) != len(gas_estimates):
        raise ValueError("one gas estimate is required per operation")
    if funding_op.target != origin or funding_op.origin not in (None, sponsor):
        raise ValueError("funding operation must transfer from sponsor to origin")

    slots = [
        SignedSlot(
            operation=funding_op,
            signer_identity=Identity.SPONSOR,
            gas_price=gas_price,
            gas_limit=TRANSFER_GAS_LIMIT,
        )
    ]
    for op, gas in zip(operations, gas_estimates):
        if op.signer is Identity.SPONSOR:
            raise ValueError("only the funding transfer may be signed by the sponsor")
        slots.append(
            SignedSlot(operation=op, signer_identity=op.signer, gas_price=gas_price, gas_limit=gas)
        )
    return Bundle(slots=tuple(slots), gas_price=gas_price, funding_value=funding_op.value)


class BundleBuilder:
    """
    Re-prices the fixed plan: funding, assembly and signing for one gas price.
    Gas limits come from each operation's estimated_gas.
    """

    def __init__(self, operations: Sequence[Operation], sponsor: str, origin: str, signer):
        unestimated = [i for i, op in enumerate(operations) if op.estimated_gas is None]
        if unestimated:
            raise ValueError(f"operations {unestimated} have no gas estimate")
        self.operations = tuple(operations)
        self.gas_estimates = tuple(op.estimated_gas for op in self.operations)
        self.sponsor = sponsor
        self.origin = origin
        self.signer = signer

    @property
    def total_gas(self) -> int:
        return sum(self.gas_estimates)

    def build(self, gas_price: int) -> SignedBundle:
        funding_op, value = compute_funding(self.gas_estimates, gas_price, self.sponsor, self.origin)
        bundle = assemble(funding_op, self.operations, self.gas_estimates, gas_price,
                          self.sponsor, self.origin)
        log.debug("assembled %d slots at gas price %d, funding %d wei",
                  len(bundle.slots), gas_price, value)
        return self.signer.sign(bundle)
