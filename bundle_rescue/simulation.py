"""Dry-run gate in front of every submission."""

import logging
from typing import Optional

from .errors import SimulationRejected
from .gas import format_gwei
from .models import SignedBundle, SimulationResult

log = logging.getLogger(__name__)


class SimulationGate:
    def __init__(self, relay):
        self.relay = relay

    def check(self, signed: SignedBundle, block_number: Optional[int] = None) -> SimulationResult:
        """
        Simulate the bundle and refuse it if any slot would revert.

        The effective gas price (coinbase diff / gas used) is logged only; it
        never feeds back into pricing.
        """
        result = self.relay.simulate(signed, block_number)
        failure = result.first_error()
        if failure is not None:
            index, cause = failure
            log.error("simulation error at slot %d: %s", index, cause)
            raise SimulationRejected(index, cause)
        log.info(
            "Simulated gas price: %s gwei (gas used %d)",
            format_gwei(result.effective_gas_price), result.total_gas_used,
        )
        return result
