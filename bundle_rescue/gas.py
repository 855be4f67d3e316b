"""Gas estimation and pricing helpers."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Sequence

from web3 import Web3

from .errors import EstimationFailed
from .models import Operation

log = logging.getLogger(__name__)

GWEI = 10**9


def gas_price(base_fee_per_gas: int, priority_fee_wei: int) -> int:
    """Uniform per-attempt price: fixed priority fee on top of the block's base fee."""
    return priority_fee_wei + (base_fee_per_gas or 0)


def format_gwei(wei: int) -> str:
    return f"{Web3.from_wei(wei, 'gwei'):.2f}"


class GasBudgeter:
    """
    Estimates every operation independently against the chain.

    Calls are issued concurrently; results come back in operation order.
    Any single failure fails the whole batch with EstimationFailed.
    """

    def __init__(self, chain, max_workers: int = 8):
        self.chain = chain
        self.max_workers = max_workers

    def estimate(self, operations: Sequence[Operation], origin_address: str) -> List[int]:
        if not operations:
            return []
        requests = [self._request(op, origin_address) for op in operations]
        workers = min(self.max_workers, len(requests))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [pool.submit(self.chain.estimate_gas, tx) for tx in requests]
            estimates = []
            for index, future in enumerate(futures):
                try:
                    estimates.append(int(future.result()))
                except Exception as exc:
                    raise EstimationFailed(index, exc) from exc
        log.debug("gas estimates: %s (total %d)", estimates, sum(estimates))
        return estimates

    @staticmethod
    def _request(op: Operation, origin_address: str) -> dict:
        return {
            "from": op.origin if op.origin is not None else origin_address,
            "to": op.target,
            "data": "0x" + op.calldata.hex(),
            "value": op.value,
        }


def apply_estimates(operations: Sequence[Operation], estimates: Sequence[int]) -> List[Operation]:
    if len(operations) != len(estimates):
        raise ValueError("one gas estimate is required per operation")
    return [op.with_estimate(gas) for op, gas in zip(operations, estimates)]
