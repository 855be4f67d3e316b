"""Block-driven submission state machine."""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from .errors import NonceInvalid, RescueError, SubmissionTransportError, UnrecognizedResolution
from .gas import GWEI, format_gwei, gas_price
from .models import Resolution, SignedBundle, SubmissionAttempt

log = logging.getLogger(__name__)


class LoopState(Enum):
    IDLE = "idle"
    AWAITING_INCLUSION = "awaiting_inclusion"
    INCLUDED = "included"
    NONCE_INVALID = "nonce_invalid"
    DEADLINE_EXCEEDED = "deadline_exceeded"


@dataclass(frozen=True)
class LoopConfig:
    block_offset: int = 2
    priority_fee_wei: int = 31 * GWEI
    # blocks observed before giving up; None waits forever
    max_blocks: Optional[int] = None

    def __post_init__(self):
        if self.block_offset < 1:
            raise ValueError("block_offset must be at least 1")
        if self.priority_fee_wei < 0:
            raise ValueError("priority_fee_wei must be non-negative")
        if self.max_blocks is not None and self.max_blocks < 1:
            raise ValueError("max_blocks must be positive")


@dataclass(frozen=True)
class LoopOutcome:
    state: LoopState
    target_block: Optional[int]
    submissions: int
    error: Optional[RescueError] = None

    @property
    def exit_code(self) -> int:
        return 0 if self.state is LoopState.INCLUDED else 1


class SubmissionLoop:
    """
    Consumes block headers from a queue. Every header re-prices the bundle,
    re-simulates it and starts an attempt for block + offset; attempts wait for
    their resolution concurrently, so a pending target never delays the next
    block's submission.

    SimulationRejected and UnrecognizedResolution propagate out of run().
    """

    def __init__(self, builder, gate, relay, config: LoopConfig = LoopConfig()):
        self.builder = builder
        self.gate = gate
        self.relay = relay
        self.config = config
        self.state = LoopState.IDLE
        self.attempt: Optional[SubmissionAttempt] = None
        self.submissions = 0
        # resolutions handled so far, by target block
        self.resolutions: Dict[int, Resolution] = {}
        self._signed: Optional[SignedBundle] = None

    def signed_for(self, price: int) -> SignedBundle:
        if self._signed is None or self._signed.gas_price != price:
            self._signed = self.builder.build(price)
        return self._signed

    async def run(self, blocks: asyncio.Queue) -> LoopOutcome:
        pending: Dict[int, asyncio.Task] = {}
        next_header = None
        first_block = None
        try:
            while True:
                if next_header is None:
                    next_header = asyncio.ensure_future(blocks.get())
                await asyncio.wait({next_header, *pending.values()}, return_when=asyncio.FIRST_COMPLETED)

                # a terminal resolution wins over a block that arrived with it
                for target in sorted(t for t, task in pending.items() if task.done()):
                    outcome = self._resolve(target, pending.pop(target))
                    if outcome is not None:
                        return outcome
                if not next_header.done():
                    continue
                header = next_header.result()
                next_header = None

                if first_block is None:
                    first_block = header.number
                if self.config.max_blocks is not None and header.number - first_block >= self.config.max_blocks:
                    log.error("No inclusion after %d blocks, giving up", self.config.max_blocks)
                    return self._finish(LoopState.DEADLINE_EXCEEDED, None)

                price = gas_price(header.base_fee_per_gas, self.config.priority_fee_wei)
                signed = self.signed_for(price)
                await asyncio.to_thread(self.gate.check, signed, header.number)

                target = header.number + self.config.block_offset
                if target in pending:
                    continue
                log.info("Current Block Number: %d,   Target Block Number: %d,   gasPrice: %s gwei",
                         header.number, target, format_gwei(price))
                pending[target] = asyncio.ensure_future(self._attempt(signed, target, header.number))
        finally:
            if next_header is not None:
                next_header.cancel()
            for task in pending.values():
                if task.done() and not task.cancelled():
                    task.exception()
                else:
                    task.cancel()

    async def _attempt(self, signed: SignedBundle, target: int, block_number: int) -> Resolution:
        handle = await asyncio.to_thread(self.relay.submit, signed, target)
        self.submissions += 1
        if self.attempt is None or target > self.attempt.target_block:
            self.attempt = SubmissionAttempt(target_block=target, submitted_at_block=block_number)
        self.state = LoopState.AWAITING_INCLUSION
        return await asyncio.to_thread(handle.wait)

    def _resolve(self, target: int, task: asyncio.Task) -> Optional[LoopOutcome]:
        try:
            resolution = task.result()
        except SubmissionTransportError as exc:
            log.warning("submission for block %d failed, retrying next block: %s", target, exc)
            return None
        if resolution is Resolution.BUNDLE_INCLUDED:
            self.resolutions[target] = resolution
            log.info("Congrats, included in %d", target)
            return self._finish(LoopState.INCLUDED, target)
        elif resolution is Resolution.BLOCK_PASSED_WITHOUT_INCLUSION:
            self.resolutions[target] = resolution
            log.info("Not included in %d", target)
            return None
        elif resolution is Resolution.ACCOUNT_NONCE_TOO_HIGH:
            self.resolutions[target] = resolution
            log.error("Nonce too high, bailing")
            return self._finish(LoopState.NONCE_INVALID, target, NonceInvalid(target))
        raise UnrecognizedResolution(resolution)

    def _finish(self, state: LoopState, target: Optional[int], error=None) -> LoopOutcome:
        self.state = state
        return LoopOutcome(state=state, target_block=target, submissions=self.submissions, error=error)
