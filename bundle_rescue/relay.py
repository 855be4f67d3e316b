# relay.py
import logging
from typing import Optional

from eth_account.signers.local import LocalAccount
from flashbots import flashbot
from web3 import Web3
from web3.exceptions import TransactionNotFound

from .errors import SubmissionTransportError
from .models import Resolution, SignedBundle, SimulationResult

log = logging.getLogger(__name__)

DEFAULT_RELAY_URL = "https://relay.flashbots.net"


class FlashbotsRelay:
    """Simulation and block-targeted submission through a Flashbots relay."""

    def __init__(self, w3: Web3):
        # w3 must already carry the flashbots module, see connect()
        self.w3 = w3

    @classmethod
    def connect(cls, w3: Web3, relay_account: LocalAccount, endpoint_uri: str = DEFAULT_RELAY_URL):
        # the relay key only authenticates requests; it never signs bundle transactions
        flashbot(w3, relay_account, endpoint_uri=endpoint_uri)
        return cls(w3)

    def simulate(self, signed: SignedBundle, block_number: Optional[int] = None) -> SimulationResult:
        """
        Dry-run the bundle on top of block_number (defaults to latest).
        Relay errors propagate as-is: a plan that cannot be simulated is not submitted.
        """
        block_tag = block_number + 1 if block_number is not None else None
        sim = self.w3.flashbots.simulate(signed.relay_entries(), block_tag=block_tag)
        results = sim.get("results", [])
        return SimulationResult(
            per_slot_gas_used=tuple(int(r.get("gasUsed", 0)) for r in results),
            per_slot_error=tuple(r.get("error") or r.get("revert") for r in results),
            coinbase_diff_wei=int(sim.get("coinbaseDiff", 0)),
        )

    def submit(self, signed: SignedBundle, target_block: int) -> "FlashbotsSubmission":
        try:
            response = self.w3.flashbots.send_bundle(
                signed.relay_entries(), target_block_number=target_block
            )
        except Exception as exc:
            raise SubmissionTransportError(f"sending bundle for block {target_block} failed: {exc}") from exc
        log.debug("bundle sent to relay for block %d", target_block)
        return FlashbotsSubmission(self.w3, response, signed, target_block)


class FlashbotsSubmission:
    """
    Handle for one submitted attempt.

    wait() blocks until the target block exists and then reads the chain to
    decide which of the three resolutions applies. A bundle that landed before
    its target (an earlier attempt's signed bytes are identical when the price
    did not move) still counts as included; included_block records where.
    """

    def __init__(self, w3: Web3, response, signed: SignedBundle, target_block: int):
        self.w3 = w3
        self.response = response
        self.signed = signed
        self.target_block = target_block
        self.included_block: Optional[int] = None

    def wait(self) -> Resolution:
        self.response.wait()
        self.included_block = self._included_in()
        if self.included_block is not None:
            if self.included_block != self.target_block:
                log.info("bundle for block %d landed in block %d", self.target_block, self.included_block)
            return Resolution.BUNDLE_INCLUDED
        for address, nonce in self.signed.start_nonces:
            if self.w3.eth.get_transaction_count(address, self.target_block) > nonce:
                return Resolution.ACCOUNT_NONCE_TOO_HIGH
        return Resolution.BLOCK_PASSED_WITHOUT_INCLUSION

    def _included_in(self) -> Optional[int]:
        """Block holding every bundle transaction, if all of them are mined by the target."""
        blocks = set()
        for tx_hash in self.signed.tx_hashes:
            try:
                receipt = self.w3.eth.get_transaction_receipt(tx_hash)
            except TransactionNotFound:
                return None
            if receipt is None or receipt["blockNumber"] > self.target_block:
                return None
            blocks.add(receipt["blockNumber"])
        return max(blocks) if blocks else None
