"""
Shared fakes for the chain, the relay and the signing accounts.

The relay and its handles are synchronous like the real ones and are called from
worker threads; a handle's wait() blocks until the shared ChainHead reaches its
target block.
"""

import threading

import pytest
from eth_account import Account

from bundle_rescue.assembler import BundleBuilder
from bundle_rescue.errors import SubmissionTransportError
from bundle_rescue.gas import apply_estimates
from bundle_rescue.models import Identity, Operation, Resolution, SimulationResult
from bundle_rescue.signer import BundleSigner

SPONSOR_KEY = "0x" + "11" * 32
ORIGIN_KEY = "0x" + "22" * 32
SPONSOR = Account.from_key(SPONSOR_KEY).address
ORIGIN = Account.from_key(ORIGIN_KEY).address
TOKEN = Account.from_key("0x" + "33" * 32).address
VAULT = Account.from_key("0x" + "44" * 32).address
RECIPIENT = Account.from_key("0x" + "55" * 32).address

CHAIN_ID = 1


class FakeChain:
    def __init__(self, gas_by_target=None, failing=()):
        self.gas_by_target = dict(gas_by_target or {})
        self.failing = set(failing)
        self.requests = []
        self._lock = threading.Lock()

    def estimate_gas(self, tx):
        with self._lock:
            self.requests.append(tx)
        if tx["to"] in self.failing:
            raise ValueError("execution reverted")
        return self.gas_by_target.get(tx["to"], 21_000)


class ChainHead:
    """Chain height shared by the test driver and the relay's handles."""

    def __init__(self, number=0):
        self.number = number
        self._cond = threading.Condition()

    def advance(self, number):
        with self._cond:
            self.number = max(self.number, number)
            self._cond.notify_all()

    def wait_for(self, number, timeout=10):
        with self._cond:
            return self._cond.wait_for(lambda: self.number >= number, timeout)


class ScriptedHandle:
    def __init__(self, relay, target):
        self.relay = relay
        self.target = target

    def wait(self):
        self.relay.waited.append(self.target)
        if not self.relay.head.wait_for(self.target):
            raise TimeoutError(f"chain never reached block {self.target}")
        return self.relay.resolutions.get(self.target, Resolution.BLOCK_PASSED_WITHOUT_INCLUSION)


class ScriptedRelay:
    """
    Resolves each target block from a table once the chain head reaches it;
    unlisted targets pass without inclusion. Records every call.
    """

    def __init__(self, resolutions=None, sim_errors=None, fail_targets=()):
        self.resolutions = dict(resolutions or {})
        self.sim_errors = dict(sim_errors or {})
        self.fail_targets = set(fail_targets)
        self.head = ChainHead()
        self.simulated = []
        self.submitted = []
        self.issued = []
        self.failed = []
        self.waited = []

    def simulate(self, signed, block_number=None):
        self.simulated.append((block_number, signed))
        slots = signed.bundle.slots
        return SimulationResult(
            per_slot_gas_used=tuple(slot.gas_limit for slot in slots),
            per_slot_error=tuple(self.sim_errors.get(i) for i in range(len(slots))),
            coinbase_diff_wei=sum(slot.gas_limit for slot in slots) * signed.gas_price,
        )

    def submit(self, signed, target_block):
        self.submitted.append((target_block, signed))
        if target_block in self.fail_targets:
            self.failed.append(target_block)
            raise SubmissionTransportError("relay unavailable")
        self.issued.append(target_block)
        return ScriptedHandle(self, target_block)

    @property
    def targets(self):
        return [target for target, _ in self.submitted]


@pytest.fixture
def operations():
    return [
        Operation(target=VAULT, calldata=bytes.fromhex("3ccfd60b")),
        Operation(target=TOKEN, calldata=bytes.fromhex("a9059cbb") + b"\x00" * 64),
    ]


@pytest.fixture
def estimates():
    return [120_000, 65_000]


@pytest.fixture
def signer():
    accounts = {
        Identity.SPONSOR: Account.from_key(SPONSOR_KEY),
        Identity.ORIGIN: Account.from_key(ORIGIN_KEY),
    }
    return BundleSigner(accounts, CHAIN_ID, {SPONSOR: 9, ORIGIN: 5})


@pytest.fixture
def builder(operations, estimates, signer):
    return BundleBuilder(apply_estimates(operations, estimates), SPONSOR, ORIGIN, signer)
