"""Value types shared by the bundle pipeline. All of them are immutable."""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Iterator, Optional, Tuple

from hexbytes import HexBytes


class Identity(Enum):
    SPONSOR = "sponsor"
    ORIGIN = "origin"


class Resolution(Enum):
    BUNDLE_INCLUDED = 0
    BLOCK_PASSED_WITHOUT_INCLUSION = 1
    ACCOUNT_NONCE_TOO_HIGH = 2


@dataclass(frozen=True)
class Operation:
    """
    One opaque call the origin account must make.

    declared_price is a hint carried from whoever built the call; the bundle
    always prices every slot with a single uniform gas price.
    origin overrides the sender used for gas estimation.
    """

    target: str
    calldata: bytes = b""
    value: int = 0
    declared_price: Optional[int] = None
    origin: Optional[str] = None
    signer: Identity = Identity.ORIGIN
    estimated_gas: Optional[int] = None

    def with_estimate(self, gas: int) -> "Operation":
        if self.estimated_gas is not None:
            raise ValueError("estimated_gas is already set for this operation")
        return replace(self, estimated_gas=gas)


@dataclass(frozen=True)
class OperationSet:
    origin: str
    operations: Tuple[Operation, ...]

    def __post_init__(self):
        object.__setattr__(self, "operations", tuple(self.operations))

    def __iter__(self) -> Iterator[Operation]:
        return iter(self.operations)

    def __len__(self) -> int:
        return len(self.operations)


@dataclass(frozen=True)
class SignedSlot:
    operation: Operation
    signer_identity: Identity
    gas_price: int
    gas_limit: int


@dataclass(frozen=True)
class Bundle:
    """Ordered slots; slot 0 is always the sponsor's funding transfer."""

    slots: Tuple[SignedSlot, ...]
    gas_price: int
    funding_value: int


@dataclass(frozen=True)
class SignedBundle:
    bundle: Bundle
    raw_transactions: Tuple[HexBytes, ...]
    tx_hashes: Tuple[HexBytes, ...]
    # first nonce used by each signing address
    start_nonces: Tuple[Tuple[str, int], ...] = ()

    @property
    def gas_price(self) -> int:
        return self.bundle.gas_price

    def nonces(self) -> Dict[str, int]:
        return dict(self.start_nonces)

    def relay_entries(self):
        return [{"signed_transaction": raw} for raw in self.raw_transactions]


@dataclass(frozen=True)
class SimulationResult:
    per_slot_gas_used: Tuple[int, ...]
    per_slot_error: Tuple[Optional[str], ...]
    coinbase_diff_wei: int = 0

    @property
    def total_gas_used(self) -> int:
        return sum(self.per_slot_gas_used)

    @property
    def effective_gas_price(self) -> int:
        total = self.total_gas_used
        if total == 0:
            return 0
        return self.coinbase_diff_wei // total

    def first_error(self) -> Optional[Tuple[int, str]]:
        for index, error in enumerate(self.per_slot_error):
            if error is not None:
                return index, error
        return None


@dataclass(frozen=True)
class SubmissionAttempt:
    target_block: int
    submitted_at_block: int


@dataclass(frozen=True)
class BlockHeader:
    number: int
    base_fee_per_gas: int = 0
