"""
Rescue plans: which operations the origin account runs, and in what order.

A plan is picked by name at startup (RESCUE_PLAN / --plan). Order matters:
withdraw or claim calls must come before the transfers that move what they
released.
"""

import abc
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

from eth_utils import is_address, to_checksum_address
from hexbytes import HexBytes

from .errors import PlanError
from .models import Operation

log = logging.getLogger(__name__)

# Minimal ABIs (expand if you need more functions)
ERC20_ABI = [
    {"constant": True, "inputs": [{"name": "account", "type": "address"}], "name": "balanceOf",
     "outputs": [{"name": "", "type": "uint256"}], "type": "function"},
    {"constant": False, "inputs": [{"name": "recipient", "type": "address"}, {"name": "amount", "type": "uint256"}],
     "name": "transfer", "outputs": [{"name": "", "type": "bool"}], "type": "function"},
]

ERC721_ABI = [
    {"inputs": [{"name": "from", "type": "address"}, {"name": "to", "type": "address"},
                {"name": "tokenId", "type": "uint256"}],
     "name": "safeTransferFrom", "outputs": [], "stateMutability": "nonpayable", "type": "function"},
]


@dataclass
class PlanContext:
    w3: object
    origin: str
    recipient: str
    params: Dict[str, str] = field(default_factory=dict)

    def require(self, key: str) -> str:
        value = self.params.get(key)
        if not value:
            raise PlanError(f"plan parameter {key} is required")
        return value


def _checksum(value: str, what: str) -> str:
    if not is_address(value):
        raise PlanError(f"{what} is not a valid address: {value!r}")
    return to_checksum_address(value)


class RescuePlan(abc.ABC):
    name = ""

    @abc.abstractmethod
    def produce_plan(self, context: PlanContext) -> List[Operation]:
        """Ordered operations the origin must execute."""


class Erc20SweepPlan(RescuePlan):
    """Transfer the origin's whole balance of each listed token to the recipient."""

    name = "erc20-sweep"

    def produce_plan(self, context: PlanContext) -> List[Operation]:
        tokens = [t.strip() for t in context.require("RESCUE_TOKENS").split(",") if t.strip()]
        operations = []
        for raw in tokens:
            token = context.w3.eth.contract(address=_checksum(raw, "token"), abi=ERC20_ABI)
            balance = token.functions.balanceOf(context.origin).call()
            if balance == 0:
                log.info("skipping %s: zero balance", token.address)
                continue
            data = token.encodeABI(fn_name="transfer", args=[context.recipient, balance])
            operations.append(Operation(target=token.address, calldata=bytes(HexBytes(data))))
        return operations


class Erc721TransferPlan(RescuePlan):
    name = "erc721-transfer"

    def produce_plan(self, context: PlanContext) -> List[Operation]:
        nft = context.w3.eth.contract(address=_checksum(context.require("RESCUE_NFT"), "RESCUE_NFT"),
                                      abi=ERC721_ABI)
        try:
            token_ids = [int(t) for t in context.require("RESCUE_TOKEN_IDS").split(",") if t.strip()]
        except ValueError as exc:
            raise PlanError(f"RESCUE_TOKEN_IDS must be comma separated integers: {exc}") from exc
        operations = []
        for token_id in token_ids:
            data = nft.encodeABI(fn_name="safeTransferFrom",
                                 args=[context.origin, context.recipient, token_id])
            operations.append(Operation(target=nft.address, calldata=bytes(HexBytes(data))))
        return operations


class CallsFilePlan(RescuePlan):
    """
    Ordered raw calls from a JSON file:

        [{"to": "0x...", "data": "0x...", "value": 0, "from": "0x..."}, ...]

    value and from are optional; from only changes the gas-estimation sender.
    """

    name = "calls"

    def produce_plan(self, context: PlanContext) -> List[Operation]:
        path = Path(context.require("RESCUE_CALLS_FILE"))
        try:
            with open(path, "r") as f:
                calls = json.load(f)
        except (OSError, ValueError) as exc:
            raise PlanError(f"cannot read calls file {path}: {exc}") from exc
        if not isinstance(calls, list):
            raise PlanError(f"calls file {path} must hold a JSON list")
        return [self._operation(i, call) for i, call in enumerate(calls)]

    @staticmethod
    def _operation(index: int, call) -> Operation:
        if not isinstance(call, dict) or "to" not in call:
            raise PlanError(f"call {index} must be an object with a 'to' address")
        try:
            data = bytes(HexBytes(call.get("data") or "0x"))
            value = int(call.get("value", 0))
        except (TypeError, ValueError) as exc:
            raise PlanError(f"call {index} has invalid data or value: {exc}") from exc
        sender = call.get("from")
        return Operation(
            target=_checksum(call["to"], f"call {index} 'to'"),
            calldata=data,
            value=value,
            origin=_checksum(sender, f"call {index} 'from'") if sender else None,
        )


PLANS = {plan.name: plan for plan in (Erc20SweepPlan, Erc721TransferPlan, CallsFilePlan)}


def get_plan(name: str) -> RescuePlan:
    try:
        return PLANS[name]()
    except KeyError:
        raise PlanError(f"unknown rescue plan {name!r}; choose from {', '.join(sorted(PLANS))}") from None


def produce_plan(name: str, context: PlanContext) -> List[Operation]:
    operations = get_plan(name).produce_plan(context)
    if not operations:
        raise PlanError(f"plan {name!r} produced no operations")
    return operations
