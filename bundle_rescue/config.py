"""Settings loaded from the environment (and a .env file, if present)."""

import os
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from dotenv import load_dotenv
from eth_utils import is_address, to_checksum_address

from .errors import ConfigError
from .gas import GWEI
from .loop import LoopConfig
from .relay import DEFAULT_RELAY_URL

REQUIRED = {
    "PRIVATE_KEY_EXECUTOR": "corresponding to Ethereum EOA with assets to be transferred",
    "PRIVATE_KEY_SPONSOR": "corresponding to an Ethereum EOA with ETH to pay miner",
    "FLASHBOTS_RELAY_SIGNING_KEY": "used only to authenticate with the relay",
    "RECIPIENT": "an address which will receive assets",
    "ETHEREUM_RPC_URL": "for the target chain",
}

PLAN_PARAMS = ("RESCUE_TOKENS", "RESCUE_NFT", "RESCUE_TOKEN_IDS", "RESCUE_CALLS_FILE")


@dataclass(frozen=True)
class Settings:
    executor_key: str
    sponsor_key: str
    relay_signing_key: str
    recipient: str
    rpc_url: str
    relay_url: str = DEFAULT_RELAY_URL
    blocks_in_future: int = 2
    priority_fee_gwei: float = 31
    max_blocks: Optional[int] = 100
    poll_interval: float = 2.0
    plan: str = "calls"
    plan_params: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, env_file: Optional[str] = None) -> "Settings":
        if environ is None:
            load_dotenv(env_file)
            environ = os.environ

        for name, purpose in REQUIRED.items():
            if not environ.get(name):
                raise ConfigError(f"Must provide {name} environment variable, {purpose}")

        recipient = environ["RECIPIENT"]
        if not is_address(recipient):
            raise ConfigError(f"RECIPIENT is not a valid address: {recipient!r}")

        max_blocks = _number(environ, "MAX_BLOCKS", int, 100)
        return cls(
            executor_key=environ["PRIVATE_KEY_EXECUTOR"],
            sponsor_key=environ["PRIVATE_KEY_SPONSOR"],
            relay_signing_key=environ["FLASHBOTS_RELAY_SIGNING_KEY"],
            recipient=to_checksum_address(recipient),
            rpc_url=environ["ETHEREUM_RPC_URL"],
            relay_url=environ.get("FLASHBOTS_RELAY") or DEFAULT_RELAY_URL,
            blocks_in_future=_number(environ, "BLOCKS_IN_FUTURE", int, 2),
            priority_fee_gwei=_number(environ, "PRIORITY_FEE_GWEI", float, 31),
            max_blocks=max_blocks or None,
            poll_interval=_number(environ, "POLL_INTERVAL", float, 2.0),
            plan=environ.get("RESCUE_PLAN") or "calls",
            plan_params={k: environ[k] for k in PLAN_PARAMS if environ.get(k)},
        )

    def loop_config(self) -> LoopConfig:
        try:
            return LoopConfig(
                block_offset=self.blocks_in_future,
                priority_fee_wei=int(self.priority_fee_gwei * GWEI),
                max_blocks=self.max_blocks,
            )
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc


def _number(environ: Mapping[str, str], name: str, kind, default):
    raw = environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return kind(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None
