"""Chain data access and the block-arrival event source."""

import asyncio
import logging
from typing import Optional

from web3 import Web3, HTTPProvider
from web3.middleware import geth_poa_middleware

from .models import BlockHeader

log = logging.getLogger(__name__)


class Web3Chain:
    def __init__(self, w3: Web3):
        self.w3 = w3

    @classmethod
    def connect(cls, rpc_url: str) -> "Web3Chain":
        w3 = Web3(HTTPProvider(rpc_url))
        w3.middleware_onion.inject(geth_poa_middleware, layer=0)
        return cls(w3)

    @property
    def chain_id(self) -> int:
        return self.w3.eth.chain_id

    def latest_block(self) -> BlockHeader:
        block = self.w3.eth.get_block("latest")
        return BlockHeader(number=block["number"], base_fee_per_gas=block.get("baseFeePerGas") or 0)

    def estimate_gas(self, tx: dict) -> int:
        return self.w3.eth.estimate_gas(tx)

    def transaction_count(self, address: str, block_identifier="latest") -> int:
        return self.w3.eth.get_transaction_count(address, block_identifier)


class BlockWatcher:
    """
    Polls the chain and publishes each new head into an asyncio.Queue.

    Only the newest header is published when several blocks landed between
    polls, so consumers always see strictly increasing numbers.
    """

    def __init__(self, chain, poll_interval: float = 2.0):
        self.chain = chain
        self.poll_interval = poll_interval
        self.last_number: Optional[int] = None

    async def poll_once(self, queue: asyncio.Queue) -> Optional[BlockHeader]:
        header = await asyncio.to_thread(self.chain.latest_block)
        if self.last_number is not None and header.number <= self.last_number:
            return None
        if self.last_number is not None and header.number > self.last_number + 1:
            log.debug("skipped blocks %d..%d", self.last_number + 1, header.number - 1)
        self.last_number = header.number
        await queue.put(header)
        return header

    async def run(self, queue: asyncio.Queue) -> None:
        while True:
            try:
                await self.poll_once(queue)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                # RPC hiccup; the next poll retries
                log.warning("block poll failed: %s", exc)
            await asyncio.sleep(self.poll_interval)
