"""Command line entry: set up the rescue bundle and run it to a terminal outcome."""

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from typing import List, Optional

from eth_account import Account
from web3.exceptions import Web3Exception

from .assembler import BundleBuilder
from .chain import BlockWatcher, Web3Chain
from .config import Settings
from .errors import ConfigError, RescueError
from .gas import GasBudgeter, apply_estimates, format_gwei, gas_price
from .loop import LoopOutcome, SubmissionLoop
from .models import Identity, OperationSet, SignedBundle
from .plans import PLANS, PlanContext, produce_plan
from .relay import FlashbotsRelay
from .signer import BundleSigner
from .simulation import SimulationGate

log = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="bundle-rescue",
        description="Move assets out of an EOA with a sponsor-funded private bundle.",
    )
    parser.add_argument("--plan", choices=sorted(PLANS), help="rescue plan (default: RESCUE_PLAN or 'calls')")
    parser.add_argument("--blocks-in-future", type=int, help="target block offset (default 2)")
    parser.add_argument("--priority-fee-gwei", type=float, help="priority fee added to the base fee (default 31)")
    parser.add_argument("--max-blocks", type=int, help="blocks to try before giving up; 0 disables the bound")
    parser.add_argument("--env-file", help="dotenv file to load before reading the environment")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    overrides = {}
    if args.plan:
        overrides["plan"] = args.plan
    if args.blocks_in_future is not None:
        overrides["blocks_in_future"] = args.blocks_in_future
    if args.priority_fee_gwei is not None:
        overrides["priority_fee_gwei"] = args.priority_fee_gwei
    if args.max_blocks is not None:
        overrides["max_blocks"] = args.max_blocks or None
    return replace(settings, **overrides) if overrides else settings


def log_transactions(signed: SignedBundle, signer: BundleSigner) -> None:
    for i, slot in enumerate(signed.bundle.slots):
        op = slot.operation
        selector = "0x" + op.calldata[:4].hex() if op.calldata else "-"
        log.info(
            "TX #%d: %s => %s : value=%d gas=%d data=%s hash=%s",
            i, signer.address(slot.signer_identity), op.target, op.value,
            slot.gas_limit, selector, signed.tx_hashes[i].hex(),
        )


async def run_loop(loop: SubmissionLoop, watcher: BlockWatcher) -> LoopOutcome:
    blocks: asyncio.Queue = asyncio.Queue()
    producer = asyncio.create_task(watcher.run(blocks))
    try:
        return await loop.run(blocks)
    finally:
        producer.cancel()
        try:
            await producer
        except asyncio.CancelledError:
            pass


def load_account(key: str, name: str):
    try:
        return Account.from_key(key)
    except (ValueError, TypeError):
        raise ConfigError(f"{name} is not a valid private key") from None


def rescue(settings: Settings) -> LoopOutcome:
    executor = load_account(settings.executor_key, "PRIVATE_KEY_EXECUTOR")
    sponsor = load_account(settings.sponsor_key, "PRIVATE_KEY_SPONSOR")
    relay_account = load_account(settings.relay_signing_key, "FLASHBOTS_RELAY_SIGNING_KEY")
    chain = Web3Chain.connect(settings.rpc_url)
    loop_config = settings.loop_config()

    context = PlanContext(w3=chain.w3, origin=executor.address, recipient=settings.recipient,
                          params=settings.plan_params)
    plan = OperationSet(executor.address, produce_plan(settings.plan, context))
    log.info("Plan %r: %d operation(s)", settings.plan, len(plan))
    estimates = GasBudgeter(chain).estimate(plan.operations, plan.origin)
    operations = apply_estimates(plan.operations, estimates)

    nonces = {addr: chain.transaction_count(addr) for addr in {executor.address, sponsor.address}}
    signer = BundleSigner({Identity.SPONSOR: sponsor, Identity.ORIGIN: executor}, chain.chain_id, nonces)
    builder = BundleBuilder(operations, sponsor.address, executor.address, signer)
    relay = FlashbotsRelay.connect(chain.w3, relay_account, settings.relay_url)
    gate = SimulationGate(relay)

    head = chain.latest_block()
    price = gas_price(head.base_fee_per_gas, loop_config.priority_fee_wei)
    signed = builder.build(price)
    log_transactions(signed, signer)
    gate.check(signed, head.number)

    log.info("Executor Account: %s", executor.address)
    log.info("Sponsor Account: %s", sponsor.address)
    log.info("Gas Price: %s gwei", format_gwei(price))
    log.info("Gas Used: %d", builder.total_gas)

    submission_loop = SubmissionLoop(builder, gate, relay, loop_config)
    watcher = BlockWatcher(chain, settings.poll_interval)
    return asyncio.run(run_loop(submission_loop, watcher))


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        settings = apply_overrides(Settings.from_env(env_file=args.env_file), args)
        outcome = rescue(settings)
    except RescueError as exc:
        log.error("%s", exc)
        return 1
    except (OSError, ValueError, Web3Exception) as exc:
        # node or relay unreachable, or an RPC error response
        log.error("rescue aborted: %s", exc, exc_info=args.verbose)
        return 1
    except KeyboardInterrupt:
        log.warning("interrupted")
        return 130
    if outcome.error is not None:
        log.error("%s", outcome.error)
    return outcome.exit_code


if __name__ == "__main__":
    sys.exit(main())
