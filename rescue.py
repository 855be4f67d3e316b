#!/usr/bin/env python3
"""
rescue.py

Move assets out of a compromised (or gas-less) EOA in one private bundle:
 - a sponsor account funds the executor's gas in the first transaction
 - the executor's withdraw / claim / transfer calls follow in plan order
 - the bundle is simulated and re-submitted every block until it lands

Environment variables (required):
 - PRIVATE_KEY_EXECUTOR, PRIVATE_KEY_SPONSOR (hex private keys, 0x...)
 - FLASHBOTS_RELAY_SIGNING_KEY (relay authentication only)
 - RECIPIENT
 - ETHEREUM_RPC_URL

Optional:
 - FLASHBOTS_RELAY (default https://relay.flashbots.net)
 - BLOCKS_IN_FUTURE (default 2), PRIORITY_FEE_GWEI (default 31)
 - MAX_BLOCKS (default 100, 0 = no bound), POLL_INTERVAL (seconds, default 2)
 - RESCUE_PLAN: calls | erc20-sweep | erc721-transfer
 - RESCUE_CALLS_FILE, RESCUE_TOKENS, RESCUE_NFT, RESCUE_TOKEN_IDS

Run:
 python rescue.py --plan calls --env-file .env
"""

import sys

from bundle_rescue.cli import main

if __name__ == "__main__":
    sys.exit(main())
