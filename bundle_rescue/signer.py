"""Signs assembled bundles with the sponsor and origin keys."""

from typing import Dict, Mapping

from eth_account import Account
from eth_account.signers.local import LocalAccount
from hexbytes import HexBytes

from .models import Bundle, Identity, SignedBundle


class BundleSigner:
    """
    Holds the economic signing keys and the nonce snapshot taken at setup.

    Nonces are consecutive per address in slot order, so a sponsor that is also
    the origin still produces a valid sequence.
    """

    def __init__(self, accounts: Mapping[Identity, LocalAccount], chain_id: int,
                 nonces: Mapping[str, int]):
        missing = [identity.value for identity in Identity if identity not in accounts]
        if missing:
            raise ValueError(f"missing signing account(s): {', '.join(missing)}")
        self.accounts = dict(accounts)
        self.chain_id = chain_id
        self.nonces = dict(nonces)

    @classmethod
    def from_keys(cls, sponsor_key: str, origin_key: str, chain_id: int, nonces: Mapping[str, int]):
        accounts = {
            Identity.SPONSOR: Account.from_key(sponsor_key),
            Identity.ORIGIN: Account.from_key(origin_key),
        }
        return cls(accounts, chain_id, nonces)

    def address(self, identity: Identity) -> str:
        return self.accounts[identity].address

    def sign(self, bundle: Bundle) -> SignedBundle:
        next_nonce: Dict[str, int] = {}
        start: Dict[str, int] = {}
        raw, hashes = [], []
        for slot in bundle.slots:
            account = self.accounts[slot.signer_identity]
            if account.address not in next_nonce:
                next_nonce[account.address] = self.nonces[account.address]
                start[account.address] = next_nonce[account.address]
            op = slot.operation
            tx = {
                "to": op.target,
                "value": op.value,
                "data": HexBytes(op.calldata),
                "gas": slot.gas_limit,
                "gasPrice": slot.gas_price,
                "nonce": next_nonce[account.address],
                "chainId": self.chain_id,
            }
            next_nonce[account.address] += 1
            signed = account.sign_transaction(tx)
            raw.append(HexBytes(signed.rawTransaction))
            hashes.append(HexBytes(signed.hash))
        return SignedBundle(
            bundle=bundle,
            raw_transactions=tuple(raw),
            tx_hashes=tuple(hashes),
            start_nonces=tuple(start.items()),
        )
