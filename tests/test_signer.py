import pytest
from eth_account import Account

from bundle_rescue.models import Identity
from bundle_rescue.signer import BundleSigner

from conftest import CHAIN_ID, ORIGIN, ORIGIN_KEY, SPONSOR, SPONSOR_KEY


def test_slots_are_signed_by_their_identity(builder):
    signed = builder.build(30 * 10**9)

    senders = [Account.recover_transaction(raw) for raw in signed.raw_transactions]
    assert senders == [SPONSOR, ORIGIN, ORIGIN]
    assert len(signed.tx_hashes) == 3


def test_nonces_are_consecutive_per_account(builder):
    signed = builder.build(30 * 10**9)
    assert signed.nonces() == {SPONSOR: 9, ORIGIN: 5}


def test_signing_is_deterministic(builder):
    assert builder.build(30 * 10**9).raw_transactions == builder.build(30 * 10**9).raw_transactions


def test_new_price_means_new_signatures(builder):
    first = builder.build(30 * 10**9)
    second = builder.build(31 * 10**9)
    assert all(a != b for a, b in zip(first.raw_transactions, second.raw_transactions))


def test_chain_id_is_part_of_the_signed_form(builder):
    other = BundleSigner.from_keys(SPONSOR_KEY, ORIGIN_KEY, 5, {SPONSOR: 9, ORIGIN: 5})
    bundle = builder.build(30 * 10**9).bundle
    assert other.sign(bundle).raw_transactions != builder.signer.sign(bundle).raw_transactions


def test_same_address_for_both_identities_shares_one_nonce_sequence(builder):
    key = Account.from_key(SPONSOR_KEY)
    signer = BundleSigner({Identity.SPONSOR: key, Identity.ORIGIN: key}, CHAIN_ID, {SPONSOR: 3})
    signed = signer.sign(builder.build(30 * 10**9).bundle)
    assert signed.nonces() == {SPONSOR: 3}


def test_both_identities_are_required():
    with pytest.raises(ValueError):
        BundleSigner({Identity.SPONSOR: Account.from_key(SPONSOR_KEY)}, CHAIN_ID, {})
