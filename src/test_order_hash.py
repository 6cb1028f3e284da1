from dataclasses import replace
from datetime import datetime, timezone

from eth_hash.auto import keccak

from conftest import KEY_ONE, KEY_ONE_ADDRESS, USDC, WETH
from order_hash import compute_dedup_hash, dedup_payload
from order_signer import sign_order
from order_types import OrderSide, OrderType


def test_payload_field_order(order):
    assert dedup_payload(order) == (
        KEY_ONE_ADDRESS + "WETH-USDC" + WETH + USDC
        + "0" + "0" + "1000000000000000000" + "500000000000000000" + "0" + "1"
    )


def test_payload_uses_numeric_codes_and_seconds(order):
    o = replace(
        order,
        side=OrderSide.SELL,
        type=OrderType.STOP_LOSS,
        expires_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )
    assert dedup_payload(o).endswith("1" + "2" + "1000000000000000000" + "500000000000000000" + "1704067200" + "1")


def test_dedup_hash_is_keccak_hex(order):
    h = compute_dedup_hash(order)
    assert h == keccak(dedup_payload(order).encode("utf-8")).hex()
    assert len(h) == 64
    assert not h.startswith("0x")
    assert compute_dedup_hash(order) == h


def test_signature_does_not_change_dedup_hash(signer, order):
    before = compute_dedup_hash(order)
    sign_order(order, KEY_ONE, signer)
    assert compute_dedup_hash(order) == before
    assert compute_dedup_hash(replace(order, signature="0x" + "00" * 65)) == before


def test_trading_pair_changes_dedup_hash_only(signer, order):
    other = replace(order, trading_pair="ETH-USDT")
    assert compute_dedup_hash(other) != compute_dedup_hash(order)
    assert signer.hash_order(other) == signer.hash_order(order)


def test_dedup_hash_differs_from_signing_hash(signer, order):
    assert compute_dedup_hash(order) != signer.hash_order(order).hex()
