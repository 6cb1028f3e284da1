# ============================================================================
# PROJECT: OrderBook DEX Order Authentication v1.0
# MODULE: order_tool.py
# PURPOSE: Operator/test tooling: hash, sign, verify and dedup order files.
# ============================================================================

import argparse
import json
import logging
import os
import sys
from dataclasses import dataclass
from typing import List, Optional

import audit_log
from errors import OrderAuthError
from order_hash import compute_dedup_hash
from order_signer import OrderSigner, derive_address, new_signer, sign_orders
from order_struct import DOMAIN_TYPEHASH, ORDER_TYPE_STR, ORDER_TYPEHASH
from order_types import Order

DEFAULT_CHAIN_ID = 31337  # local hardhat node


@dataclass(frozen=True)
class ToolConfig:
    chain_id: int
    contract_address: Optional[str]
    private_key: Optional[str]
    audit_log: str
    log_level: str


class ConfigError(Exception):
    pass


def load_config(env=None) -> ToolConfig:
    env = os.environ if env is None else env
    raw_chain_id = env.get("ORDERBOOK_CHAIN_ID", str(DEFAULT_CHAIN_ID))
    try:
        chain_id = int(raw_chain_id, 0)
    except ValueError:
        raise ConfigError(f"ORDERBOOK_CHAIN_ID must be an integer, got {raw_chain_id!r}") from None
    if chain_id < 0:
        raise ConfigError(f"ORDERBOOK_CHAIN_ID must be non-negative, got {chain_id}")
    return ToolConfig(
        chain_id=chain_id,
        contract_address=env.get("ORDERBOOK_CONTRACT_ADDRESS") or None,
        private_key=env.get("ORDERBOOK_PRIVATE_KEY") or None,
        audit_log=env.get("ORDERBOOK_AUDIT_LOG", audit_log.DEFAULT_LOG),
        log_level=env.get("ORDERBOOK_LOG_LEVEL", "WARNING"),
    )


def build_signer(config: ToolConfig) -> OrderSigner:
    if not config.contract_address:
        raise ConfigError("Set ORDERBOOK_CONTRACT_ADDRESS (the Settlement contract).")
    return new_signer(config.chain_id, config.contract_address)


def load_orders(path: str) -> List[Order]:
    with open(path) as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = [data]
    return [Order.from_dict(item) for item in data]


def write_orders(orders: List[Order], path: Optional[str]):
    payload = [o.to_dict() for o in orders]
    text = json.dumps(payload[0] if len(payload) == 1 else payload, indent=2)
    if path:
        with open(path, "w") as f:
            f.write(text + "\n")
    else:
        print(text)


def cmd_typehash(args, config: ToolConfig) -> int:
    print(f"Order type:      {ORDER_TYPE_STR.decode('ascii')}")
    print(f"ORDER_TYPEHASH:  0x{ORDER_TYPEHASH.hex()}")
    print(f"DOMAIN_TYPEHASH: 0x{DOMAIN_TYPEHASH.hex()}")
    if config.contract_address:
        signer = build_signer(config)
        print(f"Domain ({signer.chain_id}, {signer.verifying_contract}): 0x{signer.domain_separator.hex()}")
    return 0


def cmd_hash(args, config: ToolConfig) -> int:
    signer = build_signer(config)
    for order in load_orders(args.order_file):
        print(signer.hash_order_hex(order))
    return 0


def cmd_dedup(args, config: ToolConfig) -> int:
    for order in load_orders(args.order_file):
        print(compute_dedup_hash(order))
    return 0


def cmd_sign(args, config: ToolConfig) -> int:
    if not config.private_key:
        raise ConfigError("Set ORDERBOOK_PRIVATE_KEY to sign orders.")
    signer = build_signer(config)
    orders = load_orders(args.order_file)
    address = derive_address(config.private_key)
    for order in orders:
        if not order.user_address:
            order.user_address = address

    failed = 0
    for result in sign_orders(orders, config.private_key, signer):
        order = result.order
        if not result.success:
            failed += 1
            print(f"[FATAL] nonce={order.nonce}: {result.error}", file=sys.stderr)
            continue
        # local verification before anything leaves this process
        if not signer.verify_signature(order):
            failed += 1
            print(f"[FATAL] nonce={order.nonce}: key {address} does not control {order.user_address}",
                  file=sys.stderr)
            continue
        audit_log.append(audit_log.order_event("order_signed", order, signer), config.audit_log)
        print(f"[OK] nonce={order.nonce} digest={result.digest}", file=sys.stderr)

    write_orders(orders, args.out)
    return 1 if failed else 0


def cmd_verify(args, config: ToolConfig) -> int:
    signer = build_signer(config)
    invalid = 0
    for order in load_orders(args.order_file):
        try:
            recovered = signer.recover_signer(order)
            valid = signer.verify_signature(order)
        except OrderAuthError as e:
            invalid += 1
            print(f"[INVALID] nonce={order.nonce}: {type(e).__name__}: {e}")
            continue
        audit_log.append(audit_log.order_event("order_verified", order, signer, valid=valid), config.audit_log)
        if valid:
            print(f"[OK] nonce={order.nonce} signed by {order.user_address}")
        else:
            invalid += 1
            print(f"[INVALID] nonce={order.nonce} recovers to {recovered}, order claims {order.user_address}")
    return 2 if invalid else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="orderbook-sign",
        description="EIP-712 order hashing / signing tool. Configuration comes from ORDERBOOK_* env vars.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("typehash", help="print the protocol type hashes").set_defaults(func=cmd_typehash)

    for name, func, help_text in (
        ("hash", cmd_hash, "print the EIP-712 signing hash of each order"),
        ("dedup", cmd_dedup, "print the storage dedup hash of each order"),
        ("verify", cmd_verify, "verify each order's signature"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("order_file")
        p.set_defaults(func=func)

    p = sub.add_parser("sign", help="sign orders with ORDERBOOK_PRIVATE_KEY")
    p.add_argument("order_file")
    p.add_argument("--out", help="write signed orders here instead of stdout")
    p.set_defaults(func=cmd_sign)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = load_config()
        logging.basicConfig(
            level=getattr(logging, config.log_level.upper(), logging.WARNING),
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )
        return args.func(args, config)
    except ConfigError as e:
        print(f"[FATAL] {e}", file=sys.stderr)
        return 1
    except (OrderAuthError, ValueError, KeyError, OSError) as e:
        print(f"[FATAL] {type(e).__name__}: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
