import json
import os
import time
from typing import Optional

from order_hash import compute_dedup_hash
from order_signer import OrderSigner
from order_types import Order

DEFAULT_LOG = "audit.jsonl"


def log_path() -> str:
    return os.getenv("ORDERBOOK_AUDIT_LOG", DEFAULT_LOG)


def append(entry: dict, path: Optional[str] = None) -> dict:
    entry = dict(entry, ts_ns=time.time_ns())
    # one compact JSON object per line
    entry_line = json.dumps(entry, separators=(",", ":"), sort_keys=True) + "\n"

    with open(path or log_path(), "a", buffering=1) as f:
        f.write(entry_line)
        f.flush()
        os.fsync(f.fileno())
    return entry


def order_event(event: str, order: Order, signer: OrderSigner, **extra) -> dict:
    """Audit record for an order; carries hashes and the signature, never key material."""
    entry = {
        "event": event,
        "chain_id": signer.chain_id,
        "contract": signer.verifying_contract,
        "user_address": order.user_address,
        "nonce": order.nonce,
        "digest": signer.hash_order_hex(order),
        "dedup_hash": compute_dedup_hash(order),
        "signature": order.signature,
    }
    entry.update(extra)
    return entry
