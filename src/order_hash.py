from eth_hash.auto import keccak

from order_types import Order


def dedup_payload(order: Order) -> str:
    # fixed field order, no separators
    return "".join((
        order.user_address,
        order.trading_pair,
        order.base_token,
        order.quote_token,
        str(order.side_code),
        str(order.type_code),
        str(order.price),
        str(order.amount),
        str(order.expires_at_seconds),
        str(order.nonce),
    ))


def compute_dedup_hash(order: Order) -> str:
    """
    Storage key for indexing / de-duplicating orders (unprefixed hex).

    NOT an authentication credential: the signature is excluded, so two
    orders that differ only in signature share a key. Use
    OrderSigner.hash_order for anything security related.
    """
    return keccak(dedup_payload(order).encode("utf-8")).hex()
