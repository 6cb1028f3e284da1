# ============================================================================
# PROJECT: OrderBook DEX Order Authentication v1.0
# MODULE: order_signer.py
# PURPOSE: EIP-712 order hashing, signature recovery and (tooling) signing.
# ============================================================================

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from eth_keys.exceptions import ValidationError
from eth_utils import decode_hex, encode_hex, is_0x_prefixed, to_checksum_address

from errors import (
    InvalidRecoveryId,
    InvalidSignatureEncoding,
    InvalidSignatureLength,
    OrderAuthError,
    RecoveryFailed,
    SigningFailed,
)
from order_struct import contract_address_bytes, domain_separator, order_struct_hash
from order_types import Order
from sign_core import (
    eip712_digest,
    normalize_recovery_id,
    parse_address,
    private_key_bytes,
    private_key_to_address,
    public_key_to_address,
    recover_public_key,
    sign_digest,
    to_offset_recovery_id,
)

logger = logging.getLogger(__name__)

SIGNATURE_LENGTH = 65


class OrderSigner:
    """
    Hashes and verifies orders for one (chain, verifying contract) pair.

    The domain separator is computed once here and never changes, so a
    single instance can be shared between threads. Build a new instance
    for another chain or contract.
    """

    __slots__ = ("_chain_id", "_verifying_contract", "_domain_separator")

    def __init__(self, chain_id: int, contract_address):
        contract = contract_address_bytes(contract_address)
        self._chain_id = chain_id
        self._verifying_contract = contract
        self._domain_separator = domain_separator(chain_id, contract)

    @property
    def chain_id(self) -> int:
        return self._chain_id

    @property
    def verifying_contract(self) -> str:
        return to_checksum_address(self._verifying_contract)

    @property
    def domain_separator(self) -> bytes:
        return self._domain_separator

    def __repr__(self):
        return f"OrderSigner(chain_id={self._chain_id}, contract={self.verifying_contract})"

    def hash_order(self, order: Order) -> bytes:
        """32-byte EIP-712 signing hash over the nine typed order fields."""
        return eip712_digest(self._domain_separator, order_struct_hash(order))

    def hash_order_hex(self, order: Order) -> str:
        return encode_hex(self.hash_order(order))

    def recover_signer(self, order: Order) -> str:
        """
        Checksummed address that produced `order.signature`.

        Raises InvalidSignatureEncoding, InvalidSignatureLength or
        RecoveryFailed for malformed signatures.
        """
        digest = self.hash_order(order)
        sig = decode_signature(order.signature)
        sig = sig[:64] + bytes([normalize_recovery_id(sig[64])])
        try:
            pubkey = recover_public_key(digest, sig)
        except Exception as e:
            # libsecp256k1 rejects bad r/s scalars and points with a bare Exception
            raise RecoveryFailed(str(e)) from e
        return to_checksum_address(public_key_to_address(pubkey))

    def verify_signature(self, order: Order) -> bool:
        """
        True iff the signature recovers to `order.user_address`.

        A well-formed signature from another key is False, not an error.
        """
        expected = parse_address(order.user_address, "userAddress")
        try:
            recovered = self.recover_signer(order)
        except (InvalidSignatureEncoding, InvalidSignatureLength, RecoveryFailed) as e:
            logger.warning("rejecting malformed signature for %s: %s", order.user_address, e)
            raise
        ok = parse_address(recovered) == expected
        if not ok:
            logger.debug("signature recovers to %s, order claims %s", recovered, order.user_address)
        return ok


def new_signer(chain_id: int, contract_address) -> OrderSigner:
    return OrderSigner(chain_id, contract_address)


def decode_signature(signature: str) -> bytes:
    if not isinstance(signature, str) or not is_0x_prefixed(signature):
        raise InvalidSignatureEncoding(signature)
    try:
        raw = decode_hex(signature)
    except ValueError:
        raise InvalidSignatureEncoding(signature) from None
    if len(raw) != SIGNATURE_LENGTH:
        raise InvalidSignatureLength(len(raw), SIGNATURE_LENGTH)
    return raw


def derive_address(private_key) -> str:
    try:
        return to_checksum_address(private_key_to_address(private_key_bytes(private_key)))
    except (ValueError, ValidationError) as e:
        raise SigningFailed(str(e)) from e


def sign_order(order: Order, private_key, signer: OrderSigner) -> str:
    """
    Signs `order` in place (test/tooling path) and returns the signature.

    The stored recovery id uses the 27/28 wallet convention. Key custody
    is the caller's problem; the key is never logged.
    """
    digest = signer.hash_order(order)
    try:
        r, s, v = sign_digest(private_key_bytes(private_key), digest)
        v = to_offset_recovery_id(v)
    except (InvalidRecoveryId, ValueError, TypeError) as e:
        raise SigningFailed(str(e)) from e

    order.signature = encode_hex(r + s + bytes([v]))
    logger.debug("signed order nonce=%s digest=%s", order.nonce, digest.hex())
    return order.signature


@dataclass
class SignResult:
    order: Order
    signature: Optional[str] = None
    digest: Optional[str] = None
    error: Optional[OrderAuthError] = None

    @property
    def success(self) -> bool:
        return self.error is None


def sign_orders(orders: Iterable[Order], private_key, signer: OrderSigner) -> List[SignResult]:
    """Batch signing; a bad order is reported in its result instead of aborting the batch."""
    results = []
    for order in orders:
        try:
            signature = sign_order(order, private_key, signer)
            results.append(SignResult(order, signature, signer.hash_order_hex(order)))
        except OrderAuthError as e:
            logger.warning("batch signing skipped order nonce=%s: %s", order.nonce, e)
            results.append(SignResult(order, error=e))
    return results
