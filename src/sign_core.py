from eth_hash.auto import keccak
from eth_utils import decode_hex, is_hex, is_hex_address, to_canonical_address
from coincurve import PrivateKey, PublicKey
from eth_account import Account
from eth_keys import keys

from errors import InvalidAddress, InvalidFieldValue, InvalidRecoveryId

# ---------- fixed-width helpers ----------

UINT256_MAX = 2 ** 256 - 1


def uint(x: int, bits: int = 256, field: str = "value") -> bytes:
    # every slot of the encoded struct is 32 bytes, narrower uints are left-padded
    if isinstance(x, bool) or not isinstance(x, int) or x < 0 or x >= 1 << bits:
        raise InvalidFieldValue(field, x, bits)
    return x.to_bytes(32, "big")


def u256(x: int, field: str = "value") -> bytes:
    return uint(x, 256, field)


def u8(x: int, field: str = "value") -> bytes:
    return uint(x, 8, field)


def parse_address(a, field: str = "address") -> bytes:
    """Strict "0x" + 40 hex chars (prefix optional) -> 20 raw bytes."""
    if isinstance(a, (bytes, bytearray)):
        if len(a) != 20:
            raise InvalidAddress(field, a)
        return bytes(a)
    if not isinstance(a, str) or not is_hex_address(a):
        raise InvalidAddress(field, a)
    return to_canonical_address(a)


def addr(a, field: str = "address") -> bytes:
    # EIP-712 `address` is 160-bit, padded to 32 bytes in encodedData
    return b"\x00" * 12 + parse_address(a, field)


def private_key_bytes(key) -> bytes:
    if isinstance(key, PrivateKey):
        return key.secret
    if isinstance(key, (bytes, bytearray)):
        return bytes(key)
    if isinstance(key, str) and is_hex(key):
        return decode_hex(key)
    raise ValueError("private key must be 32 bytes or a hex string")


# ---------- EIP-712 core ----------

EIP191_PREFIX = b"\x19\x01"


def eip712_digest(domain_separator: bytes, struct_hash: bytes) -> bytes:
    assert len(domain_separator) == 32
    assert len(struct_hash) == 32
    return keccak(EIP191_PREFIX + domain_separator + struct_hash)


# ---------- recovery id ----------

RECOVERY_ID_OFFSET = 27
ACCEPTED_RECOVERY_IDS = (0, 1, 27, 28)


def normalize_recovery_id(v: int) -> int:
    """27/28 (wallet convention) or 0/1 (raw) -> 0/1. Anything else is rejected."""
    if v not in ACCEPTED_RECOVERY_IDS:
        raise InvalidRecoveryId(v)
    return v - RECOVERY_ID_OFFSET if v >= RECOVERY_ID_OFFSET else v


def to_offset_recovery_id(v: int) -> int:
    """Inverse of normalize_recovery_id: always 27/28."""
    return normalize_recovery_id(v) + RECOVERY_ID_OFFSET


# ---------- deterministic secp256k1 ----------

def sign_digest(privkey_32: bytes, digest_32: bytes):
    assert len(digest_32) == 32

    # raises ValueError for a zero or out-of-range scalar
    pk = PrivateKey(privkey_32)

    # 65-byte recoverable signature (r||s||v), RFC6979 deterministic nonce
    sig65 = pk.sign_recoverable(digest_32, hasher=None)

    r = sig65[:32]
    s = sig65[32:64]
    v = sig65[64]  # raw recovery id, 0 or 1

    return r, s, v


def recover_public_key(digest_32: bytes, sig65: bytes) -> bytes:
    """Uncompressed (65-byte) public key; sig65 must carry a raw 0/1 recovery id."""
    assert len(digest_32) == 32
    pub = PublicKey.from_signature_and_message(sig65, digest_32, hasher=None)
    return pub.format(compressed=False)


def public_key_to_address(pubkey_bytes: bytes) -> bytes:
    if len(pubkey_bytes) != 65:
        pubkey_bytes = PublicKey(pubkey_bytes).format(compressed=False)
    # eth_keys wants the 64-byte X || Y form, without the 0x04 marker
    return keys.PublicKey(pubkey_bytes[1:]).to_canonical_address()


def private_key_to_address(privkey_32: bytes) -> bytes:
    # coincurve raises ValueError for a zero or out-of-range scalar
    PrivateKey(privkey_32)
    return to_canonical_address(Account.from_key(privkey_32).address)
