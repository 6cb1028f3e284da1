from eth_hash.auto import keccak
from eth_utils import decode_hex, is_hex

from errors import InvalidAddress
from order_types import Order
from sign_core import u256, u8, addr

# EIP-712 TypeHash for an OrderBook DEX Order, must match the Settlement contract byte for byte
ORDER_TYPE_STR = (
    b"Order(address userAddress,address baseToken,address quoteToken,"
    b"uint8 side,uint8 orderType,uint256 price,uint256 amount,uint256 expiresAt,uint256 nonce)"
)
ORDER_TYPEHASH = keccak(ORDER_TYPE_STR)

# EIP-712 Domain TypeHash (standard per EIP-712)
DOMAIN_TYPE_STR = b"EIP712Domain(string name,string version,uint256 chainId,address verifyingContract)"
DOMAIN_TYPEHASH = keccak(DOMAIN_TYPE_STR)

DOMAIN_NAME = "OrderBook DEX"
DOMAIN_VERSION = "1.0"


def contract_address_bytes(verifying_contract) -> bytes:
    """
    Contract addresses are left-padded to 20 bytes when given short
    ("0x01" names the same contract as "0x00..01"); longer values are rejected.
    """
    if isinstance(verifying_contract, (bytes, bytearray)):
        raw = bytes(verifying_contract)
    elif isinstance(verifying_contract, str) and is_hex(verifying_contract):
        try:
            raw = decode_hex(verifying_contract)
        except ValueError:
            raise InvalidAddress("verifyingContract", verifying_contract) from None
    else:
        raise InvalidAddress("verifyingContract", verifying_contract)
    if len(raw) > 20:
        raise InvalidAddress("verifyingContract", verifying_contract)
    return raw.rjust(20, b"\x00")


def domain_separator(
    chain_id: int,
    verifying_contract,
    name: str = DOMAIN_NAME,
    version: str = DOMAIN_VERSION,
) -> bytes:
    """
    Computes the EIP-712 Domain Separator.
    """
    return keccak(
        DOMAIN_TYPEHASH +
        keccak(name.encode('utf-8')) +
        keccak(version.encode('utf-8')) +
        u256(chain_id, "chainId") +
        addr(contract_address_bytes(verifying_contract), "verifyingContract")
    )


def order_struct_hash(order: Order) -> bytes:
    """
    Computes the EIP-712 structHash for an Order.

    side/orderType are uint8 and everything numeric else uint256; both are
    padded to 32 bytes in encodedData, as are the three addresses.
    Raises InvalidAddress / InvalidFieldValue naming the offending field.
    """
    return keccak(
        ORDER_TYPEHASH +
        addr(order.user_address, "userAddress") +
        addr(order.base_token, "baseToken") +
        addr(order.quote_token, "quoteToken") +
        u8(order.side_code, "side") +
        u8(order.type_code, "orderType") +
        u256(order.price, "price") +
        u256(order.amount, "amount") +
        u256(order.expires_at_seconds, "expiresAt") +
        u256(order.nonce, "nonce")
    )
