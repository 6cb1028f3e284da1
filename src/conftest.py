import pytest

from order_signer import new_signer
from order_types import Order, OrderSide, OrderType

# NOTE: WELL-KNOWN TEST KEYS, NEVER FUND THEM
KEY_ONE = (1).to_bytes(32, "big")
KEY_ONE_ADDRESS = "0x7E5F4552091A69125d5DfCb7b8C2659029395Bdf"
HARDHAT_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
HARDHAT_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"

WETH = "0x2279B7A0a67DB372996a5FaB50D91eAA73d2eBe6"
USDC = "0xa513E6E4b8f2a923D98304ec87F64353C4D5C853"
SETTLEMENT = "0x5FC8d32690cc91D4c39d9d3abcBD16989F875707"


@pytest.fixture
def signer():
    return new_signer(1, SETTLEMENT)


@pytest.fixture
def order():
    return Order(
        user_address=KEY_ONE_ADDRESS,
        base_token=WETH,
        quote_token=USDC,
        side=OrderSide.BUY,
        type=OrderType.LIMIT,
        price=10 ** 18,
        amount=5 * 10 ** 17,
        nonce=1,
        trading_pair="WETH-USDC",
    )
