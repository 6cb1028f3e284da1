from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, Union


class OrderSide(str, Enum):
    BUY = "buy"
    SELL = "sell"


class OrderType(str, Enum):
    LIMIT = "limit"
    MARKET = "market"
    STOP_LOSS = "stop_loss"
    TAKE_PROFIT = "take_profit"


# uint8 codes shared with the settlement contract
SIDE_CODES = {
    OrderSide.BUY: 0,
    OrderSide.SELL: 1,
}

TYPE_CODES = {
    OrderType.LIMIT: 0,
    OrderType.MARKET: 1,
    OrderType.STOP_LOSS: 2,
    OrderType.TAKE_PROFIT: 3,
}


def _to_uint(value: Union[int, str, Decimal], field: str) -> int:
    # price / amount arrive already scaled to on-chain units
    d = Decimal(str(value))
    if d != d.to_integral_value():
        raise ValueError(f"{field} must be an integer in on-chain units, got {value!r}")
    return int(d)


def _to_datetime(value) -> Optional[datetime]:
    if value is None or value == 0 or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, str) and value.isdigit():
        return datetime.fromtimestamp(int(value), tz=timezone.utc)
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@dataclass
class Order:
    """
    A signed order as submitted by a maker/taker client.

    Only `signature` is expected to change after construction (set by
    `sign_order`). `trading_pair` feeds the dedup hash but is not part of
    the EIP-712 struct.
    """
    user_address: str
    base_token: str
    quote_token: str
    side: OrderSide
    type: OrderType
    price: int
    amount: int
    nonce: int
    expires_at: Union[datetime, int, None] = None
    trading_pair: str = ""
    signature: str = ""

    @property
    def side_code(self) -> int:
        return SIDE_CODES[OrderSide(self.side)]

    @property
    def type_code(self) -> int:
        return TYPE_CODES[OrderType(self.type)]

    @property
    def expires_at_seconds(self) -> int:
        if self.expires_at is None:
            return 0
        if isinstance(self.expires_at, int):
            return self.expires_at
        ts = self.expires_at
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        # floor, like time.Time.Unix()
        return int(ts.timestamp() // 1)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        # 0 encodes "never expires" in both hashes
        if self.expires_at_seconds == 0:
            return False
        if now is None:
            now = datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return int(now.timestamp()) > self.expires_at_seconds

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Order":
        return cls(
            user_address=data["user_address"],
            base_token=data["base_token"],
            quote_token=data["quote_token"],
            side=OrderSide(data["side"]),
            type=OrderType(data["type"]),
            price=_to_uint(data["price"], "price"),
            amount=_to_uint(data["amount"], "amount"),
            nonce=int(data.get("nonce", 0)),
            expires_at=_to_datetime(data.get("expires_at")),
            trading_pair=data.get("trading_pair", ""),
            signature=data.get("signature", ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_address": self.user_address,
            "trading_pair": self.trading_pair,
            "base_token": self.base_token,
            "quote_token": self.quote_token,
            "side": OrderSide(self.side).value,
            "type": OrderType(self.type).value,
            "price": str(self.price),
            "amount": str(self.amount),
            "expires_at": self.expires_at_seconds or None,
            "nonce": self.nonce,
            "signature": self.signature,
        }
