"""Resting limit orders for order-book pools."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from hydra_amm.errors import InvalidConfiguration, ZeroAmount


class OrderSide(str, Enum):
    """Side of a resting order, seen from the order's owner."""

    BID = "bid"  # buys base with quote
    ASK = "ask"  # sells base for quote


@dataclass(frozen=True)
class RestingOrder:
    """A resting limit order.

    Attributes:
        side: BID (wants base) or ASK (offers base)
        price: Limit price in quote per base
        quantity: Remaining base quantity
        sequence: Arrival order; lower fills first at equal prices
    """

    side: OrderSide
    price: Decimal
    quantity: int
    sequence: int

    def __post_init__(self) -> None:
        if not isinstance(self.price, Decimal) or not self.price.is_finite() or self.price <= 0:
            raise InvalidConfiguration(f"Order price must be positive, got {self.price}")
        if self.quantity <= 0:
            raise ZeroAmount(f"Order quantity must be positive, got {self.quantity}")
        if self.sequence < 0:
            raise InvalidConfiguration(f"Order sequence cannot be negative, got {self.sequence}")

    def priority(self) -> tuple[Decimal, int]:
        """Sort key: best price first, then earliest sequence."""
        if self.side is OrderSide.BID:
            return (-self.price, self.sequence)
        return (self.price, self.sequence)


__all__ = ["OrderSide", "RestingOrder"]
