"""Swap request and result types."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from hydra_amm.errors import ZeroAmount
from hydra_amm.models.types import Amount, Price, Tick, Token


class SwapKind(str, Enum):
    """Which side of the trade the caller fixes."""

    EXACT_IN = "exact_in"
    EXACT_OUT = "exact_out"


@dataclass(frozen=True)
class SwapSpec:
    """Swap direction plus a strictly positive amount.

    For EXACT_IN the amount is what the trader pays; for EXACT_OUT it is
    what the trader receives.
    """

    kind: SwapKind
    amount: Amount

    def __post_init__(self) -> None:
        if self.amount.is_zero():
            raise ZeroAmount("Swap amount must be positive")

    @classmethod
    def exact_in(cls, amount: int | Amount) -> SwapSpec:
        return cls(SwapKind.EXACT_IN, amount if isinstance(amount, Amount) else Amount(amount))

    @classmethod
    def exact_out(cls, amount: int | Amount) -> SwapSpec:
        return cls(SwapKind.EXACT_OUT, amount if isinstance(amount, Amount) else Amount(amount))

    @property
    def is_exact_in(self) -> bool:
        return self.kind is SwapKind.EXACT_IN


@dataclass(frozen=True)
class SwapResult:
    """Outcome of a swap.

    Attributes:
        amount_in: Total paid by the trader, fee included. Equals the request
            for EXACT_IN swaps.
        amount_out: Total received by the trader. Equals the request for
            EXACT_OUT swaps.
        fee: Portion of amount_in kept as fee
        token_in: Token paid
        token_out: Token received
        price_after: Pool spot price (base in quote) after the trade
        tick_after: Current tick after the trade (concentrated liquidity only)
    """

    amount_in: Amount
    amount_out: Amount
    fee: Amount
    token_in: Token
    token_out: Token
    price_after: Price
    tick_after: Tick | None = None

    def as_dict(self) -> dict[str, object]:
        """Render with amounts as exact decimal strings."""
        return {
            "amount_in": str(self.amount_in),
            "amount_out": str(self.amount_out),
            "fee": str(self.fee),
            "token_in": str(self.token_in),
            "token_out": str(self.token_out),
            "price_after": str(self.price_after),
            "tick_after": None if self.tick_after is None else self.tick_after.value,
        }


__all__ = ["SwapKind", "SwapResult", "SwapSpec"]
