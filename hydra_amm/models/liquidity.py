"""Liquidity change requests and receipts."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from hydra_amm.errors import InvalidPosition, ZeroAmount
from hydra_amm.models.types import Amount, Liquidity, Position, Tick


class LiquidityAction(str, Enum):
    ADD = "add"
    REMOVE = "remove"


@dataclass(frozen=True)
class LiquidityChange:
    """Intent to add or remove liquidity.

    Share-based pools take per-token amounts to add (in pool token order) and
    a share amount to remove. Concentrated-liquidity pools take a tick range
    and a liquidity amount for both directions.
    """

    action: LiquidityAction
    amounts: tuple[Amount, ...] = ()
    liquidity: Liquidity | None = None
    lower: Tick | None = None
    upper: Tick | None = None

    def __post_init__(self) -> None:
        if (self.lower is None) != (self.upper is None):
            raise InvalidPosition("Both lower and upper ticks are required for a ranged change")
        if self.lower is not None and self.upper is not None:
            if self.lower >= self.upper:
                raise InvalidPosition(
                    f"Lower tick {self.lower.value} must be below upper tick {self.upper.value}"
                )
            if self.liquidity is None or self.liquidity.is_zero():
                raise ZeroAmount("Ranged liquidity change requires positive liquidity")
            return
        if self.action is LiquidityAction.ADD:
            if not self.amounts or all(a.is_zero() for a in self.amounts):
                raise ZeroAmount("Liquidity deposit requires a positive amount")
        elif self.liquidity is None or self.liquidity.is_zero():
            raise ZeroAmount("Liquidity withdrawal requires positive shares")

    @classmethod
    def add(cls, *amounts: int | Amount) -> LiquidityChange:
        """Deposit per-token amounts, in the pool's token order."""
        return cls(
            LiquidityAction.ADD,
            amounts=tuple(a if isinstance(a, Amount) else Amount(a) for a in amounts),
        )

    @classmethod
    def remove(cls, liquidity: int | Liquidity) -> LiquidityChange:
        """Burn pool shares."""
        if not isinstance(liquidity, Liquidity):
            liquidity = Liquidity(liquidity)
        return cls(LiquidityAction.REMOVE, liquidity=liquidity)

    @classmethod
    def add_range(cls, lower: int, upper: int, liquidity: int) -> LiquidityChange:
        return cls(
            LiquidityAction.ADD,
            liquidity=Liquidity(liquidity),
            lower=Tick(lower),
            upper=Tick(upper),
        )

    @classmethod
    def remove_range(cls, lower: int, upper: int, liquidity: int) -> LiquidityChange:
        return cls(
            LiquidityAction.REMOVE,
            liquidity=Liquidity(liquidity),
            lower=Tick(lower),
            upper=Tick(upper),
        )

    @classmethod
    def for_position(cls, position: Position, action: LiquidityAction) -> LiquidityChange:
        return cls(action, liquidity=position.liquidity, lower=position.lower, upper=position.upper)

    @property
    def is_ranged(self) -> bool:
        return self.lower is not None

    @property
    def is_add(self) -> bool:
        return self.action is LiquidityAction.ADD


@dataclass(frozen=True)
class LiquidityReceipt:
    """Token amounts moved (pool token order) and liquidity minted or burned."""

    amounts: tuple[Amount, ...]
    liquidity: Liquidity

    def as_dict(self) -> dict[str, object]:
        return {
            "amounts": [str(a) for a in self.amounts],
            "liquidity": str(self.liquidity),
        }


__all__ = ["LiquidityAction", "LiquidityChange", "LiquidityReceipt"]
