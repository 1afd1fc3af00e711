"""Validated domain value types.

Every type here checks its invariants in __post_init__, so once a value
exists every consumer can rely on it without re-validating.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, localcontext
from typing import ClassVar

from typing_extensions import Self

from hydra_amm.constants import (
    ADDRESS_LENGTH,
    AMOUNT_MAX,
    BPS_DENOMINATOR,
    MAX_DECIMALS,
    MAX_TICK,
    MIN_TICK,
    PRICE_PRECISION,
)
from hydra_amm.errors import (
    ArithmeticOverflow,
    ArithmeticUnderflow,
    InvalidConfiguration,
    InvalidPosition,
    SameToken,
    TickOutOfRange,
    TokenNotInPool,
)
from hydra_amm.math.rounding import Rounding, div_rounding


def normalize_address(address: str) -> str:
    """Normalize a hex address to lowercase with a 0x prefix.

    Does not validate; use is_valid_address for that.
    """
    addr = address.lower()
    if not addr.startswith("0x"):
        addr = "0x" + addr
    return addr


def is_valid_address(address: str) -> bool:
    """Check if a string is a 0x-prefixed 20-byte hex address."""
    if not isinstance(address, str):
        return False
    if not address.startswith("0x") or len(address) != 2 + 2 * ADDRESS_LENGTH:
        return False
    try:
        int(address, 16)
        return True
    except ValueError:
        return False


# =============================================================================
# Tokens
# =============================================================================


@dataclass(frozen=True, order=True)
class TokenAddress:
    """Fixed-width opaque token address."""

    value: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.value, bytes) or len(self.value) != ADDRESS_LENGTH:
            raise InvalidConfiguration(f"Token address must be {ADDRESS_LENGTH} bytes")

    @classmethod
    def from_hex(cls, address: str) -> TokenAddress:
        """Parse a 0x-prefixed hex address (case insensitive).

        Raises:
            InvalidConfiguration: If the string is not a 20-byte hex address
        """
        normalized = normalize_address(address)
        if not is_valid_address(normalized):
            raise InvalidConfiguration(f"Invalid token address: {address}")
        return cls(bytes.fromhex(normalized[2:]))

    @property
    def hex(self) -> str:
        return "0x" + self.value.hex()

    def __str__(self) -> str:
        return self.hex


@dataclass(frozen=True, order=True)
class Decimals:
    """Token decimal precision (0-255)."""

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise InvalidConfiguration(f"Decimals must be an int, got {self.value!r}")
        if not 0 <= self.value <= MAX_DECIMALS:
            raise InvalidConfiguration(f"Decimals must be in [0, {MAX_DECIMALS}], got {self.value}")


@dataclass(frozen=True)
class Token:
    """A token identified by its address.

    Decimals are display metadata only: they never scale amounts, and two
    tokens with the same address are equal regardless of decimals.
    """

    address: TokenAddress
    decimals: Decimals = field(default=Decimals(18), compare=False)

    @classmethod
    def from_hex(cls, address: str, decimals: int = 18) -> Token:
        return cls(TokenAddress.from_hex(address), Decimals(decimals))

    def __str__(self) -> str:
        return self.address.hex


@dataclass(frozen=True)
class TokenPair:
    """Ordered (base, quote) pair of distinct tokens.

    The order given at construction is kept for the life of the pair.
    """

    base: Token
    quote: Token

    def __post_init__(self) -> None:
        if self.base == self.quote:
            raise SameToken(f"Pair requires distinct tokens, got {self.base} twice")

    def contains(self, token: Token) -> bool:
        return token == self.base or token == self.quote

    def other(self, token: Token) -> Token:
        """Return the pair's other token.

        Raises:
            TokenNotInPool: If token is not in the pair
        """
        if token == self.base:
            return self.quote
        if token == self.quote:
            return self.base
        raise TokenNotInPool(f"Token {token} not in pair {self}")

    def __str__(self) -> str:
        return f"{self.base}/{self.quote}"


# =============================================================================
# Quantities
# =============================================================================


@dataclass(frozen=True, order=True)
class _Quantity:
    """Non-negative integer bounded to 128 bits, with checked arithmetic."""

    value: int

    MAX: ClassVar[int] = AMOUNT_MAX

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError(f"{type(self).__name__} requires int, got {type(self.value).__name__}")
        if self.value < 0:
            raise ArithmeticUnderflow(f"{type(self).__name__} cannot be negative: {self.value}")
        if self.value > self.MAX:
            raise ArithmeticOverflow(f"{type(self).__name__} exceeds 2^128-1: {self.value}")

    def add(self, other: _Quantity | int) -> Self:
        return type(self)(self.value + _int(other))

    def sub(self, other: _Quantity | int) -> Self:
        return type(self)(self.value - _int(other))

    def mul(self, other: _Quantity | int) -> Self:
        return type(self)(self.value * _int(other))

    def div(self, other: _Quantity | int, rounding: Rounding = Rounding.DOWN) -> Self:
        return type(self)(div_rounding(self.value, _int(other), rounding))

    def is_zero(self) -> bool:
        return self.value == 0

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)


def _int(x: _Quantity | int) -> int:
    return x.value if isinstance(x, _Quantity) else x


@dataclass(frozen=True, order=True)
class Amount(_Quantity):
    """Token quantity in the token's smallest unit."""

    @classmethod
    def zero(cls) -> Amount:
        return cls(0)


@dataclass(frozen=True, order=True)
class Liquidity(_Quantity):
    """Liquidity depth or pool share magnitude."""

    @classmethod
    def zero(cls) -> Liquidity:
        return cls(0)


# =============================================================================
# Fees
# =============================================================================


@dataclass(frozen=True, order=True)
class BasisPoints:
    """Rate in basis points (0-10000)."""

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise InvalidConfiguration(f"Basis points must be an int, got {self.value!r}")
        if not 0 <= self.value <= BPS_DENOMINATOR:
            raise InvalidConfiguration(
                f"Basis points must be in [0, {BPS_DENOMINATOR}], got {self.value}"
            )

    def as_decimal(self) -> Decimal:
        return Decimal(self.value) / Decimal(BPS_DENOMINATOR)


@dataclass(frozen=True)
class FeeTier:
    """Swap fee charged on the input side.

    The fee taken is rounded up and the amount credited to the trade is
    rounded down.
    """

    bps: BasisPoints

    @classmethod
    def from_bps(cls, bps: int) -> FeeTier:
        return cls(BasisPoints(bps))

    @property
    def is_zero(self) -> bool:
        return self.bps.value == 0

    def fee_on(self, amount: int) -> int:
        """Fee charged on a gross input amount (rounded up)."""
        return div_rounding(amount * self.bps.value, BPS_DENOMINATOR, Rounding.UP)

    def amount_after_fee(self, amount: int) -> int:
        """Gross input minus its fee."""
        return amount - self.fee_on(amount)

    def gross_up(self, net: int) -> int:
        """Smallest gross input whose amount_after_fee covers net (rounded up).

        Raises:
            DivisionByZero: If the fee tier is 100%
        """
        return div_rounding(
            net * BPS_DENOMINATOR, BPS_DENOMINATOR - self.bps.value, Rounding.UP
        )

    def __str__(self) -> str:
        return f"{self.bps.value}bps"


# =============================================================================
# Prices and ticks
# =============================================================================


@dataclass(frozen=True, order=True)
class Price:
    """Quote-per-base exchange rate; always strictly positive."""

    value: Decimal

    def __post_init__(self) -> None:
        if not isinstance(self.value, Decimal):
            raise InvalidConfiguration(f"Price must be a Decimal, got {type(self.value).__name__}")
        if not self.value.is_finite() or self.value <= 0:
            raise InvalidConfiguration(f"Price must be positive and finite, got {self.value}")

    @classmethod
    def from_ratio(cls, numerator: int, denominator: int) -> Price:
        """Build numerator / denominator at PRICE_PRECISION significant digits.

        Raises:
            InvalidConfiguration: If the ratio is not strictly positive
        """
        if numerator <= 0 or denominator <= 0:
            raise InvalidConfiguration(f"Price ratio must be positive: {numerator}/{denominator}")
        with localcontext() as ctx:
            ctx.prec = PRICE_PRECISION
            return cls(Decimal(numerator) / Decimal(denominator))

    def invert(self) -> Price:
        with localcontext() as ctx:
            ctx.prec = PRICE_PRECISION
            return Price(Decimal(1) / self.value)

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True, order=True)
class Tick:
    """Index into the concentrated-liquidity price grid."""

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise InvalidConfiguration(f"Tick must be an int, got {self.value!r}")
        if not MIN_TICK <= self.value <= MAX_TICK:
            raise TickOutOfRange(f"Tick {self.value} outside [{MIN_TICK}, {MAX_TICK}]")

    def is_aligned(self, spacing: int) -> bool:
        return self.value % spacing == 0


@dataclass(frozen=True)
class Position:
    """Liquidity placed over the tick range [lower, upper)."""

    lower: Tick
    upper: Tick
    liquidity: Liquidity

    def __post_init__(self) -> None:
        if self.lower >= self.upper:
            raise InvalidPosition(
                f"Lower tick {self.lower.value} must be below upper tick {self.upper.value}"
            )
        if self.liquidity.is_zero():
            raise InvalidPosition("Position liquidity must be positive")

    @classmethod
    def new(cls, lower: int, upper: int, liquidity: int) -> Position:
        return cls(Tick(lower), Tick(upper), Liquidity(liquidity))

    @property
    def range(self) -> tuple[int, int]:
        return (self.lower.value, self.upper.value)


__all__ = [
    "Amount",
    "BasisPoints",
    "Decimals",
    "FeeTier",
    "Liquidity",
    "Position",
    "Price",
    "Tick",
    "Token",
    "TokenAddress",
    "TokenPair",
    "is_valid_address",
    "normalize_address",
]
