"""Error taxonomy for the AMM engine.

Every failure the engine reports is an AmmError subclass carrying a stable
numeric code. Codes live in disjoint ranges so embedding layers can map them
to transport status codes without matching on messages:

    1000-1999  request and configuration validation
    2000-2999  state lookups
    3000-3999  checked arithmetic
    4000-4999  pool liquidity and price-range limits
"""

from __future__ import annotations

from typing import ClassVar


class AmmError(Exception):
    """Base error for all engine failures."""

    code: ClassVar[int] = 1000
    category: ClassVar[str] = "validation"

    def to_dict(self) -> dict[str, object]:
        """Render the error as a serializable mapping."""
        return {"code": self.code, "category": self.category, "message": str(self)}


# =============================================================================
# Validation (1000-1999)
# =============================================================================


class InvalidConfiguration(AmmError):
    """Error 1001: A configuration or domain value failed validation."""

    code = 1001


class SameToken(AmmError):
    """Error 1002: Both sides of a pair or swap are the same token."""

    code = 1002


class ZeroAmount(AmmError):
    """Error 1003: A swap or liquidity request has zero magnitude."""

    code = 1003


class InvalidPosition(AmmError):
    """Error 1004: Liquidity range is malformed (lower >= upper or zero liquidity)."""

    code = 1004


class InvalidTick(AmmError):
    """Error 1005: Tick is not aligned to the pool's tick spacing."""

    code = 1005


class TokenNotInPool(AmmError):
    """Error 1006: Token is not one of the pool's tokens."""

    code = 1006


class UnsupportedOperation(AmmError):
    """Error 1007: The pool family does not support the requested operation."""

    code = 1007


class InvalidLiquidityChange(AmmError):
    """Error 1008: Liquidity change does not match the pool's shape."""

    code = 1008


class ZeroOutputAmount(ZeroAmount):
    """Error 1009: The trade is too small to produce any output."""

    code = 1009


# =============================================================================
# State (2000-2999)
# =============================================================================


class PositionNotFound(AmmError):
    """Error 2001: No liquidity position exists for the given range."""

    code = 2001
    category = "state"


# =============================================================================
# Arithmetic (3000-3999)
# =============================================================================


class AmmArithmeticError(AmmError, ArithmeticError):
    """Base class for checked arithmetic failures."""

    code = 3000
    category = "arithmetic"


class ArithmeticOverflow(AmmArithmeticError):
    """Error 3001: Result exceeds the representable bound."""

    code = 3001


class ArithmeticUnderflow(AmmArithmeticError):
    """Error 3002: Result would be negative."""

    code = 3002


class DivisionByZero(AmmArithmeticError):
    """Error 3003: Division or modulo by zero."""

    code = 3003


class ConvergenceFailure(AmmArithmeticError):
    """Error 3004: Iterative solver did not converge within its iteration bound."""

    code = 3004


# =============================================================================
# Liquidity (4000-4999)
# =============================================================================


class InsufficientLiquidity(AmmError):
    """Error 4001: Requested trade or withdrawal exceeds available depth."""

    code = 4001
    category = "liquidity"


class TickOutOfRange(AmmError):
    """Error 4002: Tick or price would leave the globally valid range."""

    code = 4002
    category = "liquidity"


__all__ = [
    "AmmError",
    "InvalidConfiguration",
    "SameToken",
    "ZeroAmount",
    "InvalidPosition",
    "InvalidTick",
    "TokenNotInPool",
    "UnsupportedOperation",
    "InvalidLiquidityChange",
    "ZeroOutputAmount",
    "PositionNotFound",
    "AmmArithmeticError",
    "ArithmeticOverflow",
    "ArithmeticUnderflow",
    "DivisionByZero",
    "ConvergenceFailure",
    "InsufficientLiquidity",
    "TickOutOfRange",
]
