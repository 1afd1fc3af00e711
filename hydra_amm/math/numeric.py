"""Interchangeable numeric backends.

Pools whose pricing needs fractional math (weighted powers, PMM square
roots) are written against NumericBackend so they run unchanged on either
representation:

- FixedPointBackend: integer 18-decimal fixed point (Fixed)
- DecimalBackend: decimal floating point at 60 significant digits with
  every inexact step directed-rounded and overflow trapped

Neither backend ever wraps or silently loses precision; failures surface as
ArithmeticOverflow, ArithmeticUnderflow or DivisionByZero.
"""

from __future__ import annotations

import decimal
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from decimal import ROUND_CEILING, ROUND_FLOOR, Decimal
from typing import Literal, Protocol, TypeAlias, TypeVar, runtime_checkable

from hydra_amm.errors import ArithmeticOverflow, ArithmeticUnderflow, DivisionByZero
from hydra_amm.math.fixed_point import FIXED_ONE, FIXED_ZERO, Fixed
from hydra_amm.math.rounding import Rounding

T = TypeVar("T")

BackendName: TypeAlias = Literal["fixed", "decimal"]

DECIMAL_PRECISION = 60


@runtime_checkable
class NumericBackend(Protocol[T]):
    """Arithmetic contract shared by all numeric representations.

    Values are opaque to callers; they are only combined through the
    backend that produced them.
    """

    name: str

    def zero(self) -> T: ...

    def one(self) -> T: ...

    def from_int(self, value: int) -> T: ...

    def from_ratio(self, numerator: int, denominator: int, rounding: Rounding) -> T: ...

    def from_decimal(self, value: Decimal, rounding: Rounding) -> T: ...

    def add(self, a: T, b: T) -> T: ...

    def sub(self, a: T, b: T) -> T: ...

    def mul(self, a: T, b: T, rounding: Rounding) -> T: ...

    def div(self, a: T, b: T, rounding: Rounding) -> T: ...

    def pow(self, base: T, exponent: T, rounding: Rounding) -> T: ...

    def sqrt(self, a: T, rounding: Rounding) -> T: ...

    def complement(self, a: T) -> T: ...

    def to_int(self, a: T, rounding: Rounding) -> int: ...

    def to_decimal(self, a: T) -> Decimal: ...

    def compare(self, a: T, b: T) -> int: ...


class FixedPointBackend:
    """Backend over 18-decimal integer fixed point."""

    name = "fixed"

    def zero(self) -> Fixed:
        return FIXED_ZERO

    def one(self) -> Fixed:
        return FIXED_ONE

    def from_int(self, value: int) -> Fixed:
        return Fixed.from_int(value)

    def from_ratio(self, numerator: int, denominator: int, rounding: Rounding) -> Fixed:
        return Fixed.from_ratio(numerator, denominator, rounding)

    def from_decimal(self, value: Decimal, rounding: Rounding) -> Fixed:
        return Fixed.from_decimal(value, rounding)

    def add(self, a: Fixed, b: Fixed) -> Fixed:
        return a.add(b)

    def sub(self, a: Fixed, b: Fixed) -> Fixed:
        return a.sub(b)

    def mul(self, a: Fixed, b: Fixed, rounding: Rounding) -> Fixed:
        return a.mul(b, rounding)

    def div(self, a: Fixed, b: Fixed, rounding: Rounding) -> Fixed:
        return a.div(b, rounding)

    def pow(self, base: Fixed, exponent: Fixed, rounding: Rounding) -> Fixed:
        return base.pow(exponent, rounding)

    def sqrt(self, a: Fixed, rounding: Rounding) -> Fixed:
        return a.sqrt(rounding)

    def complement(self, a: Fixed) -> Fixed:
        return a.complement()

    def to_int(self, a: Fixed, rounding: Rounding) -> int:
        return a.to_int(rounding)

    def to_decimal(self, a: Fixed) -> Decimal:
        return a.to_decimal()

    def compare(self, a: Fixed, b: Fixed) -> int:
        return (a.raw > b.raw) - (a.raw < b.raw)


class DecimalBackend:
    """Backend over decimal floating point with directed rounding.

    Each operation runs in a private context whose rounding mode follows the
    requested direction, so no step rounds toward the counterparty.
    """

    name = "decimal"

    def __init__(self, precision: int = DECIMAL_PRECISION) -> None:
        self._precision = precision

    @contextmanager
    def _context(self, rounding: Rounding = Rounding.DOWN) -> Iterator[decimal.Context]:
        ctx = decimal.Context(
            prec=self._precision,
            rounding=ROUND_CEILING if rounding is Rounding.UP else ROUND_FLOOR,
            traps=[decimal.Overflow, decimal.InvalidOperation, decimal.DivisionByZero],
        )
        try:
            yield ctx
        except decimal.Overflow as err:
            raise ArithmeticOverflow(f"Decimal overflow: {err}") from err
        except decimal.DivisionByZero as err:
            raise DivisionByZero(f"Decimal division by zero: {err}") from err
        except decimal.InvalidOperation as err:
            raise ArithmeticOverflow(f"Invalid decimal operation: {err}") from err

    def zero(self) -> Decimal:
        return Decimal(0)

    def one(self) -> Decimal:
        return Decimal(1)

    def from_int(self, value: int) -> Decimal:
        with self._context() as ctx:
            if value.bit_length() > 3 * self._precision:
                raise ArithmeticOverflow(f"Integer {value} exceeds decimal precision")
            return ctx.create_decimal(value)

    def from_ratio(self, numerator: int, denominator: int, rounding: Rounding) -> Decimal:
        if denominator == 0:
            raise DivisionByZero(f"Division by zero: {numerator} / 0")
        with self._context(rounding) as ctx:
            return ctx.divide(Decimal(numerator), Decimal(denominator))

    def from_decimal(self, value: Decimal, rounding: Rounding) -> Decimal:
        with self._context(rounding) as ctx:
            return ctx.plus(value)

    def add(self, a: Decimal, b: Decimal) -> Decimal:
        with self._context() as ctx:
            return ctx.add(a, b)

    def sub(self, a: Decimal, b: Decimal) -> Decimal:
        if b > a:
            raise ArithmeticUnderflow(f"Decimal underflow: {a} - {b}")
        with self._context() as ctx:
            return ctx.subtract(a, b)

    def mul(self, a: Decimal, b: Decimal, rounding: Rounding) -> Decimal:
        with self._context(rounding) as ctx:
            return ctx.multiply(a, b)

    def div(self, a: Decimal, b: Decimal, rounding: Rounding) -> Decimal:
        if b == 0:
            raise DivisionByZero(f"Division by zero: {a} / 0")
        with self._context(rounding) as ctx:
            return ctx.divide(a, b)

    def pow(self, base: Decimal, exponent: Decimal, rounding: Rounding) -> Decimal:
        with self._context(rounding) as ctx:
            result = ctx.power(base, exponent)
            # Non-integer powers are not guaranteed to honor the context
            # rounding; step one ulp outward.
            return _nudge(ctx, result, rounding)

    def sqrt(self, a: Decimal, rounding: Rounding) -> Decimal:
        with self._context(rounding) as ctx:
            root = ctx.sqrt(a)
            square = ctx.multiply(root, root)
            if rounding is Rounding.UP and square < a:
                root = ctx.next_plus(root)
            elif rounding is Rounding.DOWN and square > a:
                root = ctx.next_minus(root)
            return root

    def complement(self, a: Decimal) -> Decimal:
        with self._context() as ctx:
            return max(Decimal(0), ctx.subtract(Decimal(1), a))

    def to_int(self, a: Decimal, rounding: Rounding) -> int:
        mode = ROUND_CEILING if rounding is Rounding.UP else ROUND_FLOOR
        with self._context(rounding):
            return int(a.to_integral_value(rounding=mode))

    def to_decimal(self, a: Decimal) -> Decimal:
        return a

    def compare(self, a: Decimal, b: Decimal) -> int:
        return (a > b) - (a < b)


def _nudge(ctx: decimal.Context, value: Decimal, rounding: Rounding) -> Decimal:
    if value == 0:
        return value
    if rounding is Rounding.UP:
        return ctx.next_plus(value)
    return max(Decimal(0), ctx.next_minus(value))


_BACKENDS: dict[str, Callable[[], NumericBackend]] = {  # type: ignore[type-arg]
    "fixed": FixedPointBackend,
    "decimal": DecimalBackend,
}


def get_backend(name: BackendName) -> NumericBackend:  # type: ignore[type-arg]
    """Return a backend instance by name ("fixed" or "decimal").

    Raises:
        KeyError: If name is not a known backend
    """
    return _BACKENDS[name]()


__all__ = [
    "BackendName",
    "DecimalBackend",
    "FixedPointBackend",
    "NumericBackend",
    "get_backend",
]
