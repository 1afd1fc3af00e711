"""Checked uint256 integers for pool math.

Every curve formula in the engine runs on SafeInt so that an intermediate
result leaving [0, 2^256 - 1] surfaces as a typed AmmArithmeticError at the
operation that produced it, instead of as a silently wrong reserve:

    from hydra_amm.safe_int import S

    def amount_out(reserve_in: int, reserve_out: int, amount_in: int) -> int:
        numerator = S(amount_in) * reserve_out       # ArithmeticOverflow
        denominator = S(reserve_in) + amount_in      # ArithmeticOverflow
        return (numerator // denominator).value      # DivisionByZero
"""

from __future__ import annotations

from functools import total_ordering

from hydra_amm.constants import UINT256_MAX
from hydra_amm.errors import ArithmeticOverflow, ArithmeticUnderflow, DivisionByZero
from hydra_amm.math.rounding import Rounding, div_rounding, sqrt_rounding


def _raw(x: SafeInt | int) -> int:
    return x._value if isinstance(x, SafeInt) else x


def _checked(result: int, expression: str) -> SafeInt:
    """Wrap an already computed result, naming the expression on failure."""
    if result < 0:
        raise ArithmeticUnderflow(f"Underflow: {expression} = {result}")
    if result > UINT256_MAX:
        raise ArithmeticOverflow(f"Overflow: {expression}")
    return SafeInt(result)


def _divisor(x: SafeInt | int, expression: str) -> int:
    value = _raw(x)
    if value == 0:
        raise DivisionByZero(f"Division by zero: {expression}")
    return value


@total_ordering
class SafeInt:
    """Non-negative integer bounded by uint256.

    Operators accept SafeInt or plain int on either side and always return
    a SafeInt, so a chain of operations stays checked end to end.
    """

    __slots__ = ("_value",)
    _value: int

    def __init__(self, value: int | SafeInt) -> None:
        if isinstance(value, SafeInt):
            self._value = value._value
            return
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"SafeInt requires int, got {type(value).__name__}")
        if value < 0:
            raise ArithmeticUnderflow(f"Negative value: {value}")
        if value > UINT256_MAX:
            raise ArithmeticOverflow(f"Value exceeds uint256 max: {value}")
        self._value = value

    @classmethod
    def zero(cls) -> SafeInt:
        return cls(0)

    @property
    def value(self) -> int:
        """The wrapped int."""
        return self._value

    def __repr__(self) -> str:
        return f"SafeInt({self._value})"

    def __str__(self) -> str:
        return str(self._value)

    def __hash__(self) -> int:
        return hash(self._value)

    def __int__(self) -> int:
        return self._value

    def __index__(self) -> int:
        return self._value

    def __bool__(self) -> bool:
        return self._value != 0

    def __eq__(self, other: object) -> bool:
        if isinstance(other, (SafeInt, int)):
            return self._value == _raw(other)
        return NotImplemented

    def __lt__(self, other: SafeInt | int) -> bool:
        return self._value < _raw(other)

    # Arithmetic

    def __add__(self, other: SafeInt | int) -> SafeInt:
        rhs = _raw(other)
        return _checked(self._value + rhs, f"{self._value} + {rhs}")

    __radd__ = __add__

    def __sub__(self, other: SafeInt | int) -> SafeInt:
        rhs = _raw(other)
        return _checked(self._value - rhs, f"{self._value} - {rhs}")

    def __rsub__(self, other: int) -> SafeInt:
        return _checked(other - self._value, f"{other} - {self._value}")

    def __mul__(self, other: SafeInt | int) -> SafeInt:
        rhs = _raw(other)
        return _checked(self._value * rhs, f"{self._value} * {rhs}")

    __rmul__ = __mul__

    def __floordiv__(self, other: SafeInt | int) -> SafeInt:
        rhs = _divisor(other, f"{self._value} // {_raw(other)}")
        return SafeInt(self._value // rhs)

    def __mod__(self, other: SafeInt | int) -> SafeInt:
        rhs = _divisor(other, f"{self._value} % {_raw(other)}")
        return SafeInt(self._value % rhs)

    def __pow__(self, exponent: int) -> SafeInt:
        if exponent < 0:
            raise ArithmeticUnderflow(f"Negative exponent: {exponent}")
        # Bit length bounds the result before computing it
        if self._value > 1 and (self._value.bit_length() - 1) * exponent > 256:
            raise ArithmeticOverflow(f"Overflow: {self._value} ** {exponent}")
        return _checked(self._value**exponent, f"{self._value} ** {exponent}")

    # Directed rounding

    def div(self, other: SafeInt | int, rounding: Rounding) -> SafeInt:
        """Divide, rounding toward the requested direction.

        Raises:
            DivisionByZero: If other is zero
        """
        rhs = _divisor(other, f"{self._value} / {_raw(other)}")
        return SafeInt(div_rounding(self._value, rhs, rounding))

    def ceiling_div(self, other: SafeInt | int) -> SafeInt:
        return self.div(other, Rounding.UP)

    def isqrt(self, rounding: Rounding = Rounding.DOWN) -> SafeInt:
        return SafeInt(sqrt_rounding(self._value, rounding))

    def min(self, other: SafeInt | int) -> SafeInt:
        return self if self._value <= _raw(other) else SafeInt(other)

    def max(self, other: SafeInt | int) -> SafeInt:
        return self if self._value >= _raw(other) else SafeInt(other)


S = SafeInt
