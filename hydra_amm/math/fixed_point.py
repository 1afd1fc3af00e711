"""18-decimal fixed-point arithmetic.

Values are integers scaled by 10^18. Logarithm and exponential follow the
digit-extraction scheme of Balancer's LogExpMath (ln via arctanh series, exp
via Taylor series), which keeps pow within a known relative error so callers
can round it in a chosen direction.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_CEILING, ROUND_FLOOR, Decimal
from typing import ClassVar

from hydra_amm.errors import ArithmeticOverflow, ArithmeticUnderflow, DivisionByZero
from hydra_amm.math.rounding import Rounding, div_rounding, sqrt_rounding

ONE_18 = 10**18
ONE_20 = 10**20
ONE_36 = 10**36

MAX_NATURAL_EXPONENT = 130 * ONE_18
MIN_NATURAL_EXPONENT = -41 * ONE_18

# ln is computed at 36 decimals inside (0.9, 1.1)
LN_36_LOWER_BOUND = ONE_18 - 10**17
LN_36_UPPER_BOUND = ONE_18 + 10**17

MILD_EXPONENT_BOUND = (1 << 254) // ONE_20

# Relative error bound of pow_raw, applied when rounding pow results
MAX_POW_RELATIVE_ERROR = 10_000

# (x, e^x) pairs at 18 decimals; a is unscaled
_EXP_TERMS_18: tuple[tuple[int, int], ...] = (
    (128 * ONE_18, 38877084059945950922200000000000000000000000000000000000),
    (64 * ONE_18, 6235149080811616882910000000),
)

# (x, e^x) pairs at 20 decimals
_EXP_TERMS_20: tuple[tuple[int, int], ...] = (
    (32 * ONE_20, 7_896_296_018_268_069_516_100_000_000_000_000),
    (16 * ONE_20, 888_611_052_050_787_263_676_000_000),
    (8 * ONE_20, 298_095_798_704_172_827_474_000),
    (4 * ONE_20, 5_459_815_003_314_423_907_810),
    (2 * ONE_20, 738_905_609_893_065_022_723),
    (1 * ONE_20, 271_828_182_845_904_523_536),
    (ONE_20 // 2, 164_872_127_070_012_814_685),
    (ONE_20 // 4, 128_402_541_668_774_148_407),
    (ONE_20 // 8, 113_314_845_306_682_631_683),
    (ONE_20 // 16, 106_449_445_891_785_942_956),
)


def _trunc_div(a: int, b: int) -> int:
    """Integer division truncating toward zero."""
    if b == 0:
        raise DivisionByZero("Division by zero in fixed-point series")
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b >= 0) else -quotient


def ln(a: int) -> int:
    """Natural logarithm of a positive 18-decimal value.

    Raises:
        DivisionByZero: If a is zero
    """
    if a <= 0:
        raise DivisionByZero(f"ln undefined for {a}")
    if a < ONE_18:
        return -ln((ONE_18 * ONE_18) // a)

    total = 0
    for x_n, a_n in _EXP_TERMS_18:
        if a >= a_n * ONE_18:
            a //= a_n
            total += x_n

    total *= 100
    a *= 100
    for x_n, a_n in _EXP_TERMS_20:
        if a >= a_n:
            a = (a * ONE_20) // a_n
            total += x_n

    # ln(a) = 2 * arctanh((a - 1) / (a + 1))
    z = ((a - ONE_20) * ONE_20) // (a + ONE_20)
    z_squared = (z * z) // ONE_20
    term = z
    series = term
    for divisor in range(3, 12, 2):
        term = (term * z_squared) // ONE_20
        series += term // divisor

    return (total + series * 2) // 100


def _ln_36(x: int) -> int:
    """Natural logarithm at 36 decimals for inputs close to one."""
    x *= ONE_18
    z = _trunc_div((x - ONE_36) * ONE_36, x + ONE_36)
    z_squared = _trunc_div(z * z, ONE_36)
    term = z
    series = term
    for divisor in range(3, 16, 2):
        term = _trunc_div(term * z_squared, ONE_36)
        series += _trunc_div(term, divisor)
    return series * 2


def exp(x: int) -> int:
    """Compute e^x for an 18-decimal exponent.

    Raises:
        ArithmeticOverflow: If x is outside [MIN_NATURAL_EXPONENT, MAX_NATURAL_EXPONENT]
    """
    if not MIN_NATURAL_EXPONENT <= x <= MAX_NATURAL_EXPONENT:
        raise ArithmeticOverflow(f"Exponent {x} outside valid range")
    if x < 0:
        return (ONE_18 * ONE_18) // exp(-x)

    first_an = 1
    for x_n, a_n in _EXP_TERMS_18:
        if x >= x_n:
            x -= x_n
            first_an = a_n
            break

    x *= 100
    product = ONE_20
    for x_n, a_n in _EXP_TERMS_20[:8]:
        if x >= x_n:
            x -= x_n
            product = (product * a_n) // ONE_20

    series = ONE_20 + x
    term = x
    for divisor in range(2, 13):
        term = ((term * x) // ONE_20) // divisor
        series += term

    return (((product * series) // ONE_20) * first_an) // 100


def pow_raw(x: int, y: int) -> int:
    """Compute x^y for non-negative 18-decimal base and exponent.

    The result carries a relative error below MAX_POW_RELATIVE_ERROR / 10^18;
    use Fixed.pow to round it in a chosen direction.

    Raises:
        ArithmeticOverflow: If x, y or y * ln(x) are outside the supported range
    """
    if y == 0:
        return ONE_18
    if x == 0:
        return 0
    if x >= 1 << 255:
        raise ArithmeticOverflow(f"Base {x} too large")
    if y >= MILD_EXPONENT_BOUND:
        raise ArithmeticOverflow(f"Exponent {y} too large")

    if LN_36_LOWER_BOUND < x < LN_36_UPPER_BOUND:
        ln_36_x = _ln_36(x)
        whole = _trunc_div(ln_36_x, ONE_18)
        fraction = ln_36_x - whole * ONE_18
        log_times_y = whole * y + _trunc_div(fraction * y, ONE_18)
    else:
        log_times_y = ln(x) * y
    log_times_y = _trunc_div(log_times_y, ONE_18)

    return exp(log_times_y)


@dataclass(frozen=True, order=True)
class Fixed:
    """Non-negative 18-decimal fixed-point number.

    Example: 1.5 is stored as raw 1_500_000_000_000_000_000. Every operation
    that can be inexact takes an explicit Rounding.
    """

    raw: int

    ONE: ClassVar[int] = ONE_18

    def __post_init__(self) -> None:
        if self.raw < 0:
            raise ArithmeticUnderflow(f"Fixed cannot be negative: {self.raw}")

    @classmethod
    def from_int(cls, value: int) -> Fixed:
        """Create from a whole number."""
        return cls(value * ONE_18)

    @classmethod
    def from_ratio(cls, numerator: int, denominator: int, rounding: Rounding) -> Fixed:
        """Create numerator / denominator at 18 decimals."""
        return cls(div_rounding(numerator * ONE_18, denominator, rounding))

    @classmethod
    def from_decimal(cls, value: Decimal, rounding: Rounding) -> Fixed:
        """Create from a Decimal, rounding the 19th decimal away."""
        mode = ROUND_CEILING if rounding is Rounding.UP else ROUND_FLOOR
        return cls(int((value * ONE_18).to_integral_value(rounding=mode)))

    def to_decimal(self) -> Decimal:
        return Decimal(self.raw) / Decimal(ONE_18)

    def to_int(self, rounding: Rounding) -> int:
        """Convert to a whole number in the requested direction."""
        return div_rounding(self.raw, ONE_18, rounding)

    def add(self, other: Fixed) -> Fixed:
        return Fixed(self.raw + other.raw)

    def sub(self, other: Fixed) -> Fixed:
        """Subtract other from self.

        Raises:
            ArithmeticUnderflow: If other > self
        """
        if other.raw > self.raw:
            raise ArithmeticUnderflow(f"Fixed underflow: {self.raw} - {other.raw}")
        return Fixed(self.raw - other.raw)

    def mul(self, other: Fixed, rounding: Rounding) -> Fixed:
        return Fixed(div_rounding(self.raw * other.raw, ONE_18, rounding))

    def div(self, other: Fixed, rounding: Rounding) -> Fixed:
        """Divide self by other.

        Raises:
            DivisionByZero: If other is zero
        """
        if other.raw == 0:
            raise DivisionByZero("Fixed division by zero")
        return Fixed(div_rounding(self.raw * ONE_18, other.raw, rounding))

    def complement(self) -> Fixed:
        """Return 1 - self, clamped at zero."""
        return Fixed(max(0, ONE_18 - self.raw))

    def sqrt(self, rounding: Rounding) -> Fixed:
        return Fixed(sqrt_rounding(self.raw * ONE_18, rounding))

    def pow(self, exponent: Fixed, rounding: Rounding) -> Fixed:
        """Compute self^exponent, widened by the pow error bound in the rounding direction."""
        if exponent.raw == ONE_18:
            return self
        if exponent.raw == 2 * ONE_18:
            return self.mul(self, rounding)
        raw = pow_raw(self.raw, exponent.raw)
        max_error = div_rounding(raw * MAX_POW_RELATIVE_ERROR, ONE_18, Rounding.UP) + 1
        if rounding is Rounding.UP:
            return Fixed(raw + max_error)
        return Fixed(max(0, raw - max_error))

    def __str__(self) -> str:
        return str(self.to_decimal())


FIXED_ZERO = Fixed(0)
FIXED_ONE = Fixed(ONE_18)

__all__ = [
    "Fixed",
    "FIXED_ONE",
    "FIXED_ZERO",
    "ONE_18",
    "MAX_POW_RELATIVE_ERROR",
    "exp",
    "ln",
    "pow_raw",
]
