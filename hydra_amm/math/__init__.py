"""Mathematical primitives for pool pricing.

This package provides:
- Rounding and full-precision integer helpers (mul_div, div_rounding)
- Fixed: 18-decimal fixed-point arithmetic
- NumericBackend: the fixed-point and decimal backends behind one contract
"""

from hydra_amm.math.fixed_point import Fixed
from hydra_amm.math.numeric import DecimalBackend, FixedPointBackend, NumericBackend, get_backend
from hydra_amm.math.rounding import Rounding, div_rounding, mul_div, sqrt_rounding

__all__ = [
    "Fixed",
    "DecimalBackend",
    "FixedPointBackend",
    "NumericBackend",
    "get_backend",
    "Rounding",
    "div_rounding",
    "mul_div",
    "sqrt_rounding",
]
