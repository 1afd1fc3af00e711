"""Concentrated liquidity constants."""

from hydra_amm.constants import MAX_TICK, MIN_TICK

# Q64.96 and Q128 fixed-point scales
Q96 = 1 << 96
Q128 = 1 << 128
RESOLUTION = 96

# sqrt(1.0001^MIN_TICK) * 2^96 and sqrt(1.0001^MAX_TICK) * 2^96
MIN_SQRT_RATIO = 4295128739
MAX_SQRT_RATIO = 1461446703485210103287273052203988822378723970342

# Fee growth accumulators wrap like uint256 counters
FEE_GROWTH_MODULUS = 1 << 256

# Fees are applied in hundredths of a basis point
FEE_PIPS_DENOMINATOR = 1_000_000
PIPS_PER_BPS = 100

__all__ = [
    "FEE_GROWTH_MODULUS",
    "FEE_PIPS_DENOMINATOR",
    "MAX_SQRT_RATIO",
    "MAX_TICK",
    "MIN_SQRT_RATIO",
    "MIN_TICK",
    "PIPS_PER_BPS",
    "Q128",
    "Q96",
    "RESOLUTION",
]
