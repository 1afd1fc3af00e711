"""Engine-wide numeric constants.

Centralizes the fixed bounds every pool family and domain type relies on.
Tunable bounds (amplification, slippage coefficient, iteration limits) live
in hydra_amm.settings instead.
"""

# Widest integer any checked intermediate may reach
UINT256_MAX = 2**256 - 1

# Amounts and liquidity are bounded to unsigned 128-bit values
AMOUNT_MAX = 2**128 - 1

# Fee tiers are expressed in basis points (10000 = 100%)
BPS_DENOMINATOR = 10_000

# Weighted pool weights are basis points that must sum to this total
WEIGHT_TOTAL = 10_000

# Token decimals must fit in a u8
MAX_DECIMALS = 255

# Token addresses are 20 bytes (40 hex chars after the 0x prefix)
ADDRESS_LENGTH = 20

# Shares permanently locked on the first deposit of a share-based pool
MINIMUM_LIQUIDITY = 1_000

# Precision used when building Decimal prices from integer ratios
PRICE_PRECISION = 50

# Concentrated liquidity tick bounds (log base 1.0001 of the price)
MIN_TICK = -887_272
MAX_TICK = 887_272
MAX_TICK_SPACING = 16_384
