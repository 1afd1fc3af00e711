"""Tick and sqrt-price conversions.

Integer port of the concentrated-liquidity tick math: every tick maps to
sqrt(1.0001^tick) * 2^96 computed from precomputed Q128 factors, so results
match the on-chain values bit for bit.
"""

from __future__ import annotations

from hydra_amm.errors import TickOutOfRange

from .constants import MAX_SQRT_RATIO, MAX_TICK, MIN_SQRT_RATIO, MIN_TICK, Q128

UINT256_MAX = (1 << 256) - 1
UINT128_MAX = (1 << 128) - 1

# 1 / sqrt(1.0001^(2^i)) in Q128, for bits 1..19 of |tick|
_TICK_FACTORS: tuple[tuple[int, int], ...] = (
    (0x2, 0xFFF97272373D413259A46990580E213A),
    (0x4, 0xFFF2E50F5F656932EF12357CF3C7FDCC),
    (0x8, 0xFFE5CACA7E10E4E61C3624EAA0941CD0),
    (0x10, 0xFFCB9843D60F6159C9DB58835C926644),
    (0x20, 0xFF973B41FA98C081472E6896DFB254C0),
    (0x40, 0xFF2EA16466C96A3843EC78B326B52861),
    (0x80, 0xFE5DEE046A99A2A811C461F1969C3053),
    (0x100, 0xFCBE86C7900A88AEDCFFC83B479AA3A4),
    (0x200, 0xF987A7253AC413176F2B074CF7815E54),
    (0x400, 0xF3392B0822B70005940C7A398E4B70F3),
    (0x800, 0xE7159475A2C29B7443B29C7FA6E889D9),
    (0x1000, 0xD097F3BDFD2022B8845AD8F792AA5825),
    (0x2000, 0xA9F746462D870FDF8A65DC1F90E061E5),
    (0x4000, 0x70D869A156D2A1B890BB3DF62BAF32F7),
    (0x8000, 0x31BE135F97D08FD981231505542FCFA6),
    (0x10000, 0x9AA508B5B7A84E1C677DE54F3E99BC9),
    (0x20000, 0x5D6AF8DEDB81196699C329225EE604),
    (0x40000, 0x2216E584F5FA1EA926041BEDFE98),
    (0x80000, 0x48A170391F7DC42444E8FA2),
)


def get_sqrt_ratio_at_tick(tick: int) -> int:
    """Calculate sqrt(1.0001^tick) * 2^96.

    Args:
        tick: Tick index in [MIN_TICK, MAX_TICK]

    Returns:
        sqrtPriceX96, rounded up

    Raises:
        TickOutOfRange: If tick is outside the global range
    """
    if not MIN_TICK <= tick <= MAX_TICK:
        raise TickOutOfRange(f"Tick {tick} outside [{MIN_TICK}, {MAX_TICK}]")

    abs_tick = abs(tick)
    ratio = 0xFFFCB933BD6FAD37AA2D162D1A594001 if abs_tick & 0x1 else Q128
    for bit, factor in _TICK_FACTORS:
        if abs_tick & bit:
            ratio = (ratio * factor) >> 128

    if tick > 0:
        ratio = UINT256_MAX // ratio

    # Q128 -> Q96, rounding up so get_tick_at_sqrt_ratio is consistent
    return (ratio >> 32) + (1 if ratio % (1 << 32) else 0)


def get_tick_at_sqrt_ratio(sqrt_price_x96: int) -> int:
    """Greatest tick whose sqrt ratio is <= sqrt_price_x96.

    Args:
        sqrt_price_x96: Price in [MIN_SQRT_RATIO, MAX_SQRT_RATIO)

    Raises:
        TickOutOfRange: If the price is outside the global range
    """
    if not MIN_SQRT_RATIO <= sqrt_price_x96 < MAX_SQRT_RATIO:
        raise TickOutOfRange(f"sqrtPriceX96 {sqrt_price_x96} outside the valid range")

    low, high = MIN_TICK, MAX_TICK
    while low < high:
        mid = (low + high + 1) // 2
        if get_sqrt_ratio_at_tick(mid) <= sqrt_price_x96:
            low = mid
        else:
            high = mid - 1
    return low


def usable_tick_bounds(tick_spacing: int) -> tuple[int, int]:
    """Lowest and highest ticks aligned to tick_spacing."""
    max_tick = (MAX_TICK // tick_spacing) * tick_spacing
    return -max_tick, max_tick


def max_liquidity_per_tick(tick_spacing: int) -> int:
    """Largest gross liquidity a single tick may reference.

    Spreads the uint128 liquidity ceiling evenly over every usable tick so
    the active liquidity can never overflow however positions overlap.
    """
    min_tick, max_tick = usable_tick_bounds(tick_spacing)
    num_ticks = (max_tick - min_tick) // tick_spacing + 1
    return UINT128_MAX // num_ticks


__all__ = [
    "get_sqrt_ratio_at_tick",
    "get_tick_at_sqrt_ratio",
    "max_liquidity_per_tick",
    "usable_tick_bounds",
]
