"""Tests for the constant product pool."""

from decimal import Decimal

import pytest

from hydra_amm.amm import ConstantProductPool, get_amount_in, get_amount_out
from hydra_amm.errors import (
    InsufficientLiquidity,
    InvalidConfiguration,
    InvalidLiquidityChange,
    SameToken,
    TokenNotInPool,
    ZeroAmount,
    ZeroOutputAmount,
)
from hydra_amm.models import Amount, LiquidityChange, Price, SwapSpec
from hydra_amm.settings import EngineSettings
from tests.helpers import cp_config


class TestConstantProductMath:
    """Tests for the fee-free x * y = k formulas."""

    def test_get_amount_out_rounds_down(self):
        """Output is floor(in * res_out / (res_in + in))."""
        # 9970 * 1e6 / 1_009_970 = 9871.58...
        assert get_amount_out(9_970, 1_000_000, 1_000_000) == 9_871

    def test_get_amount_in_rounds_up(self):
        """Input is ceil(res_in * out / (res_out - out))."""
        # 1e6 * 9871 / 990_129 = 9969.4...
        assert get_amount_in(9_871, 1_000_000, 1_000_000) == 9_970

    def test_get_amount_in_drain_raises(self):
        """Requesting the whole reserve raises InsufficientLiquidity."""
        with pytest.raises(InsufficientLiquidity):
            get_amount_in(1_000_000, 1_000_000, 1_000_000)

    def test_round_trip_never_profits(self):
        """Buying back what was sold costs at least what was paid."""
        out = get_amount_out(5_000, 1_000_000, 2_000_000)
        paid = get_amount_in(out, 1_000_000, 2_000_000)
        assert paid <= 5_000
        assert get_amount_out(paid, 1_000_000, 2_000_000) >= out


class TestConstantProductSwap:
    """Tests for ConstantProductPool swaps."""

    def test_exact_in(self, cp_pool, weth, usdc):
        """A 10,000 input at 30 bps yields 9,871 and a fee of 30."""
        result = cp_pool.swap(SwapSpec.exact_in(10_000), weth)
        assert result.amount_in == Amount(10_000)
        assert result.amount_out == Amount(9_871)
        assert result.fee == Amount(30)
        assert result.token_out == usdc
        assert cp_pool.reserves == (1_010_000, 990_129)

    def test_exact_out(self, cp_pool, weth, usdc):
        """Buying 9,871 costs 10,000 gross."""
        result = cp_pool.swap(SwapSpec.exact_out(9_871), weth, usdc)
        assert result.amount_out == Amount(9_871)
        assert result.amount_in == Amount(10_000)
        assert result.fee == Amount(30)

    def test_invariant_never_decreases(self, cp_pool, weth, usdc):
        """k grows with every fee-paying trade in either direction."""
        k = cp_pool.invariant()
        for token_in in (weth, usdc, weth):
            cp_pool.swap(SwapSpec.exact_in(25_000), token_in)
            assert cp_pool.invariant() >= k
            k = cp_pool.invariant()

    def test_price_moves_against_trader(self, cp_pool, weth, usdc):
        """Selling base lowers the base price."""
        before = cp_pool.spot_price(weth, usdc)
        result = cp_pool.swap(SwapSpec.exact_in(10_000), weth)
        assert result.price_after < before
        assert result.price_after == cp_pool.spot_price(weth, usdc)

    def test_quote_does_not_mutate(self, cp_pool, weth):
        """quote is repeatable and matches the following swap."""
        first = cp_pool.quote(SwapSpec.exact_in(10_000), weth)
        second = cp_pool.quote(SwapSpec.exact_in(10_000), weth)
        assert first == second
        assert cp_pool.reserves == (1_000_000, 1_000_000)
        assert cp_pool.swap(SwapSpec.exact_in(10_000), weth) == first

    def test_dust_input_raises(self, cp_pool, weth):
        """An input eaten by the fee raises ZeroOutputAmount."""
        with pytest.raises(ZeroOutputAmount):
            cp_pool.swap(SwapSpec.exact_in(1), weth)
        assert cp_pool.reserves == (1_000_000, 1_000_000)

    def test_exact_out_past_reserve_raises(self, cp_pool, weth):
        """Requesting the whole reserve raises InsufficientLiquidity."""
        with pytest.raises(InsufficientLiquidity):
            cp_pool.swap(SwapSpec.exact_out(1_000_000), weth)

    def test_same_token_raises(self, cp_pool, weth):
        """Swapping a token for itself raises SameToken."""
        with pytest.raises(SameToken):
            cp_pool.swap(SwapSpec.exact_in(100), weth, weth)

    def test_foreign_token_raises(self, cp_pool, weth, outsider):
        """Tokens outside the pair raise TokenNotInPool."""
        with pytest.raises(TokenNotInPool):
            cp_pool.swap(SwapSpec.exact_in(100), outsider)
        with pytest.raises(TokenNotInPool):
            cp_pool.swap(SwapSpec.exact_in(100), weth, outsider)

    def test_spot_price_orientation(self, weth, usdc):
        """spot_price inverts when the requested order is reversed."""
        pool = ConstantProductPool.from_config(cp_config(1_000_000, 2_000_000))
        assert pool.spot_price(weth, usdc) == Price(Decimal(2))
        assert pool.spot_price(usdc, weth) == Price(Decimal("0.5"))


class TestConstantProductLiquidity:
    """Tests for ConstantProductPool liquidity changes."""

    def test_initial_shares(self, cp_pool):
        """Initial shares are the geometric mean; some are locked."""
        assert cp_pool.total_liquidity().value == 1_000_000
        assert cp_pool.locked_shares == 1_000

    def test_add_takes_only_proportional_amounts(self, cp_pool):
        """Excess of one token is left with the caller."""
        receipt = cp_pool.add_liquidity(LiquidityChange.add(1_000, 2_000))
        assert receipt.liquidity.value == 1_000
        assert receipt.amounts == (Amount(1_000), Amount(1_000))
        assert cp_pool.reserves == (1_001_000, 1_001_000)

    def test_add_remove_round_trip(self, cp_pool):
        """Removing freshly minted shares never returns more than deposited."""
        added = cp_pool.add_liquidity(LiquidityChange.add(12_345, 12_345))
        removed = cp_pool.remove_liquidity(LiquidityChange.remove(added.liquidity))
        for paid, returned in zip(added.amounts, removed.amounts):
            assert returned <= paid

    def test_add_dust_raises(self):
        """A deposit worth less than a share raises ZeroAmount."""
        pool = ConstantProductPool.from_config(cp_config(10**12, 10**6))
        with pytest.raises(ZeroAmount):
            pool.add_liquidity(LiquidityChange.add(1, 1))

    def test_locked_shares_cannot_be_burned(self, cp_pool):
        """Burning into the locked minimum raises InsufficientLiquidity."""
        with pytest.raises(InsufficientLiquidity):
            cp_pool.remove_liquidity(LiquidityChange.remove(999_001))
        cp_pool.remove_liquidity(LiquidityChange.remove(999_000))
        assert cp_pool.total_liquidity().value == 1_000

    def test_wrong_shape_raises(self, cp_pool):
        """Ranged, misdirected and miscounted changes are rejected."""
        with pytest.raises(InvalidLiquidityChange):
            cp_pool.add_liquidity(LiquidityChange.add_range(-10, 10, 100))
        with pytest.raises(InvalidLiquidityChange):
            cp_pool.add_liquidity(LiquidityChange.remove(5))
        with pytest.raises(InvalidLiquidityChange):
            cp_pool.remove_liquidity(LiquidityChange.add(5, 5))
        with pytest.raises(InvalidLiquidityChange):
            cp_pool.add_liquidity(LiquidityChange.add(5, 5, 5))


class TestConstantProductConfig:
    """Tests for construction-time validation."""

    def test_zero_reserve_raises(self):
        """Reserves must be positive."""
        with pytest.raises(InvalidConfiguration):
            cp_config(reserve_base=0)

    def test_full_fee_raises(self):
        """A 100% fee is rejected."""
        with pytest.raises(InvalidConfiguration):
            cp_config(fee_bps=10_000)

    def test_minimum_liquidity_setting(self):
        """Locked shares follow the settings."""
        pool = ConstantProductPool.from_config(
            cp_config(), EngineSettings(minimum_liquidity=0)
        )
        assert pool.locked_shares == 0
