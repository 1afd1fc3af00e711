"""Tests for the dynamic (PMM) pool."""

from decimal import Decimal

import pytest

from hydra_amm.amm import DynamicPool
from hydra_amm.amm.dynamic import PMMState, RState, solve_target, solve_trade
from hydra_amm.config import DynamicConfig
from hydra_amm.errors import (
    InsufficientLiquidity,
    InvalidConfiguration,
    InvalidLiquidityChange,
    ZeroOutputAmount,
)
from hydra_amm.math.numeric import get_backend
from hydra_amm.math.rounding import Rounding
from hydra_amm.models import Amount, LiquidityChange, Price, SwapSpec
from tests.helpers import dynamic_config

BACKENDS = ["decimal", "fixed"]


@pytest.fixture
def pool() -> DynamicPool:
    """Balanced 1M/1M pool at oracle price 1, k = 0.5, no fee."""
    return DynamicPool.from_config(dynamic_config())


class TestPmmMath:
    """Tests for the curve primitives."""

    def test_trade_at_target_is_below_oracle(self):
        """Selling into a balanced side pays slightly less than the oracle rate."""
        backend = get_backend("decimal")
        one = backend.one()
        half = backend.from_decimal(Decimal("0.5"), Rounding.DOWN)
        received = solve_trade(backend, 1_000_000, 1_000_000, 1_000, one, half)
        assert 990 < received < 1_000

    def test_zero_k_trades_flat(self):
        """k near zero trades at the oracle price."""
        backend = get_backend("decimal")
        k = backend.from_decimal(Decimal("0.0001"), Rounding.UP)
        received = solve_trade(backend, 1_000_000, 1_000_000, 10_000, backend.one(), k)
        assert received >= 9_990

    def test_solve_target_without_surplus(self):
        """No surplus leaves the target at the balance."""
        backend = get_backend("decimal")
        half = backend.from_decimal(Decimal("0.5"), Rounding.DOWN)
        assert solve_target(backend, 990_000, 0, backend.one(), half) == 990_000

    def test_solve_target_restores_balance(self):
        """The recomputed target sits above the short balance."""
        backend = get_backend("decimal")
        half = backend.from_decimal(Decimal("0.5"), Rounding.DOWN)
        target = solve_target(backend, 990_000, 10_000, backend.one(), half)
        assert 999_000 < target <= 1_000_000

    def test_balanced_state(self):
        """balanced() starts with balances at their targets."""
        state = PMMState.balanced(10, 20)
        assert (state.base_target, state.quote_target, state.r) == (10, 20, RState.BALANCED)


class TestDynamicSwap:
    """Tests for DynamicPool swaps."""

    @pytest.mark.parametrize("numeric", BACKENDS)
    def test_balanced_pool_quotes_near_oracle(self, numeric, weth, usdc):
        """At the oracle price 1 a small trade fills close to 1:1."""
        pool = DynamicPool.from_config(dynamic_config(numeric=numeric))
        assert pool.spot_price(weth, usdc) == Price(Decimal(1))
        result = pool.swap(SwapSpec.exact_in(1_000), weth)
        assert result.token_out == usdc
        assert 990 < result.amount_out.value < 1_000

    def test_selling_base_shorts_quote(self, pool, weth, usdc):
        """Selling base leaves quote below target and lowers the price."""
        result = pool.swap(SwapSpec.exact_in(10_000), weth)
        assert pool.r_state is RState.QUOTE_SHORT
        assert result.price_after < Price(Decimal(1))
        assert pool.spot_price(weth, usdc) == result.price_after

    def test_selling_quote_shorts_base(self, pool, usdc):
        """Selling quote leaves base below target."""
        pool.swap(SwapSpec.exact_in(10_000), usdc)
        assert pool.r_state is RState.BASE_SHORT

    def test_round_trip_returns_toward_balance(self, pool, weth, usdc):
        """Selling back what was bought never profits and restores the price."""
        bought = pool.swap(SwapSpec.exact_in(10_000), weth)
        back = pool.swap(SwapSpec.exact_in(bought.amount_out.value), usdc)
        assert back.amount_out <= Amount(10_000)
        assert abs(pool.spot_price(weth, usdc).value - 1) < Decimal("0.001")

    def test_oracle_price_sets_level(self, weth, usdc):
        """A balanced pool quotes exactly its oracle price."""
        pool = DynamicPool.from_config(dynamic_config(oracle_price="2"))
        assert pool.spot_price(weth, usdc) == Price(Decimal(2))
        assert pool.spot_price(usdc, weth) == Price(Decimal("0.5"))

    def test_exact_out_is_minimal(self, pool, weth, usdc):
        """The searched input is the smallest that covers the output."""
        quoted = pool.quote(SwapSpec.exact_out(500), weth, usdc)
        assert quoted.amount_out == Amount(500)
        assert quoted.amount_in.value >= 500
        short = pool.quote(SwapSpec.exact_in(quoted.amount_in.value - 1), weth)
        assert short.amount_out < Amount(500)

    def test_fee_is_charged_on_input(self, weth):
        """A fee tier reduces the output and is reported."""
        pool = DynamicPool.from_config(dynamic_config(fee_bps=30))
        result = pool.swap(SwapSpec.exact_in(10_000), weth)
        assert result.fee == Amount(30)
        assert result.amount_out.value < 9_970

    def test_dust_raises(self, weth):
        """An input worth less than one unit of output raises ZeroOutputAmount."""
        pool = DynamicPool.from_config(dynamic_config(oracle_price="0.001"))
        with pytest.raises(ZeroOutputAmount):
            pool.swap(SwapSpec.exact_in(1), weth)

    def test_exact_out_past_reserve_raises(self, pool, weth):
        """The whole reserve cannot be bought."""
        with pytest.raises(InsufficientLiquidity):
            pool.swap(SwapSpec.exact_out(1_000_000), weth)


class TestDynamicLiquidity:
    """Tests for DynamicPool deposits and withdrawals."""

    def test_initial_shares(self, pool):
        """Initial shares equal the base reserve."""
        assert pool.total_liquidity().value == 1_000_000
        assert pool.locked_shares == 1_000

    def test_add_keeps_price(self, pool, weth, usdc):
        """Scaling the pool leaves R and the marginal price unchanged."""
        pool.swap(SwapSpec.exact_in(50_000), weth)
        before = pool.spot_price(weth, usdc)
        receipt = pool.add_liquidity(LiquidityChange.add(100_000, 100_000))
        assert receipt.liquidity.value > 0
        assert pool.r_state is RState.QUOTE_SHORT
        assert abs(pool.spot_price(weth, usdc).value - before.value) < Decimal("0.0001")

    def test_remove_is_proportional(self, pool):
        """Withdrawals take the same share of both balances."""
        receipt = pool.remove_liquidity(LiquidityChange.remove(1_000))
        assert receipt.amounts == (Amount(1_000), Amount(1_000))
        assert pool.reserves == (999_000, 999_000)

    def test_locked_shares_cannot_be_burned(self, pool):
        """The locked minimum stays in the pool."""
        with pytest.raises(InsufficientLiquidity):
            pool.remove_liquidity(LiquidityChange.remove(999_001))

    def test_three_amounts_raise(self, pool):
        """Deposits take exactly two amounts."""
        with pytest.raises(InvalidLiquidityChange):
            pool.add_liquidity(LiquidityChange.add(1, 1, 1))


class TestDynamicConfig:
    """Tests for slippage coefficient bounds."""

    @pytest.mark.parametrize("k", ["0", "1.5"])
    def test_k_outside_settings_raises(self, k):
        """k must lie inside the settings range."""
        with pytest.raises(InvalidConfiguration):
            DynamicPool.from_config(dynamic_config(k=k))

    @pytest.mark.parametrize("oracle_price", ["0.0000000000000000001", "10000000000000000000000"])
    def test_oracle_price_outside_fixed_range_raises(self, oracle_price):
        """Prices whose value or inverse rounds to zero in 18 decimals are rejected."""
        with pytest.raises(InvalidConfiguration):
            DynamicPool.from_config(dynamic_config(oracle_price=oracle_price, numeric="fixed"))

    def test_tiny_oracle_price_on_decimal_backend(self, weth, usdc):
        """The decimal backend represents the same price and quotes it."""
        pool = DynamicPool.from_config(
            dynamic_config(oracle_price="0.0000000000000000001", numeric="decimal")
        )
        assert pool.spot_price(weth, usdc) == Price(Decimal("0.0000000000000000001"))

    def test_k_must_be_decimal(self):
        """Floats are rejected."""
        config = dynamic_config()
        with pytest.raises(InvalidConfiguration):
            DynamicConfig(
                pair=config.pair,
                fee=config.fee,
                oracle_price=config.oracle_price,
                slippage_coefficient=0.5,  # type: ignore[arg-type]
                reserve_base=1,
                reserve_quote=1,
            )
