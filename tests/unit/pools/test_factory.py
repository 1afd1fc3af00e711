"""Tests for pool construction and the PoolBox handle."""

import pytest

from hydra_amm import create_pool, parse_config
from hydra_amm.amm import LiquidityPool, SwapPool
from hydra_amm.errors import InvalidConfiguration, InvalidLiquidityChange, UnsupportedOperation
from hydra_amm.models import Amount, LiquidityChange, Position, SwapSpec
from hydra_amm.pools import (
    ClmmPool,
    ConstantProductPool,
    DynamicPool,
    HybridPool,
    OrderBookPool,
    PoolBox,
    PoolKind,
    WeightedPool,
    build_pool,
)
from hydra_amm.settings import EngineSettings
from tests.helpers import (
    USDC,
    WETH,
    clmm_config,
    cp_config,
    dynamic_config,
    hybrid_config,
    orderbook_config,
    weighted_config,
)

CASES = [
    (cp_config(), ConstantProductPool, PoolKind.CONSTANT_PRODUCT),
    (clmm_config(), ClmmPool, PoolKind.CLMM),
    (hybrid_config(), HybridPool, PoolKind.HYBRID),
    (weighted_config(), WeightedPool, PoolKind.WEIGHTED),
    (dynamic_config(), DynamicPool, PoolKind.DYNAMIC),
    (orderbook_config(), OrderBookPool, PoolKind.ORDERBOOK),
]


class TestCreatePool:
    """Tests for create_pool and build_pool."""

    @pytest.mark.parametrize("config,pool_cls,kind", CASES)
    def test_builds_every_family(self, config, pool_cls, kind):
        """Each config family builds its pool and tags the box."""
        box = create_pool(config)
        assert isinstance(box, PoolBox)
        assert isinstance(box.pool, pool_cls)
        assert box.kind is kind
        assert box.kind.value == config.pool_type

    @pytest.mark.parametrize("config,pool_cls,kind", CASES)
    def test_pools_satisfy_contracts(self, config, pool_cls, kind):
        """Every family implements the swap and liquidity contracts."""
        pool = build_pool(config)
        assert isinstance(pool, SwapPool)
        assert isinstance(pool, LiquidityPool)

    def test_settings_are_applied(self):
        """Settings bounds reject configs that pass structural checks."""
        strict = EngineSettings(max_amplification=50)
        with pytest.raises(InvalidConfiguration):
            create_pool(hybrid_config(), strict)

    def test_minimum_liquidity_setting(self):
        """Locked shares follow the settings passed to create_pool."""
        box = create_pool(cp_config(), EngineSettings(minimum_liquidity=10))
        assert isinstance(box.pool, ConstantProductPool)
        assert box.pool.locked_shares == 10

    def test_from_document(self):
        """A parsed document builds the same pool as the typed config."""
        box = create_pool(
            parse_config(
                {
                    "pool_type": "constant_product",
                    "token_a": {"address": WETH},
                    "token_b": {"address": USDC, "decimals": 6},
                    "fee_bps": 30,
                    "reserve_a": "1000000",
                    "reserve_b": "1000000",
                }
            )
        )
        direct = create_pool(cp_config())
        token_in = box.token_pair().base
        assert box.quote(SwapSpec.exact_in(10_000), token_in) == direct.quote(
            SwapSpec.exact_in(10_000), token_in
        )


class TestPoolBox:
    """Tests for forwarding through PoolBox."""

    def test_forwards_swaps(self, weth, usdc):
        """swap on the box trades against the wrapped pool."""
        box = create_pool(cp_config())
        result = box.swap(SwapSpec.exact_in(10_000), weth)
        assert result.amount_out == Amount(9_871)
        assert box.pool.reserves == (1_010_000, 990_129)
        assert box.spot_price(weth, usdc) == result.price_after
        assert box.fee_tier().bps.value == 30

    def test_forwards_liquidity(self):
        """Deposits and withdrawals reach the wrapped pool."""
        box = create_pool(cp_config())
        receipt = box.add_liquidity(LiquidityChange.add(1_000, 1_000))
        assert box.total_liquidity().value == 1_001_000
        box.remove_liquidity(LiquidityChange.remove(receipt.liquidity))
        assert box.total_liquidity().value == 1_000_000

    def test_collect_fees_on_clmm(self, weth):
        """Concentrated pools pay out position fees."""
        box = create_pool(clmm_config())
        box.swap(SwapSpec.exact_in(1_000), weth)
        fee0, fee1 = box.collect_fees(Position.new(-100, 100, 1))
        assert fee0.value > 0
        assert fee1 == Amount(0)

    @pytest.mark.parametrize(
        "config", [cp_config(), hybrid_config(), weighted_config(), dynamic_config()]
    )
    def test_collect_fees_unsupported(self, config):
        """Share-based pools have no per-position fees."""
        box = create_pool(config)
        with pytest.raises(UnsupportedOperation):
            box.collect_fees(Position.new(-100, 100, 1))

    @pytest.mark.parametrize(
        "config,change",
        [
            (cp_config(), LiquidityChange.remove(1_000)),
            (hybrid_config(), LiquidityChange.remove(1_000)),
            (weighted_config(), LiquidityChange.remove(1_000)),
            (dynamic_config(), LiquidityChange.remove(1_000)),
            (clmm_config(), LiquidityChange.remove_range(-100, 100, 1_000)),
        ],
    )
    def test_withdrawal_without_amount_raises(self, config, change):
        """A withdrawal stripped of its liquidity amount is refused, not trusted."""
        object.__setattr__(change, "liquidity", None)
        box = create_pool(config)
        before = box.total_liquidity()
        with pytest.raises(InvalidLiquidityChange):
            box.remove_liquidity(change)
        assert box.total_liquidity() == before

    def test_repr(self):
        """repr names the family."""
        assert "constant_product" in repr(create_pool(cp_config()))
