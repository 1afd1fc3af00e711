"""Tests for pool configuration parsing."""

import json
from decimal import Decimal

import pytest

from hydra_amm.config import (
    ClmmConfig,
    ConstantProductConfig,
    DynamicConfig,
    HybridConfig,
    OrderBookConfig,
    WeightedConfig,
    parse_config,
    parse_config_json,
)
from hydra_amm.config.parsing import validate_amount, validate_decimal
from hydra_amm.errors import InvalidConfiguration, InvalidPosition, SameToken
from hydra_amm.models import OrderSide
from tests.helpers import DAI, USDC, USDT, WETH


def token(address: str, decimals: int = 18) -> dict:
    return {"address": address, "decimals": decimals}


def cp_document(**overrides) -> dict:
    doc = {
        "pool_type": "constant_product",
        "token_a": token(WETH),
        "token_b": token(USDC, 6),
        "fee_bps": 30,
        "reserve_a": "1000000",
        "reserve_b": 2_000_000,
    }
    doc.update(overrides)
    return doc


class TestFieldValidators:
    """Tests for amount and decimal field validators."""

    def test_validate_amount(self):
        """Amounts accept ints and decimal strings."""
        assert validate_amount("123") == 123
        assert validate_amount(2**128 - 1) == 2**128 - 1

    @pytest.mark.parametrize("value", [-1, "-1", "1.5", 2**128, True, 1.0, None])
    def test_validate_amount_rejects(self, value):
        """Negative, fractional, oversized and non-numeric amounts are rejected."""
        with pytest.raises(ValueError):
            validate_amount(value)

    def test_validate_decimal(self):
        """Decimals keep their exact value."""
        assert validate_decimal("0.1") == Decimal("0.1")
        assert validate_decimal(3) == Decimal(3)

    @pytest.mark.parametrize("value", [0.1, "abc", "NaN", "Infinity", True])
    def test_validate_decimal_rejects(self, value):
        """Floats and non-finite values are rejected."""
        with pytest.raises(ValueError):
            validate_decimal(value)


class TestParseConfig:
    """Tests for parse_config on each pool family."""

    def test_constant_product(self):
        """The pair keeps document order and reserves parse from strings or ints."""
        config = parse_config(cp_document())
        assert isinstance(config, ConstantProductConfig)
        assert config.pair.base.address.hex == WETH
        assert config.pair.quote.decimals.value == 6
        assert (config.reserve_base, config.reserve_quote) == (1_000_000, 2_000_000)
        assert config.fee.bps.value == 30

    def test_clmm(self):
        """Positions parse into Position values."""
        config = parse_config(
            {
                "pool_type": "clmm",
                "token_a": token(WETH),
                "token_b": token(USDC, 6),
                "fee_bps": 5,
                "tick_spacing": 10,
                "current_tick": -20,
                "positions": [{"lower_tick": -100, "upper_tick": 100, "liquidity": "5000"}],
            }
        )
        assert isinstance(config, ClmmConfig)
        assert config.current_tick == -20
        assert config.positions[0].range == (-100, 100)
        assert config.positions[0].liquidity.value == 5_000

    def test_hybrid(self):
        """Hybrid pools take a token list."""
        config = parse_config(
            {
                "pool_type": "hybrid",
                "tokens": [token(USDC, 6), token(USDT, 6), token(DAI)],
                "reserves": ["1000", "1000", "1000"],
                "amplification": 200,
                "fee_bps": 4,
            }
        )
        assert isinstance(config, HybridConfig)
        assert len(config.tokens) == 3
        assert config.amplification == 200

    def test_weighted(self):
        """Weights are read from each token entry."""
        config = parse_config(
            {
                "pool_type": "weighted",
                "tokens": [
                    {**token(WETH), "weight": 8_000},
                    {**token(USDC, 6), "weight": 2_000},
                ],
                "reserves": [1_000, 4_000],
                "fee_bps": 30,
                "numeric": "decimal",
            }
        )
        assert isinstance(config, WeightedConfig)
        assert config.weights == (8_000, 2_000)
        assert config.numeric == "decimal"

    def test_dynamic(self):
        """Oracle price and k parse as exact decimals."""
        config = parse_config(
            {
                "pool_type": "dynamic",
                "token_a": token(WETH),
                "token_b": token(USDC, 6),
                "fee_bps": 0,
                "oracle_price": "1850.25",
                "slippage_coefficient": "0.1",
                "reserve_a": "1000",
                "reserve_b": "1850250",
            }
        )
        assert isinstance(config, DynamicConfig)
        assert config.oracle_price.value == Decimal("1850.25")
        assert config.slippage_coefficient == Decimal("0.1")
        assert config.numeric == "decimal"

    def test_orderbook_with_fallback(self):
        """The fallback is parsed with the same discriminator."""
        config = parse_config(
            {
                "pool_type": "orderbook",
                "token_a": token(WETH),
                "token_b": token(USDC, 6),
                "fee_bps": 0,
                "tick_size": "0.01",
                "lot_size": 1,
                "fallback": cp_document(),
                "orders": [{"side": "bid", "price": "0.99", "quantity": "10", "sequence": 0}],
            }
        )
        assert isinstance(config, OrderBookConfig)
        assert isinstance(config.fallback, ConstantProductConfig)
        assert config.orders[0].side is OrderSide.BID

    def test_json(self):
        """parse_config_json accepts a JSON document."""
        config = parse_config_json(json.dumps(cp_document()))
        assert isinstance(config, ConstantProductConfig)


class TestParseErrors:
    """Tests for rejected documents."""

    @pytest.mark.parametrize(
        "overrides",
        [
            {"pool_type": "curve"},
            {"fee_bps": 10_001},
            {"fee_bps": "30"},
            {"reserve_a": "-5"},
            {"reserve_a": 0},
            {"extra": 1},
            {"token_a": token("0x1234")},
        ],
    )
    def test_invalid_documents(self, overrides):
        """Malformed documents raise InvalidConfiguration."""
        with pytest.raises(InvalidConfiguration):
            parse_config(cp_document(**overrides))

    def test_missing_pool_type(self):
        """The discriminator is required."""
        doc = cp_document()
        del doc["pool_type"]
        with pytest.raises(InvalidConfiguration):
            parse_config(doc)

    def test_malformed_json(self):
        """Broken JSON raises InvalidConfiguration."""
        with pytest.raises(InvalidConfiguration):
            parse_config_json("{not json")

    def test_same_token_pair(self):
        """A pair of one token twice raises SameToken."""
        with pytest.raises(SameToken):
            parse_config(cp_document(token_b=token(WETH)))

    def test_inverted_position(self):
        """Position bounds must be ordered."""
        with pytest.raises(InvalidPosition):
            parse_config(
                {
                    "pool_type": "clmm",
                    "token_a": token(WETH),
                    "token_b": token(USDC),
                    "fee_bps": 30,
                    "tick_spacing": 10,
                    "current_tick": 0,
                    "positions": [{"lower_tick": 100, "upper_tick": -100, "liquidity": 1}],
                }
            )
