"""Tests for construction-time checks on pool configurations."""

import pytest

from hydra_amm.config import parse_config
from hydra_amm.errors import InvalidConfiguration
from tests.helpers import (
    DAI,
    USDC,
    USDT,
    clmm_config,
    cp_config,
    hybrid_config,
    orderbook_config,
    weighted_config,
)


class TestFeeBounds:
    """Tests for the 100% fee ceiling shared by every family."""

    @pytest.mark.parametrize(
        "build",
        [cp_config, clmm_config, hybrid_config, weighted_config, orderbook_config],
    )
    def test_full_fee_is_rejected(self, build):
        """A 10,000 bps fee would leave nothing to trade and is refused."""
        with pytest.raises(InvalidConfiguration):
            build(fee_bps=10_000)

    def test_hybrid_just_below_full_fee_is_accepted(self):
        """9,999 bps is still a valid hybrid fee."""
        assert hybrid_config(fee_bps=9_999).fee.bps.value == 9_999

    def test_hybrid_document_with_full_fee_is_rejected(self):
        """The parsed path hits the same check."""
        with pytest.raises(InvalidConfiguration):
            parse_config(
                {
                    "pool_type": "hybrid",
                    "tokens": [
                        {"address": USDC, "decimals": 6},
                        {"address": USDT, "decimals": 6},
                        {"address": DAI, "decimals": 18},
                    ],
                    "reserves": ["1000", "1000", "1000"],
                    "amplification": 200,
                    "fee_bps": 10_000,
                }
            )
