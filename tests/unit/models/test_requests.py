"""Tests for swap, liquidity and order request types."""

from decimal import Decimal

import pytest

from hydra_amm.errors import InvalidConfiguration, InvalidPosition, ZeroAmount
from hydra_amm.models import (
    Amount,
    Liquidity,
    LiquidityAction,
    LiquidityChange,
    LiquidityReceipt,
    OrderSide,
    Position,
    Price,
    SwapKind,
    SwapResult,
    SwapSpec,
    Tick,
)
from tests.helpers import USDC, WETH, make_order, make_token


class TestSwapSpec:
    """Tests for SwapSpec."""

    def test_constructors(self):
        """exact_in and exact_out set the kind."""
        assert SwapSpec.exact_in(10).kind is SwapKind.EXACT_IN
        assert SwapSpec.exact_out(Amount(10)).kind is SwapKind.EXACT_OUT
        assert SwapSpec.exact_in(10).is_exact_in

    def test_zero_amount_raises(self):
        """Swap amounts must be positive."""
        with pytest.raises(ZeroAmount):
            SwapSpec.exact_in(0)


class TestSwapResult:
    """Tests for SwapResult rendering."""

    def test_as_dict(self):
        """Amounts render as exact decimal strings."""
        result = SwapResult(
            amount_in=Amount(10**30),
            amount_out=Amount(5),
            fee=Amount(1),
            token_in=make_token(WETH),
            token_out=make_token(USDC),
            price_after=Price(Decimal("1.5")),
            tick_after=Tick(-10),
        )
        data = result.as_dict()
        assert data["amount_in"] == str(10**30)
        assert data["token_out"] == USDC
        assert data["price_after"] == "1.5"
        assert data["tick_after"] == -10


class TestLiquidityChange:
    """Tests for LiquidityChange validation."""

    def test_share_constructors(self):
        """add and remove build share-based changes."""
        add = LiquidityChange.add(1, 2)
        assert add.is_add
        assert add.amounts == (Amount(1), Amount(2))
        assert not add.is_ranged
        remove = LiquidityChange.remove(5)
        assert remove.action is LiquidityAction.REMOVE
        assert remove.liquidity == Liquidity(5)

    def test_empty_deposit_raises(self):
        """Deposits need at least one positive amount."""
        with pytest.raises(ZeroAmount):
            LiquidityChange.add(0, 0)
        with pytest.raises(ZeroAmount):
            LiquidityChange.add()

    def test_zero_withdrawal_raises(self):
        """Withdrawals need positive shares."""
        with pytest.raises(ZeroAmount):
            LiquidityChange.remove(0)

    def test_ranged_change(self):
        """Ranged changes carry both bounds and positive liquidity."""
        change = LiquidityChange.add_range(-10, 10, 100)
        assert change.is_ranged
        with pytest.raises(InvalidPosition):
            LiquidityChange.add_range(10, -10, 100)
        with pytest.raises(ZeroAmount):
            LiquidityChange.remove_range(-10, 10, 0)

    def test_half_range_raises(self):
        """A single bound is rejected."""
        with pytest.raises(InvalidPosition):
            LiquidityChange(LiquidityAction.ADD, liquidity=Liquidity(1), lower=Tick(0))

    def test_for_position(self):
        """for_position copies the range and liquidity."""
        position = Position.new(-20, 20, 7)
        change = LiquidityChange.for_position(position, LiquidityAction.REMOVE)
        assert (change.lower, change.upper, change.liquidity) == (
            position.lower,
            position.upper,
            position.liquidity,
        )

    def test_receipt_as_dict(self):
        """Receipts render amounts as strings."""
        receipt = LiquidityReceipt(amounts=(Amount(1), Amount(2)), liquidity=Liquidity(3))
        assert receipt.as_dict() == {"amounts": ["1", "2"], "liquidity": "3"}


class TestRestingOrder:
    """Tests for RestingOrder."""

    def test_priority(self):
        """Bids sort highest price first, asks lowest first, then by sequence."""
        bids = [
            make_order(OrderSide.BID, "1.0", sequence=2),
            make_order(OrderSide.BID, "1.1", sequence=3),
            make_order(OrderSide.BID, "1.0", sequence=1),
        ]
        assert [o.sequence for o in sorted(bids, key=lambda o: o.priority())] == [3, 1, 2]
        asks = [
            make_order(OrderSide.ASK, "1.1", sequence=1),
            make_order(OrderSide.ASK, "1.0", sequence=2),
        ]
        assert [o.sequence for o in sorted(asks, key=lambda o: o.priority())] == [2, 1]

    def test_validation(self):
        """Orders need a positive price and quantity."""
        with pytest.raises(InvalidConfiguration):
            make_order(price="0")
        with pytest.raises(ZeroAmount):
            make_order(quantity=0)
        with pytest.raises(InvalidConfiguration):
            make_order(sequence=-1)
