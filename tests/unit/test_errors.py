"""Tests for the error taxonomy."""

import pytest

from hydra_amm import errors
from hydra_amm.errors import (
    AmmError,
    InsufficientLiquidity,
    PositionNotFound,
    ZeroAmount,
    ZeroOutputAmount,
)


class TestErrorCodes:
    """Tests for error codes and categories."""

    def test_codes_are_unique(self):
        """Every error class carries a distinct code."""
        classes = [getattr(errors, name) for name in errors.__all__]
        codes = [cls.code for cls in classes]
        assert len(codes) == len(set(codes))

    @pytest.mark.parametrize(
        "cls,low,high,category",
        [
            (errors.InvalidConfiguration, 1000, 1999, "validation"),
            (errors.InvalidLiquidityChange, 1000, 1999, "validation"),
            (errors.PositionNotFound, 2000, 2999, "state"),
            (errors.ConvergenceFailure, 3000, 3999, "arithmetic"),
            (errors.TickOutOfRange, 4000, 4999, "liquidity"),
        ],
    )
    def test_code_ranges(self, cls, low, high, category):
        """Codes fall in the range of their category."""
        assert low <= cls.code <= high
        assert cls.category == category

    def test_all_are_amm_errors(self):
        """Every exported error derives from AmmError."""
        for name in errors.__all__:
            assert issubclass(getattr(errors, name), AmmError)

    def test_zero_output_is_zero_amount(self):
        """ZeroOutputAmount can be caught as ZeroAmount."""
        assert issubclass(ZeroOutputAmount, ZeroAmount)
        assert ZeroOutputAmount.code != ZeroAmount.code


class TestErrorSerialization:
    """Tests for to_dict."""

    def test_to_dict(self):
        """to_dict renders code, category and message."""
        err = InsufficientLiquidity("Pool holds 5")
        assert err.to_dict() == {
            "code": 4001,
            "category": "liquidity",
            "message": "Pool holds 5",
        }

    def test_state_error(self):
        """State errors carry their own category."""
        assert PositionNotFound("missing").to_dict()["category"] == "state"
