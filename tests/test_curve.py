"""Tests for constant-product curve pricing."""

import logging
from decimal import Decimal

import pytest

from battle_curve.core import curve
from battle_curve.core.curve import (
    CurveArithmeticError,
    CurveCalculator,
    CurveConfig,
    InvalidCurveInput,
    lamports_out,
    parse_constant_k,
    quote_sol_for_tokens,
    quote_tokens_for_sol,
    to_base_units,
    tokens_out,
)

# 30 SOL virtual reserve against 1,073,000,191 tokens
RESERVE_SOL = 30
RESERVE_LAMPORTS = 30_000_000_000
TOKEN_RESERVE = 1_073_000_191_000_000
K = RESERVE_LAMPORTS * TOKEN_RESERVE


class TestBaseUnits:
    """Conversion from human amounts to integer base units."""

    @pytest.mark.parametrize(
        "amount, decimals, expected",
        [
            (1, 9, 1_000_000_000),
            (0.1, 9, 100_000_000),
            (1.1, 9, 1_100_000_000),
            ("1.9999999999", 9, 1_999_999_999),
            (Decimal("2.5"), 6, 2_500_000),
            ("0.0000000001", 9, 0),
            (0, 6, 0),
        ],
    )
    def test_to_base_units_truncates(self, amount, decimals, expected):
        assert to_base_units(amount, decimals) == expected

    @pytest.mark.parametrize("amount", [-1, "-0.5", float("nan"), float("inf"), "abc", True, None])
    def test_to_base_units_rejects(self, amount):
        with pytest.raises(InvalidCurveInput):
            to_base_units(amount, 9)


class TestParseConstantK:
    def test_accepts_exact_forms(self):
        assert parse_constant_k(K) == K
        assert parse_constant_k(str(K)) == K
        assert parse_constant_k(" 42 ") == 42
        assert parse_constant_k(Decimal("100")) == 100

    def test_keeps_precision_beyond_float(self):
        huge = "32190005730000000000000001"
        assert parse_constant_k(huge) == 32190005730000000000000001

    @pytest.mark.parametrize("k", ["12a", "", "-5", "1e20", "0", 0, -3, 1.5e25, True, Decimal("5.5"), [1]])
    def test_rejects_invalid(self, k):
        with pytest.raises(InvalidCurveInput):
            parse_constant_k(k)


class TestInvariantMath:
    """Integer buy and sell steps."""

    def test_buy_scenario(self):
        dy = tokens_out(RESERVE_LAMPORTS, 1_000_000_000, K)
        assert dy == 34_612_909_387_097
        assert 0 < dy < TOKEN_RESERVE

    @pytest.mark.parametrize("dx", [1, 100, 1_000_000_000, 50_000_000_000, 10**15])
    def test_buy_preserves_invariant(self, dx):
        x = RESERVE_LAMPORTS
        new_y = (K // x) - tokens_out(x, dx, K)
        assert (x + dx) * new_y <= K < (x + dx) * (new_y + 1)

    def test_zero_input_gives_zero(self):
        assert tokens_out(RESERVE_LAMPORTS, 0, K) == 0
        assert lamports_out(RESERVE_LAMPORTS, 0, K) == 0

    def test_sell_never_exceeds_reserve(self):
        dx = lamports_out(RESERVE_LAMPORTS, 10**18, K)
        assert 0 < dx < RESERVE_LAMPORTS

    def test_rejects_bad_reserves(self):
        with pytest.raises(InvalidCurveInput):
            tokens_out(0, 1, K)
        with pytest.raises(InvalidCurveInput):
            lamports_out(RESERVE_LAMPORTS, -1, K)
        with pytest.raises(InvalidCurveInput):
            tokens_out(RESERVE_LAMPORTS, 1, 0)

    def test_arithmetic_error_is_curve_error(self):
        assert issubclass(CurveArithmeticError, ValueError)


class TestQuotes:
    """Fail-soft quote functions."""

    def setup_method(self):
        self.calculator = CurveCalculator()

    def test_quote_tokens_for_sol(self):
        tokens = quote_tokens_for_sol(1, RESERVE_SOL, str(K))
        assert tokens == 34_612_909_387_097 / 1_000_000
        assert tokens > 0

    def test_round_trip_loses_value(self):
        tokens = self.calculator.quote_tokens_for_sol("1", RESERVE_SOL, K)
        sol_back = self.calculator.quote_sol_for_tokens(tokens, RESERVE_SOL, K)
        assert 0.9 < sol_back <= 1

    @pytest.mark.parametrize("sol_amount", [0.001, 0.003, 0.5, 1, 7.5, 1000, 1_000_000])
    def test_round_trip_never_gains(self, sol_amount):
        tokens = self.calculator.quote_tokens_for_sol(sol_amount, RESERVE_SOL, K)
        assert tokens > 0
        sol_back = self.calculator.quote_sol_for_tokens(tokens, RESERVE_SOL, K)
        assert sol_back <= sol_amount

    @pytest.mark.parametrize("sol_amount", [0.000000001, 0.000001, 0.00001])
    def test_round_trip_dust_within_one_lamport(self, sol_amount):
        # new_x = k // (y + dy) is floored, so a sell can round up by one lamport
        tokens = self.calculator.quote_tokens_for_sol(sol_amount, RESERVE_SOL, K)
        assert tokens > 0
        sol_back = self.calculator.quote_sol_for_tokens(tokens, RESERVE_SOL, K)
        assert to_base_units(sol_back, 9) <= to_base_units(sol_amount, 9) + 1

    def test_monotonic_in_sol_amount(self):
        quotes = [
            self.calculator.quote_tokens_for_sol(amount, RESERVE_SOL, K)
            for amount in ["0.001", "0.01", "0.5", "1", "5", "100"]
        ]
        assert quotes == sorted(quotes)

    def test_larger_buy_gets_worse_price(self):
        small = self.calculator.quote_tokens_for_sol(1, RESERVE_SOL, K)
        large = self.calculator.quote_tokens_for_sol(10, RESERVE_SOL, K)
        assert large / 10 < small

    def test_sub_lamport_buy_is_zero(self):
        assert quote_tokens_for_sol("0.0000000001", RESERVE_SOL, K) == 0

    def test_buy_below_one_token_unit_is_zero(self):
        # 100 lamports cannot buy one base unit on a curve this thin
        assert quote_tokens_for_sol(0.0000001, RESERVE_SOL, 10**12) == 0

    def test_quote_sol_for_tokens(self):
        sol = quote_sol_for_tokens(1_000_000, RESERVE_SOL, K)
        assert 0 < sol < 1

    @pytest.mark.parametrize(
        "amount, reserve, k",
        [
            (-1, 100, "123"),
            (0, 100, "123"),
            (1, 0, "123"),
            (1, -5, "123"),
            (1, 100, "abc"),
            (1, 100, "0"),
            (1, 100, 1.5e25),
            ("abc", 100, "123"),
            (float("nan"), 100, "123"),
        ],
    )
    def test_invalid_input_returns_zero(self, amount, reserve, k):
        assert quote_tokens_for_sol(amount, reserve, k) == 0
        assert quote_sol_for_tokens(amount, reserve, k) == 0

    def test_invalid_input_logs_warning(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert quote_tokens_for_sol(-1, 100, "123") == 0
        assert any("Token quote unavailable" in r.message for r in caplog.records)

    def test_unexpected_error_logs_error(self, monkeypatch, caplog):
        def broken(*args):
            raise ZeroDivisionError("boom")

        monkeypatch.setattr(curve, "lamports_out", broken)
        with caplog.at_level(logging.ERROR):
            assert quote_sol_for_tokens(1, RESERVE_SOL, K) == 0
        assert any(
            r.levelno == logging.ERROR and "Error calculating SOL" in r.message
            for r in caplog.records
        )


class TestCurveConfig:
    def test_defaults(self):
        config = CurveConfig()
        assert config.lamports_per_sol == 1_000_000_000
        assert config.token_base_units == 1_000_000
        assert config.trading_fee_bps == 200

    @pytest.mark.parametrize(
        "kwargs",
        [{"sol_decimals": -1}, {"token_decimals": True}, {"trading_fee_bps": 10_001}, {"sol_decimals": 9.0}],
    )
    def test_rejects_invalid(self, kwargs):
        with pytest.raises(ValueError):
            CurveConfig(**kwargs)

    def test_custom_decimals_change_units(self):
        config = CurveConfig(token_decimals=9)
        tokens = quote_tokens_for_sol(1, RESERVE_SOL, K, config=config)
        assert tokens == 34_612_909_387_097 / 1_000_000_000


class TestSpotPriceAndFees:
    def setup_method(self):
        self.calculator = CurveCalculator()

    def test_spot_price(self):
        price = self.calculator.spot_price(RESERVE_SOL, K)
        assert price == pytest.approx(30 / 1_073_000_191)

    def test_spot_price_without_tokens_is_zero(self):
        # k smaller than x leaves no whole token base unit in the reserve
        assert self.calculator.spot_price(RESERVE_SOL, 1) == 0.0

    def test_apply_trading_fee(self):
        assert self.calculator.apply_trading_fee(1) == (980_000_000, 20_000_000)
        assert CurveCalculator(CurveConfig(trading_fee_bps=0)).apply_trading_fee("0.5") == (500_000_000, 0)

    def test_quote_buy_after_fee(self):
        after_fee = self.calculator.quote_buy_after_fee(1, RESERVE_SOL, K)
        assert after_fee == self.calculator.quote_tokens_for_sol("0.98", RESERVE_SOL, K)
        assert after_fee < self.calculator.quote_tokens_for_sol(1, RESERVE_SOL, K)

    def test_quote_buy_after_fee_invalid(self):
        assert self.calculator.quote_buy_after_fee(-1, RESERVE_SOL, K) == 0

    def test_quote_sell_after_fee(self):
        gross = lamports_out(RESERVE_LAMPORTS, 1_000_000_000_000, K)
        fee = gross * 200 // 10_000
        after_fee = self.calculator.quote_sell_after_fee(1_000_000, RESERVE_SOL, K)
        assert after_fee == (gross - fee) / 1_000_000_000
        assert after_fee < self.calculator.quote_sol_for_tokens(1_000_000, RESERVE_SOL, K)

    def test_quote_sell_after_fee_floors_fee(self):
        x = 1_000_000_000
        k = x * 10**12
        # 49 lamports out: a 2% fee of 0.98 lamports floors to zero
        assert lamports_out(x, 49_000, k) == 49
        assert self.calculator.quote_sell_after_fee("0.049", 1, k) == 49 / 1_000_000_000

    def test_quote_sell_without_fee_matches_plain_quote(self):
        calculator = CurveCalculator(CurveConfig(trading_fee_bps=0))
        assert calculator.quote_sell_after_fee(1_000_000, RESERVE_SOL, K) == (
            calculator.quote_sol_for_tokens(1_000_000, RESERVE_SOL, K)
        )

    @pytest.mark.parametrize("amount", [-1, 0, "abc", float("nan")])
    def test_quote_sell_after_fee_invalid(self, amount):
        assert self.calculator.quote_sell_after_fee(amount, RESERVE_SOL, K) == 0
