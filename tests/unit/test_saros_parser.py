"""Unit tests for Saros payload parsing: pure functions, no I/O."""
from __future__ import annotations

import pytest

from dlmm_advisor.engine.bins import resolve_active_bin
from dlmm_advisor.models import BinLiquidity, BinRange
from dlmm_advisor.providers.saros.parser import (
    BIN_ID_OFFSET,
    build_position,
    calc_bin_price,
    calc_price_range,
    derive_bin_range,
    get_token_symbol,
    parse_bin_distribution,
)

SYMBOLS = {"MINTX": "SOL", "MINTY": "USDC"}


class TestGetTokenSymbol:
    def test_known_mint(self) -> None:
        assert get_token_symbol("MINTX", SYMBOLS) == "SOL"

    def test_unknown_mint_is_abbreviated(self) -> None:
        assert get_token_symbol("9xQeWvG816bUx9EPjHmaT23yvVM2ZWbrrpZb9PusVFin", SYMBOLS) == "9XQE"


class TestCalcBinPrice:
    def test_offset_bin_is_parity(self) -> None:
        assert calc_bin_price(BIN_ID_OFFSET, 25) == 1.0

    def test_one_step_up(self) -> None:
        assert calc_bin_price(BIN_ID_OFFSET + 1, 25) == pytest.approx(1.0025)

    def test_one_step_down(self) -> None:
        assert calc_bin_price(BIN_ID_OFFSET - 1, 100) == pytest.approx(1 / 1.01)


class TestParseBinDistribution:
    def test_filters_and_sorts(self, sample_bin_payload: dict, center_bin: int) -> None:
        bins = parse_bin_distribution("PAIR1", sample_bin_payload)
        assert [b.bin_id for b in bins] == [center_bin - 1, center_bin, center_bin + 1]
        assert bins[1] == BinLiquidity(center_bin, 1.0, 50.0, 50.0)

    def test_missing_payload(self) -> None:
        assert parse_bin_distribution("PAIR1", None) == ()
        assert parse_bin_distribution("PAIR1", {}) == ()

    def test_unknown_pair(self, sample_bin_payload: dict) -> None:
        assert parse_bin_distribution("NOPE", sample_bin_payload) == ()


class TestDeriveBinRange:
    def test_from_distribution(self) -> None:
        bins = (BinLiquidity(5, 1.0, 1.0, 0.0), BinLiquidity(9, 1.0, 1.0, 0.0))
        assert derive_bin_range(bins, 100, 10) == BinRange(5, 9)

    def test_window_around_active_when_empty(self) -> None:
        assert derive_bin_range((), 100, 10) == BinRange(90, 110)


class TestCalcPriceRange:
    def test_prices_follow_bins(self, center_bin: int) -> None:
        pr = calc_price_range(BinRange(center_bin - 10, center_bin + 10), center_bin, 10)
        assert pr is not None
        assert pr.current == 1.0
        assert pr.min < pr.current < pr.max

    def test_zero_step(self) -> None:
        assert calc_price_range(BinRange(1, 2), 1, 0) is None

    def test_overflow(self) -> None:
        assert calc_price_range(BinRange(0, 2**40), 2**40, 10_000) is None


class TestBuildPosition:
    def test_full_position(
        self, sample_pool_payload: dict, sample_bin_payload: dict, center_bin: int
    ) -> None:
        position = build_position(sample_pool_payload["positions"][0], sample_bin_payload, SYMBOLS)

        assert position.id == "PAIR1"
        assert position.pair == "SOL/USDC"
        assert position.lower_bin_id == center_bin - 1
        assert position.upper_bin_id == center_bin + 1
        assert position.active_bin_id == center_bin
        assert position.current_value == pytest.approx(1100.0)
        assert position.liquidity_deployed == pytest.approx(1000.0)
        assert position.pnl == pytest.approx(100.0)
        assert position.pnl_percentage == pytest.approx(10.0)
        assert position.unclaimed_fees == pytest.approx(12.5)
        assert position.apr == pytest.approx(36.5)
        assert position.bin_step == 10
        assert len(position.bin_distribution) == 3
        assert position.price_range.current == 1.0
        assert position.health is None

    def test_distribution_straddles_active_bin(
        self, sample_pool_payload: dict, sample_bin_payload: dict, center_bin: int
    ) -> None:
        position = build_position(
            sample_pool_payload["positions"][0], sample_bin_payload, SYMBOLS
        )
        assert resolve_active_bin(position) == center_bin

    def test_no_bins_uses_default_window(self, sample_pool_payload: dict, center_bin: int) -> None:
        position = build_position(
            sample_pool_payload["positions"][0], None, SYMBOLS, default_half_width=5
        )
        assert position.bin_range == BinRange(center_bin - 5, center_bin + 5)
        assert position.bin_distribution == ()

    def test_missing_active_bin_raises(self, sample_pool_payload: dict) -> None:
        entry = dict(sample_pool_payload["positions"][0])
        del entry["active_bin_id"]
        with pytest.raises(KeyError):
            build_position(entry, None, SYMBOLS)
