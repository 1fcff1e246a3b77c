"""Shared test fixtures and deterministic position builders."""
from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Any

import pytest

from dlmm_advisor.config import (
    AppConfig,
    EmailConfig,
    MonitorConfig,
    NotificationsConfig,
    ProviderConfig,
    TelegramConfig,
    WalletConfig,
)
from dlmm_advisor.models import BinLiquidity, PortfolioSnapshot, Position, PriceRange

CENTER_BIN = 8388608


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def make_bins(
    lower: int, upper: int, active: int | None = None
) -> tuple[BinLiquidity, ...]:
    """Bins ``lower..upper``; Y below the active bin, X above, both at it."""
    bins = []
    for bin_id in range(lower, upper + 1):
        if active is None:
            x, y = 10.0, 0.0
        elif bin_id < active:
            x, y = 0.0, 10.0
        elif bin_id > active:
            x, y = 10.0, 0.0
        else:
            x, y = 5.0, 5.0
        bins.append(
            BinLiquidity(bin_id=bin_id, price=1.0 + (bin_id - lower) * 0.01, amount_x=x, amount_y=y)
        )
    return tuple(bins)


def make_position(
    position_id: str = "pos-1",
    lower: int = CENTER_BIN - 10,
    upper: int = CENTER_BIN + 10,
    active: int | None = CENTER_BIN,
    **overrides: Any,
) -> Position:
    fields: dict[str, Any] = dict(
        id=position_id,
        pair="SOL/USDC",
        token_x="SOL",
        token_y="USDC",
        lower_bin_id=lower,
        upper_bin_id=upper,
        active_bin_id=active,
        current_value=1000.0,
        liquidity_deployed=950.0,
        unclaimed_fees=25.0,
        pnl=50.0,
        pnl_percentage=5.0,
        apr=42.0,
        bin_step=10,
        bin_distribution=(),
    )
    fields.update(overrides)
    return Position(**fields)


@pytest.fixture()
def position_factory():
    return make_position


@pytest.fixture()
def bins_factory():
    return make_bins


@pytest.fixture()
def center_bin() -> int:
    return CENTER_BIN


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_provider_config() -> ProviderConfig:
    return ProviderConfig(
        api_base_url="https://api.example.com",
        timeout=10,
        page_size=50,
        token_symbols={"MINTX": "SOL", "MINTY": "USDC"},
    )


@pytest.fixture()
def sample_app_config(sample_provider_config: ProviderConfig) -> AppConfig:
    return AppConfig(
        monitor=MonitorConfig(check_interval_minutes=5),
        provider=sample_provider_config,
        wallets=(WalletConfig(label="test-wallet", address="0xWALLET123"),),
        notifications=NotificationsConfig(
            telegram=TelegramConfig(
                enabled=True,
                alert_bot_token="fake-alert-token",
                log_bot_token="fake-log-token",
                chat_id="12345",
            ),
            email=EmailConfig(enabled=False),
        ),
    )


# ---------------------------------------------------------------------------
# Model fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def healthy_position() -> Position:
    """Centred on the active bin, small fees, in profit."""
    return make_position(
        "healthy",
        bin_distribution=make_bins(CENTER_BIN - 10, CENTER_BIN + 10, CENTER_BIN),
        price_range=PriceRange(min=95.0, max=105.0, current=100.0),
    )


@pytest.fixture()
def troubled_position() -> Position:
    """Out of range, fees piling up, deep in loss."""
    return make_position(
        "troubled",
        lower=100,
        upper=120,
        active=50,
        unclaimed_fees=75.0,
        pnl=-150.0,
        pnl_percentage=-15.0,
    )


@pytest.fixture()
def sample_snapshot(healthy_position: Position, troubled_position: Position) -> PortfolioSnapshot:
    return PortfolioSnapshot(
        account_id="0xWALLET123",
        positions=(healthy_position, troubled_position),
    )


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    monitor:
      check_interval_minutes: 5
    health:
      excellent: 30.0
      good: 20.0
      fair: 10.0
    recommendations:
      fee_compound_threshold: 75.0
      rebalance_half_width: 15
      impacts:
        loss_exit: {confidence_score: 0.8}
    simulator:
      profile_set: risk_appetite
      confidence_band: [0.7, 0.9]
    provider:
      api_base_url: "https://api.example.com"
      timeout: 10
      token_symbols: {MINTX: XYZ}
    wallets:
      - label: test-wallet
        address: "0xTEST"
    notifications:
      telegram:
        enabled: true
        alert_bot_token: "tok1"
        log_bot_token: "tok2"
        chat_id: 999
      email:
        enabled: false
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file


# ---------------------------------------------------------------------------
# Sample API payloads
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_pool_payload() -> dict:
    return {
        "positions": [
            {
                "pair_id": "PAIR1",
                "total_liquidity": 1000.0,
                "total_token_x": 600.0,
                "total_token_y": 500.0,
                "token_x_mint": "MINTX",
                "token_y_mint": "MINTY",
                "bin_step": 10,
                "active_bin_id": CENTER_BIN,
                "fees_24h": 12.5,
                "apr_24h": 36.5,
            }
        ]
    }


@pytest.fixture()
def sample_bin_payload() -> dict:
    return {
        "positions": [
            {"pair_id": "PAIR1", "bin_id": CENTER_BIN + 1, "token_x_amount": 100.0,
             "token_y_amount": 0.0, "liquidity_shares": 2500, "price": 1.001},
            {"pair_id": "PAIR1", "bin_id": CENTER_BIN - 1, "token_x_amount": 0.0,
             "token_y_amount": 100.0, "liquidity_shares": 2500, "price": 0.999},
            {"pair_id": "PAIR1", "bin_id": CENTER_BIN, "token_x_amount": 50.0,
             "token_y_amount": 50.0, "liquidity_shares": 5000, "price": 1.0},
            {"pair_id": "OTHER", "bin_id": 1, "token_x_amount": 1.0,
             "token_y_amount": 1.0, "liquidity_shares": 1, "price": 1.0},
        ]
    }
