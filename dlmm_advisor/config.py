"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .models import PROFILE_SETS

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://api.saros.xyz"

# Well-known Solana mints; anything else is abbreviated by the parser.
DEFAULT_TOKEN_SYMBOLS: dict[str, str] = {
    "So11111111111111111111111111111111111111112": "SOL",
    "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v": "USDC",
    "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB": "USDT",
    "4k3Dyjzvzp8eMZWUXbBCjEvwSkkk59S5iCNLY3QrkX6R": "RAY",
    "mSoLzYCxHdYgdzU16g5QSh3i5K3z3KZK7ytfqcJm7So": "mSOL",
    "SARoSrBFZnGJmfSNvCwbx8j6sbXYTaomyKbvX6bhfHu": "SAROS",
}

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HealthThresholdsConfig:
    """Health ratio cut-offs (percent of range width, strict ``>``)."""

    excellent: float = 30.0
    good: float = 20.0
    fair: float = 10.0


@dataclass(frozen=True)
class ImpactConfig:
    fees_increase_pct: float
    il_reduction_pct: float
    confidence_score: float


@dataclass(frozen=True)
class RecommendationConfig:
    fee_compound_threshold: float = 50.0
    loss_exit_pct: float = -10.0
    rebalance_half_width: int = 10
    out_of_range_impact: ImpactConfig = field(
        default_factory=lambda: ImpactConfig(5.0, 2.0, 0.85)
    )
    fee_compound_impact: ImpactConfig = field(
        default_factory=lambda: ImpactConfig(2.5, 0.5, 0.75)
    )
    loss_exit_impact: ImpactConfig = field(
        default_factory=lambda: ImpactConfig(0.0, 10.0, 0.9)
    )


@dataclass(frozen=True)
class SimulatorConfig:
    profile_set: str = "bin_width"
    default_time_horizon: str = "30d"
    volatility_cap: float = 0.5
    confidence_min: float = 0.75
    confidence_max: float = 0.95
    scale_by_volatility: bool = True


@dataclass(frozen=True)
class MonitorConfig:
    check_interval_minutes: int = 15


@dataclass(frozen=True)
class ProviderConfig:
    name: str = "saros"
    api_base_url: str = DEFAULT_API_BASE_URL
    timeout: int = 30
    page_size: int = 100
    default_half_width: int = 10
    token_symbols: dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_TOKEN_SYMBOLS)
    )


@dataclass(frozen=True)
class WalletConfig:
    label: str = ""
    address: str = ""


@dataclass(frozen=True)
class TelegramConfig:
    enabled: bool = False
    alert_bot_token: str = ""
    log_bot_token: str = ""
    chat_id: str = ""


@dataclass(frozen=True)
class EmailConfig:
    enabled: bool = False
    alert_email: str = ""
    smtp_server: str = "smtp.gmail.com"
    smtp_port: int = 587
    sender_email: str = ""
    sender_password: str = ""


@dataclass(frozen=True)
class NotificationsConfig:
    telegram: TelegramConfig = field(default_factory=TelegramConfig)
    email: EmailConfig = field(default_factory=EmailConfig)


@dataclass(frozen=True)
class AppConfig:
    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    health: HealthThresholdsConfig = field(default_factory=HealthThresholdsConfig)
    recommendations: RecommendationConfig = field(default_factory=RecommendationConfig)
    simulator: SimulatorConfig = field(default_factory=SimulatorConfig)
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    wallets: tuple[WalletConfig, ...] = ()
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_health(raw: dict[str, Any]) -> HealthThresholdsConfig:
    return HealthThresholdsConfig(
        excellent=float(raw.get("excellent", 30.0)),
        good=float(raw.get("good", 20.0)),
        fair=float(raw.get("fair", 10.0)),
    )


def _build_impact(raw: dict[str, Any] | None, default: ImpactConfig) -> ImpactConfig:
    if not raw:
        return default
    return ImpactConfig(
        fees_increase_pct=float(raw.get("fees_increase_pct", default.fees_increase_pct)),
        il_reduction_pct=float(raw.get("il_reduction_pct", default.il_reduction_pct)),
        confidence_score=float(raw.get("confidence_score", default.confidence_score)),
    )


def _build_recommendations(raw: dict[str, Any]) -> RecommendationConfig:
    defaults = RecommendationConfig()
    impacts = raw.get("impacts", {})
    return RecommendationConfig(
        fee_compound_threshold=float(raw.get("fee_compound_threshold", 50.0)),
        loss_exit_pct=float(raw.get("loss_exit_pct", -10.0)),
        rebalance_half_width=int(raw.get("rebalance_half_width", 10)),
        out_of_range_impact=_build_impact(
            impacts.get("out_of_range"), defaults.out_of_range_impact
        ),
        fee_compound_impact=_build_impact(
            impacts.get("fee_compound"), defaults.fee_compound_impact
        ),
        loss_exit_impact=_build_impact(
            impacts.get("loss_exit"), defaults.loss_exit_impact
        ),
    )


def _build_simulator(raw: dict[str, Any]) -> SimulatorConfig:
    band = raw.get("confidence_band", [0.75, 0.95])
    if not isinstance(band, (list, tuple)) or len(band) != 2:
        raise ValueError(f"confidence_band must be a [min, max] pair, got {band!r}")
    return SimulatorConfig(
        profile_set=raw.get("profile_set", "bin_width"),
        default_time_horizon=str(raw.get("default_time_horizon", "30d")),
        volatility_cap=float(raw.get("volatility_cap", 0.5)),
        confidence_min=float(band[0]),
        confidence_max=float(band[1]),
        scale_by_volatility=bool(raw.get("scale_by_volatility", True)),
    )


def _build_monitor(raw: dict[str, Any]) -> MonitorConfig:
    return MonitorConfig(
        check_interval_minutes=int(raw.get("check_interval_minutes", 15)),
    )


def _build_provider(raw: dict[str, Any]) -> ProviderConfig:
    symbols = dict(DEFAULT_TOKEN_SYMBOLS)
    symbols.update(raw.get("token_symbols", {}))
    return ProviderConfig(
        name=raw.get("name", "saros"),
        api_base_url=raw.get("api_base_url") or DEFAULT_API_BASE_URL,
        timeout=int(raw.get("timeout", 30)),
        page_size=int(raw.get("page_size", 100)),
        default_half_width=int(raw.get("default_half_width", 10)),
        token_symbols=symbols,
    )


def _build_wallets(raw: list[dict[str, Any]]) -> tuple[WalletConfig, ...]:
    wallets: list[WalletConfig] = []
    for w in raw:
        wallets.append(
            WalletConfig(
                label=w.get("label", ""),
                address=w.get("address", ""),
            )
        )
    return tuple(wallets)


def _build_notifications(raw: dict[str, Any]) -> NotificationsConfig:
    tg = raw.get("telegram", {})
    em = raw.get("email", {})
    return NotificationsConfig(
        telegram=TelegramConfig(
            enabled=bool(tg.get("enabled", False)),
            alert_bot_token=tg.get("alert_bot_token", ""),
            log_bot_token=tg.get("log_bot_token", ""),
            chat_id=str(tg.get("chat_id", "")),
        ),
        email=EmailConfig(
            enabled=bool(em.get("enabled", False)),
            alert_email=em.get("alert_email", ""),
            smtp_server=em.get("smtp_server", "smtp.gmail.com"),
            smtp_port=int(em.get("smtp_port", 587)),
            sender_email=em.get("sender_email", ""),
            sender_password=em.get("sender_password", ""),
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from this package).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        monitor=_build_monitor(raw.get("monitor", {})),
        health=_build_health(raw.get("health", {})),
        recommendations=_build_recommendations(raw.get("recommendations", {})),
        simulator=_build_simulator(raw.get("simulator", {})),
        provider=_build_provider(raw.get("provider", {})),
        wallets=_build_wallets(raw.get("wallets", [])),
        notifications=_build_notifications(raw.get("notifications", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.wallets:
        raise ValueError("At least one wallet must be configured")

    for wallet in cfg.wallets:
        if not wallet.address:
            raise ValueError(f"Wallet '{wallet.label}' has no address")

    health = cfg.health
    if not health.excellent > health.good > health.fair:
        raise ValueError(
            "Health thresholds must be strictly descending: "
            f"excellent={health.excellent} good={health.good} fair={health.fair}"
        )

    if cfg.recommendations.rebalance_half_width <= 0:
        raise ValueError("rebalance_half_width must be positive")

    sim = cfg.simulator
    if sim.profile_set not in PROFILE_SETS:
        raise ValueError(
            f"Unknown simulator profile set '{sim.profile_set}' "
            f"(expected one of: {', '.join(PROFILE_SETS)})"
        )
    if not 0.0 <= sim.confidence_min <= sim.confidence_max <= 1.0:
        raise ValueError(
            f"Invalid confidence band [{sim.confidence_min}, {sim.confidence_max}]"
        )
    if sim.volatility_cap <= 0:
        raise ValueError("volatility_cap must be positive")
