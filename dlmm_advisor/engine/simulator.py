"""Strategy simulator: projects return and risk for a strategy profile.

Projections are heuristics over fixed profile constants and a volatility
estimate taken from the position's price range. There is no backtest behind
them and ``confidence`` is not a statistical estimate.
"""
from __future__ import annotations

import logging
import math
import re
from typing import Any

from ..config import SimulatorConfig
from ..errors import InvalidStrategy
from ..models import (
    PROFILE_SETS,
    Position,
    SimulationDetails,
    StrategyProfile,
    StrategySimulationResult,
)

logger = logging.getLogger(__name__)

_HORIZON_RE = re.compile(r"^\s*(\d+)\s*([dwmy])\s*$", re.IGNORECASE)
_HORIZON_DAYS = {"d": 1, "w": 7, "m": 30, "y": 365}


def parse_time_horizon(time_horizon: str) -> int:
    """Convert ``"30d"``, ``"2w"``, ``"3m"`` or ``"1y"`` to a day count."""
    match = _HORIZON_RE.match(time_horizon or "")
    if not match:
        raise ValueError(f"Invalid time horizon: {time_horizon!r}")
    count = int(match.group(1))
    if count <= 0:
        raise ValueError(f"Time horizon must be positive: {time_horizon!r}")
    return count * _HORIZON_DAYS[match.group(2).lower()]


def estimate_volatility(position: Position, cap: float = 0.5) -> float:
    """Range width relative to current price, doubled and capped."""
    pr = position.price_range
    if pr is None or pr.current <= 0 or pr.max < pr.min:
        return 0.0
    return min((pr.max - pr.min) / pr.current * 2, cap)


class StrategySimulator:
    """Evaluates positions against the configured strategy profile set."""

    def __init__(self, config: SimulatorConfig | None = None) -> None:
        self._config = config or SimulatorConfig()
        if self._config.profile_set not in PROFILE_SETS:
            raise ValueError(f"Unknown profile set '{self._config.profile_set}'")
        self._profiles = PROFILE_SETS[self._config.profile_set]

    def available_strategies(self) -> tuple[str, ...]:
        return tuple(self._profiles)

    def get_profile(self, strategy_name: str) -> StrategyProfile:
        if not isinstance(strategy_name, str):
            raise InvalidStrategy(repr(strategy_name), self.available_strategies())
        profile = self._profiles.get(strategy_name.lower())
        if profile is None:
            raise InvalidStrategy(strategy_name, self.available_strategies())
        return profile

    def _confidence(self, volatility: float) -> float:
        """Top of the band at zero volatility, bottom at the cap."""
        cfg = self._config
        spread = cfg.confidence_max - cfg.confidence_min
        return cfg.confidence_max - spread * (volatility / cfg.volatility_cap)

    def simulate(
        self,
        position: Position,
        strategy_name: str,
        time_horizon: str | None = None,
        market_conditions: dict[str, Any] | None = None,
    ) -> StrategySimulationResult:
        """Project ``position`` onto the named strategy profile.

        Args:
            position: Position snapshot to project.
            strategy_name: Profile name from the active profile set.
            time_horizon: Horizon such as ``"30d"``; defaults to config.
            market_conditions: Optional overrides. ``volatility`` replaces
                the price-range estimate (still capped).

        Raises:
            InvalidStrategy: ``strategy_name`` is not in the profile set.
            ValueError: ``time_horizon`` cannot be parsed, or the
                volatility override is not finite.
        """
        profile = self.get_profile(strategy_name)
        horizon = time_horizon or self._config.default_time_horizon
        days = parse_time_horizon(horizon)
        cap = self._config.volatility_cap

        conditions = market_conditions or {}
        if "volatility" in conditions:
            override = float(conditions["volatility"])
            if not math.isfinite(override):
                raise ValueError(f"Volatility must be finite: {override!r}")
            volatility = min(max(override, 0.0), cap)
        else:
            volatility = estimate_volatility(position, cap)

        expected_return = profile.expected_return
        if self._config.scale_by_volatility:
            expected_return *= 1 - volatility * profile.risk_weight

        value = position.current_value
        details = SimulationDetails(
            fees_projected=value * profile.implied_apr / 100 * days / 365,
            il_projected=volatility * profile.risk_weight * value,
            capital_efficiency=expected_return / profile.risk_weight,
        )

        logger.debug(
            "Simulated %s on %s: return=%.4f vol=%.3f",
            profile.name, position.id, expected_return, volatility,
        )

        return StrategySimulationResult(
            strategy=profile.name,
            expected_return=expected_return,
            risk_score=profile.risk_weight,
            time_horizon=horizon,
            confidence=self._confidence(volatility),
            details=details,
            volatility=volatility,
        )


def simulate(
    position: Position,
    strategy_name: str,
    time_horizon: str | None = None,
    market_conditions: dict[str, Any] | None = None,
    config: SimulatorConfig | None = None,
) -> StrategySimulationResult:
    """Convenience wrapper around a default-configured simulator."""
    return StrategySimulator(config).simulate(
        position, strategy_name, time_horizon, market_conditions
    )
