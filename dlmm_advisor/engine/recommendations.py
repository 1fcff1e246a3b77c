"""Recommendation engine: rule battery over a set of positions.

Triggers are evaluated in the bin-id domain. Each rule looks at one position
and returns at most one recommendation; every rule runs for every position,
so a single position can collect several recommendations in one run.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Iterable, Optional, Sequence

from ..config import ImpactConfig, RecommendationConfig
from ..errors import PerPositionEvaluationError
from ..models import (
    BinRange,
    ExecutionType,
    ExpectedImpact,
    Position,
    PositionFailure,
    Priority,
    RebalanceRecommendation,
    RecommendationRun,
    RecommendationType,
)
from .bins import resolve_active_bin

logger = logging.getLogger(__name__)

Rule = Callable[[Position, RecommendationConfig], Optional[RebalanceRecommendation]]


def _impact(cfg: ImpactConfig) -> ExpectedImpact:
    return ExpectedImpact(
        fees_increase_pct=cfg.fees_increase_pct,
        il_reduction_pct=cfg.il_reduction_pct,
        confidence_score=cfg.confidence_score,
    )


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


def out_of_range_rule(
    position: Position, cfg: RecommendationConfig
) -> RebalanceRecommendation | None:
    """Active bin has left the position's range: recentre on it."""
    active = resolve_active_bin(position)
    if position.bin_range.contains(active):
        return None

    half = cfg.rebalance_half_width
    direction = (
        ExecutionType.SHIFT_UP if active > position.upper_bin_id
        else ExecutionType.SHIFT_DOWN
    )
    return RebalanceRecommendation(
        position_id=position.id,
        type=RecommendationType.REBALANCE,
        priority=Priority.HIGH,
        reason=(
            f"Position is out of active range. Current active bin: {active}, "
            f"your range: {position.lower_bin_id}-{position.upper_bin_id}"
        ),
        suggested_action=(
            f"Shift range to include active bin: {active - half}-{active + half}"
        ),
        expected_impact=_impact(cfg.out_of_range_impact),
        execution_type=direction,
        suggested_range=BinRange(active - half, active + half),
    )


def fee_compound_rule(
    position: Position, cfg: RecommendationConfig
) -> RebalanceRecommendation | None:
    if not position.unclaimed_fees > cfg.fee_compound_threshold:
        return None
    return RebalanceRecommendation(
        position_id=position.id,
        type=RecommendationType.EXPAND,
        priority=Priority.MEDIUM,
        reason=f"High unclaimed fees: ${position.unclaimed_fees:,.2f}",
        suggested_action="Compound fees into position",
        expected_impact=_impact(cfg.fee_compound_impact),
        execution_type=ExecutionType.ADD_LIQUIDITY,
    )


def loss_exit_rule(
    position: Position, cfg: RecommendationConfig
) -> RebalanceRecommendation | None:
    if not position.pnl_percentage < cfg.loss_exit_pct:
        return None
    return RebalanceRecommendation(
        position_id=position.id,
        type=RecommendationType.EXIT,
        priority=Priority.HIGH,
        reason=f"Significant loss: {position.pnl_percentage:.2f}%",
        suggested_action="Close position and reallocate capital",
        expected_impact=_impact(cfg.loss_exit_impact),
        execution_type=ExecutionType.REMOVE_LIQUIDITY,
    )


DEFAULT_RULES: tuple[Rule, ...] = (
    out_of_range_rule,
    fee_compound_rule,
    loss_exit_rule,
)


def sort_by_priority(
    recommendations: Iterable[RebalanceRecommendation],
) -> list[RebalanceRecommendation]:
    """Stable sort, high before medium before low."""
    return sorted(recommendations, key=lambda r: -r.priority.weight)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class RecommendationEngine:
    """Runs the rule battery over positions. Holds configuration only."""

    def __init__(
        self,
        config: RecommendationConfig | None = None,
        rules: Sequence[Rule] = DEFAULT_RULES,
    ) -> None:
        self._config = config or RecommendationConfig()
        self._rules = tuple(rules)

    def _evaluate_position(self, position: Position) -> list[RebalanceRecommendation]:
        found: list[RebalanceRecommendation] = []
        for rule in self._rules:
            rec = rule(position, self._config)
            if rec is not None:
                found.append(rec)
        return found

    def evaluate(
        self,
        positions: Iterable[Position],
        generated_at: datetime | None = None,
    ) -> RecommendationRun:
        """Evaluate every position; failures are isolated per position."""
        recommendations: list[RebalanceRecommendation] = []
        failures: list[PositionFailure] = []

        for position in positions:
            try:
                recommendations.extend(self._evaluate_position(position))
            except Exception as e:
                err = PerPositionEvaluationError(position.id, e)
                logger.error("%s", err)
                failures.append(PositionFailure(position_id=position.id, error=str(e)))

        ordered = sort_by_priority(recommendations)
        logger.debug(
            "Generated %d recommendations (%d positions omitted)",
            len(ordered), len(failures),
        )
        return RecommendationRun(
            recommendations=tuple(ordered),
            failures=tuple(failures),
            generated_at=generated_at,
        )

    def generate_recommendations(
        self, positions: Iterable[Position]
    ) -> list[RebalanceRecommendation]:
        return list(self.evaluate(positions).recommendations)


def generate_recommendations(
    positions: Iterable[Position], config: RecommendationConfig | None = None
) -> list[RebalanceRecommendation]:
    """Convenience wrapper around a default-configured engine."""
    return RecommendationEngine(config).generate_recommendations(positions)
