"""Data models, all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum


class HealthGrade(str, Enum):
    """How centred a position's bin range is around the active bin."""

    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"


class RecommendationType(str, Enum):
    REBALANCE = "rebalance"
    EXPAND = "expand"
    EXIT = "exit"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def weight(self) -> int:
        return PRIORITY_WEIGHTS[self]


PRIORITY_WEIGHTS: dict[Priority, int] = {
    Priority.HIGH: 3,
    Priority.MEDIUM: 2,
    Priority.LOW: 1,
}


class ExecutionType(str, Enum):
    """Follow-up liquidity action implied by a recommendation."""

    SHIFT_UP = "shift_up"
    SHIFT_DOWN = "shift_down"
    ADD_LIQUIDITY = "add_liquidity"
    REMOVE_LIQUIDITY = "remove_liquidity"


@dataclass(frozen=True)
class BinLiquidity:
    """Liquidity held by a position in a single bin."""

    bin_id: int
    price: float
    amount_x: float
    amount_y: float
    fee_apr: float = 0.0


@dataclass(frozen=True)
class BinRange:
    """Inclusive range of bin ids."""

    lower_bin_id: int
    upper_bin_id: int

    def contains(self, bin_id: int) -> bool:
        return self.lower_bin_id <= bin_id <= self.upper_bin_id


@dataclass(frozen=True)
class PriceRange:
    """Price-domain view of a position's range."""

    min: float
    max: float
    current: float


def calc_pnl_percentage(current_value: float, pnl: float) -> float:
    """PnL relative to the cost basis (``current_value - pnl``), in percent."""
    basis = current_value - pnl
    if basis == 0:
        return 0.0
    return pnl / basis * 100


@dataclass(frozen=True)
class Position:
    """Snapshot of one liquidity allocation.

    ``active_bin_id`` is the market's active bin at snapshot time; it belongs
    to the pair, not the position, and may be absent. ``health`` stays
    ``None`` until the classifier assigns a grade.
    """

    id: str
    pair: str
    token_x: str
    token_y: str
    lower_bin_id: int
    upper_bin_id: int
    active_bin_id: int | None = None
    current_value: float = 0.0
    liquidity_deployed: float = 0.0
    unclaimed_fees: float = 0.0
    pnl: float = 0.0
    pnl_percentage: float = 0.0
    apr: float = 0.0
    bin_step: int = 0
    health: HealthGrade | None = None
    bin_distribution: tuple[BinLiquidity, ...] = ()
    price_range: PriceRange | None = None

    @property
    def bin_range(self) -> BinRange:
        return BinRange(self.lower_bin_id, self.upper_bin_id)

    @property
    def bin_count(self) -> int:
        return self.upper_bin_id - self.lower_bin_id + 1

    def with_health(self, health: HealthGrade | None) -> Position:
        return replace(self, health=health)


@dataclass(frozen=True)
class ExpectedImpact:
    fees_increase_pct: float
    il_reduction_pct: float
    confidence_score: float


@dataclass(frozen=True)
class RebalanceRecommendation:
    """Engine output tied to a single position."""

    position_id: str
    type: RecommendationType
    priority: Priority
    reason: str
    suggested_action: str
    expected_impact: ExpectedImpact
    execution_type: ExecutionType | None = None
    suggested_range: BinRange | None = None


@dataclass(frozen=True)
class PositionFailure:
    """A position omitted from a recommendation run."""

    position_id: str
    error: str


@dataclass(frozen=True)
class RecommendationRun:
    """Result of evaluating the rule set over a position set."""

    recommendations: tuple[RebalanceRecommendation, ...]
    failures: tuple[PositionFailure, ...] = ()
    generated_at: datetime | None = None

    def for_position(self, position_id: str) -> tuple[RebalanceRecommendation, ...]:
        return tuple(r for r in self.recommendations if r.position_id == position_id)

    def count_by_priority(self) -> dict[Priority, int]:
        counts = {p: 0 for p in Priority}
        for rec in self.recommendations:
            counts[rec.priority] += 1
        return counts


@dataclass(frozen=True)
class StrategyProfile:
    name: str
    risk_weight: float
    expected_return: float
    implied_apr: float
    bin_range_width: int


# Built-in strategy profile sets, keyed by set name then profile name.
PROFILE_SETS: dict[str, dict[str, StrategyProfile]] = {
    "bin_width": {
        "narrow": StrategyProfile("narrow", 0.8, 0.12, 65.0, 5),
        "balanced": StrategyProfile("balanced", 0.5, 0.09, 45.0, 20),
        "wide": StrategyProfile("wide", 0.3, 0.06, 25.0, 50),
    },
    "risk_appetite": {
        "conservative": StrategyProfile("conservative", 0.2, 0.15, 15.0, 40),
        "balanced": StrategyProfile("balanced", 0.5, 0.25, 25.0, 20),
        "aggressive": StrategyProfile("aggressive", 0.8, 0.40, 40.0, 10),
    },
}


@dataclass(frozen=True)
class SimulationDetails:
    fees_projected: float
    il_projected: float
    capital_efficiency: float


@dataclass(frozen=True)
class StrategySimulationResult:
    """Projected outcome of moving a position onto a strategy profile."""

    strategy: str
    expected_return: float
    risk_score: float
    time_horizon: str
    confidence: float
    details: SimulationDetails
    volatility: float = 0.0


@dataclass(frozen=True)
class PortfolioSnapshot:
    """Positions held by one account at a point in time.

    Roll-ups are always derived from ``positions``.
    """

    account_id: str
    positions: tuple[Position, ...] = ()
    fetched_at: datetime | None = None

    @property
    def position_count(self) -> int:
        return len(self.positions)

    @property
    def total_value(self) -> float:
        return sum(p.current_value for p in self.positions)

    @property
    def total_fees(self) -> float:
        return sum(p.unclaimed_fees for p in self.positions)

    @property
    def total_pnl(self) -> float:
        return sum(p.pnl for p in self.positions)

    @property
    def total_pnl_percentage(self) -> float:
        return calc_pnl_percentage(self.total_value, self.total_pnl)

    @property
    def average_apr(self) -> float:
        if not self.positions:
            return 0.0
        return sum(p.apr for p in self.positions) / len(self.positions)

    def get_position(self, position_id: str) -> Position | None:
        for position in self.positions:
            if position.id == position_id:
                return position
        return None

    def with_positions(self, positions: tuple[Position, ...]) -> PortfolioSnapshot:
        return replace(self, positions=tuple(positions))
