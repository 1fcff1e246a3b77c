"""Health classifier: grades how centred a bin range is on the active bin."""
from __future__ import annotations

import logging

from ..config import HealthThresholdsConfig
from ..errors import AdvisorError, InvalidRange
from ..models import HealthGrade, PortfolioSnapshot, Position
from .bins import resolve_active_bin

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLDS = HealthThresholdsConfig()


def health_ratio(lower_bin_id: int, upper_bin_id: int, active_bin_id: int) -> float:
    """Distance to the nearest range edge as a percentage of range width.

    Negative when the active bin lies outside the range; 0 for a zero-width
    range.
    """
    if upper_bin_id < lower_bin_id:
        raise InvalidRange(lower_bin_id, upper_bin_id)
    width = upper_bin_id - lower_bin_id
    if width == 0:
        return 0.0
    min_distance = min(active_bin_id - lower_bin_id, upper_bin_id - active_bin_id)
    return min_distance / width * 100


def classify(
    lower_bin_id: int,
    upper_bin_id: int,
    active_bin_id: int,
    thresholds: HealthThresholdsConfig | None = None,
) -> HealthGrade:
    """Grade a bin range against the active bin.

    A zero-width range has no margin and is always Poor, as is any range
    the active bin has left.
    """
    if upper_bin_id < lower_bin_id:
        raise InvalidRange(lower_bin_id, upper_bin_id)
    if upper_bin_id == lower_bin_id:
        return HealthGrade.POOR

    t = thresholds or DEFAULT_THRESHOLDS
    ratio = health_ratio(lower_bin_id, upper_bin_id, active_bin_id)

    if ratio > t.excellent:
        return HealthGrade.EXCELLENT
    if ratio > t.good:
        return HealthGrade.GOOD
    if ratio > t.fair:
        return HealthGrade.FAIR
    return HealthGrade.POOR


def classify_position(
    position: Position, thresholds: HealthThresholdsConfig | None = None
) -> Position:
    """Return a copy of ``position`` with its health grade assigned."""
    active = position.active_bin_id
    if active is None:
        active = resolve_active_bin(position)
    grade = classify(position.lower_bin_id, position.upper_bin_id, active, thresholds)
    return position.with_health(grade)


def classify_snapshot(
    snapshot: PortfolioSnapshot, thresholds: HealthThresholdsConfig | None = None
) -> PortfolioSnapshot:
    """Grade every position in a snapshot.

    Positions that cannot be graded keep ``health=None``.
    """
    classified: list[Position] = []
    for position in snapshot.positions:
        try:
            classified.append(classify_position(position, thresholds))
        except AdvisorError as e:
            logger.error("Cannot classify position %s: %s", position.id, e)
            classified.append(position.with_health(None))
    return snapshot.with_positions(tuple(classified))
