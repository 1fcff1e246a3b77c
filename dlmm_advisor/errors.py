"""Exception types raised by the advisor core and its data providers."""
from __future__ import annotations


class AdvisorError(Exception):
    """Base class for all advisor errors."""


class InvalidRange(AdvisorError, ValueError):
    """A bin range whose upper bound lies below its lower bound."""

    def __init__(self, lower_bin_id: int, upper_bin_id: int) -> None:
        self.lower_bin_id = lower_bin_id
        self.upper_bin_id = upper_bin_id
        super().__init__(
            f"Invalid bin range: upper bin {upper_bin_id} < lower bin {lower_bin_id}"
        )


class MalformedDistribution(AdvisorError, ValueError):
    """A bin distribution that violates the snapshot contract."""


class PerPositionEvaluationError(AdvisorError):
    """Rule evaluation failed for a single position."""

    def __init__(self, position_id: str, cause: BaseException) -> None:
        self.position_id = position_id
        self.cause = cause
        super().__init__(
            f"Failed to evaluate position {position_id}: "
            f"{type(cause).__name__}: {cause}"
        )


class InvalidStrategy(AdvisorError, KeyError):
    """Unknown strategy name passed to the simulator."""

    def __init__(self, strategy: str, available: tuple[str, ...] = ()) -> None:
        self.strategy = strategy
        self.available = available
        super().__init__(strategy)

    def __str__(self) -> str:
        known = ", ".join(self.available) if self.available else "none"
        return f"Unknown strategy '{self.strategy}' (available: {known})"


class PortfolioFetchError(AdvisorError):
    """The data provider could not produce a portfolio snapshot."""
