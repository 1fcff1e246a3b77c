"""Bin distribution helpers shared by the classifier and the rule set."""
from __future__ import annotations

import math

from ..errors import MalformedDistribution
from ..models import BinLiquidity, Position


def validate_distribution(distribution: tuple[BinLiquidity, ...]) -> None:
    """Raise MalformedDistribution unless bins are ascending, unique and non-negative."""
    previous: int | None = None
    for b in distribution:
        if b.bin_id < 0:
            raise MalformedDistribution(f"Negative bin id {b.bin_id}")
        for side, amount in (("x", b.amount_x), ("y", b.amount_y)):
            if not math.isfinite(amount) or amount < 0:
                raise MalformedDistribution(
                    f"Bin {b.bin_id} has invalid {side} amount {amount!r}"
                )
        if previous is not None and b.bin_id <= previous:
            raise MalformedDistribution(
                f"Bin ids not strictly ascending: {previous} then {b.bin_id}"
            )
        previous = b.bin_id


def find_straddled_bin(distribution: tuple[BinLiquidity, ...]) -> int | None:
    """Return the first bin holding both tokens, or None."""
    for b in distribution:
        if b.amount_x > 0 and b.amount_y > 0:
            return b.bin_id
    return None


def resolve_active_bin(position: Position) -> int:
    """Locate the bin the market is trading in for ``position``.

    Order of preference: the first bin with liquidity on both sides, the
    middle bin of the distribution, the market-level active bin (only when
    the distribution is empty), and finally 0.
    """
    distribution = position.bin_distribution
    validate_distribution(distribution)

    straddled = find_straddled_bin(distribution)
    if straddled is not None:
        return straddled
    if distribution:
        return distribution[len(distribution) // 2].bin_id
    if position.active_bin_id is not None:
        return position.active_bin_id
    return 0
