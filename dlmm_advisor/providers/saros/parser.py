"""Pure parsing functions for Saros DLMM API payloads: no I/O."""
from __future__ import annotations

from typing import Any

from ...models import (
    BinLiquidity,
    BinRange,
    Position,
    PriceRange,
    calc_pnl_percentage,
)

# Bin id at which the liquidity book price equals 1.
BIN_ID_OFFSET = 2**23
BASIS_POINT_MAX = 10_000


def get_token_symbol(mint: str, token_symbols: dict[str, str]) -> str:
    """Resolve a mint address to a ticker symbol.

    Examples:
        "So11111111111111111111111111111111111111112" → "SOL"
        "9xQeWvG816bUx9EPjHmaT23yvVM2ZWbrrpZb9PusVFin" → "9XQE"
    """
    if mint in token_symbols:
        return token_symbols[mint]
    return mint[:4].upper()


def calc_bin_price(bin_id: int, bin_step: int) -> float:
    """Liquidity book price of a bin: (1 + step/10000)^(id - 2^23)."""
    return (1 + bin_step / BASIS_POINT_MAX) ** (bin_id - BIN_ID_OFFSET)


def parse_bin_distribution(
    pair_id: str, bin_payload: dict[str, Any] | None
) -> tuple[BinLiquidity, ...]:
    """Extract one pair's bins from a bin-position response, ordered by bin id."""
    if not bin_payload:
        return ()

    bins: list[BinLiquidity] = []
    for entry in bin_payload.get("positions", []):
        if entry.get("pair_id") != pair_id:
            continue
        bins.append(
            BinLiquidity(
                bin_id=int(entry["bin_id"]),
                price=float(entry.get("price", 0.0)),
                amount_x=float(entry.get("token_x_amount", 0.0)),
                amount_y=float(entry.get("token_y_amount", 0.0)),
                fee_apr=float(entry.get("fee_apr", 0.0)),
            )
        )
    bins.sort(key=lambda b: b.bin_id)
    return tuple(bins)


def derive_bin_range(
    distribution: tuple[BinLiquidity, ...],
    active_bin_id: int,
    default_half_width: int,
) -> BinRange:
    """Span of the distribution, or a window around the active bin when empty."""
    if distribution:
        return BinRange(
            min(b.bin_id for b in distribution),
            max(b.bin_id for b in distribution),
        )
    return BinRange(
        active_bin_id - default_half_width, active_bin_id + default_half_width
    )


def calc_price_range(
    bin_range: BinRange, active_bin_id: int, bin_step: int
) -> PriceRange | None:
    if bin_step <= 0:
        return None
    try:
        return PriceRange(
            min=calc_bin_price(bin_range.lower_bin_id, bin_step),
            max=calc_bin_price(bin_range.upper_bin_id, bin_step),
            current=calc_bin_price(active_bin_id, bin_step),
        )
    except OverflowError:
        return None


def build_position(
    pool_position: dict[str, Any],
    bin_payload: dict[str, Any] | None,
    token_symbols: dict[str, str],
    default_half_width: int = 10,
) -> Position:
    """Build a Position from one pool-position entry and its bins.

    Value is the sum of both token amounts in the pair's quote terms; PnL is
    measured against the deposited liquidity.
    """
    pair_id = str(pool_position["pair_id"])
    token_x = get_token_symbol(pool_position.get("token_x_mint", ""), token_symbols)
    token_y = get_token_symbol(pool_position.get("token_y_mint", ""), token_symbols)

    active_bin_id = int(pool_position["active_bin_id"])
    bin_step = int(pool_position.get("bin_step", 0))
    deployed = float(pool_position.get("total_liquidity", 0.0))
    current_value = float(pool_position.get("total_token_x", 0.0)) + float(
        pool_position.get("total_token_y", 0.0)
    )
    pnl = current_value - deployed

    distribution = parse_bin_distribution(pair_id, bin_payload)
    bin_range = derive_bin_range(distribution, active_bin_id, default_half_width)

    return Position(
        id=pair_id,
        pair=f"{token_x}/{token_y}",
        token_x=token_x,
        token_y=token_y,
        lower_bin_id=bin_range.lower_bin_id,
        upper_bin_id=bin_range.upper_bin_id,
        active_bin_id=active_bin_id,
        current_value=current_value,
        liquidity_deployed=deployed,
        unclaimed_fees=float(pool_position.get("fees_24h", 0.0)),
        pnl=pnl,
        pnl_percentage=calc_pnl_percentage(current_value, pnl),
        apr=float(pool_position.get("apr_24h", 0.0)),
        bin_step=bin_step,
        bin_distribution=distribution,
        price_range=calc_price_range(bin_range, active_bin_id, bin_step),
    )
