"""Health grading and rebalancing advice for DLMM liquidity positions."""

__version__ = "0.1.0"
