"""Portfolio data providers."""
from .saros import SarosApiProvider

__all__ = ["SarosApiProvider"]
