"""Protocol interfaces for the DLMM position advisor."""
from .notifier import Notifier
from .portfolio_provider import PortfolioDataProvider

__all__ = ["Notifier", "PortfolioDataProvider"]
