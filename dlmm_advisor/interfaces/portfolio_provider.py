"""Portfolio data provider: the core's only inbound data boundary."""
from typing import Protocol

from ..models import PortfolioSnapshot


class PortfolioDataProvider(Protocol):
    """Fetches a point-in-time snapshot of an account's positions."""

    @property
    def provider_name(self) -> str: ...

    async def fetch(self, account_id: str) -> PortfolioSnapshot: ...
