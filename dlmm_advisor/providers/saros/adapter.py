"""Saros DLMM REST provider: fetches pool and bin positions for a wallet."""
from __future__ import annotations

import asyncio
import logging
import ssl
from datetime import datetime, timezone
from typing import Any

import aiohttp
import certifi

from ...config import ProviderConfig
from ...errors import PortfolioFetchError
from ...models import PortfolioSnapshot, Position
from . import parser

logger = logging.getLogger(__name__)


class SarosApiProvider:
    """PortfolioDataProvider backed by the Saros DLMM REST API."""

    def __init__(self, config: ProviderConfig) -> None:
        self._config = config
        self.api_base_url = config.api_base_url.rstrip("/")
        self.timeout = config.timeout
        self.page_size = config.page_size

    @property
    def provider_name(self) -> str:
        return "saros"

    async def _get_json(
        self, session: aiohttp.ClientSession, path: str, account_id: str
    ) -> dict[str, Any]:
        url = f"{self.api_base_url}{path}"
        params = {
            "user_id": account_id,
            "page_num": "1",
            "page_size": str(self.page_size),
        }
        async with session.get(
            url,
            params=params,
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        ) as response:
            if response.status != 200:
                raise PortfolioFetchError(
                    f"GET {path} failed: HTTP {response.status}"
                )
            try:
                data = await response.json()
            except ValueError as e:
                raise PortfolioFetchError(f"GET {path} returned invalid JSON") from e
            if not isinstance(data, dict):
                raise PortfolioFetchError(f"GET {path} returned unexpected payload")
            return data

    async def fetch(self, account_id: str) -> PortfolioSnapshot:
        """Fetch all DLMM positions for ``account_id``.

        Raises:
            PortfolioFetchError: transport failure, non-200 status, or a
                response body that is not a JSON object.
        """
        logger.info("Fetching Saros DLMM positions for wallet: %s", account_id)

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                pool_payload = await self._get_json(
                    session, "/api/pool-position", account_id
                )
                bin_payload = await self._get_json(
                    session, "/api/bin-position", account_id
                )
        except PortfolioFetchError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise PortfolioFetchError(f"Saros API request failed: {e}") from e

        pool_positions = pool_payload.get("positions") or []
        logger.info("Found %d pool positions", len(pool_positions))

        positions: list[Position] = []
        for entry in pool_positions:
            try:
                positions.append(
                    parser.build_position(
                        entry,
                        bin_payload,
                        self._config.token_symbols,
                        self._config.default_half_width,
                    )
                )
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                pair_id = entry.get("pair_id", "?") if isinstance(entry, dict) else "?"
                logger.error("Error processing position %s: %s", pair_id, e)

        return PortfolioSnapshot(
            account_id=account_id,
            positions=tuple(positions),
            fetched_at=datetime.now(timezone.utc),
        )
