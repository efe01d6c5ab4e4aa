"""Scallop indexer HTTP source."""
from __future__ import annotations

from typing import Any

from ...config import ProtocolConfig
from ..http import JsonHttpSource, unwrap_data

DEFAULT_API_URL = "https://sdk.api.scallop.io"

DEFAULT_PATHS = {
    "market": "/api/market",
    "spools": "/api/spools",
    "borrow_incentive_pools": "/api/borrowIncentivePools/migrate",
    "portfolio": "/api/portfolio/{address}",
}


class ScallopSource(JsonHttpSource):
    def __init__(self, config: ProtocolConfig) -> None:
        super().__init__(config, DEFAULT_PATHS)
        self.base_url = self.base_url or DEFAULT_API_URL

    async def get_market(self) -> Any:
        return unwrap_data(await self.get_json("market"))

    async def get_spools(self) -> Any:
        return unwrap_data(await self.get_json("spools"))

    async def get_borrow_incentive_pools(self) -> Any:
        return unwrap_data(await self.get_json("borrow_incentive_pools"))

    async def get_portfolio(self, address: str) -> Any:
        return unwrap_data(await self.get_json("portfolio", address=address))
