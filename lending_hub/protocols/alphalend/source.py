"""AlphaLend markets / portfolio HTTP source."""
from __future__ import annotations

from typing import Any

from ...config import ProtocolConfig
from ..http import JsonHttpSource, unwrap_data

DEFAULT_API_URL = "https://api.alphalend.xyz"

DEFAULT_PATHS = {
    "markets": "/public/markets",
    "portfolio": "/public/portfolio/{address}",
}


class AlphaLendSource(JsonHttpSource):
    def __init__(self, config: ProtocolConfig) -> None:
        super().__init__(config, DEFAULT_PATHS)
        self.base_url = self.base_url or DEFAULT_API_URL

    async def get_markets(self) -> Any:
        return unwrap_data(await self.get_json("markets"))

    async def get_portfolio(self, address: str) -> Any:
        return unwrap_data(await self.get_json("portfolio", address=address))
