"""Suilend reserves / obligations HTTP source."""
from __future__ import annotations

from typing import Any

from ...config import ProtocolConfig
from ..http import JsonHttpSource, unwrap_data

DEFAULT_API_URL = "https://api.suilend.fi"

DEFAULT_PATHS = {
    "reserves": "/v1/lending-market/reserves",
    "obligations": "/v1/lending-market/obligations/{address}",
}


class SuilendSource(JsonHttpSource):
    def __init__(self, config: ProtocolConfig) -> None:
        super().__init__(config, DEFAULT_PATHS)
        self.base_url = self.base_url or DEFAULT_API_URL

    async def get_reserves(self) -> Any:
        return unwrap_data(await self.get_json("reserves"))

    async def get_obligations(self, address: str) -> Any:
        return unwrap_data(await self.get_json("obligations", address=address))
