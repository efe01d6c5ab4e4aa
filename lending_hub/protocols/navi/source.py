"""Navi open API HTTP source."""
from __future__ import annotations

from typing import Any

from ...config import ProtocolConfig
from ..http import JsonHttpSource, unwrap_data

DEFAULT_API_URL = "https://open-api.naviprotocol.io"

DEFAULT_PATHS = {
    "pools": "/api/navi/pools",
    "lending_state": "/api/navi/user/{address}/lending-state",
    "rewards": "/api/navi/user/{address}/available-rewards",
}


class NaviSource(JsonHttpSource):
    def __init__(self, config: ProtocolConfig) -> None:
        super().__init__(config, DEFAULT_PATHS)
        self.base_url = self.base_url or DEFAULT_API_URL

    async def get_pools(self) -> Any:
        return unwrap_data(await self.get_json("pools"))

    async def get_lending_state(self, address: str) -> Any:
        return unwrap_data(await self.get_json("lending_state", address=address))

    async def get_available_rewards(self, address: str) -> Any:
        return unwrap_data(await self.get_json("rewards", address=address))
