"""Shared aiohttp JSON source used by the protocol data collaborators."""
from __future__ import annotations

import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ..config import ProtocolConfig
from ..errors import SourceError

logger = logging.getLogger(__name__)


class JsonHttpSource:
    """GET/POST JSON against a protocol API base URL.

    Paths are looked up by name in ``ProtocolConfig.endpoints`` so deployments
    can point a source at a self-hosted SDK bridge without code changes.
    ``{address}`` placeholders in paths are filled from keyword arguments.
    """

    def __init__(self, config: ProtocolConfig, default_paths: dict[str, str]) -> None:
        self.base_url = config.api_url
        self.timeout = config.request_timeout
        self._paths = {**default_paths, **config.endpoints}

    def url_for(self, name: str, **path_params: str) -> str:
        path = self._paths.get(name)
        if path is None:
            raise SourceError(f"No endpoint configured for '{name}'")
        path = path.format(**path_params)
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url}{path}"

    async def get_json(
        self,
        name: str,
        params: dict[str, Any] | None = None,
        **path_params: str,
    ) -> Any:
        return await self._request("GET", self.url_for(name, **path_params), params=params)

    async def post_json(self, name: str, body: Any, **path_params: str) -> Any:
        return await self._request("POST", self.url_for(name, **path_params), json=body)

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        async with aiohttp.ClientSession(connector=connector) as session:
            async with session.request(
                method,
                url,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                **kwargs,
            ) as response:
                if response.status != 200:
                    raise SourceError(f"HTTP {response.status} from {url}")
                payload = await response.json(content_type=None)
                logger.debug("%s %s -> %s", method, url, type(payload).__name__)
                return payload


def unwrap_data(payload: Any) -> Any:
    """Strip the ``{"data": ...}`` envelope many protocol APIs use."""
    if isinstance(payload, dict) and "data" in payload and len(payload) <= 3:
        return payload["data"]
    return payload
