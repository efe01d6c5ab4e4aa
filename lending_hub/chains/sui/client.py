"""SUI JSON-RPC client with endpoint fallback."""
import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ...config import ChainConfig
from ...errors import RpcError

logger = logging.getLogger(__name__)

_PAGE_SIZE = 50
_OBJECT_OPTIONS = {"showType": True, "showContent": True, "showOwner": True}


class SuiClient:
    """Read-only SUI RPC access for owned objects, table entries and coin metadata.

    Calls rotate through ``rpc_endpoints`` until one answers; the endpoint
    that answered becomes the first one tried next time.
    """

    def __init__(self, config: ChainConfig) -> None:
        self.endpoints = list(config.rpc_endpoints)
        self.timeout = config.rpc_timeout
        self.current_rpc_index = 0

    async def rpc_call(self, method: str, params: list[Any]) -> Any:
        """Make RPC call with fallback to alternative endpoints."""
        if not self.endpoints:
            raise RpcError("No RPC endpoints configured")

        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
        ssl_context = ssl.create_default_context(cafile=certifi.where())

        last_error: Exception | None = None
        for attempt in range(len(self.endpoints)):
            rpc_index = (self.current_rpc_index + attempt) % len(self.endpoints)
            rpc_url = self.endpoints[rpc_index]

            try:
                connector = aiohttp.TCPConnector(ssl=ssl_context)
                async with aiohttp.ClientSession(connector=connector) as session:
                    async with session.post(
                        rpc_url,
                        json=payload,
                        timeout=aiohttp.ClientTimeout(total=self.timeout),
                    ) as response:
                        result = await response.json()
                if "error" in result:
                    raise RpcError(f"RPC Error: {result['error']}")
            except Exception as e:
                last_error = e
                logger.warning("RPC endpoint %s failed (%s): %s", rpc_url, method, e)
                continue

            if rpc_index != self.current_rpc_index:
                logger.info("Switched to RPC endpoint: %s", rpc_url)
                self.current_rpc_index = rpc_index
            return result.get("result", {})

        raise RpcError(f"All RPC endpoints failed. Last error: {last_error}")

    async def get_owned_objects(
        self, wallet_address: str, struct_type: str | None = None
    ) -> list[dict[str, Any]]:
        """Objects owned by the wallet, optionally filtered by Move struct type.

        Returns an empty list when the lookup fails; claim builders report
        the missing object themselves.
        """
        objects: list[dict[str, Any]] = []
        cursor = None
        query = {
            "filter": {"StructType": struct_type} if struct_type else None,
            "options": _OBJECT_OPTIONS,
        }
        try:
            while True:
                page = await self.rpc_call(
                    "suix_getOwnedObjects", [wallet_address, query, cursor, _PAGE_SIZE]
                )
                objects.extend(page.get("data", []))
                cursor = page.get("nextCursor")
                if not page.get("hasNextPage", False) or not cursor:
                    return objects
        except RpcError as e:
            logger.error("Error fetching owned objects of %s: %s", wallet_address, e)
            return []

    async def get_dynamic_field_object(
        self, parent_id: str, key_type: str, key_value: str
    ) -> dict[str, Any]:
        """Entry of a Move ``Table`` (or other dynamic field) by typed key."""
        try:
            result = await self.rpc_call(
                "suix_getDynamicFieldObject",
                [parent_id, {"type": key_type, "value": key_value}],
            )
        except RpcError as e:
            logger.error("Error fetching dynamic field %s of %s: %s", key_value, parent_id, e)
            return {}
        return result.get("data", {}) or {}

    async def get_coin_metadata(self, coin_type: str) -> dict[str, Any]:
        """Decimals, symbol and name of a coin type."""
        try:
            return await self.rpc_call("suix_getCoinMetadata", [coin_type]) or {}
        except RpcError as e:
            logger.error("Error fetching coin metadata for %s: %s", coin_type, e)
            return {}
