"""On-chain reads of AlphaLend position caps and reward distributors."""
from __future__ import annotations

import logging
import time
from typing import Any

from ...interfaces.chain import ChainClient
from . import parser

logger = logging.getLogger(__name__)


class RewardDistributorReader:
    """Reads a position's reward distributors and the matching market state."""

    def __init__(
        self,
        chain_client: ChainClient,
        position_cap_type: str,
        positions_table_id: str,
        markets_table_id: str,
    ) -> None:
        self._client = chain_client
        self._position_cap_type = position_cap_type
        self._positions_table_id = positions_table_id
        self._markets_table_id = markets_table_id

    async def find_position_cap(self, address: str) -> tuple[str, str] | None:
        """``(cap object id, position id)`` of the wallet's PositionCap."""
        if not self._position_cap_type:
            logger.warning("AlphaLend position cap type is not configured")
            return None
        caps = await self._client.get_owned_objects(address, self._position_cap_type)
        for cap in caps:
            cap_id = cap.get("data", {}).get("objectId")
            position_id = parser.parse_position_id(cap)
            if cap_id and position_id:
                return cap_id, position_id
        return None

    async def _position_fields(self, position_id: str) -> dict[str, Any]:
        result = await self._client.get_dynamic_field_object(
            self._positions_table_id, "0x2::object::ID", position_id
        )
        if not result:
            logger.warning("No AlphaLend position data found for %s", position_id)
            return {}
        return parser.table_value_fields(result)

    async def _market_fields(
        self, market_id: int, cache: dict[int, dict[str, Any]]
    ) -> dict[str, Any]:
        if market_id in cache:
            return cache[market_id]
        result = await self._client.get_dynamic_field_object(
            self._markets_table_id, "u64", str(market_id)
        )
        market = parser.table_value_fields(result) if result else {}
        if market:
            cache[market_id] = market
        return market

    async def discover(
        self, position_id: str, now_ms: int | None = None
    ) -> tuple[dict[int, list[str]], dict[int, list[str]]]:
        """Reward coin types per market: ``(hinted, available)``.

        ``available`` lists every reward the position's markets distribute;
        ``hinted`` is the subset the checkpoint comparison flags as accrued.
        Market state is read afresh on every call.
        """
        now_ms = int(time.time() * 1000) if now_ms is None else now_ms
        hinted: dict[int, list[str]] = {}
        available: dict[int, list[str]] = {}
        markets: dict[int, dict[str, Any]] = {}

        fields = await self._position_fields(position_id)
        for user in parser.parse_user_distributors(fields):
            market = await self._market_fields(user.market_id, markets)
            if not market:
                continue
            rewards = parser.parse_market_rewards(market, user.is_deposit)
            for coin_type in (r.coin_type for r in rewards):
                bucket = available.setdefault(user.market_id, [])
                if coin_type not in bucket:
                    bucket.append(coin_type)
            for coin_type in parser.possibly_claimable(user, rewards, now_ms):
                bucket = hinted.setdefault(user.market_id, [])
                if coin_type not in bucket:
                    bucket.append(coin_type)

        logger.debug(
            "AlphaLend position %s: %d hinted market(s), %d with rewards",
            position_id,
            len(hinted),
            len(available),
        )
        return hinted, available
