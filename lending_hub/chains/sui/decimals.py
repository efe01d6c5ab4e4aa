"""Session-wide cache of on-chain coin decimals."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable

from ...interfaces.chain import ChainClient
from ...registry import normalize_coin_type

logger = logging.getLogger(__name__)


class CoinDecimalsCache:
    """Append-only coin-type -> decimals cache.

    Coin decimals are immutable on chain, so entries are never invalidated.
    Failed lookups are not cached and will be retried on the next request.
    Concurrent lookups for the same coin share a single RPC call.
    """

    def __init__(
        self, chain_client: ChainClient, known: dict[str, int] | None = None
    ) -> None:
        self._client = chain_client
        self._decimals: dict[str, int] = {}
        self._pending: dict[str, asyncio.Future[int | None]] = {}
        for coin_type, decimals in (known or {}).items():
            self._decimals[normalize_coin_type(coin_type)] = int(decimals)

    def get(self, coin_type: str | None) -> int | None:
        """Cached decimals for ``coin_type``, without I/O."""
        if not coin_type:
            return None
        return self._decimals.get(normalize_coin_type(coin_type))

    def snapshot(self) -> dict[str, int]:
        """Copy of all known entries, keyed by normalized coin type."""
        return dict(self._decimals)

    def remember(self, coin_type: str, decimals: int) -> None:
        """Record decimals learned from another source (e.g. protocol stats)."""
        key = normalize_coin_type(coin_type)
        self._decimals.setdefault(key, int(decimals))

    async def resolve(self, coin_type: str | None) -> int | None:
        """Cached decimals, fetching coin metadata on a miss."""
        if not coin_type:
            return None
        key = normalize_coin_type(coin_type)
        if key in self._decimals:
            return self._decimals[key]

        pending = self._pending.get(key)
        if pending is not None:
            return await pending

        future: asyncio.Future[int | None] = asyncio.get_running_loop().create_future()
        self._pending[key] = future
        try:
            decimals = await self._fetch(coin_type)
            if decimals is not None:
                self._decimals[key] = decimals
            future.set_result(decimals)
            return decimals
        except BaseException as e:
            future.set_exception(e)
            # Mark retrieved so an unawaited future does not warn.
            future.exception()
            raise
        finally:
            self._pending.pop(key, None)

    async def resolve_many(self, coin_types: Iterable[str]) -> dict[str, int]:
        """Resolve several coin types; result omits unresolved ones."""
        unique = list(dict.fromkeys(ct for ct in coin_types if ct))
        values = await asyncio.gather(*(self.resolve(ct) for ct in unique))
        return {ct: d for ct, d in zip(unique, values) if d is not None}

    async def _fetch(self, coin_type: str) -> int | None:
        metadata = await self._client.get_coin_metadata(coin_type)
        decimals = metadata.get("decimals") if metadata else None
        if decimals is None:
            logger.warning("Decimals unavailable for %s", coin_type)
            return None
        try:
            return int(decimals)
        except (TypeError, ValueError):
            logger.warning("Invalid decimals %r for %s", decimals, coin_type)
            return None
