"""Market data service: owns the snapshot and the polling timers."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from datetime import datetime

from ..chains.sui.decimals import CoinDecimalsCache
from ..interfaces.protocol_adapter import MarketAdapter, UserAdapter
from ..models import MarketFetch, MarketSnapshot, UserFetch
from ..registry import Protocol
from .snapshot import merge_snapshot

logger = logging.getLogger(__name__)

AddressProvider = Callable[[], str | None]


class MarketDataService:
    """Runs the adapters and keeps the merged ``MarketSnapshot`` current.

    Each protocol's market adapter polls on its own interval; all user
    adapters poll together on ``user_refresh_seconds``. Merges happen
    synchronously on the event loop, so a protocol's contribution is
    installed all at once or not at all.
    """

    def __init__(
        self,
        market_adapters: Iterable[MarketAdapter],
        user_adapters: Iterable[UserAdapter],
        address_provider: AddressProvider,
        decimals: CoinDecimalsCache,
        user_refresh_seconds: int = 30,
        market_refresh_seconds: dict[Protocol, int] | None = None,
        default_market_refresh_seconds: int = 15,
    ) -> None:
        self._market_adapters = {a.protocol: a for a in market_adapters}
        self._user_adapters = {a.protocol: a for a in user_adapters}
        self._address_provider = address_provider
        self._decimals = decimals
        self._user_refresh_seconds = user_refresh_seconds
        self._market_refresh_seconds = dict(market_refresh_seconds or {})
        self._default_market_refresh_seconds = default_market_refresh_seconds

        self._snapshot = merge_snapshot([], [])
        self._refresh_task: asyncio.Task[MarketSnapshot] | None = None
        self._pollers: list[asyncio.Task[None]] = []

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def get_snapshot(self) -> MarketSnapshot:
        return self._snapshot

    @property
    def last_updated(self) -> datetime | None:
        return self._snapshot.updated_at

    @property
    def running(self) -> bool:
        return bool(self._pollers)

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    async def refresh(self) -> MarketSnapshot:
        """Refresh everything; concurrent callers share one in-flight refresh."""
        if self._refresh_task is None or self._refresh_task.done():
            self._refresh_task = asyncio.create_task(self._refresh_all())
        return await asyncio.shield(self._refresh_task)

    async def refresh_market(self, protocol: Protocol) -> MarketSnapshot:
        adapter = self._market_adapters.get(protocol)
        if adapter is None:
            return self._snapshot
        result = await self._fetch_market(adapter)
        self._apply([result], [])
        return self._snapshot

    async def refresh_users(self) -> MarketSnapshot:
        results = await self._fetch_users()
        await self._resolve_reward_decimals(results)
        self._apply([], results)
        return self._snapshot

    async def _refresh_all(self) -> MarketSnapshot:
        markets, users = await asyncio.gather(
            asyncio.gather(*(self._fetch_market(a) for a in self._market_adapters.values())),
            self._fetch_users(),
        )
        await self._resolve_reward_decimals(users)
        self._apply(markets, users)
        return self._snapshot

    async def _fetch_market(self, adapter: MarketAdapter) -> MarketFetch:
        try:
            return await adapter.fetch_market()
        except Exception as e:
            logger.error("%s market adapter raised: %s", adapter.protocol.value, e)
            return MarketFetch(adapter.protocol, error=str(e))

    async def _fetch_user(self, adapter: UserAdapter, address: str | None) -> UserFetch:
        try:
            return await adapter.fetch_user(address)
        except Exception as e:
            logger.error("%s user adapter raised: %s", adapter.protocol.value, e)
            return UserFetch(adapter.protocol, error=str(e))

    async def _fetch_users(self) -> list[UserFetch]:
        address = self._address_provider()
        return list(
            await asyncio.gather(
                *(self._fetch_user(a, address) for a in self._user_adapters.values())
            )
        )

    async def _resolve_reward_decimals(self, results: list[UserFetch]) -> None:
        coin_types = [
            reward.coin_type
            for result in results
            if result.ok and result.reward_summary is not None
            for reward in result.reward_summary.rewards
            if reward.coin_type
        ]
        if not coin_types:
            return
        try:
            await self._decimals.resolve_many(coin_types)
        except Exception as e:
            # Unresolved coins keep their raw amounts until the next cycle.
            logger.warning("Reward decimals lookup failed: %s", e)

    def _apply(self, markets: list[MarketFetch], users: list[UserFetch]) -> None:
        for result in (*markets, *users):
            if not result.ok:
                logger.warning(
                    "%s refresh failed, keeping previous data: %s",
                    result.protocol.value,
                    result.error,
                )
        self._snapshot = merge_snapshot(
            markets, users, previous=self._snapshot, decimals=self._decimals.snapshot()
        )

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    def market_interval(self, protocol: Protocol) -> int:
        return self._market_refresh_seconds.get(
            protocol, self._default_market_refresh_seconds
        )

    async def start(self) -> None:
        """Launch one poller per protocol market plus one shared user poller."""
        if self._pollers:
            return
        for protocol in self._market_adapters:
            self._pollers.append(
                asyncio.create_task(
                    self._poll(
                        f"{protocol.value} market",
                        self.market_interval(protocol),
                        lambda p=protocol: self.refresh_market(p),
                    )
                )
            )
        self._pollers.append(
            asyncio.create_task(
                self._poll("user", self._user_refresh_seconds, self.refresh_users)
            )
        )
        logger.info(
            "Started %d market poller(s) and user polling every %ds",
            len(self._market_adapters),
            self._user_refresh_seconds,
        )

    async def stop(self) -> None:
        """Cancel all pollers and wait for them to finish."""
        pollers, self._pollers = self._pollers, []
        for task in pollers:
            task.cancel()
        await asyncio.gather(*pollers, return_exceptions=True)
        if self._refresh_task is not None and not self._refresh_task.done():
            self._refresh_task.cancel()
            await asyncio.gather(self._refresh_task, return_exceptions=True)
        logger.info("Market data polling stopped")

    async def _poll(self, name: str, interval: int, refresh) -> None:
        while True:
            try:
                await refresh()
            except Exception as e:
                logger.error("Error in %s polling loop: %s", name, e)
            await asyncio.sleep(interval)
