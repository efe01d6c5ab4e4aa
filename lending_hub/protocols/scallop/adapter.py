"""Scallop market and user adapters."""
from __future__ import annotations

import logging
from typing import Any

from ...models import (
    IncentiveBreakdown,
    MarketFetch,
    MarketRow,
    RewardSummaryItem,
    UserFetch,
    WalletPositions,
)
from ...numeric import token_symbol
from ...registry import Protocol, asset_from_source
from ..common import (
    PoolCandidate,
    RewardTotals,
    add_position,
    select_pools,
    supplies_from_positions,
)
from . import parser
from .source import ScallopSource

logger = logging.getLogger(__name__)


class ScallopMarketAdapter:
    """Scallop pools with spool (supply) and borrow incentive APRs."""

    def __init__(self, source: ScallopSource) -> None:
        self._source = source

    @property
    def protocol(self) -> Protocol:
        return Protocol.SCALLOP

    async def fetch_market(self) -> MarketFetch:
        try:
            pools = parser.parse_market(await self._source.get_market())
        except Exception as e:
            logger.error("Scallop market fetch failed: %s", e)
            return MarketFetch(self.protocol, error=str(e))

        spools = await self._optional(self._source.get_spools, parser.parse_spools, "spools")
        incentives = await self._optional(
            self._source.get_borrow_incentive_pools,
            parser.parse_borrow_incentive_pools,
            "borrow incentive pools",
        )

        candidates = []
        for pool in pools:
            asset = asset_from_source(pool.symbol, pool.coin_type)
            if asset is None:
                continue
            candidates.append(
                PoolCandidate(
                    asset=asset,
                    coin_type=pool.coin_type,
                    has_incentive=bool(incentives.get(pool.coin_name)),
                    combined_apr=pool.supply_apr + pool.borrow_apr,
                    pool=pool,
                )
            )

        rows = []
        for asset, pool in select_pools(candidates).items():
            spool = spools.get(pool.market_coin_type) or spools.get(pool.coin_name)
            supply_breakdown: tuple[IncentiveBreakdown, ...] = ()
            if spool and spool.reward_apr > 0 and spool.reward_coin_type:
                supply_breakdown = (
                    IncentiveBreakdown(
                        token=token_symbol(spool.reward_coin_type),
                        apr=spool.reward_apr * 100,
                    ),
                )
            rows.append(
                MarketRow.from_breakdowns(
                    self.protocol,
                    asset,
                    supply_base_apr=pool.supply_apr * 100,
                    borrow_base_apr=pool.borrow_apr * 100,
                    utilization=pool.utilization_rate * 100,
                    supply_breakdown=supply_breakdown,
                    borrow_breakdown=incentives.get(pool.coin_name, ()),
                    coin_type=pool.coin_type,
                )
            )
        logger.debug("Scallop: %d market rows", len(rows))
        return MarketFetch(self.protocol, rows=tuple(rows))

    async def _optional(self, fetch, parse, label: str) -> dict[str, Any]:
        """Auxiliary incentive data; a failure only drops the incentives."""
        try:
            return parse(await fetch())
        except Exception as e:
            logger.warning("Scallop %s fetch failed: %s", label, e)
            return {}


class ScallopUserAdapter:
    """Scallop lendings plus pending spool and borrow-incentive rewards."""

    def __init__(self, source: ScallopSource) -> None:
        self._source = source

    @property
    def protocol(self) -> Protocol:
        return Protocol.SCALLOP

    async def fetch_user(self, address: str | None) -> UserFetch:
        if not address:
            return UserFetch(self.protocol)
        try:
            portfolio = parser.parse_portfolio(await self._source.get_portfolio(address))
        except Exception as e:
            logger.error("Scallop portfolio fetch failed for %s: %s", address, e)
            return UserFetch(self.protocol, error=str(e))

        positions: WalletPositions = {}
        for lending in portfolio.lendings:
            asset = asset_from_source(lending.symbol, lending.coin_type)
            if asset is not None:
                add_position(positions, self.protocol, asset, lending.supplied)

        totals = RewardTotals()
        for reward in portfolio.spool_rewards:
            totals.add(reward.symbol, reward.amount, reward.reward_coin_type)
        for reward in portfolio.borrow_rewards:
            totals.add(reward.symbol, reward.amount, reward.reward_coin_type)

        meta = parser.ScallopClaimMeta(
            spool_rewards=portfolio.spool_rewards,
            borrow_rewards=portfolio.borrow_rewards,
        )
        summary = RewardSummaryItem(
            protocol=self.protocol,
            supplies=supplies_from_positions(positions, self.protocol),
            rewards=totals.to_rewards(),
            claim_meta=None if meta.empty else meta,
        )
        return UserFetch(self.protocol, positions=positions, reward_summary=summary)
