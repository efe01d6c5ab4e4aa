"""AlphaLend market and user adapters."""
from __future__ import annotations

import logging

from ...models import MarketFetch, MarketRow, RewardSummaryItem, UserFetch, WalletPositions
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
from .source import AlphaLendSource

logger = logging.getLogger(__name__)


class AlphaLendMarketAdapter:
    def __init__(self, source: AlphaLendSource) -> None:
        self._source = source

    @property
    def protocol(self) -> Protocol:
        return Protocol.ALPHALEND

    async def fetch_market(self) -> MarketFetch:
        try:
            markets = parser.parse_markets(await self._source.get_markets())
        except Exception as e:
            logger.error("AlphaLend market fetch failed: %s", e)
            return MarketFetch(self.protocol, error=str(e))

        candidates = []
        for market in markets:
            asset = asset_from_source(None, market.coin_type)
            if asset is None:
                continue
            candidates.append(
                PoolCandidate(
                    asset=asset,
                    coin_type=market.coin_type,
                    has_incentive=market.has_incentive,
                    combined_apr=market.supply_interest_apr + market.borrow_interest_apr,
                    pool=market,
                )
            )

        rows = tuple(
            MarketRow.from_breakdowns(
                self.protocol,
                asset,
                supply_base_apr=market.supply_interest_apr,
                borrow_base_apr=market.borrow_interest_apr,
                utilization=market.utilization,
                supply_breakdown=market.supply_rewards,
                borrow_breakdown=market.borrow_rewards,
                coin_type=market.coin_type,
            )
            for asset, market in select_pools(candidates).items()
        )
        logger.debug("AlphaLend: %d market rows", len(rows))
        return MarketFetch(self.protocol, rows=rows)


class AlphaLendUserAdapter:
    """Supplied amounts and rewards across all of a wallet's positions."""

    def __init__(self, source: AlphaLendSource) -> None:
        self._source = source

    @property
    def protocol(self) -> Protocol:
        return Protocol.ALPHALEND

    async def fetch_user(self, address: str | None) -> UserFetch:
        if not address:
            return UserFetch(self.protocol)
        try:
            markets = parser.parse_markets(await self._source.get_markets())
            portfolios = parser.parse_portfolios(
                await self._source.get_portfolio(address)
            )
        except Exception as e:
            logger.error("AlphaLend portfolio fetch failed for %s: %s", address, e)
            return UserFetch(self.protocol, error=str(e))

        coin_type_by_market = {market.market_id: market.coin_type for market in markets}
        positions: WalletPositions = {}
        totals = RewardTotals()
        for portfolio in portfolios:
            for market_id, amount in portfolio.supplied:
                asset = asset_from_source(None, coin_type_by_market.get(market_id))
                if asset is not None:
                    add_position(positions, self.protocol, asset, amount)
            for reward in portfolio.rewards:
                totals.add(token_symbol(reward.coin_type), reward.amount, reward.coin_type)

        rewards = totals.to_rewards()
        coin_types = tuple(r.coin_type for r in rewards if r.coin_type)
        summary = RewardSummaryItem(
            protocol=self.protocol,
            supplies=supplies_from_positions(positions, self.protocol),
            rewards=rewards,
            claim_meta=parser.AlphaLendClaimMeta(coin_types) if coin_types else None,
        )
        return UserFetch(self.protocol, positions=positions, reward_summary=summary)
