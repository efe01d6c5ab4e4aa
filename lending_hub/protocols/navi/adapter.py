"""Navi market and user adapters."""
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
from .source import NaviSource

logger = logging.getLogger(__name__)


class NaviMarketAdapter:
    def __init__(self, source: NaviSource) -> None:
        self._source = source

    @property
    def protocol(self) -> Protocol:
        return Protocol.NAVI

    async def fetch_market(self) -> MarketFetch:
        try:
            pools = parser.parse_pools(await self._source.get_pools())
        except Exception as e:
            logger.error("Navi market fetch failed: %s", e)
            return MarketFetch(self.protocol, error=str(e))

        candidates = []
        for pool in pools:
            asset = asset_from_source(pool.symbol, pool.coin_type)
            if asset is None:
                continue
            candidates.append(
                PoolCandidate(
                    asset=asset,
                    coin_type=pool.coin_type,
                    has_incentive=pool.has_incentive,
                    combined_apr=pool.supply_base_apr + pool.borrow_base_apr,
                    pool=pool,
                )
            )

        rows = tuple(
            MarketRow.from_breakdowns(
                self.protocol,
                asset,
                supply_base_apr=pool.supply_base_apr,
                borrow_base_apr=pool.borrow_base_apr,
                utilization=pool.utilization,
                supply_breakdown=parser.build_incentives(
                    pool.supply_reward_coins, pool.supply_incentive_apr
                ),
                borrow_breakdown=parser.build_incentives(
                    pool.borrow_reward_coins, pool.borrow_incentive_apr
                ),
                coin_type=pool.coin_type,
            )
            for asset, pool in select_pools(candidates).items()
        )
        logger.debug("Navi: %d market rows", len(rows))
        return MarketFetch(self.protocol, rows=rows)


class NaviUserAdapter:
    """Navi supply balances and incentive v3 claimable rewards."""

    def __init__(self, source: NaviSource) -> None:
        self._source = source

    @property
    def protocol(self) -> Protocol:
        return Protocol.NAVI

    async def fetch_user(self, address: str | None) -> UserFetch:
        if not address:
            return UserFetch(self.protocol)
        try:
            states = parser.parse_lending_states(
                await self._source.get_lending_state(address)
            )
        except Exception as e:
            logger.error("Navi lending state fetch failed for %s: %s", address, e)
            return UserFetch(self.protocol, error=str(e))

        positions: WalletPositions = {}
        for state in states:
            asset = asset_from_source(state.symbol, state.coin_type)
            if asset is not None:
                add_position(positions, self.protocol, asset, state.supply_balance)

        # Positions stay valid when only the reward read fails.
        rewards: list[parser.NaviReward] = []
        reward_error: str | None = None
        try:
            rewards = parser.parse_rewards(
                await self._source.get_available_rewards(address)
            )
        except Exception as e:
            logger.warning("Navi reward fetch failed for %s: %s", address, e)
            reward_error = str(e) or e.__class__.__name__

        totals = RewardTotals()
        for reward in rewards:
            totals.add(
                token_symbol(reward.reward_coin_type),
                reward.amount,
                reward.reward_coin_type,
            )

        summary = RewardSummaryItem(
            protocol=self.protocol,
            supplies=supplies_from_positions(positions, self.protocol),
            rewards=totals.to_rewards(),
            claim_meta=parser.NaviClaimMeta(rewards=tuple(rewards)) if rewards else None,
        )
        return UserFetch(
            self.protocol,
            positions=positions,
            reward_summary=summary,
            reward_error=reward_error,
        )
