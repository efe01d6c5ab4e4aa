"""Suilend market and user adapters."""
from __future__ import annotations

import logging

from ...models import MarketFetch, MarketRow, RewardSummaryItem, UserFetch, WalletPositions
from ...registry import Protocol, asset_from_source
from ..common import (
    PoolCandidate,
    RewardTotals,
    add_position,
    select_pools,
    supplies_from_positions,
)
from . import parser
from .source import SuilendSource

logger = logging.getLogger(__name__)


class SuilendMarketAdapter:
    def __init__(self, source: SuilendSource) -> None:
        self._source = source

    @property
    def protocol(self) -> Protocol:
        return Protocol.SUILEND

    async def fetch_market(self) -> MarketFetch:
        try:
            reserves = parser.parse_reserves(await self._source.get_reserves())
        except Exception as e:
            logger.error("Suilend market fetch failed: %s", e)
            return MarketFetch(self.protocol, error=str(e))

        candidates = []
        for reserve in reserves:
            asset = asset_from_source(reserve.symbol, reserve.coin_type)
            if asset is None:
                continue
            candidates.append(
                PoolCandidate(
                    asset=asset,
                    coin_type=reserve.coin_type,
                    has_incentive=reserve.has_incentive,
                    combined_apr=reserve.deposit_apr_percent + reserve.borrow_apr_percent,
                    pool=reserve,
                )
            )

        rows = tuple(
            MarketRow.from_breakdowns(
                self.protocol,
                asset,
                supply_base_apr=reserve.deposit_apr_percent,
                borrow_base_apr=reserve.borrow_apr_percent,
                utilization=reserve.utilization_percent,
                supply_breakdown=parser.deduped_breakdown(reserve.deposit_rewards),
                borrow_breakdown=parser.deduped_breakdown(reserve.borrow_rewards),
                coin_type=reserve.coin_type,
            )
            for asset, reserve in select_pools(candidates).items()
        )
        logger.debug("Suilend: %d market rows", len(rows))
        return MarketFetch(self.protocol, rows=rows)


class SuilendUserAdapter:
    """Deposits across all of a wallet's obligations plus claimable rewards."""

    def __init__(self, source: SuilendSource) -> None:
        self._source = source

    @property
    def protocol(self) -> Protocol:
        return Protocol.SUILEND

    async def fetch_user(self, address: str | None) -> UserFetch:
        if not address:
            return UserFetch(self.protocol)
        try:
            obligations = parser.parse_obligations(
                await self._source.get_obligations(address)
            )
        except Exception as e:
            logger.error("Suilend obligations fetch failed for %s: %s", address, e)
            return UserFetch(self.protocol, error=str(e))

        positions: WalletPositions = {}
        totals = RewardTotals()
        for obligation in obligations:
            for deposit in obligation.deposits:
                asset = asset_from_source(deposit.symbol, deposit.coin_type)
                if asset is not None:
                    add_position(positions, self.protocol, asset, deposit.amount)
            for claim in obligation.claims:
                totals.add(
                    claim.symbol,
                    claim.amount,
                    claim.reward_coin_type,
                    claim.amount_atomic,
                )

        summary = RewardSummaryItem(
            protocol=self.protocol,
            supplies=supplies_from_positions(positions, self.protocol),
            rewards=totals.to_rewards(),
            claim_meta=parser.build_claim_meta(obligations),
        )
        logger.debug(
            "Suilend: %d obligation(s) for %s", len(obligations), address
        )
        return UserFetch(self.protocol, positions=positions, reward_summary=summary)
