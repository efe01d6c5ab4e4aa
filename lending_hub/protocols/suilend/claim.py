"""Suilend liquidity-mining reward claims."""
from __future__ import annotations

import logging

from ...chains.sui.decimals import CoinDecimalsCache
from ...chains.sui.transaction import CLOCK_OBJECT_ID, TransactionDraft
from ...config import ProtocolConfig
from ...errors import ClaimNotAvailableError, MissingObjectError
from ...interfaces.chain import ChainClient
from ...interfaces.claim_builder import ClaimResult
from ...models import RewardSummaryItem
from ...registry import Protocol, normalize_coin_type
from ..common import CoinCollector, reward_atomic_by_coin_type
from .parser import Side, SuilendClaimMeta

logger = logging.getLogger(__name__)


class SuilendClaimBuilder:
    def __init__(
        self,
        chain_client: ChainClient,
        decimals: CoinDecimalsCache,
        config: ProtocolConfig,
    ) -> None:
        self._client = chain_client
        self._decimals = decimals
        self._contracts = config.contracts

    @property
    def protocol(self) -> Protocol:
        return Protocol.SUILEND

    def _contract(self, name: str) -> str:
        value = self._contracts.get(name)
        if not value:
            raise ClaimNotAvailableError(f"Suilend contract '{name}' is not configured.")
        return value

    async def _owner_cap_id(self, address: str, package: str, market_type: str) -> str:
        caps = await self._client.get_owned_objects(
            address, f"{package}::lending_market::ObligationOwnerCap<{market_type}>"
        )
        for obj in caps:
            object_id = obj.get("data", {}).get("objectId")
            if object_id:
                return object_id
        raise MissingObjectError("Suilend", "obligation owner cap")

    async def append_claim(
        self,
        tx: TransactionDraft,
        address: str,
        summary: RewardSummaryItem,
    ) -> ClaimResult:
        meta = summary.claim_meta
        if not isinstance(meta, SuilendClaimMeta) or not meta.rewards:
            return ClaimResult()

        amounts = await reward_atomic_by_coin_type(summary.rewards, self._decimals)
        for coin_type, amount in meta.swap_inputs:
            amounts[normalize_coin_type(coin_type)] = amount

        rewards = [
            reward
            for reward in meta.rewards
            if amounts.get(normalize_coin_type(reward.reward_coin_type), 0) != 0
        ]
        if not rewards:
            return ClaimResult()

        package = self._contract("package_id")
        market_id = self._contract("lending_market_id")
        market_type = self._contract("lending_market_type")
        cap_id = await self._owner_cap_id(address, package, market_type)

        coins = CoinCollector()
        for reward in rewards:
            coin = tx.move_call(
                f"{package}::lending_market::claim_rewards",
                [
                    tx.object(market_id),
                    tx.object(cap_id),
                    tx.object(CLOCK_OBJECT_ID),
                    tx.pure(reward.reserve_array_index, "u64"),
                    tx.pure(reward.reward_index, "u64"),
                    tx.pure(reward.side is Side.DEPOSIT, "bool"),
                ],
                [market_type, reward.reward_coin_type],
            )
            coins.add(reward.reward_coin_type, coin)

        logger.debug("Suilend: %d claim_rewards call(s)", len(rewards))
        return ClaimResult(inputs=coins.merge_into(tx, amounts), has_claim=True)
