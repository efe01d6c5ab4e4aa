"""AlphaLend reward claims via collect_reward / fulfill_promise."""
from __future__ import annotations

import logging

from ...chains.sui.decimals import CoinDecimalsCache
from ...chains.sui.transaction import (
    CLOCK_OBJECT_ID,
    SYSTEM_STATE_OBJECT_ID,
    Argument,
    TransactionDraft,
)
from ...config import ProtocolConfig
from ...errors import ClaimNotAvailableError, MissingObjectError
from ...interfaces.chain import ChainClient
from ...interfaces.claim_builder import ClaimResult
from ...models import RewardSummaryItem
from ...registry import SUI_COIN_TYPE, Protocol, normalize_coin_type, same_coin_type
from ..common import CoinCollector, reward_atomic_by_coin_type
from .distributors import RewardDistributorReader
from .parser import AlphaLendClaimMeta, select_claim_pairs

logger = logging.getLogger(__name__)


class AlphaLendClaimBuilder:
    """Collects rewards per (market, coin type) pair of the wallet's position."""

    def __init__(
        self,
        chain_client: ChainClient,
        decimals: CoinDecimalsCache,
        config: ProtocolConfig,
        reader: RewardDistributorReader | None = None,
    ) -> None:
        self._decimals = decimals
        self._contracts = config.contracts
        self._reader = reader or RewardDistributorReader(
            chain_client,
            position_cap_type=self._contracts.get("position_cap_type", ""),
            positions_table_id=self._contracts.get("positions_table_id", ""),
            markets_table_id=self._contracts.get("markets_table_id", ""),
        )

    @property
    def protocol(self) -> Protocol:
        return Protocol.ALPHALEND

    def _contract(self, name: str) -> str:
        value = self._contracts.get(name)
        if not value:
            raise ClaimNotAvailableError(f"AlphaLend contract '{name}' is not configured.")
        return value

    async def append_claim(
        self,
        tx: TransactionDraft,
        address: str,
        summary: RewardSummaryItem,
    ) -> ClaimResult:
        meta = summary.claim_meta
        if not isinstance(meta, AlphaLendClaimMeta) or not meta.reward_coin_types:
            return ClaimResult()

        amounts = await reward_atomic_by_coin_type(summary.rewards, self._decimals)
        claimable = [
            coin_type
            for coin_type in meta.reward_coin_types
            if amounts.get(normalize_coin_type(coin_type), 0) != 0
        ]
        if not claimable:
            return ClaimResult()

        package = self._contract("package_id")
        protocol_id = self._contract("protocol_id")

        cap = await self._reader.find_position_cap(address)
        if cap is None:
            raise MissingObjectError("AlphaLend", "position cap")
        cap_id, position_id = cap

        hinted, available = await self._reader.discover(position_id)
        pairs = select_claim_pairs(hinted, available, claimable)
        if not pairs:
            raise ClaimNotAvailableError("No AlphaLend reward distributor to claim from.")

        coins = CoinCollector()
        for market_id, coin_type in pairs:
            collected = tx.move_call(
                f"{package}::alpha_lending::collect_reward",
                [
                    tx.object(protocol_id),
                    tx.pure(market_id, "u64"),
                    tx.object(cap_id),
                    tx.object(CLOCK_OBJECT_ID),
                ],
                [coin_type],
            )
            coins.add(coin_type, collected.nested(0))
            fulfilled = self._fulfill_promise(
                tx, package, protocol_id, collected.nested(1), coin_type
            )
            coins.add(coin_type, fulfilled)

        logger.debug("AlphaLend: collecting %d reward pair(s)", len(pairs))
        return ClaimResult(inputs=coins.merge_into(tx, amounts), has_claim=True)

    @staticmethod
    def _fulfill_promise(
        tx: TransactionDraft,
        package: str,
        protocol_id: str,
        promise: Argument,
        coin_type: str,
    ) -> Argument:
        if same_coin_type(coin_type, SUI_COIN_TYPE):
            return tx.move_call(
                f"{package}::alpha_lending::fulfill_promise_SUI",
                [
                    tx.object(protocol_id),
                    promise,
                    tx.object(SYSTEM_STATE_OBJECT_ID),
                    tx.object(CLOCK_OBJECT_ID),
                ],
            )
        return tx.move_call(
            f"{package}::alpha_lending::fulfill_promise",
            [tx.object(protocol_id), promise, tx.object(CLOCK_OBJECT_ID)],
            [coin_type],
        )
