"""Scallop reward claims: spool rewards and borrow incentives."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from ...chains.sui.decimals import CoinDecimalsCache
from ...chains.sui.transaction import CLOCK_OBJECT_ID, TransactionDraft
from ...config import ProtocolConfig
from ...errors import ClaimNotAvailableError, MissingObjectError
from ...interfaces.chain import ChainClient
from ...interfaces.claim_builder import ClaimResult
from ...models import RewardSummaryItem
from ...registry import Protocol, normalize_coin_type
from ..common import CoinCollector, reward_atomic_by_coin_type
from .parser import ScallopClaimMeta, ScallopSpoolReward, obligation_id_of_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _SpoolClaim:
    reward: ScallopSpoolReward
    account_ids: tuple[str, ...]


@dataclass(frozen=True)
class _BorrowClaim:
    obligation_id: str
    obligation_key_id: str
    reward_coin_type: str


class ScallopClaimBuilder:
    """Redeems spool rewards per spool account and borrow incentives per obligation.

    All owned-object lookups happen before the first command is appended,
    so a missing object leaves the draft untouched.
    """

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
        return Protocol.SCALLOP

    def _contract(self, name: str) -> str:
        value = self._contracts.get(name)
        if not value:
            raise ClaimNotAvailableError(f"Scallop contract '{name}' is not configured.")
        return value

    async def append_claim(
        self,
        tx: TransactionDraft,
        address: str,
        summary: RewardSummaryItem,
    ) -> ClaimResult:
        meta = summary.claim_meta
        if not isinstance(meta, ScallopClaimMeta) or meta.empty:
            return ClaimResult()

        amounts = await reward_atomic_by_coin_type(summary.rewards, self._decimals)

        def claimable(coin_type: str) -> bool:
            # Unknown (None) amounts are still claimed; zero or absent is skipped.
            return amounts.get(normalize_coin_type(coin_type), 0) != 0

        spool_claims = await self._plan_spool_claims(address, meta, claimable)
        borrow_claims = await self._plan_borrow_claims(address, meta, claimable)
        if not spool_claims and not borrow_claims:
            return ClaimResult()

        # Every contract id is checked before the first command is appended.
        spool_package = self._contract("spool_package_id") if spool_claims else ""
        if borrow_claims:
            borrow_package = self._contract("borrow_incentive_package_id")
            incentive_config = self._contract("borrow_incentive_config_id")
            incentive_pools = self._contract("borrow_incentive_pools_id")
            incentive_accounts = self._contract("borrow_incentive_accounts_id")

        coins = CoinCollector()
        if spool_claims:
            for claim in spool_claims:
                reward = claim.reward
                for account_id in claim.account_ids:
                    coin = tx.move_call(
                        f"{spool_package}::user::redeem_rewards",
                        [
                            tx.object(reward.spool_id),
                            tx.object(reward.reward_pool_id),
                            tx.object(account_id),
                            tx.object(CLOCK_OBJECT_ID),
                        ],
                        [reward.market_coin_type, reward.reward_coin_type],
                    )
                    coins.add(reward.reward_coin_type, coin)

        if borrow_claims:
            for claim in borrow_claims:
                coin = tx.move_call(
                    f"{borrow_package}::user::redeem_rewards",
                    [
                        tx.object(incentive_config),
                        tx.object(incentive_pools),
                        tx.object(incentive_accounts),
                        tx.object(claim.obligation_key_id),
                        tx.object(claim.obligation_id),
                        tx.object(CLOCK_OBJECT_ID),
                    ],
                    [claim.reward_coin_type],
                )
                coins.add(claim.reward_coin_type, coin)

        logger.debug(
            "Scallop: %d spool claim(s), %d borrow incentive claim(s)",
            len(spool_claims),
            len(borrow_claims),
        )
        return ClaimResult(inputs=coins.merge_into(tx, amounts), has_claim=True)

    async def _plan_spool_claims(self, address, meta, claimable) -> list[_SpoolClaim]:
        rewards: dict[str, ScallopSpoolReward] = {}
        for reward in meta.spool_rewards:
            if claimable(reward.reward_coin_type):
                rewards.setdefault(reward.market_coin_type, reward)
        if not rewards:
            return []

        package = self._contract("spool_package_id")
        claims = []
        for market_coin_type, reward in rewards.items():
            if not reward.spool_id or not reward.reward_pool_id:
                raise MissingObjectError("Scallop", "spool")
            accounts = await self._client.get_owned_objects(
                address, f"{package}::spool_account::SpoolAccount<{market_coin_type}>"
            )
            account_ids = tuple(
                obj["data"]["objectId"]
                for obj in accounts
                if obj.get("data", {}).get("objectId")
            )
            if not account_ids:
                raise MissingObjectError("Scallop", "spool account")
            claims.append(_SpoolClaim(reward=reward, account_ids=account_ids))
        return claims

    async def _plan_borrow_claims(self, address, meta, claimable) -> list[_BorrowClaim]:
        pairs = list(
            dict.fromkeys(
                (reward.obligation_id, reward.reward_coin_type)
                for reward in meta.borrow_rewards
                if claimable(reward.reward_coin_type)
            )
        )
        if not pairs:
            return []

        package = self._contract("protocol_package_id")
        keys = await self._client.get_owned_objects(
            address, f"{package}::obligation::ObligationKey"
        )
        key_by_obligation = {}
        for obj in keys:
            obligation_id = obligation_id_of_key(obj)
            key_id = obj.get("data", {}).get("objectId")
            if obligation_id and key_id:
                key_by_obligation[obligation_id] = key_id

        claims = []
        for obligation_id, reward_coin_type in pairs:
            key_id = key_by_obligation.get(obligation_id)
            if key_id is None:
                raise MissingObjectError("Scallop", "obligation key")
            claims.append(_BorrowClaim(obligation_id, key_id, reward_coin_type))
        return claims
