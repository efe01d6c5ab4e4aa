"""Navi incentive v3 reward claims."""
from __future__ import annotations

import logging

from ...chains.sui.decimals import CoinDecimalsCache
from ...chains.sui.transaction import CLOCK_OBJECT_ID, TransactionDraft
from ...config import ProtocolConfig
from ...errors import ClaimNotAvailableError, MissingObjectError
from ...interfaces.claim_builder import ClaimInput, ClaimResult
from ...models import RewardSummaryItem
from ...numeric import to_atomic
from ...registry import Protocol, normalize_coin_type
from . import parser
from .source import NaviSource

logger = logging.getLogger(__name__)


class NaviClaimBuilder:
    """One ``claim_reward`` + ``coin::from_balance`` per reward coin type.

    Claimable amounts are re-read from the rewards endpoint at build time
    so the transaction never claims from a stale snapshot.
    """

    def __init__(
        self,
        source: NaviSource,
        decimals: CoinDecimalsCache,
        config: ProtocolConfig,
    ) -> None:
        self._source = source
        self._decimals = decimals
        self._contracts = config.contracts

    @property
    def protocol(self) -> Protocol:
        return Protocol.NAVI

    def _contract(self, name: str) -> str:
        value = self._contracts.get(name)
        if not value:
            raise ClaimNotAvailableError(f"Navi contract '{name}' is not configured.")
        return value

    async def append_claim(
        self,
        tx: TransactionDraft,
        address: str,
        summary: RewardSummaryItem,
    ) -> ClaimResult:
        try:
            payload = await self._source.get_available_rewards(address)
        except Exception as e:
            logger.warning("Navi reward read failed for %s: %s", address, e)
            raise ClaimNotAvailableError("Navi rewards are unavailable right now.") from e
        rewards = parser.parse_rewards(payload)
        if not rewards:
            return ClaimResult()

        grouped: dict[str, list[parser.NaviReward]] = {}
        for reward in rewards:
            grouped.setdefault(normalize_coin_type(reward.reward_coin_type), []).append(reward)

        package = self._contract("package_id")
        incentive = self._contract("incentive_v3_id")
        storage = self._contract("storage_id")

        plan = []
        for group in grouped.values():
            coin_type = group[0].reward_coin_type
            decimals = await self._decimals.resolve(coin_type)
            amount_atomic = None
            if decimals is not None:
                amount_atomic = to_atomic(sum(r.amount for r in group), decimals)
                if amount_atomic == 0:
                    logger.debug("Navi: skipping dust reward %s", coin_type)
                    continue
            fund_id = next((r.reward_fund_id for r in group if r.reward_fund_id), None)
            if fund_id is None:
                raise MissingObjectError("Navi", "reward fund")
            asset_coin_types = list(
                dict.fromkeys(ct for r in group for ct in r.asset_coin_types)
            )
            rule_ids = list(dict.fromkeys(rule for r in group for rule in r.rule_ids))
            plan.append((coin_type, amount_atomic, fund_id, asset_coin_types, rule_ids))

        inputs = []
        for coin_type, amount_atomic, fund_id, asset_coin_types, rule_ids in plan:
            balance = tx.move_call(
                f"{package}::incentive_v3::claim_reward",
                [
                    tx.object(CLOCK_OBJECT_ID),
                    tx.object(incentive),
                    tx.object(storage),
                    tx.object(fund_id),
                    tx.pure(asset_coin_types, "vector<0x1::string::String>"),
                    tx.pure(rule_ids, "vector<address>"),
                ],
                [coin_type],
            )
            coin = tx.move_call("0x2::coin::from_balance", [balance], [coin_type])
            inputs.append(
                ClaimInput(coin_type=coin_type, coin=coin, amount_atomic=amount_atomic)
            )

        return ClaimResult(inputs=tuple(inputs), has_claim=bool(inputs))
