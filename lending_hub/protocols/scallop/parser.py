"""Pure parsing functions for Scallop indexer and portfolio payloads, no I/O.

Every ``parse_*`` function validates the fields it needs and returns None
(or skips the entry) when a payload does not match, instead of raising.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from ...models import IncentiveBreakdown
from ...numeric import to_decimal, to_number, token_symbol


@dataclass(frozen=True)
class ScallopPool:
    """Lending pool as reported by the indexer. Rates are fractions."""

    coin_name: str
    symbol: str
    coin_type: str
    market_coin_type: str
    supply_apr: float
    borrow_apr: float
    utilization_rate: float


@dataclass(frozen=True)
class ScallopSpool:
    """Supply-side reward pool staking a market coin (sCoin)."""

    market_coin_type: str
    coin_name: str
    reward_apr: float
    reward_coin_type: str | None
    spool_id: str | None = None
    reward_pool_id: str | None = None


@dataclass(frozen=True)
class ScallopLending:
    symbol: str
    coin_type: str | None
    supplied: float


@dataclass(frozen=True)
class ScallopSpoolReward:
    """Pending spool reward for one staked market coin."""

    market_coin_type: str
    reward_coin_type: str
    symbol: str
    amount: Decimal
    spool_id: str | None = None
    reward_pool_id: str | None = None


@dataclass(frozen=True)
class ScallopBorrowReward:
    """Pending borrow-incentive reward on one obligation."""

    obligation_id: str
    reward_coin_type: str
    symbol: str
    amount: Decimal


@dataclass(frozen=True)
class ScallopPortfolio:
    lendings: tuple[ScallopLending, ...] = ()
    spool_rewards: tuple[ScallopSpoolReward, ...] = ()
    borrow_rewards: tuple[ScallopBorrowReward, ...] = ()


@dataclass(frozen=True)
class ScallopClaimMeta:
    """What the claim builder needs: which spools and obligations pay out."""

    spool_rewards: tuple[ScallopSpoolReward, ...] = ()
    borrow_rewards: tuple[ScallopBorrowReward, ...] = ()

    @property
    def empty(self) -> bool:
        return not self.spool_rewards and not self.borrow_rewards


def _entries(raw: Any, key: str) -> list[Any]:
    """Entries under ``key`` whether the indexer sent a list or a name->item map."""
    value = raw.get(key) if isinstance(raw, dict) else raw
    if isinstance(value, dict):
        return list(value.values())
    if isinstance(value, list):
        return value
    return []


def _str(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def parse_pool(raw: Any) -> ScallopPool | None:
    if not isinstance(raw, dict):
        return None
    coin_name = _str(raw.get("coinName"))
    coin_type = _str(raw.get("coinType")) or _str(raw.get("marketCoinType"))
    if coin_name is None or coin_type is None:
        return None
    return ScallopPool(
        coin_name=coin_name,
        symbol=_str(raw.get("symbol")) or coin_name.upper(),
        coin_type=coin_type,
        market_coin_type=_str(raw.get("marketCoinType")) or "",
        supply_apr=to_number(raw.get("supplyApr")),
        borrow_apr=to_number(raw.get("borrowApr")),
        utilization_rate=to_number(raw.get("utilizationRate")),
    )


def parse_market(raw: Any) -> list[ScallopPool]:
    pools = (parse_pool(item) for item in _entries(raw, "pools"))
    return [pool for pool in pools if pool is not None]


def parse_spool(raw: Any) -> ScallopSpool | None:
    if not isinstance(raw, dict):
        return None
    market_coin_type = _str(raw.get("marketCoinType"))
    if market_coin_type is None:
        return None
    return ScallopSpool(
        market_coin_type=market_coin_type,
        coin_name=_str(raw.get("coinName")) or _str(raw.get("marketCoinName")) or "",
        reward_apr=to_number(raw.get("rewardApr")),
        reward_coin_type=_str(raw.get("rewardCoinType")),
        spool_id=_str(raw.get("spoolId")),
        reward_pool_id=_str(raw.get("rewardPoolId")),
    )


def parse_spools(raw: Any) -> dict[str, ScallopSpool]:
    """Spools keyed by both market coin type and underlying coin name."""
    spools: dict[str, ScallopSpool] = {}
    for item in _entries(raw, "spools"):
        spool = parse_spool(item)
        if spool is None:
            continue
        spools[spool.market_coin_type] = spool
        if spool.coin_name:
            spools.setdefault(spool.coin_name, spool)
    return spools


def parse_borrow_incentive_pools(raw: Any) -> dict[str, tuple[IncentiveBreakdown, ...]]:
    """Borrow incentive breakdowns keyed by pool coin name.

    Reward APRs arrive as fractions and are returned as percentages.
    """
    result: dict[str, tuple[IncentiveBreakdown, ...]] = {}
    items = raw if isinstance(raw, list) else _entries(raw, "pools")
    for item in items:
        pool = item.get("pool") if isinstance(item, dict) else None
        if not isinstance(pool, dict):
            continue
        coin_name = _str(pool.get("coinName"))
        rewards = pool.get("rewards")
        if coin_name is None or not isinstance(rewards, list):
            continue
        breakdown = []
        for reward in rewards:
            if not isinstance(reward, dict):
                continue
            apr = to_number(reward.get("rewardApr"))
            if apr <= 0:
                continue
            token = _str(reward.get("symbol")) or token_symbol(
                _str(reward.get("coinType")) or ""
            )
            if token:
                breakdown.append(IncentiveBreakdown(token=token, apr=apr * 100))
        if breakdown:
            result[coin_name] = tuple(breakdown)
    return result


def parse_portfolio(raw: Any) -> ScallopPortfolio:
    if not isinstance(raw, dict):
        return ScallopPortfolio()

    lendings = []
    for item in _entries(raw, "lendings"):
        if not isinstance(item, dict):
            continue
        lendings.append(
            ScallopLending(
                symbol=_str(item.get("symbol")) or "",
                coin_type=_str(item.get("coinType")),
                supplied=to_number(item.get("suppliedCoin")),
            )
        )

    pending = raw.get("pendingRewards")
    pending = pending if isinstance(pending, dict) else {}

    spool_rewards = []
    for item in _entries(pending, "lendings"):
        if not isinstance(item, dict):
            continue
        market_coin_type = _str(item.get("marketCoinType"))
        reward_coin_type = _str(item.get("coinType"))
        amount = to_decimal(item.get("pendingRewardInCoin"))
        if market_coin_type is None or reward_coin_type is None or amount <= 0:
            continue
        spool_rewards.append(
            ScallopSpoolReward(
                market_coin_type=market_coin_type,
                reward_coin_type=reward_coin_type,
                symbol=_str(item.get("symbol")) or token_symbol(reward_coin_type),
                amount=amount,
                spool_id=_str(item.get("spoolId")),
                reward_pool_id=_str(item.get("rewardPoolId")),
            )
        )

    borrow_rewards = []
    for item in _entries(pending, "borrowIncentives"):
        if not isinstance(item, dict):
            continue
        obligation_id = _str(item.get("obligationId"))
        reward_coin_type = _str(item.get("coinType"))
        amount = to_decimal(item.get("pendingRewardInCoin"))
        if obligation_id is None or reward_coin_type is None or amount <= 0:
            continue
        borrow_rewards.append(
            ScallopBorrowReward(
                obligation_id=obligation_id,
                reward_coin_type=reward_coin_type,
                symbol=_str(item.get("symbol")) or token_symbol(reward_coin_type),
                amount=amount,
            )
        )

    return ScallopPortfolio(
        lendings=tuple(lendings),
        spool_rewards=tuple(spool_rewards),
        borrow_rewards=tuple(borrow_rewards),
    )


def obligation_id_of_key(obj: dict[str, Any]) -> str | None:
    """Obligation id an ``ObligationKey`` object grants access to."""
    fields = obj.get("data", {}).get("content", {}).get("fields", {})
    ownership = fields.get("ownership", {})
    if isinstance(ownership, dict):
        ownership = ownership.get("fields", ownership)
        return _str(ownership.get("of"))
    return None
