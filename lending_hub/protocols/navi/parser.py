"""Pure parsing functions for Navi open API payloads, no I/O."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from ...models import IncentiveBreakdown
from ...numeric import to_decimal, to_number, token_symbol

# Pool rates are ray-scaled (1e27); dividing by 1e25 yields a percentage.
RATE_TO_PERCENT = 1e25


@dataclass(frozen=True)
class NaviPool:
    symbol: str
    coin_type: str
    supply_base_apr: float
    borrow_base_apr: float
    utilization: float
    supply_incentive_apr: float = 0.0
    borrow_incentive_apr: float = 0.0
    supply_reward_coins: tuple[str, ...] = ()
    borrow_reward_coins: tuple[str, ...] = ()

    @property
    def has_incentive(self) -> bool:
        return self.supply_incentive_apr > 0 or self.borrow_incentive_apr > 0


@dataclass(frozen=True)
class NaviLendingState:
    symbol: str
    coin_type: str | None
    supply_balance: float


@dataclass(frozen=True)
class NaviReward:
    """Claimable incentive v3 reward for one (reward coin, asset) rule set."""

    reward_coin_type: str
    amount: Decimal
    asset_coin_types: tuple[str, ...] = ()
    rule_ids: tuple[str, ...] = ()
    reward_fund_id: str | None = None


@dataclass(frozen=True)
class NaviClaimMeta:
    rewards: tuple[NaviReward, ...] = ()


def _str(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def _str_tuple(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,) if value else ()
    if not isinstance(value, list):
        return ()
    return tuple(item for item in value if isinstance(item, str) and item)


def _token(raw: dict[str, Any]) -> tuple[str | None, str | None]:
    token = raw.get("token")
    if not isinstance(token, dict):
        return None, None
    coin_type = _str(token.get("address")) or _str(token.get("coinType"))
    return _str(token.get("symbol")), coin_type


def build_incentives(
    reward_coins: tuple[str, ...], apr: float
) -> tuple[IncentiveBreakdown, ...]:
    """Split a side's boosted APR evenly across its reward coins."""
    if not reward_coins or apr <= 0:
        return ()
    per_token = apr / len(reward_coins)
    return tuple(
        IncentiveBreakdown(token=token_symbol(coin_type), apr=per_token)
        for coin_type in reward_coins
    )


def parse_pool(raw: Any) -> NaviPool | None:
    if not isinstance(raw, dict):
        return None
    symbol, coin_type = _token(raw)
    if coin_type is None:
        return None

    supply_info = raw.get("supplyIncentiveApyInfo")
    supply_info = supply_info if isinstance(supply_info, dict) else {}
    borrow_info = raw.get("borrowIncentiveApyInfo")
    borrow_info = borrow_info if isinstance(borrow_info, dict) else {}

    supply_base = to_number(supply_info.get("vaultApr")) or (
        to_number(raw.get("currentSupplyRate")) / RATE_TO_PERCENT
    )
    borrow_base = to_number(borrow_info.get("vaultApr")) or (
        to_number(raw.get("currentBorrowRate")) / RATE_TO_PERCENT
    )
    total_supply = to_number(raw.get("totalSupplyAmount"))
    borrowed = to_number(raw.get("borrowedAmount"))
    utilization = borrowed / total_supply * 100 if total_supply and borrowed else 0.0

    return NaviPool(
        symbol=symbol or token_symbol(coin_type),
        coin_type=coin_type,
        supply_base_apr=supply_base,
        borrow_base_apr=borrow_base,
        utilization=utilization,
        supply_incentive_apr=to_number(supply_info.get("boostedApr")),
        borrow_incentive_apr=to_number(borrow_info.get("boostedApr")),
        supply_reward_coins=_str_tuple(supply_info.get("rewardCoin")),
        borrow_reward_coins=_str_tuple(borrow_info.get("rewardCoin")),
    )


def parse_pools(raw: Any) -> list[NaviPool]:
    items = raw if isinstance(raw, list) else []
    pools = (parse_pool(item) for item in items)
    return [pool for pool in pools if pool is not None]


def parse_lending_states(raw: Any) -> list[NaviLendingState]:
    states = []
    for item in raw if isinstance(raw, list) else []:
        if not isinstance(item, dict):
            continue
        pool = item.get("pool")
        symbol, coin_type = _token(pool) if isinstance(pool, dict) else (None, None)
        if symbol is None and coin_type is None:
            continue
        states.append(
            NaviLendingState(
                symbol=symbol or "",
                coin_type=coin_type,
                supply_balance=to_number(item.get("supplyBalance")),
            )
        )
    return states


def parse_reward(raw: Any) -> NaviReward | None:
    if not isinstance(raw, dict):
        return None
    reward_coin_type = _str(raw.get("rewardCoinType"))
    if reward_coin_type is None:
        return None
    return NaviReward(
        reward_coin_type=reward_coin_type,
        amount=to_decimal(raw.get("userClaimableReward")),
        asset_coin_types=_str_tuple(raw.get("assetCoinType") or raw.get("assetCoinTypes")),
        rule_ids=_str_tuple(raw.get("ruleIds")),
        reward_fund_id=_str(raw.get("rewardFundId")),
    )


def parse_rewards(raw: Any) -> list[NaviReward]:
    """Rewards with a positive claimable amount."""
    rewards = (parse_reward(item) for item in (raw if isinstance(raw, list) else []))
    return [reward for reward in rewards if reward is not None and reward.amount > 0]
