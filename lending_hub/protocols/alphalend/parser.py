"""Pure parsing functions for AlphaLend market and on-chain data, no I/O."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from ...models import IncentiveBreakdown
from ...numeric import to_decimal, to_number, token_symbol
from ...registry import normalize_coin_type


@dataclass(frozen=True)
class AlphaMarket:
    market_id: str
    coin_type: str
    supply_interest_apr: float
    borrow_interest_apr: float
    utilization: float
    supply_rewards: tuple[IncentiveBreakdown, ...] = ()
    borrow_rewards: tuple[IncentiveBreakdown, ...] = ()

    @property
    def has_incentive(self) -> bool:
        return bool(self.supply_rewards or self.borrow_rewards)


@dataclass(frozen=True)
class AlphaReward:
    coin_type: str
    amount: Decimal


@dataclass(frozen=True)
class AlphaPortfolio:
    """Supplied amounts keyed by market id and rewards awaiting claim."""

    supplied: tuple[tuple[str, float], ...] = ()
    rewards: tuple[AlphaReward, ...] = ()


@dataclass(frozen=True)
class AlphaLendClaimMeta:
    """Reward coin types the portfolio endpoint reports as claimable."""

    reward_coin_types: tuple[str, ...] = ()


@dataclass(frozen=True)
class UserRewardCheckpoint:
    earned: int
    cumulative_per_share: int


@dataclass(frozen=True)
class UserRewardDistributor:
    """A position's reward-distributor entry for one market side."""

    market_id: int
    is_deposit: bool
    last_updated: int
    share: int
    rewards: tuple[UserRewardCheckpoint | None, ...] = ()


@dataclass(frozen=True)
class MarketReward:
    coin_type: str
    start_time: int
    end_time: int
    cumulative_per_share: int


def _str(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def _int(value: Any) -> int:
    """Move u64/u128 field (string, int, or ``{"fields": {"value": x}}`` bag)."""
    if isinstance(value, dict):
        value = value.get("fields", value).get("value")
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _fields(value: Any) -> dict[str, Any]:
    if isinstance(value, dict) and isinstance(value.get("fields"), dict):
        return value["fields"]
    return {}


def with_hex_prefix(coin_type: str) -> str:
    """Move ``TypeName`` strings omit the ``0x`` prefix."""
    return coin_type if coin_type.startswith("0x") else f"0x{coin_type}"


# ---------------------------------------------------------------------------
# HTTP payloads
# ---------------------------------------------------------------------------


def _reward_breakdown(raw: Any) -> tuple[IncentiveBreakdown, ...]:
    rewards = raw.get("rewards") if isinstance(raw, dict) else None
    breakdown = []
    for reward in rewards if isinstance(rewards, list) else []:
        if not isinstance(reward, dict):
            continue
        coin_type = _str(reward.get("coinType"))
        apr = to_number(reward.get("rewardApr"))
        if coin_type and apr > 0:
            breakdown.append(IncentiveBreakdown(token=token_symbol(coin_type), apr=apr))
    return tuple(breakdown)


def parse_market(raw: Any) -> AlphaMarket | None:
    if not isinstance(raw, dict):
        return None
    coin_type = _str(raw.get("coinType"))
    market_id = raw.get("marketId")
    if coin_type is None or market_id is None:
        return None
    supply = raw.get("supplyApr") if isinstance(raw.get("supplyApr"), dict) else {}
    borrow = raw.get("borrowApr") if isinstance(raw.get("borrowApr"), dict) else {}
    return AlphaMarket(
        market_id=str(market_id),
        coin_type=coin_type,
        supply_interest_apr=to_number(supply.get("interestApr")),
        borrow_interest_apr=to_number(borrow.get("interestApr")),
        utilization=to_number(raw.get("utilizationRate")) * 100,
        supply_rewards=_reward_breakdown(supply),
        borrow_rewards=_reward_breakdown(borrow),
    )


def parse_markets(raw: Any) -> list[AlphaMarket]:
    markets = (parse_market(item) for item in (raw if isinstance(raw, list) else []))
    return [market for market in markets if market is not None]


def parse_portfolios(raw: Any) -> list[AlphaPortfolio]:
    """One entry per position the wallet holds."""
    portfolios = []
    for item in raw if isinstance(raw, list) else []:
        if not isinstance(item, dict):
            continue
        supplied_raw = item.get("suppliedAmounts")
        if isinstance(supplied_raw, dict):
            supplied_items = list(supplied_raw.items())
        elif isinstance(supplied_raw, list):
            # Serialized Map: [[marketId, amount], ...]
            supplied_items = [
                tuple(pair) for pair in supplied_raw
                if isinstance(pair, (list, tuple)) and len(pair) == 2
            ]
        else:
            supplied_items = []

        rewards = []
        for reward in item.get("rewardsToClaim") or []:
            if not isinstance(reward, dict):
                continue
            coin_type = _str(reward.get("coinType"))
            amount = to_decimal(reward.get("rewardAmount"))
            if coin_type and amount > 0:
                rewards.append(AlphaReward(coin_type=coin_type, amount=amount))

        portfolios.append(
            AlphaPortfolio(
                supplied=tuple(
                    (str(market_id), to_number(amount))
                    for market_id, amount in supplied_items
                ),
                rewards=tuple(rewards),
            )
        )
    return portfolios


# ---------------------------------------------------------------------------
# On-chain objects
# ---------------------------------------------------------------------------


def parse_position_id(cap: dict[str, Any]) -> str | None:
    """``position_id`` field of an owned ``PositionCap`` object."""
    fields = cap.get("data", {}).get("content", {}).get("fields", {})
    return _str(fields.get("position_id"))


def table_value_fields(dynamic_field: dict[str, Any]) -> dict[str, Any]:
    """Fields of the value stored under a table's dynamic field."""
    fields = dynamic_field.get("content", {}).get("fields", {})
    return _fields(fields.get("value"))


def parse_user_distributors(position_fields: dict[str, Any]) -> list[UserRewardDistributor]:
    distributors = []
    for entry in position_fields.get("reward_distributors") or []:
        fields = _fields(entry)
        if "market_id" not in fields:
            continue
        checkpoints: list[UserRewardCheckpoint | None] = []
        for reward in fields.get("rewards") or []:
            reward_fields = _fields(reward)
            if not reward_fields:
                checkpoints.append(None)
                continue
            checkpoints.append(
                UserRewardCheckpoint(
                    earned=_int(reward_fields.get("earned_rewards")),
                    cumulative_per_share=_int(
                        reward_fields.get("cummulative_rewards_per_share")
                    ),
                )
            )
        distributors.append(
            UserRewardDistributor(
                market_id=_int(fields.get("market_id")),
                is_deposit=bool(fields.get("is_deposit")),
                last_updated=_int(fields.get("last_updated")),
                share=_int(fields.get("share")),
                rewards=tuple(checkpoints),
            )
        )
    return distributors


def parse_market_rewards(market_fields: dict[str, Any], is_deposit: bool) -> list[MarketReward]:
    """Rewards of a market's deposit or borrow distributor."""
    key = "deposit_reward_distributor" if is_deposit else "borrow_reward_distributor"
    distributor = _fields(market_fields.get(key))
    rewards = []
    for reward in distributor.get("rewards") or []:
        fields = _fields(reward)
        coin_type = _str(_fields(fields.get("coin_type")).get("name"))
        if coin_type is None:
            continue
        rewards.append(
            MarketReward(
                coin_type=with_hex_prefix(coin_type),
                start_time=_int(fields.get("start_time")),
                end_time=_int(fields.get("end_time")),
                cumulative_per_share=_int(fields.get("cummulative_rewards_per_share")),
            )
        )
    return rewards


# ---------------------------------------------------------------------------
# Claim discovery
# ---------------------------------------------------------------------------


def possibly_claimable(
    user: UserRewardDistributor,
    market_rewards: list[MarketReward],
    now_ms: int,
) -> list[str]:
    """Reward coin types that may have accrued for this distributor.

    A reward is flagged when it was still emitting after the user's last
    sync while the user held shares, when the user has unclaimed earnings,
    or when the market's cumulative-per-share checkpoint is ahead of the
    user's.
    """
    flagged = []
    for index, reward in enumerate(market_rewards):
        checkpoint = user.rewards[index] if index < len(user.rewards) else None
        elapsed = min(reward.end_time, now_ms) - max(reward.start_time, user.last_updated)
        if elapsed > 0 and user.share > 0:
            flagged.append(reward.coin_type)
        elif checkpoint is not None:
            if checkpoint.earned != 0 or (
                reward.cumulative_per_share > checkpoint.cumulative_per_share
                and user.share > 0
            ):
                flagged.append(reward.coin_type)
        elif user.share > 0 and reward.cumulative_per_share > 0:
            flagged.append(reward.coin_type)
    return flagged


def select_claim_pairs(
    hinted: dict[int, list[str]],
    available: dict[int, list[str]],
    claimable_coin_types: list[str],
) -> list[tuple[int, str]]:
    """(market id, coin type) pairs to collect.

    ``claimable_coin_types`` (from the portfolio read) decides *what* gets
    claimed. The checkpoint hints only narrow *where*: if no market was
    hinted for a claimable coin type, every market distributing it is used.
    """
    wanted = {normalize_coin_type(ct): ct for ct in claimable_coin_types}
    pairs: list[tuple[int, str]] = []
    covered: set[str] = set()
    for market_id in sorted(hinted):
        for coin_type in hinted[market_id]:
            key = normalize_coin_type(coin_type)
            if key in wanted and (market_id, coin_type) not in pairs:
                pairs.append((market_id, coin_type))
                covered.add(key)
    for market_id in sorted(available):
        for coin_type in available[market_id]:
            key = normalize_coin_type(coin_type)
            if key in wanted and key not in covered and (market_id, coin_type) not in pairs:
                pairs.append((market_id, coin_type))
    return pairs
