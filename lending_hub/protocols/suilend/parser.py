"""Pure parsing functions for Suilend reserve and obligation payloads, no I/O."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

from ...models import IncentiveBreakdown
from ...numeric import to_atomic, to_decimal, to_number, token_symbol


class Side(str, Enum):
    DEPOSIT = "deposit"
    BORROW = "borrow"


@dataclass(frozen=True)
class RewardStats:
    """One liquidity-mining reward attached to a reserve side."""

    reward_coin_type: str
    symbol: str
    apr_percent: float
    reward_index: int
    side: Side
    mint_decimals: int | None = None


@dataclass(frozen=True)
class SuilendReserve:
    coin_type: str
    symbol: str
    array_index: int
    deposit_apr_percent: float
    borrow_apr_percent: float
    utilization_percent: float
    deposit_rewards: tuple[RewardStats, ...] = ()
    borrow_rewards: tuple[RewardStats, ...] = ()

    @property
    def has_incentive(self) -> bool:
        return any(r.apr_percent > 0 for r in self.deposit_rewards + self.borrow_rewards)


@dataclass(frozen=True)
class SuilendBalance:
    coin_type: str
    symbol: str
    amount: float


@dataclass(frozen=True)
class SuilendClaim:
    """Claimable amount of one reward on one obligation."""

    reserve_array_index: int
    reward_index: int
    reward_coin_type: str
    symbol: str
    side: Side
    amount: Decimal
    mint_decimals: int | None = None

    @property
    def amount_atomic(self) -> int | None:
        if self.mint_decimals is None:
            return None
        return to_atomic(self.amount, self.mint_decimals)


@dataclass(frozen=True)
class SuilendObligation:
    obligation_id: str
    deposits: tuple[SuilendBalance, ...] = ()
    borrows: tuple[SuilendBalance, ...] = ()
    claims: tuple[SuilendClaim, ...] = ()


@dataclass(frozen=True)
class SuilendClaimReward:
    """Arguments of one ``claim_rewards`` call."""

    reserve_array_index: int
    reward_index: int
    reward_coin_type: str
    side: Side


@dataclass(frozen=True)
class SuilendClaimMeta:
    rewards: tuple[SuilendClaimReward, ...] = ()
    # (reward coin type, atomic total) for every reward with a nonzero total.
    swap_inputs: tuple[tuple[str, int], ...] = ()


def _str(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def _int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    return None


def _side(value: Any, default: Side) -> Side:
    try:
        return Side(str(value).lower())
    except ValueError:
        return default


def parse_reward_stats(raw: Any, side: Side) -> RewardStats | None:
    stats = raw.get("stats", raw) if isinstance(raw, dict) else None
    if not isinstance(stats, dict):
        return None
    coin_type = _str(stats.get("rewardCoinType"))
    reward_index = _int(stats.get("rewardIndex"))
    if coin_type is None or reward_index is None:
        return None
    return RewardStats(
        reward_coin_type=coin_type,
        symbol=_str(stats.get("symbol")) or token_symbol(coin_type),
        apr_percent=to_number(stats.get("aprPercent")),
        reward_index=reward_index,
        side=_side(stats.get("side"), side),
        mint_decimals=_int(stats.get("mintDecimals")),
    )


def _reward_list(raw: Any, side: Side) -> tuple[RewardStats, ...]:
    if not isinstance(raw, list):
        return ()
    stats = (parse_reward_stats(item, side) for item in raw)
    return tuple(item for item in stats if item is not None)


def parse_reserve(raw: Any) -> SuilendReserve | None:
    if not isinstance(raw, dict):
        return None
    coin_type = _str(raw.get("coinType"))
    array_index = _int(raw.get("arrayIndex"))
    if coin_type is None or array_index is None:
        return None
    token = raw.get("token") if isinstance(raw.get("token"), dict) else {}
    return SuilendReserve(
        coin_type=coin_type,
        symbol=_str(token.get("symbol")) or _str(raw.get("symbol")) or token_symbol(coin_type),
        array_index=array_index,
        deposit_apr_percent=to_number(raw.get("depositAprPercent")),
        borrow_apr_percent=to_number(raw.get("borrowAprPercent")),
        utilization_percent=to_number(raw.get("utilizationPercent")),
        deposit_rewards=_reward_list(raw.get("depositRewards"), Side.DEPOSIT),
        borrow_rewards=_reward_list(raw.get("borrowRewards"), Side.BORROW),
    )


def parse_reserves(raw: Any) -> list[SuilendReserve]:
    reserves = (parse_reserve(item) for item in (raw if isinstance(raw, list) else []))
    return [reserve for reserve in reserves if reserve is not None]


def deduped_breakdown(rewards: tuple[RewardStats, ...]) -> tuple[IncentiveBreakdown, ...]:
    """APR per reward coin, summing duplicate entries for the same coin.

    Non-positive and non-finite APRs are dropped.
    """
    totals: dict[str, tuple[str, float]] = {}
    for reward in rewards:
        apr = reward.apr_percent
        if apr <= 0 or apr == float("inf"):
            continue
        symbol, current = totals.get(reward.reward_coin_type, (reward.symbol, 0.0))
        totals[reward.reward_coin_type] = (symbol, current + apr)
    return tuple(IncentiveBreakdown(token=symbol, apr=apr) for symbol, apr in totals.values())


def _balances(raw: Any) -> tuple[SuilendBalance, ...]:
    balances = []
    for item in raw if isinstance(raw, list) else []:
        if not isinstance(item, dict):
            continue
        coin_type = _str(item.get("coinType"))
        if coin_type is None:
            continue
        balances.append(
            SuilendBalance(
                coin_type=coin_type,
                symbol=_str(item.get("symbol")) or token_symbol(coin_type),
                amount=to_number(item.get("depositedAmount", item.get("borrowedAmount"))),
            )
        )
    return tuple(balances)


def parse_claim(raw: Any) -> SuilendClaim | None:
    if not isinstance(raw, dict):
        return None
    reserve_index = _int(raw.get("reserveArrayIndex"))
    reward_index = _int(raw.get("rewardIndex"))
    coin_type = _str(raw.get("rewardCoinType"))
    if reserve_index is None or reward_index is None or coin_type is None:
        return None
    return SuilendClaim(
        reserve_array_index=reserve_index,
        reward_index=reward_index,
        reward_coin_type=coin_type,
        symbol=_str(raw.get("symbol")) or token_symbol(coin_type),
        side=_side(raw.get("side"), Side.DEPOSIT),
        amount=to_decimal(raw.get("claimableAmount")),
        mint_decimals=_int(raw.get("mintDecimals")),
    )


def parse_obligation(raw: Any) -> SuilendObligation | None:
    if not isinstance(raw, dict):
        return None
    obligation_id = _str(raw.get("id"))
    if obligation_id is None:
        return None
    claims = (parse_claim(item) for item in (raw.get("claims") or []))
    return SuilendObligation(
        obligation_id=obligation_id,
        deposits=_balances(raw.get("deposits")),
        borrows=_balances(raw.get("borrows")),
        claims=tuple(claim for claim in claims if claim is not None),
    )


def parse_obligations(raw: Any) -> list[SuilendObligation]:
    items = (parse_obligation(item) for item in (raw if isinstance(raw, list) else []))
    return [item for item in items if item is not None]


def build_claim_meta(obligations: list[SuilendObligation]) -> SuilendClaimMeta | None:
    """Deduplicated claim calls plus atomic totals per reward coin type."""
    rewards: dict[tuple[int, int, str, Side], SuilendClaimReward] = {}
    atomic_totals: dict[str, int] = {}
    for obligation in obligations:
        for claim in obligation.claims:
            if claim.amount <= 0:
                continue
            key = (
                claim.reserve_array_index,
                claim.reward_index,
                claim.reward_coin_type,
                claim.side,
            )
            rewards.setdefault(
                key,
                SuilendClaimReward(
                    reserve_array_index=claim.reserve_array_index,
                    reward_index=claim.reward_index,
                    reward_coin_type=claim.reward_coin_type,
                    side=claim.side,
                ),
            )
            if claim.amount_atomic is not None:
                atomic_totals[claim.reward_coin_type] = (
                    atomic_totals.get(claim.reward_coin_type, 0) + claim.amount_atomic
                )
    if not rewards:
        return None
    return SuilendClaimMeta(
        rewards=tuple(rewards.values()),
        swap_inputs=tuple(
            (coin_type, amount) for coin_type, amount in atomic_totals.items() if amount
        ),
    )
