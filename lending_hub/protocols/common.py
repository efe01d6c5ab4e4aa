"""Helpers shared by the protocol adapters and claim builders, no I/O."""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from ..chains.sui.decimals import CoinDecimalsCache
from ..chains.sui.transaction import Argument, TransactionDraft
from ..interfaces.claim_builder import ClaimInput
from ..models import RewardSupply, RewardToken, WalletPositions
from ..numeric import to_atomic, to_decimal, token_symbol
from ..registry import (
    Asset,
    Protocol,
    is_preferred_coin_type,
    normalize_coin_type,
)

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Pool variant selection
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PoolCandidate(Generic[T]):
    """One on-chain pool/reserve variant competing for an asset's row."""

    asset: Asset
    coin_type: str
    has_incentive: bool
    combined_apr: float
    pool: T


def _rank(candidate: PoolCandidate[Any]) -> tuple[bool, bool, float, str]:
    return (
        is_preferred_coin_type(candidate.asset, candidate.coin_type),
        candidate.has_incentive,
        candidate.combined_apr,
        # Last resort so equal candidates never depend on input order.
        normalize_coin_type(candidate.coin_type or ""),
    )


def select_pools(candidates: Iterable[PoolCandidate[T]]) -> dict[Asset, T]:
    """Pick one pool per asset.

    Order of preference: the canonical coin type, then a pool carrying
    incentives, then the higher supply+borrow APR.
    """
    best: dict[Asset, PoolCandidate[T]] = {}
    for candidate in candidates:
        current = best.get(candidate.asset)
        if current is None or _rank(candidate) > _rank(current):
            best[candidate.asset] = candidate
    return {asset: candidate.pool for asset, candidate in best.items()}


# ---------------------------------------------------------------------------
# Positions and rewards
# ---------------------------------------------------------------------------


def add_position(
    positions: WalletPositions, protocol: Protocol, asset: Asset, amount: float
) -> None:
    """Accumulate ``amount`` into the (protocol, asset) position."""
    key = (protocol, asset)
    positions[key] = positions.get(key, 0.0) + amount


def supplies_from_positions(
    positions: WalletPositions, protocol: Protocol
) -> tuple[RewardSupply, ...]:
    return tuple(
        RewardSupply(asset=asset, amount=amount)
        for (owner, asset), amount in positions.items()
        if owner == protocol and amount > 0
    )


class RewardTotals:
    """Accumulates reward amounts per coin type (or symbol when untyped)."""

    def __init__(self) -> None:
        self._entries: dict[str, dict[str, Any]] = {}

    def add(
        self,
        token: str,
        amount: Any,
        coin_type: str | None = None,
        amount_atomic: int | None = None,
    ) -> None:
        value = to_decimal(amount)
        if value <= 0 and not amount_atomic:
            return
        key = normalize_coin_type(coin_type) if coin_type else token
        entry = self._entries.get(key)
        if entry is None:
            self._entries[key] = {
                "token": token or token_symbol(coin_type or ""),
                "amount": value,
                "coin_type": coin_type,
                "amount_atomic": amount_atomic,
            }
            return
        entry["amount"] += value
        if entry["amount_atomic"] is not None and amount_atomic is not None:
            entry["amount_atomic"] += amount_atomic
        else:
            entry["amount_atomic"] = None

    def to_rewards(self) -> tuple[RewardToken, ...]:
        return tuple(
            RewardToken(
                token=entry["token"],
                amount=entry["amount"],
                coin_type=entry["coin_type"],
                amount_atomic=entry["amount_atomic"],
            )
            for entry in self._entries.values()
            if entry["amount"] > 0 or entry["amount_atomic"]
        )


def reward_atomic(reward: RewardToken, decimals: int | None) -> int | None:
    """Exact atomic amount of ``reward``; None when decimals are unknown."""
    if reward.amount_atomic is not None:
        return reward.amount_atomic
    if decimals is None:
        return None
    return to_atomic(reward.amount, decimals)


async def reward_atomic_by_coin_type(
    rewards: Iterable[RewardToken], decimals: CoinDecimalsCache
) -> dict[str, int | None]:
    """Atomic totals keyed by normalized coin type.

    A coin type whose decimals cannot be resolved maps to None.
    """
    totals: dict[str, int | None] = {}
    for reward in rewards:
        if not reward.coin_type:
            continue
        key = normalize_coin_type(reward.coin_type)
        decimals_value = None
        if reward.amount_atomic is None:
            decimals_value = await decimals.resolve(reward.coin_type)
        atomic = reward_atomic(reward, decimals_value)
        if atomic is None or (key in totals and totals[key] is None):
            totals[key] = None
        else:
            totals[key] = (totals.get(key) or 0) + atomic
    return totals


# ---------------------------------------------------------------------------
# Claim assembly
# ---------------------------------------------------------------------------


class CoinCollector:
    """Groups claimed coin handles by coin type, preserving first-seen order."""

    def __init__(self) -> None:
        self._coins: dict[str, tuple[str, list[Argument]]] = {}

    def add(self, coin_type: str, coin: Argument) -> None:
        key = normalize_coin_type(coin_type)
        if key not in self._coins:
            self._coins[key] = (coin_type, [])
        self._coins[key][1].append(coin)

    def __bool__(self) -> bool:
        return bool(self._coins)

    def merge_into(
        self, tx: TransactionDraft, amounts: dict[str, int | None]
    ) -> tuple[ClaimInput, ...]:
        """Merge each coin type into one coin and tag it with its amount."""
        inputs = []
        for key, (coin_type, coins) in self._coins.items():
            primary, rest = coins[0], coins[1:]
            tx.merge_coins(primary, rest)
            inputs.append(
                ClaimInput(
                    coin_type=coin_type,
                    coin=primary,
                    amount_atomic=amounts.get(key),
                )
            )
        return tuple(inputs)
