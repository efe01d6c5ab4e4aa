"""Snapshot merge engine: pure functions, no I/O.

Market and user results arrive per protocol, at different cadences, and
any of them may have failed. ``merge_snapshot`` folds whatever arrived into
the previous snapshot:

* rows: a protocol's successful, non-empty fetch replaces all of its rows;
  otherwise its previous rows stay.
* positions: a protocol's successful user fetch replaces its position map;
  the snapshot's positions are the additive union of all protocol maps.
* reward summary: one entry per registered protocol, always. A user fetch
  whose reward read failed keeps the previous rewards and claim metadata.
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal

from ..models import (
    MarketFetch,
    MarketRow,
    MarketSnapshot,
    RewardSummaryItem,
    RewardSupply,
    RewardToken,
    UserFetch,
    WalletPositions,
)
from ..numeric import floor_display, to_atomic, to_display
from ..registry import SUPPORTED_ASSETS, SUPPORTED_PROTOCOLS, Asset, Protocol, normalize_coin_type
from ..protocols.common import supplies_from_positions


def merge_positions(maps: Iterable[WalletPositions]) -> WalletPositions:
    """Sum amounts per (protocol, asset) across position maps."""
    merged: WalletPositions = {}
    for positions in maps:
        for key, amount in positions.items():
            merged[key] = merged.get(key, 0.0) + amount
    return merged


def normalize_reward(reward: RewardToken, decimals: int | None) -> RewardToken:
    """Express a reward at its coin's real precision (floor-rounded)."""
    if decimals is None:
        return reward
    if reward.amount_atomic is not None:
        return replace(reward, amount=to_display(reward.amount_atomic, decimals))
    amount = floor_display(reward.amount, decimals)
    return replace(reward, amount=amount, amount_atomic=to_atomic(amount, decimals))


def normalize_summary(
    item: RewardSummaryItem, decimals: Mapping[str, int] | None = None
) -> RewardSummaryItem:
    """Floor reward amounts to coin precision and drop the ones that vanish."""
    decimals = decimals or {}
    rewards = []
    for reward in item.rewards:
        coin_decimals = (
            decimals.get(normalize_coin_type(reward.coin_type)) if reward.coin_type else None
        )
        normalized = normalize_reward(reward, coin_decimals)
        if normalized.amount > 0:
            rewards.append(normalized)
    return replace(item, rewards=tuple(rewards))


def total_supplies(summaries: Iterable[RewardSummaryItem]) -> tuple[RewardSupply, ...]:
    totals: dict[Asset, float] = {}
    for item in summaries:
        for supply in item.supplies:
            totals[supply.asset] = totals.get(supply.asset, 0.0) + supply.amount
    return tuple(
        RewardSupply(asset=asset, amount=totals[asset])
        for asset in SUPPORTED_ASSETS
        if totals.get(asset, 0.0) > 0
    )


def total_rewards(summaries: Iterable[RewardSummaryItem]) -> tuple[RewardToken, ...]:
    """Rewards summed per coin type (per symbol for untyped rewards)."""
    totals: dict[str, RewardToken] = {}
    for item in summaries:
        for reward in item.rewards:
            key = normalize_coin_type(reward.coin_type) if reward.coin_type else reward.token
            current = totals.get(key)
            if current is None:
                totals[key] = reward
                continue
            atomic = None
            if current.amount_atomic is not None and reward.amount_atomic is not None:
                atomic = current.amount_atomic + reward.amount_atomic
            totals[key] = replace(
                current, amount=current.amount + reward.amount, amount_atomic=atomic
            )
    return tuple(reward for reward in totals.values() if reward.amount > Decimal(0))


def _sorted_rows(rows: Iterable[MarketRow]) -> tuple[MarketRow, ...]:
    protocol_order = {p: i for i, p in enumerate(SUPPORTED_PROTOCOLS)}
    asset_order = {a: i for i, a in enumerate(SUPPORTED_ASSETS)}
    deduped = {row.key: row for row in rows}
    return tuple(
        sorted(
            deduped.values(),
            key=lambda row: (protocol_order[row.protocol], asset_order[row.asset]),
        )
    )


def merge_snapshot(
    market_results: Iterable[MarketFetch],
    user_results: Iterable[UserFetch],
    previous: MarketSnapshot | None = None,
    decimals: Mapping[str, int] | None = None,
) -> MarketSnapshot:
    """Fold per-protocol results into ``previous`` and return a new snapshot.

    ``decimals`` maps normalized coin types to decimals for reward flooring.
    """
    previous = previous or MarketSnapshot()
    market_results = list(market_results)
    user_results = list(user_results)

    rows_by_protocol: dict[Protocol, tuple[MarketRow, ...]] = {
        protocol: previous.rows_for(protocol) for protocol in SUPPORTED_PROTOCOLS
    }
    for result in market_results:
        if result.ok and result.rows:
            rows_by_protocol[result.protocol] = tuple(
                row for row in result.rows if row.protocol == result.protocol
            )

    positions_by_protocol: dict[Protocol, WalletPositions] = dict(
        previous.positions_by_protocol
    )
    summaries: dict[Protocol, RewardSummaryItem] = {
        item.protocol: item for item in previous.reward_summary
    }
    replaced: set[Protocol] = set()
    for result in user_results:
        if not result.ok:
            continue
        positions = {
            key: amount for key, amount in result.positions.items() if key[0] == result.protocol
        }
        if result.protocol in replaced:
            # Several results for one protocol in the same cycle accumulate.
            positions = merge_positions([positions_by_protocol[result.protocol], positions])
        positions_by_protocol[result.protocol] = positions
        replaced.add(result.protocol)
        item = result.reward_summary or RewardSummaryItem(protocol=result.protocol)
        kept = summaries.get(result.protocol)
        if result.reward_error is not None and kept is not None:
            item = replace(item, rewards=kept.rewards, claim_meta=kept.claim_meta)
        summaries[result.protocol] = item

    summary = []
    for protocol in SUPPORTED_PROTOCOLS:
        item = summaries.get(protocol) or RewardSummaryItem(protocol=protocol)
        if not item.supplies:
            item = replace(
                item,
                supplies=supplies_from_positions(
                    positions_by_protocol.get(protocol, {}), protocol
                ),
            )
        summary.append(normalize_summary(item, decimals))

    arrived = any(r.ok for r in market_results) or any(r.ok for r in user_results)
    return MarketSnapshot(
        rows=_sorted_rows(row for rows in rows_by_protocol.values() for row in rows),
        positions=merge_positions(positions_by_protocol.values()),
        reward_summary=tuple(summary),
        total_supplies=total_supplies(summary),
        total_rewards=total_rewards(summary),
        updated_at=datetime.now(timezone.utc) if arrived else previous.updated_at,
        positions_by_protocol=positions_by_protocol,
    )
