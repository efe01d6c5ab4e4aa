"""Data models: all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from .registry import Asset, Protocol

PositionKey = tuple[Protocol, Asset]
WalletPositions = dict[PositionKey, float]


@dataclass(frozen=True)
class IncentiveBreakdown:
    """One incentive token's APR contribution to a market side."""

    token: str
    apr: float


@dataclass(frozen=True)
class MarketRow:
    """One (protocol, asset) pool snapshot.

    Net APRs are derived, never stored: incentives add to supply APR and
    reduce borrow APR, floored at zero.
    """

    protocol: Protocol
    asset: Asset
    supply_base_apr: float
    borrow_base_apr: float
    supply_incentive_apr: float
    borrow_incentive_apr: float
    utilization: float
    supply_breakdown: tuple[IncentiveBreakdown, ...] = ()
    borrow_breakdown: tuple[IncentiveBreakdown, ...] = ()
    coin_type: str | None = None

    @property
    def key(self) -> PositionKey:
        return (self.protocol, self.asset)

    @property
    def supply_apr(self) -> float:
        return self.supply_base_apr + self.supply_incentive_apr

    @property
    def borrow_apr(self) -> float:
        return max(self.borrow_base_apr - self.borrow_incentive_apr, 0.0)

    @property
    def has_incentive(self) -> bool:
        return self.supply_incentive_apr > 0 or self.borrow_incentive_apr > 0

    @classmethod
    def from_breakdowns(
        cls,
        protocol: Protocol,
        asset: Asset,
        *,
        supply_base_apr: float,
        borrow_base_apr: float,
        utilization: float,
        supply_breakdown: tuple[IncentiveBreakdown, ...] = (),
        borrow_breakdown: tuple[IncentiveBreakdown, ...] = (),
        coin_type: str | None = None,
    ) -> MarketRow:
        """Build a row whose incentive APRs are the sums of the breakdowns."""
        return cls(
            protocol=protocol,
            asset=asset,
            supply_base_apr=supply_base_apr,
            borrow_base_apr=borrow_base_apr,
            supply_incentive_apr=sum(item.apr for item in supply_breakdown),
            borrow_incentive_apr=sum(item.apr for item in borrow_breakdown),
            utilization=utilization,
            supply_breakdown=supply_breakdown,
            borrow_breakdown=borrow_breakdown,
            coin_type=coin_type,
        )


@dataclass(frozen=True)
class RewardSupply:
    """Supplied asset amount shown next to a protocol's rewards."""

    asset: Asset
    amount: float


@dataclass(frozen=True)
class RewardToken:
    """Claimable reward amount for one token.

    ``amount`` is in display units. ``amount_atomic`` is set when the source
    reported (or we computed) an exact atomic total.
    """

    token: str
    amount: Decimal
    coin_type: str | None = None
    amount_atomic: int | None = None


@dataclass(frozen=True)
class RewardSummaryItem:
    """Per-protocol supplies, rewards and opaque claim metadata."""

    protocol: Protocol
    supplies: tuple[RewardSupply, ...] = ()
    rewards: tuple[RewardToken, ...] = ()
    claim_meta: Any = None


@dataclass(frozen=True)
class MarketFetch:
    """Result of one protocol's market adapter call."""

    protocol: Protocol
    rows: tuple[MarketRow, ...] = ()
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class UserFetch:
    """Result of one protocol's user adapter call."""

    protocol: Protocol
    positions: WalletPositions = field(default_factory=dict)
    reward_summary: RewardSummaryItem | None = None
    error: str | None = None
    # Set when positions were read but the reward read failed.
    reward_error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class MarketSnapshot:
    """Aggregated view consumed by the UI."""

    rows: tuple[MarketRow, ...] = ()
    positions: WalletPositions = field(default_factory=dict)
    reward_summary: tuple[RewardSummaryItem, ...] = ()
    total_supplies: tuple[RewardSupply, ...] = ()
    total_rewards: tuple[RewardToken, ...] = ()
    updated_at: datetime | None = None
    positions_by_protocol: dict[Protocol, WalletPositions] = field(
        default_factory=dict, repr=False
    )

    def summary_for(self, protocol: Protocol) -> RewardSummaryItem:
        for item in self.reward_summary:
            if item.protocol == protocol:
                return item
        return RewardSummaryItem(protocol=protocol)

    def rows_for(self, protocol: Protocol) -> tuple[MarketRow, ...]:
        return tuple(row for row in self.rows if row.protocol == protocol)


# ---------------------------------------------------------------------------
# Swap routing
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RouteStep:
    """One hop of an aggregator route."""

    from_coin_type: str
    target_coin_type: str
    provider: str


@dataclass(frozen=True)
class Route:
    """Single-input route quote."""

    from_coin_type: str
    target_coin_type: str
    amount_in: int
    amount_out: int
    steps: tuple[RouteStep, ...] = ()
    raw: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)


@dataclass(frozen=True)
class MergedRoute:
    """Multi-input-to-one-output route quote."""

    target_coin_type: str
    amount_out: int
    routed_coin_types: frozenset[str] = frozenset()
    raw: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)


@dataclass(frozen=True)
class SwapPreviewItem:
    token: str
    amount: Decimal
    coin_type: str | None = None
    steps: tuple[RouteStep, ...] = ()
    estimated_out: str | None = None
    note: str | None = None


@dataclass(frozen=True)
class SwapPreview:
    """Dry-run swap estimate for a set of rewards."""

    items: tuple[SwapPreviewItem, ...]
    target_symbol: str
    can_swap_all: bool
    total_estimated_out: str | None = None
