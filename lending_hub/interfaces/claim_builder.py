"""Claim builder protocol: appends reward claims to a transaction draft."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from ..chains.sui.transaction import Argument, TransactionDraft
from ..models import RewardSummaryItem
from ..registry import Protocol as LendingProtocol


@dataclass(frozen=True)
class ClaimInput:
    """A claimed coin inside a draft and its atomic amount (None if unknown)."""

    coin_type: str
    coin: Argument
    amount_atomic: int | None


@dataclass(frozen=True)
class ClaimResult:
    inputs: tuple[ClaimInput, ...] = ()
    has_claim: bool = False


class ClaimBuilder(Protocol):
    """Per-protocol reward claim construction.

    Call at most once per draft; a second call would claim twice.
    """

    @property
    def protocol(self) -> LendingProtocol: ...

    async def append_claim(
        self,
        tx: TransactionDraft,
        address: str,
        summary: RewardSummaryItem,
    ) -> ClaimResult: ...
