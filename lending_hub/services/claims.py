"""Claim orchestration: build, optionally swap, sign, refresh."""
from __future__ import annotations

import logging
from collections.abc import Iterable
from decimal import Decimal
from enum import Enum
from typing import Any, Literal, Union

from ..chains.sui.decimals import CoinDecimalsCache
from ..chains.sui.transaction import Argument, TransactionDraft
from ..config import ClaimsConfig
from ..errors import (
    ClaimError,
    ClaimNotAvailableError,
    MissingObjectError,
    SwapRouteUnavailableError,
)
from ..interfaces.claim_builder import ClaimBuilder, ClaimInput
from ..interfaces.swap_aggregator import SwapAggregator
from ..interfaces.wallet import Wallet
from ..models import RewardToken, SwapPreview, SwapPreviewItem
from ..numeric import format_atomic_amount, to_decimal
from ..protocols.common import reward_atomic
from ..registry import (
    SUPPORTED_PROTOCOLS,
    Protocol,
    coin_type_for_symbol,
    normalize_coin_type,
    same_coin_type,
)
from .market_data import MarketDataService

logger = logging.getLogger(__name__)

ALL: Literal["all"] = "all"
ClaimTarget = Union[Protocol, Literal["all"]]


class ClaimState(str, Enum):
    IDLE = "idle"
    BUILDING_SINGLE = "building_single"
    BUILDING_ALL = "building_all"
    SIGNING = "signing"
    REFRESHING = "refreshing"
    ERROR = "error"


class ClaimOrchestrator:
    """Drives reward claims for one wallet.

    Only one claim runs at a time; ``claiming`` holds the protocol (or
    ``ALL``) being claimed. Failures end up in ``last_error`` and never
    leave partial state behind, so any attempt can be retried from scratch.
    """

    def __init__(
        self,
        builders: Iterable[ClaimBuilder],
        market_data: MarketDataService,
        wallet: Wallet,
        decimals: CoinDecimalsCache,
        config: ClaimsConfig,
        aggregator: SwapAggregator | None = None,
        slippage: float = 0.001,
    ) -> None:
        self._builders = {b.protocol: b for b in builders}
        self._market_data = market_data
        self._wallet = wallet
        self._decimals = decimals
        self._aggregator = aggregator
        self._slippage = slippage
        self._swap_targets = tuple(config.swap_targets)
        self._swap_enabled = config.swap_enabled
        self._swap_target = config.swap_target

        self._state = ClaimState.IDLE
        self._claiming: ClaimTarget | None = None
        self._last_error: str | None = None
        self._last_preview: SwapPreview | None = None
        self._preview_generation = 0

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    @property
    def state(self) -> ClaimState:
        return self._state

    @property
    def claiming(self) -> ClaimTarget | None:
        return self._claiming

    @property
    def last_error(self) -> str | None:
        return self._last_error

    @property
    def last_preview(self) -> SwapPreview | None:
        return self._last_preview

    @property
    def swap_enabled(self) -> bool:
        return self._swap_enabled and self._aggregator is not None

    @property
    def swap_target(self) -> str:
        return self._swap_target

    @property
    def swap_target_coin_type(self) -> str:
        return coin_type_for_symbol(self._swap_target) or ""

    def set_swap_enabled(self, enabled: bool) -> None:
        self._swap_enabled = enabled

    def set_swap_target(self, symbol: str) -> None:
        symbol = symbol.upper()
        if symbol not in self._swap_targets:
            raise ValueError(f"Unsupported swap target '{symbol}'")
        self._swap_target = symbol

    def is_claim_supported(self, protocol: Protocol) -> bool:
        return protocol in self._builders

    def has_claim(self, protocol: Protocol) -> bool:
        """True when the protocol has a reward with a nonzero atomic amount."""
        if not self.is_claim_supported(protocol):
            return False
        summary = self._market_data.get_snapshot().summary_for(protocol)
        for reward in summary.rewards:
            atomic = reward_atomic(reward, self._decimals.get(reward.coin_type))
            if atomic is None:
                # Decimals not known yet; the display amount is all we have.
                if reward.amount > 0:
                    return True
            elif atomic > 0:
                return True
        return False

    @property
    def has_any_claim(self) -> bool:
        return any(self.has_claim(p) for p in SUPPORTED_PROTOCOLS)

    # ------------------------------------------------------------------
    # Claims
    # ------------------------------------------------------------------

    async def claim_protocol(self, protocol: Protocol) -> dict[str, Any] | None:
        """Claim one protocol's rewards. Returns the receipt, or None."""
        return await self._run(protocol, ClaimState.BUILDING_SINGLE)

    async def claim_all(self) -> dict[str, Any] | None:
        """Claim every protocol with rewards in one transaction."""
        return await self._run(ALL, ClaimState.BUILDING_ALL)

    async def _run(self, target: ClaimTarget, building: ClaimState) -> dict[str, Any] | None:
        if self._claiming is not None:
            logger.info("Claim already in progress (%s); ignoring request", self._claiming)
            return None

        self._claiming = target
        self._last_error = None
        self._state = building
        label = target.value if isinstance(target, Protocol) else target
        try:
            address = self._wallet.get_current_address()
            if not address:
                raise ClaimNotAvailableError("Connect a wallet to claim rewards.")

            tx = TransactionDraft(sender=address)
            if isinstance(target, Protocol):
                inputs = await self._append_protocol(tx, address, target)
            else:
                inputs = await self._append_all(tx, address)
            await self._finalize(tx, address, inputs)

            self._state = ClaimState.SIGNING
            receipt = await self._wallet.sign_and_execute(tx)
            logger.info("Claim %s submitted (%d commands)", label, len(tx))

            self._state = ClaimState.REFRESHING
            try:
                await self._market_data.refresh()
            except Exception as e:
                logger.warning("Post-claim refresh failed: %s", e)
            return receipt
        except Exception as e:
            self._state = ClaimState.ERROR
            self._last_error = str(e) or e.__class__.__name__
            if isinstance(e, ClaimError):
                logger.warning("Claim %s failed: %s", label, e)
            else:
                logger.error("Claim %s failed: %s", label, e, exc_info=True)
            return None
        finally:
            self._claiming = None
            self._state = ClaimState.IDLE

    async def _append_protocol(
        self, tx: TransactionDraft, address: str, protocol: Protocol
    ) -> list[ClaimInput]:
        builder = self._builders.get(protocol)
        if builder is None:
            raise ClaimNotAvailableError()
        await self._resolve_reward_decimals([protocol])
        if not self.has_claim(protocol):
            raise ClaimNotAvailableError()
        summary = self._market_data.get_snapshot().summary_for(protocol)
        result = await builder.append_claim(tx, address, summary)
        if not result.has_claim:
            raise ClaimNotAvailableError()
        return list(result.inputs)

    async def _append_all(self, tx: TransactionDraft, address: str) -> list[ClaimInput]:
        snapshot = self._market_data.get_snapshot()
        await self._resolve_reward_decimals(SUPPORTED_PROTOCOLS)
        inputs: list[ClaimInput] = []
        for protocol in SUPPORTED_PROTOCOLS:
            if not self.has_claim(protocol):
                continue
            try:
                result = await self._builders[protocol].append_claim(
                    tx, address, snapshot.summary_for(protocol)
                )
            except (ClaimNotAvailableError, MissingObjectError) as e:
                # Builders raise before appending any command.
                logger.warning("Skipping %s: %s", protocol.value, e)
                continue
            if result.has_claim:
                inputs.extend(result.inputs)
        if not inputs:
            raise ClaimNotAvailableError()
        return inputs

    async def _resolve_reward_decimals(self, protocols: Iterable[Protocol]) -> None:
        """Look up decimals of rewards that only carry a display amount."""
        snapshot = self._market_data.get_snapshot()
        coin_types = [
            reward.coin_type
            for protocol in protocols
            if protocol in self._builders
            for reward in snapshot.summary_for(protocol).rewards
            if reward.coin_type and reward.amount_atomic is None
        ]
        if not coin_types:
            return
        try:
            await self._decimals.resolve_many(coin_types)
        except Exception as e:
            logger.warning("Reward decimals lookup failed: %s", e)

    async def _finalize(
        self, tx: TransactionDraft, address: str, inputs: list[ClaimInput]
    ) -> None:
        """Route inputs through the swap (if enabled) and transfer the output."""
        keep: list[ClaimInput] = []
        for claim_input in inputs:
            if claim_input.amount_atomic == 0:
                # Coins cannot be dropped; an empty one is destroyed instead.
                tx.move_call(
                    "0x2::coin::destroy_zero", [claim_input.coin], [claim_input.coin_type]
                )
            else:
                keep.append(claim_input)
        if not keep:
            raise ClaimNotAvailableError()

        to_transfer: list[ClaimInput] = keep
        outputs: list[Argument] = []
        if self.swap_enabled:
            target = self.swap_target_coin_type
            passthrough = [i for i in keep if same_coin_type(i.coin_type, target)]
            swappable = [
                i for i in keep
                if not same_coin_type(i.coin_type, target) and i.amount_atomic is not None
            ]
            # Unknown amounts are never swapped, only handed back as is.
            to_transfer = [
                i for i in keep
                if not same_coin_type(i.coin_type, target) and i.amount_atomic is None
            ]
            target_coins = [i.coin for i in passthrough]
            if swappable:
                target_coins.insert(0, await self._swap(tx, target, swappable))
            if target_coins:
                tx.merge_coins(target_coins[0], target_coins[1:])
                outputs.append(target_coins[0])

        outputs.extend(self._merge_by_coin_type(tx, to_transfer))
        tx.transfer_objects(outputs, address)

    async def _swap(
        self, tx: TransactionDraft, target: str, inputs: list[ClaimInput]
    ) -> Argument:
        assert self._aggregator is not None
        amounts: dict[str, int] = {}
        coins: dict[str, list[Argument]] = {}
        originals: dict[str, str] = {}
        for claim_input in inputs:
            key = normalize_coin_type(claim_input.coin_type)
            amounts[key] = amounts.get(key, 0) + (claim_input.amount_atomic or 0)
            coins.setdefault(key, []).append(claim_input.coin)
            originals.setdefault(key, claim_input.coin_type)

        route = await self._aggregator.find_merged_route(
            target, [(originals[key], amount) for key, amount in amounts.items()]
        )
        if route is None or not set(amounts) <= set(route.routed_coin_types):
            raise SwapRouteUnavailableError()

        input_coins = []
        for key, handles in coins.items():
            tx.merge_coins(handles[0], handles[1:])
            input_coins.append((originals[key], handles[0]))
        return self._aggregator.build_merged_swap(tx, route, input_coins, self._slippage)

    @staticmethod
    def _merge_by_coin_type(
        tx: TransactionDraft, inputs: list[ClaimInput]
    ) -> list[Argument]:
        grouped: dict[str, list[Argument]] = {}
        for claim_input in inputs:
            grouped.setdefault(normalize_coin_type(claim_input.coin_type), []).append(
                claim_input.coin
            )
        merged = []
        for handles in grouped.values():
            tx.merge_coins(handles[0], handles[1:])
            merged.append(handles[0])
        return merged

    # ------------------------------------------------------------------
    # Swap preview
    # ------------------------------------------------------------------

    def cancel_preview(self) -> None:
        """Drop the current preview; in-flight previews resolve to None."""
        self._preview_generation += 1
        self._last_preview = None

    async def preview_swap(
        self,
        target: ClaimTarget,
        rewards: Iterable[RewardToken] | None = None,
    ) -> SwapPreview | None:
        """Estimate swapping ``rewards`` into the swap target, without building.

        Returns None when cancelled (or superseded) before completion.
        """
        self._preview_generation += 1
        generation = self._preview_generation

        if rewards is None:
            snapshot = self._market_data.get_snapshot()
            rewards = (
                snapshot.summary_for(target).rewards
                if isinstance(target, Protocol)
                else snapshot.total_rewards
            )
        rewards = list(rewards)

        target_symbol = self._swap_target
        target_coin_type = self.swap_target_coin_type
        target_decimals = await self._decimals.resolve(target_coin_type)
        if generation != self._preview_generation:
            return None

        items: list[SwapPreviewItem] = []
        can_swap_all = True
        total = Decimal(0)
        for reward in rewards:
            item = await self._preview_item(reward, target_coin_type, target_decimals)
            if generation != self._preview_generation:
                return None
            items.append(item)
            if item.estimated_out is None:
                can_swap_all = False
            else:
                total += to_decimal(item.estimated_out)

        preview = SwapPreview(
            items=tuple(items),
            target_symbol=target_symbol,
            can_swap_all=can_swap_all and bool(items),
            total_estimated_out=str(total.normalize()) if items and can_swap_all else None,
        )
        self._last_preview = preview
        return preview

    async def _preview_item(
        self,
        reward: RewardToken,
        target_coin_type: str,
        target_decimals: int | None,
    ) -> SwapPreviewItem:
        def item(note: str | None = None, **kwargs: Any) -> SwapPreviewItem:
            return SwapPreviewItem(
                token=reward.token,
                amount=reward.amount,
                coin_type=reward.coin_type,
                note=note,
                **kwargs,
            )

        if reward.coin_type and same_coin_type(reward.coin_type, target_coin_type):
            return item("Already in target asset", estimated_out=str(reward.amount))
        if self._aggregator is None:
            return item("Swap unavailable")
        if not reward.coin_type:
            return item("Unknown coin type")

        decimals = await self._decimals.resolve(reward.coin_type)
        atomic = reward_atomic(reward, decimals)
        if atomic is None:
            return item("Decimals unavailable")
        if atomic <= 0:
            return item("Amount too small to swap")

        try:
            route = await self._aggregator.find_route(
                reward.coin_type, target_coin_type, atomic
            )
        except Exception as e:
            logger.warning("Route lookup failed for %s: %s", reward.token, e)
            route = None
        if route is None:
            return item("No swap route")
        estimated = (
            format_atomic_amount(route.amount_out, target_decimals)
            if target_decimals is not None
            else None
        )
        return item(
            None if estimated is not None else "Target decimals unavailable",
            steps=route.steps,
            estimated_out=estimated,
        )
