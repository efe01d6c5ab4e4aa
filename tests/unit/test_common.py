"""Unit tests for helpers shared by the protocol packages."""
from __future__ import annotations

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from lending_hub.chains.sui.decimals import CoinDecimalsCache
from lending_hub.chains.sui.transaction import TransactionDraft
from lending_hub.models import RewardToken
from lending_hub.protocols.common import (
    CoinCollector,
    PoolCandidate,
    RewardTotals,
    add_position,
    reward_atomic,
    reward_atomic_by_coin_type,
    select_pools,
    supplies_from_positions,
)
from lending_hub.registry import ASSET_COIN_TYPES, Asset, Protocol

USDC = ASSET_COIN_TYPES[Asset.USDC]
WORMHOLE_USDC = "0x5d4b302506645c37ff133b98c4b50a5ae14841659738d6d733d59d0d217a93bf::coin::COIN"


class TestSelectPools:
    def test_preferred_coin_type_wins(self) -> None:
        chosen = select_pools(
            [
                PoolCandidate(Asset.USDC, WORMHOLE_USDC, True, 20.0, "wormhole"),
                PoolCandidate(Asset.USDC, USDC, False, 1.0, "native"),
            ]
        )
        assert chosen == {Asset.USDC: "native"}

    def test_incentive_then_apr(self) -> None:
        chosen = select_pools(
            [
                PoolCandidate(Asset.SUI, "0x1::a::SUI", False, 50.0, "plain"),
                PoolCandidate(Asset.SUI, "0x2::b::SUI", True, 3.0, "low"),
                PoolCandidate(Asset.SUI, "0x3::c::SUI", True, 4.0, "high"),
            ]
        )
        assert chosen == {Asset.SUI: "high"}

    def test_order_independent(self) -> None:
        a = PoolCandidate(Asset.DEEP, "0x1::a::DEEP", False, 1.0, "a")
        b = PoolCandidate(Asset.DEEP, "0x2::b::DEEP", False, 1.0, "b")
        assert select_pools([a, b]) == select_pools([b, a])


class TestPositions:
    def test_add_position_accumulates(self) -> None:
        positions: dict = {}
        add_position(positions, Protocol.NAVI, Asset.SUI, 1.5)
        add_position(positions, Protocol.NAVI, Asset.SUI, 2.0)
        assert positions == {(Protocol.NAVI, Asset.SUI): 3.5}

    def test_supplies_skip_other_protocols_and_zero(self) -> None:
        positions = {
            (Protocol.NAVI, Asset.SUI): 1.0,
            (Protocol.NAVI, Asset.USDC): 0.0,
            (Protocol.SCALLOP, Asset.SUI): 4.0,
        }
        supplies = supplies_from_positions(positions, Protocol.NAVI)
        assert [(s.asset, s.amount) for s in supplies] == [(Asset.SUI, 1.0)]


class TestRewardTotals:
    def test_keyed_by_normalized_coin_type(self) -> None:
        totals = RewardTotals()
        totals.add("SUI", "1.5", "0x2::sui::SUI", 1_500_000_000)
        totals.add("SUI", 0.5, "0x0002::sui::SUI", 500_000_000)
        (reward,) = totals.to_rewards()
        assert reward.amount == Decimal("2.0")
        assert reward.amount_atomic == 2_000_000_000

    def test_untyped_keyed_by_symbol(self) -> None:
        totals = RewardTotals()
        totals.add("SPRING", "1")
        totals.add("SPRING", "2")
        (reward,) = totals.to_rewards()
        assert reward.token == "SPRING"
        assert reward.coin_type is None
        assert reward.amount == Decimal(3)

    def test_missing_atomic_poisons_total(self) -> None:
        totals = RewardTotals()
        totals.add("USDC", "1", USDC, 1_000_000)
        totals.add("USDC", "1", USDC)
        assert totals.to_rewards()[0].amount_atomic is None

    def test_zero_amounts_ignored(self) -> None:
        totals = RewardTotals()
        totals.add("USDC", "0", USDC)
        assert totals.to_rewards() == ()


class TestRewardAtomic:
    def test_prefers_known_atomic(self) -> None:
        reward = RewardToken("USDC", Decimal("9"), USDC, 42)
        assert reward_atomic(reward, 6) == 42

    def test_floors_display_amount(self) -> None:
        reward = RewardToken("USDC", Decimal("0.0000019"), USDC)
        assert reward_atomic(reward, 6) == 1

    def test_unknown_decimals(self) -> None:
        assert reward_atomic(RewardToken("X", Decimal(1), "0x9::x::X"), None) is None

    @pytest.mark.asyncio
    async def test_by_coin_type(self) -> None:
        client = AsyncMock()
        client.get_coin_metadata.return_value = {}
        cache = CoinDecimalsCache(client, known={USDC: 6})
        totals = await reward_atomic_by_coin_type(
            [
                RewardToken("USDC", Decimal("1"), USDC),
                RewardToken("USDC", Decimal("0.5"), USDC),
                RewardToken("X", Decimal("1"), "0x9::x::X"),
                RewardToken("NOTYPE", Decimal("1")),
            ],
            cache,
        )
        assert totals == {
            "0x" + USDC[2:]: 1_500_000,
            "0x" + "0" * 63 + "9::x::X": None,
        }


class TestCoinCollector:
    def test_merges_per_coin_type(self) -> None:
        tx = TransactionDraft()
        a = tx.move_call("0x1::m::claim")
        b = tx.move_call("0x1::m::claim")
        c = tx.move_call("0x1::m::claim")
        collector = CoinCollector()
        collector.add("0x2::sui::SUI", a)
        collector.add(USDC, b)
        collector.add("0x02::sui::SUI", c)

        inputs = collector.merge_into(tx, {"0x" + "0" * 63 + "2::sui::SUI": 7})

        assert [(i.coin_type, i.coin, i.amount_atomic) for i in inputs] == [
            ("0x2::sui::SUI", a, 7),
            (USDC, b, None),
        ]
        assert tx.commands[-1]["kind"] == "MergeCoins"
        assert len(tx) == 4

    def test_empty_collector_is_falsy(self) -> None:
        assert not CoinCollector()
