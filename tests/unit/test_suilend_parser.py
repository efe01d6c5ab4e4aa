"""Unit tests for Suilend payload parsing."""
from __future__ import annotations

from decimal import Decimal

from lending_hub.protocols.suilend import parser
from lending_hub.protocols.suilend.parser import Side

SEND = "0xb45f::mint::MINT"
SUI = "0x2::sui::SUI"


def _reserve(**overrides) -> dict:
    raw = {
        "coinType": SUI,
        "arrayIndex": "0",
        "token": {"symbol": "SUI"},
        "depositAprPercent": "3.2",
        "borrowAprPercent": 5.1,
        "utilizationPercent": "61",
        "depositRewards": [
            {"stats": {"rewardCoinType": SEND, "symbol": "SEND", "aprPercent": "1.5", "rewardIndex": 0, "mintDecimals": 6}},
            {"rewardCoinType": SUI, "aprPercent": 0.5, "rewardIndex": "1"},
            {"stats": {"rewardCoinType": SEND}},
        ],
        "borrowRewards": [
            {"stats": {"rewardCoinType": SUI, "aprPercent": 2, "rewardIndex": 0}},
        ],
    }
    raw.update(overrides)
    return raw


class TestParseReserve:
    def test_reserve(self) -> None:
        reserve = parser.parse_reserve(_reserve())
        assert reserve is not None
        assert reserve.array_index == 0
        assert reserve.symbol == "SUI"
        assert reserve.deposit_apr_percent == 3.2
        assert len(reserve.deposit_rewards) == 2
        assert reserve.deposit_rewards[0].mint_decimals == 6
        assert reserve.deposit_rewards[1].symbol == "SUI"
        assert reserve.borrow_rewards[0].side is Side.BORROW
        assert reserve.has_incentive

    def test_invalid_array_index(self) -> None:
        assert parser.parse_reserve(_reserve(arrayIndex="x")) is None

    def test_parse_reserves_skips_garbage(self) -> None:
        assert len(parser.parse_reserves([_reserve(), None, {"coinType": SUI}])) == 1


class TestDedupedBreakdown:
    def test_sums_duplicates_and_drops_nonpositive(self) -> None:
        rewards = (
            parser.RewardStats(SEND, "SEND", 1.0, 0, Side.DEPOSIT),
            parser.RewardStats(SEND, "SEND", 0.5, 1, Side.DEPOSIT),
            parser.RewardStats(SUI, "SUI", 0.0, 2, Side.DEPOSIT),
            parser.RewardStats(SUI, "SUI", float("inf"), 3, Side.DEPOSIT),
        )
        assert [(b.token, b.apr) for b in parser.deduped_breakdown(rewards)] == [("SEND", 1.5)]


class TestObligations:
    def _obligation(self) -> dict:
        return {
            "id": "0x0b1",
            "deposits": [{"coinType": SUI, "symbol": "SUI", "depositedAmount": "12"}],
            "borrows": [{"coinType": SEND, "borrowedAmount": 3}],
            "claims": [
                {"reserveArrayIndex": 0, "rewardIndex": 0, "rewardCoinType": SEND, "side": "deposit", "claimableAmount": "1.5", "mintDecimals": 6},
                {"reserveArrayIndex": "0", "rewardIndex": "0", "rewardCoinType": SEND, "side": "DEPOSIT", "claimableAmount": "0.25", "mintDecimals": 6},
                {"reserveArrayIndex": 3, "rewardIndex": 1, "rewardCoinType": SUI, "side": "borrow", "claimableAmount": "0.1"},
                {"reserveArrayIndex": 4, "rewardIndex": 0, "rewardCoinType": SUI, "claimableAmount": "0"},
                {"rewardCoinType": SUI},
            ],
        }

    def test_parse_obligation(self) -> None:
        obligation = parser.parse_obligation(self._obligation())
        assert obligation is not None
        assert obligation.deposits[0].amount == 12.0
        assert obligation.borrows[0].symbol == "MINT"
        assert len(obligation.claims) == 4
        assert obligation.claims[0].amount_atomic == 1_500_000
        assert obligation.claims[2].amount_atomic is None

    def test_missing_id(self) -> None:
        assert parser.parse_obligations([{"deposits": []}]) == []

    def test_build_claim_meta(self) -> None:
        obligations = parser.parse_obligations([self._obligation()])
        meta = parser.build_claim_meta(obligations)
        assert meta is not None
        assert meta.rewards == (
            parser.SuilendClaimReward(0, 0, SEND, Side.DEPOSIT),
            parser.SuilendClaimReward(3, 1, SUI, Side.BORROW),
        )
        assert meta.swap_inputs == ((SEND, 1_750_000),)

    def test_no_claims(self) -> None:
        assert parser.build_claim_meta([parser.SuilendObligation("0x1")]) is None

    def test_claim_amount_decimal(self) -> None:
        claim = parser.parse_claim(
            {"reserveArrayIndex": 1, "rewardIndex": 2, "rewardCoinType": SUI, "claimableAmount": 0.3}
        )
        assert claim is not None
        assert claim.amount == Decimal("0.3")
        assert claim.side is Side.DEPOSIT
