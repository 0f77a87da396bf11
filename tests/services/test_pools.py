from datetime import datetime, timezone

import pytest

from navigator.errors import RequestValidationFailed
from navigator.schemas.octav import UserPosition
from navigator.schemas.pendle import Holding
from navigator.services.pools import (
    MOCK_POOLS,
    MOCK_STABLECOINS,
    attach_pool_apy,
    filter_stablecoin_pools,
    find_matching_pools,
    markets_to_pools,
    recommend_for_portfolio,
    score_pool_for_pt,
    score_pool_for_yt,
    strategy_tag,
    summarize_positions,
    underlying_from_name,
)

NOW = datetime(2025, 1, 1, tzinfo=timezone.utc).timestamp()
MARKET = "0x" + "3" * 40
PT = "0x" + "a" * 40
YT = "0x" + "b" * 40
SY = "0x" + "c" * 40

SUSDE = MOCK_POOLS[0]
CUSD = MOCK_POOLS[4]


def _market(**overrides):
    market = {
        "address": MARKET,
        "name": "PT-sUSDe-01MAR2025",
        "expiry": "2025-03-01T00:00:00.000Z",
        "pt": f"8453-{PT}",
        "yt": f"8453-{YT}",
        "sy": f"8453-{SY}",
        "details": {"aggregatedApy": 0.12, "impliedApy": 0.15, "totalTvl": 2_000_000},
    }
    market.update(overrides)
    return market


def _holding(symbol, value=100.0, balance="10"):
    return Holding.model_validate({"symbol": symbol, "balance": balance, "valueUSD": value})


class TestMarketsToPools:
    def test_estimates_prices_from_implied_yield(self):
        [pool] = markets_to_pools([_market()], now=NOW)

        assert pool.address == MARKET
        assert pool.name == "PT-sUSDe-01MAR2025"
        assert pool.underlying_asset == "sUSDe"
        assert pool.maturity == int(datetime(2025, 3, 1, tzinfo=timezone.utc).timestamp())
        assert pool.days_to_maturity == 59
        assert pool.tvl == 2_000_000
        assert pool.apy == pytest.approx(12.0)
        assert pool.implied_yield == pytest.approx(15.0)
        assert pool.pt_price == pytest.approx(1 - 0.15 * 59 / 365)
        assert pool.yt_price == pytest.approx(0.15 * 59 / 365)
        assert pool.pt_discount == pytest.approx(0.15 * 59 / 365)
        assert pool.strategy_tag == "Neutral"
        assert (pool.pt_token, pool.yt_token, pool.sy_token) == (PT, YT, SY)

    def test_defaults_without_details(self):
        market = _market(name=None, expiry="2025-01-31T00:00:00", details=None, pt=None, yt=None, sy=None)
        [pool] = markets_to_pools([market], now=NOW)

        assert pool.days_to_maturity == 30
        assert pool.apy == pytest.approx(10.0)
        assert pool.implied_yield == pytest.approx(10.5)
        assert pool.tvl == 0
        assert pool.underlying_asset == "UNKNOWN"
        assert pool.name == "PT-UNKNOWN"
        assert pool.pt_token is None

    def test_falls_back_to_underlying_apy_and_liquidity(self):
        market = _market(details={"underlyingApy": 0.2, "liquidity": 5000})
        [pool] = markets_to_pools([market], now=NOW)
        assert pool.apy == pytest.approx(20.0)
        assert pool.implied_yield == pytest.approx(21.0)
        assert pool.tvl == 5000

    def test_expired_market_uses_flat_prices(self):
        [pool] = markets_to_pools([_market(expiry="2024-06-01T00:00:00Z")], now=NOW)
        assert pool.days_to_maturity == 0
        assert pool.pt_price == 0.95
        assert pool.yt_price == 0.05

    def test_prices_are_clamped(self):
        market = _market(expiry="2027-01-01T00:00:00Z", details={"aggregatedApy": 0.5, "impliedApy": 0.9})
        [pool] = markets_to_pools([market], now=NOW)
        assert pool.pt_price == 0.5
        assert pool.yt_price == 0.5

    def test_skips_unusable_markets(self):
        markets = [
            _market(address=None),
            _market(expiry=None),
            _market(expiry="soon"),
            "not-a-market",
            _market(),
        ]
        assert len(markets_to_pools(markets, now=NOW)) == 1


@pytest.mark.parametrize(
    "apy,implied,discount,days,expected",
    [
        (10, 15, 0.05, 100, "Best PT"),
        (25, 25.5, 0.01, 90, "Best YT"),
        (25, 25.5, 0.01, 30, "Neutral"),
        (35, 35.5, 0.01, 30, "Risky"),
        (10, 10.5, 0.12, 30, "Risky"),
        (10, 10.5, 0.02, 30, "Neutral"),
    ],
)
def test_strategy_tag(apy, implied, discount, days, expected):
    assert strategy_tag(apy, implied, discount, days) == expected


@pytest.mark.parametrize(
    "name,expected",
    [("PT-sUSDe-26DEC2024", "sUSDe"), ("PT-USD0++-27FEB2025", "USD0++"), ("sUSDe", "sUSDe"), (None, "UNKNOWN")],
)
def test_underlying_from_name(name, expected):
    assert underlying_from_name(name) == expected


class TestPoolSelection:
    def test_stablecoin_filter(self):
        assert len(filter_stablecoin_pools(MOCK_POOLS)) == 6
        narrowed = filter_stablecoin_pools(MOCK_POOLS, MOCK_STABLECOINS)
        assert [p.underlying_asset for p in narrowed] == ["sUSDe", "USDC", "USD0++", "fUSD", "cUSD"]

    def test_matching_is_case_insensitive_and_partial(self):
        assert [p.underlying_asset for p in find_matching_pools("usdc", MOCK_POOLS)] == ["USDC"]
        assert [p.underlying_asset for p in find_matching_pools("sUSDe", MOCK_POOLS)] == ["sUSDe"]
        assert len(find_matching_pools("USD", MOCK_POOLS)) == 5
        assert find_matching_pools("", MOCK_POOLS) == []

    def test_scores(self):
        # discount 2.7, yield spread 0.7, tvl capped, 34 days
        assert score_pool_for_pt(SUSDE) == pytest.approx(2.7 * 0.4 + 2.1 * 0.3 + 20 + 10)
        assert score_pool_for_yt(SUSDE) == pytest.approx(15.8 * 0.4 + 15 + 20 + 5)


class TestRecommendForPortfolio:
    def _pt_heavy_pool(self):
        return CUSD.model_copy(
            update={"pt_discount": 0.3, "implied_yield": 40.0, "apy": 5.0, "tvl": 10_000_000, "days_to_maturity": 100}
        )

    def test_prefers_yt_when_it_clearly_scores_higher(self):
        summary = recommend_for_portfolio([_holding("sUSDe")], MOCK_POOLS)
        [rec] = summary.recommendations

        assert rec.pools.best_pt.address == SUSDE.address
        assert rec.pools.best_yt.address == SUSDE.address
        assert rec.strategy.recommended == "YT"
        assert (rec.strategy.allocation.pt, rec.strategy.allocation.yt) == (0, 100)
        assert rec.strategy.expected_apy == pytest.approx(15.8)
        assert rec.strategy.risk_level == "high"

    def test_conservative_caps_yt(self):
        summary = recommend_for_portfolio([_holding("sUSDe")], MOCK_POOLS, "conservative")
        strategy = summary.recommendations[0].strategy

        assert strategy.recommended == "SPLIT"
        assert (strategy.allocation.pt, strategy.allocation.yt) == (70, 30)
        assert strategy.expected_apy == pytest.approx(16.29)
        assert strategy.risk_level == "low"

    def test_pt_and_aggressive_tilt(self):
        pool = self._pt_heavy_pool()

        neutral = recommend_for_portfolio([_holding("cUSD")], [pool]).recommendations[0].strategy
        assert neutral.recommended == "PT"
        assert neutral.expected_apy == pytest.approx(40.0)
        assert neutral.risk_level == "low"

        aggressive = recommend_for_portfolio([_holding("cUSD")], [pool], "aggressive").recommendations[0].strategy
        assert aggressive.recommended == "SPLIT"
        assert (aggressive.allocation.pt, aggressive.allocation.yt) == (30, 70)
        assert aggressive.expected_apy == pytest.approx(15.5)
        assert aggressive.risk_level == "medium"

    def test_alternatives_exclude_best_pools(self):
        [rec] = recommend_for_portfolio([_holding("USD")], MOCK_POOLS).recommendations
        best = {rec.pools.best_pt.address, rec.pools.best_yt.address}

        assert len(rec.pools.alternatives) <= 3
        assert not best & {p.address for p in rec.pools.alternatives}

    def test_summary_skips_unmatched_holdings(self):
        holdings = [
            _holding("sUSDe", value=250.0),
            _holding("WETH", value=1000.0),
            Holding.model_validate({"token": {"symbol": "USDC"}, "balance": 5, "valueUSD": 50}),
        ]
        summary = recommend_for_portfolio(holdings, MOCK_POOLS)

        assert summary.total_opportunities == 2
        assert summary.total_potential_value == 300.0
        assert [r.asset.symbol for r in summary.recommendations] == ["sUSDe", "USDC"]
        assert summary.recommendations[0].asset.balance == 10.0
        assert summary.best_overall_apy == max(r.strategy.expected_apy for r in summary.recommendations)

    def test_rejects_unknown_risk_level(self):
        with pytest.raises(RequestValidationFailed, match="Invalid riskLevel"):
            recommend_for_portfolio([_holding("sUSDe")], MOCK_POOLS, "yolo")


class TestPositions:
    def _position(self, pool, value, unrealized, realized=0.0):
        return UserPosition(
            pool=pool,
            pt_balance=value,
            yt_balance=0.0,
            maturity_value=value,
            cost_basis=value - unrealized,
            current_value=value,
            unrealized_pnl=unrealized,
            realized_pnl=realized,
        )

    def test_weights_apy_by_value(self):
        pool = SUSDE.model_copy(update={"pt_token": PT.upper().replace("0X", "0x"), "yt_token": YT})
        positions = [self._position(PT, 100.0, 5.0), self._position(YT, 50.0, 2.0, realized=1.0)]

        attach_pool_apy(positions, [pool])
        result = summarize_positions(positions)

        assert positions[0].current_apy == 16.5
        assert positions[1].current_apy == 15.8
        assert result.summary.total_positions == 2
        assert result.summary.total_value == 150.0
        assert result.summary.total_pnl == 8.0
        assert result.summary.weighted_apy == pytest.approx((16.5 * 100 + 15.8 * 50) / 150)

    def test_unmatched_positions_count_as_zero_apy(self):
        positions = [self._position("PT-unknown", 100.0, 0.0)]
        attach_pool_apy(positions, MOCK_POOLS)
        result = summarize_positions(positions)

        assert positions[0].current_apy is None
        assert result.summary.weighted_apy == 0.0

    def test_empty(self):
        result = summarize_positions([])
        assert result.positions == []
        assert result.summary.total_value == 0.0
        assert result.summary.weighted_apy == 0.0
