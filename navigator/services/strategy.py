"""Strategy recommendation.

Static tiers until the agent-based analysis exists; ``address`` and
``risk_preference`` are accepted but do not change the result yet.
"""

from datetime import datetime, timezone
from typing import Optional

from navigator.schemas.pendle import Allocation, PendlePool
from navigator.schemas.strategy import StrategyRecommendation, StrategyTier

MOCK_POOL = PendlePool(
    address="0x...",
    name="PT-sUSDe-26DEC2024",
    symbol="PT-sUSDe",
    underlying_asset="sUSDe",
    maturity=int(datetime(2024, 12, 26, tzinfo=timezone.utc).timestamp()),
    tvl=50_000_000,
    apy=12.5,
    implied_yield=13.2,
    pt_price=0.97,
    yt_price=0.03,
    pt_discount=0.03,
    days_to_maturity=34,
    strategy_tag="Best PT",
)


def recommend(address: str, risk_preference: Optional[str] = None) -> StrategyRecommendation:
    # TODO: replace with the agent analysis of wallet holdings and live pool data
    return StrategyRecommendation(
        conservative=StrategyTier(
            risk_level="conservative",
            pool=MOCK_POOL,
            allocation=Allocation(pt=100, yt=0),
            expected_apy=12.5,
            maturity_yield=13.2,
            risks=["Low risk", "Fixed yield until maturity"],
        ),
        neutral=StrategyTier(
            risk_level="neutral",
            pool=MOCK_POOL,
            allocation=Allocation(pt=70, yt=30),
            expected_apy=14.8,
            maturity_yield=15.5,
            risks=["Medium risk", "Partial exposure to APY changes"],
        ),
        aggressive=StrategyTier(
            risk_level="aggressive",
            pool=MOCK_POOL,
            allocation=Allocation(pt=0, yt=100),
            expected_apy=18.5,
            maturity_yield=20.2,
            risks=["High risk", "Full exposure to APY volatility", "Possible loss if APY decreases"],
        ),
    )
