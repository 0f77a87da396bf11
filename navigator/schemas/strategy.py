from typing import Any, Literal, Optional

from pydantic import Field

from navigator.schemas.common import CamelModel
from navigator.schemas.pendle import Allocation, PendlePool

RiskLevel = Literal["conservative", "neutral", "aggressive"]


class RecommendRequest(CamelModel):
    address: Optional[str] = None
    risk_preference: Optional[str] = None
    pools: Optional[list[Any]] = None


class StrategyTier(CamelModel):
    risk_level: RiskLevel
    pool: PendlePool
    allocation: Allocation
    expected_apy: float = Field(alias="expectedAPY")
    maturity_yield: float
    risks: list[str]


class StrategyRecommendation(CamelModel):
    conservative: StrategyTier
    neutral: StrategyTier
    aggressive: StrategyTier
