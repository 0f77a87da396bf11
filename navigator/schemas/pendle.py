from typing import Any, Optional, Union

from pydantic import Field

from navigator.schemas.common import CamelModel, UpstreamModel
from navigator.schemas.octav import UserPosition

Amount = Union[str, int, float]


# Requests. Fields are optional here so missing ones can be reported together.


class SwapRequest(CamelModel):
    chain_id: Optional[int] = None
    token_in: Optional[str] = None
    amount_in: Optional[Amount] = None
    token_out: Optional[str] = None
    receiver: Optional[str] = None
    slippage: Optional[float] = None
    decimals: Optional[int] = None
    enable_aggregator: Optional[bool] = None
    aggregators: Optional[str] = None


class LiquidityRequest(CamelModel):
    action: Optional[str] = None
    chain_id: Optional[int] = None
    token_in: Optional[str] = None
    amount_in: Optional[Amount] = None
    lp_token: Optional[str] = None
    token_out: Optional[str] = None
    yt_token: Optional[str] = None
    receiver: Optional[str] = None
    slippage: Optional[float] = None
    decimals: Optional[int] = None
    zpi_mode: bool = False


class MintRequest(CamelModel):
    type: Optional[str] = None
    chain_id: Optional[int] = None
    token_in: Optional[str] = None
    amount_in: Optional[Amount] = None
    sy_token: Optional[str] = None
    pt_token: Optional[str] = None
    yt_token: Optional[str] = None
    receiver: Optional[str] = None
    slippage: Optional[float] = None
    decimals: Optional[int] = None


class RedeemRequest(CamelModel):
    type: Optional[str] = None
    chain_id: Optional[int] = None
    pt_token: Optional[str] = None
    yt_token: Optional[str] = None
    pt_amount: Optional[Amount] = None
    yt_amount: Optional[Amount] = None
    sy_token: Optional[str] = None
    sy_amount: Optional[Amount] = None
    token_out: Optional[str] = None
    receiver: Optional[str] = None
    slippage: Optional[float] = None
    decimals: Optional[int] = None


# Hosted SDK convert payload


class TokenAmount(UpstreamModel):
    token: str
    amount: str


class SdkTransaction(UpstreamModel):
    data: str
    to: str
    from_: Optional[str] = Field(default=None, alias="from")
    value: str = "0"


class ConvertData(UpstreamModel):
    price_impact: Optional[float] = None
    implied_apy: Optional[Any] = None
    effective_apy: Optional[Any] = None


class ConvertRoute(UpstreamModel):
    tx: SdkTransaction
    outputs: list[TokenAmount] = []
    data: ConvertData = ConvertData()


class ConvertPayload(UpstreamModel):
    action: Optional[str] = None
    inputs: list[TokenAmount] = []
    required_approvals: Optional[list[TokenAmount]] = None
    routes: list[ConvertRoute] = []


# Responses


class ConvertResult(CamelModel):
    tx: SdkTransaction
    price_impact: Optional[float] = None
    implied_apy: Optional[Any] = None
    effective_apy: Optional[Any] = None
    outputs: list[TokenAmount]
    required_approvals: Optional[list[TokenAmount]] = None


# Pools and recommendations


class PendlePool(CamelModel):
    address: str
    name: str
    symbol: str
    underlying_asset: str
    maturity: int
    tvl: float
    apy: float
    implied_yield: float
    pt_price: float
    yt_price: float
    pt_discount: float
    days_to_maturity: int
    strategy_tag: str
    pt_token: Optional[str] = None
    yt_token: Optional[str] = None
    sy_token: Optional[str] = None


class Allocation(CamelModel):
    pt: int
    yt: int


class Holding(CamelModel):
    """A wallet asset as the dashboard sends it; ``token`` is an address or a token object."""

    symbol: Optional[str] = None
    token: Optional[Union[str, dict[str, Any]]] = None
    balance: Optional[Union[float, str]] = None
    value_usd: Optional[float] = Field(default=None, alias="valueUSD")

    @property
    def token_symbol(self) -> str:
        if self.symbol:
            return self.symbol
        if isinstance(self.token, dict):
            return self.token.get("symbol") or ""
        return ""


class PoolsRecommendRequest(CamelModel):
    assets: Optional[list[Holding]] = None
    risk_level: Optional[str] = None
    chain_id: Optional[int] = None


class HoldingSummary(CamelModel):
    symbol: str
    balance: float
    value_usd: float = Field(alias="valueUSD")


class RecommendedPools(CamelModel):
    best_pt: PendlePool = Field(alias="bestPT")
    best_yt: PendlePool = Field(alias="bestYT")
    alternatives: list[PendlePool] = []


class PoolStrategy(CamelModel):
    recommended: str
    allocation: Allocation
    expected_apy: float = Field(alias="expectedAPY")
    reasoning: str
    risk_level: str


class PoolRecommendation(CamelModel):
    asset: HoldingSummary
    pools: RecommendedPools
    strategy: PoolStrategy


class RecommendationSummary(CamelModel):
    total_opportunities: int
    best_overall_apy: float = Field(alias="bestOverallAPY")
    total_potential_value: float
    recommendations: list[PoolRecommendation]


class PositionTotals(CamelModel):
    total_positions: int = 0
    total_value: float = 0.0
    total_pnl: float = Field(default=0.0, alias="totalPnL")
    weighted_apy: float = Field(default=0.0, alias="weightedAPY")


class PendlePositions(CamelModel):
    positions: list[UserPosition] = []
    summary: PositionTotals = PositionTotals()
