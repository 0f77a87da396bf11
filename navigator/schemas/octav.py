from typing import Any, Optional

from pydantic import Field, field_validator

from navigator.schemas.common import CamelModel, UpstreamModel


class _Numeric(UpstreamModel):
    @field_validator("*", mode="before")
    @classmethod
    def _numbers_as_strings(cls, v: Any) -> Any:
        # Octav mostly sends numbers as strings but not always
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class OctavAsset(_Numeric):
    balance: Optional[str] = None
    symbol: Optional[str] = None
    price: Optional[str] = None
    value: Optional[str] = None
    contract_address: Optional[str] = None
    chain: Optional[str] = None


class OctavProtocol(_Numeric):
    key: Optional[str] = None
    name: Optional[str] = None
    value: Optional[str] = None
    assets: list[OctavAsset] = []


class OctavChain(_Numeric):
    key: Optional[str] = None
    name: Optional[str] = None
    value: Optional[str] = None
    protocols: list[str] = []


class OctavPortfolio(_Numeric):
    address: Optional[str] = None
    networth: Optional[str] = None
    cash_balance: Optional[str] = None
    daily_income: Optional[str] = None
    daily_expense: Optional[str] = None
    fees: Optional[str] = None
    fees_fiat: Optional[str] = None
    last_updated: Optional[str] = None
    open_pnl: Optional[str] = None
    closed_pnl: Optional[str] = None
    total_cost_basis: Optional[str] = None
    asset_by_protocols: dict[str, OctavProtocol] = {}
    chains: dict[str, OctavChain] = {}


# Responses


class WalletAsset(CamelModel):
    token: str
    symbol: str
    balance: float
    value_usd: float = Field(alias="valueUSD")


class UserPosition(CamelModel):
    pool: str
    pt_balance: float
    yt_balance: float
    sy_balance: float = 0.0
    lp_balance: float = 0.0
    maturity_value: float
    cost_basis: float
    current_value: float
    realized_pnl: float = Field(default=0.0, alias="realizedPnL")
    unrealized_pnl: float = Field(alias="unrealizedPnL")
    current_apy: Optional[float] = Field(default=None, alias="currentAPY")


class PortfolioSummary(CamelModel):
    positions: list[UserPosition] = []
    assets: list[WalletAsset] = []
    total_value_usd: float = Field(default=0.0, alias="totalValueUSD")
    portfolio: Optional[OctavPortfolio] = None

