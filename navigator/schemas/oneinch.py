from typing import Any, Optional, Union

from pydantic import Field

from navigator.schemas.common import CamelModel, UpstreamModel

Amount = Union[str, int, float]


# Requests


class QuoteRequest(CamelModel):
    from_token: Optional[str] = None
    to_token: Optional[str] = None
    amount: Optional[Amount] = None
    slippage: Optional[float] = None
    from_decimals: int = 18
    to_decimals: int = 18
    chain_id: Optional[int] = None
    from_symbol: Optional[str] = None
    from_name: Optional[str] = None
    to_symbol: Optional[str] = None
    to_name: Optional[str] = None


class SwapRequest(CamelModel):
    from_token: Optional[str] = None
    to_token: Optional[str] = None
    amount: Optional[Amount] = None
    from_address: Optional[str] = None
    slippage: Optional[float] = None
    from_decimals: int = 18
    chain_id: Optional[int] = None


class ApproveRequest(CamelModel):
    token_address: Optional[str] = None
    amount: Optional[Amount] = None
    decimals: int = 18
    chain_id: Optional[int] = None


# Upstream payloads


class TransactionPayload(UpstreamModel):
    from_: Optional[str] = Field(default=None, alias="from")
    to: str
    data: str
    value: str = "0"
    gas: Optional[int] = None
    gas_price: Optional[str] = None


class QuotePayload(UpstreamModel):
    dst_amount: str = Field(pattern=r"^[0-9]+$")
    protocols: list[Any] = []
    gas: Optional[int] = None
    estimated_gas: Optional[int] = None


class SwapPayload(UpstreamModel):
    dst_amount: Optional[str] = Field(default=None, pattern=r"^[0-9]+$")
    tx: TransactionPayload


class AllowancePayload(UpstreamModel):
    allowance: str


class SpenderPayload(UpstreamModel):
    address: str


# Responses


class TokenInfo(CamelModel):
    address: str
    symbol: str = "Unknown"
    name: str = "Unknown"
    decimals: int


class SwapQuote(CamelModel):
    from_token: TokenInfo
    to_token: TokenInfo
    from_amount: str
    to_amount: str
    from_amount_wei: str
    to_amount_wei: str
    protocols: list[Any]
    estimated_gas: int
    slippage: float
    execution_price: str


class SwapTransaction(CamelModel):
    from_: Optional[str] = Field(default=None, alias="from")
    to: str
    data: str
    value: str
    gas: Optional[int] = None
    gas_price: Optional[str] = None


class AllowanceData(CamelModel):
    allowance: str


class ApprovalData(CamelModel):
    tx: TransactionPayload
    spender: str
