"""
1inch Aggregation API adapter (swap/v6.0).
Docs: https://portal.1inch.dev/documentation/apis/swap
"""

import logging
from decimal import Decimal
from typing import Any, Optional

import httpx

from navigator.errors import NotConfiguredError
from navigator.providers.base import BaseProvider, clean_params
from navigator.schemas.oneinch import (
    AllowancePayload,
    QuotePayload,
    SpenderPayload,
    SwapPayload,
    TransactionPayload,
)
from navigator.services.normalizer import AggregatorQuote, AggregatorSwap, AllowanceCheck, ApprovalTransaction

API_VERSION = "v6.0"


def slippage_percent(slippage: float) -> str:
    """1inch takes slippage in percent; requests carry a fraction."""
    return format((Decimal(str(slippage)) * 100).normalize(), "f")


class OneInchProvider(BaseProvider):
    name = "1inch"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.1inch.dev",
        timeout: float = 30.0,
        logger: Optional[logging.Logger] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            base_url,
            timeout=timeout,
            headers={"Authorization": f"Bearer {api_key}"},
            logger=logger,
            transport=transport,
        )
        self._api_key = api_key

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    async def _get(self, chain_id: int, endpoint: str, params: Optional[dict[str, Any]] = None) -> Any:
        if not self.configured:
            raise NotConfiguredError("1inch API key not configured")
        return await self._request("GET", f"/swap/{API_VERSION}/{chain_id}{endpoint}", params=clean_params(params))

    async def get_quote(self, quote: AggregatorQuote) -> QuotePayload:
        data = await self._get(
            quote.chain_id,
            "/quote",
            {
                "src": quote.src,
                "dst": quote.dst,
                "amount": quote.amount_wei,
                "slippage": slippage_percent(quote.slippage),
                "includeTokensInfo": True,
                "includeProtocols": True,
                "includeGas": True,
            },
        )
        return self._parse(QuotePayload, data)

    async def get_swap(self, swap: AggregatorSwap) -> SwapPayload:
        data = await self._get(
            swap.chain_id,
            "/swap",
            {
                "src": swap.src,
                "dst": swap.dst,
                "amount": swap.amount_wei,
                "from": swap.from_address,
                "slippage": slippage_percent(swap.slippage),
                "disableEstimate": False,
                "allowPartialFill": False,
            },
        )
        return self._parse(SwapPayload, data)

    async def get_spender(self, chain_id: int) -> str:
        data = await self._get(chain_id, "/approve/spender")
        return self._parse(SpenderPayload, data).address

    async def get_approval_transaction(self, approval: ApprovalTransaction) -> TransactionPayload:
        data = await self._get(
            approval.chain_id,
            "/approve/transaction",
            {"tokenAddress": approval.token_address, "amount": approval.amount_wei},
        )
        return self._parse(TransactionPayload, data)

    async def get_allowance(self, check: AllowanceCheck) -> str:
        data = await self._get(
            check.chain_id,
            "/approve/allowance",
            {"tokenAddress": check.token_address, "walletAddress": check.wallet_address},
        )
        return self._parse(AllowancePayload, data).allowance
