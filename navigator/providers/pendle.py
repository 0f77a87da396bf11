"""
Pendle adapter.
Transactions come from the hosted SDK ``convert`` endpoint; market listings
from the core API.
Docs: https://api-v2.pendle.finance/core/docs
"""

import logging
from typing import Any, Optional

import httpx

from navigator.errors import UpstreamError
from navigator.providers.base import BaseProvider, clean_params
from navigator.schemas.pendle import ConvertPayload, ConvertResult
from navigator.services.normalizer import ConvertRequest


class PendleProvider(BaseProvider):
    name = "pendle"

    def __init__(
        self,
        api_url: str = "https://api-v2.pendle.finance",
        sdk_url: str = "https://api-v2.pendle.finance/core/",
        timeout: float = 30.0,
        logger: Optional[logging.Logger] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(api_url, timeout=timeout, logger=logger, transport=transport)
        self._sdk_url = sdk_url if sdk_url.endswith("/") else sdk_url + "/"

    def _error_message(self, resp: httpx.Response) -> str:
        return f"Pendle SDK API error ({resp.status_code}): {resp.text or resp.reason_phrase}"

    async def convert(self, req: ConvertRequest) -> ConvertResult:
        """Fetch transaction data for a convert and return its first route."""
        params = {
            "tokensIn": ",".join(req.tokens_in),
            "amountsIn": ",".join(req.amounts_in),
            "tokensOut": ",".join(req.tokens_out),
            "receiver": req.receiver,
            "slippage": req.slippage,
            "enableAggregator": req.enable_aggregator,
            "aggregators": req.aggregators,
            "additionalData": req.additional_data,
        }
        self.logger.info(f"Pendle convert on chain {req.chain_id}: {params['tokensIn']} -> {params['tokensOut']}")
        data = await self._request("GET", f"{self._sdk_url}v2/sdk/{req.chain_id}/convert", params=clean_params(params))
        payload = self._parse(ConvertPayload, data)

        if not payload.routes:
            raise UpstreamError("No routes found in SDK response", self.name)

        route = payload.routes[0]
        return ConvertResult(
            tx=route.tx,
            price_impact=route.data.price_impact,
            implied_apy=route.data.implied_apy,
            effective_apy=route.data.effective_apy,
            outputs=route.outputs,
            required_approvals=payload.required_approvals,
        )

    async def get_active_markets(self, chain_id: int) -> list[dict[str, Any]]:
        data = await self._request("GET", f"/v1/{chain_id}/markets/active")
        if isinstance(data, list):
            markets = data
        elif isinstance(data, dict):
            markets = data.get("markets", [])
        else:
            raise UpstreamError("Invalid response from Pendle API", self.name)
        self.logger.debug(f"Fetched {len(markets)} active Pendle markets for chain {chain_id}")
        return markets
