"""
Octav portfolio aggregator adapter.
Docs: https://docs.octav.fi/api
"""

import logging
from typing import Any, Optional

import httpx

from navigator.errors import NotConfiguredError, NotFoundError, UpstreamError
from navigator.providers.base import BaseProvider
from navigator.schemas.octav import OctavPortfolio


class OctavProvider(BaseProvider):
    name = "octav"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.octav.fi",
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

    def _error_message(self, resp: httpx.Response) -> str:
        return f"Octav API error: {super()._error_message(resp)}"

    async def _get(self, endpoint: str, params: dict[str, Any]) -> Any:
        if not self.configured:
            raise NotConfiguredError("OCTAV_API_KEY not configured")
        return await self._request("GET", endpoint, params=params)

    def _single(self, data: Any, what: str) -> dict[str, Any]:
        # One address was requested; Octav may still answer with a list
        if isinstance(data, list):
            if not data:
                raise NotFoundError(f"No {what} data returned for address")
            data = data[0]
        if not isinstance(data, dict):
            raise UpstreamError(f"Invalid {what} response from Octav API", self.name)
        return data

    async def get_portfolio(self, address: str, include_images: bool = False, wait_for_sync: bool = False) -> OctavPortfolio:
        data = await self._get(
            "/v1/portfolio",
            {
                "addresses": address,
                "includeImages": str(include_images).lower(),
                "waitForSync": str(wait_for_sync).lower(),
            },
        )
        return self._parse(OctavPortfolio, self._single(data, "portfolio"))

    async def get_wallet(self, address: str) -> dict[str, Any]:
        data = await self._get("/v1/wallet", {"addresses": address})
        return self._single(data, "wallet")

    async def get_historical(self, address: str, date: str) -> Optional[dict[str, Any]]:
        """Snapshot for one day, or None when Octav has nothing for it."""
        try:
            data = await self._get("/v1/historical", {"addresses": address, "date": date})
        except UpstreamError as e:
            if e.status_code == 404:
                return None
            raise
        if isinstance(data, list):
            return data[0] if data else None
        return data if isinstance(data, dict) else None
