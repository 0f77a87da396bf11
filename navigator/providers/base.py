"""
Provider abstraction for third-party DeFi APIs.
Every collaborator (1inch, Pendle, Octav) is reached through one of these.
"""

import logging
from abc import ABC
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from navigator.errors import UpstreamError


def clean_params(params: Optional[dict[str, Any]]) -> dict[str, Any]:
    return {k: v for k, v in (params or {}).items() if v is not None}


class BaseProvider(ABC):
    name: str

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        headers: Optional[dict[str, str]] = None,
        logger: Optional[logging.Logger] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url
        self._timeout = timeout
        self._headers = {"Accept": "application/json", "Content-Type": "application/json", **(headers or {})}
        self._transport = transport
        self._http: Optional[httpx.AsyncClient] = None
        self.logger = logger or logging.getLogger(__name__)

    async def initialize(self) -> None:
        if self._http is None:
            self._http = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                headers=self._headers,
                transport=self._transport,
            )

    async def close(self) -> None:
        if self._http:
            await self._http.aclose()
            self._http = None

    async def _request(self, method: str, endpoint: str, **kwargs) -> Any:
        if self._http is None:
            await self.initialize()

        self.logger.debug(f"{self.name} request: {method} {endpoint} params={kwargs.get('params')}")
        try:
            resp = await self._http.request(method, endpoint, **kwargs)
        except httpx.HTTPError as e:
            raise UpstreamError(f"{self.name} request failed: {e}", self.name, 502) from e

        if resp.is_error:
            message = self._error_message(resp)
            self.logger.error(f"{self.name} API error ({resp.status_code}): {message}")
            raise UpstreamError(message, self.name, resp.status_code)

        try:
            data = resp.json()
        except ValueError as e:
            raise UpstreamError(f"Invalid JSON response from {self.name}", self.name, 502) from e
        self.logger.debug(f"{self.name} response: {str(data)[:200]}")
        return data

    def _error_message(self, resp: httpx.Response) -> str:
        try:
            body = resp.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            for key in ("description", "message", "error"):
                if body.get(key):
                    return str(body[key])
        return f"HTTP {resp.status_code}"

    def _parse(self, model, data: Any):
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise UpstreamError(f"Malformed response from {self.name}: {e.error_count()} invalid field(s)", self.name, 502) from e
