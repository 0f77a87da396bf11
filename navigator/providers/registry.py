"""Provider registry: owns one adapter per collaborator for the app's lifetime."""

import logging
from typing import Optional

import httpx

from navigator.config import Settings
from navigator.providers.base import BaseProvider
from navigator.providers.octav import OctavProvider
from navigator.providers.oneinch import OneInchProvider
from navigator.providers.pendle import PendleProvider

logger = logging.getLogger(__name__)


class ProviderRegistry:
    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        timeout = settings.http_timeout_seconds
        self.oneinch = OneInchProvider(
            api_key=settings.oneinch_api_key,
            base_url=settings.oneinch_api_url,
            timeout=timeout,
            logger=logging.getLogger("navigator.providers.oneinch"),
            transport=transport,
        )
        self.pendle = PendleProvider(
            api_url=settings.pendle_api_url,
            sdk_url=settings.pendle_sdk_url,
            timeout=timeout,
            logger=logging.getLogger("navigator.providers.pendle"),
            transport=transport,
        )
        self.octav = OctavProvider(
            api_key=settings.octav_api_key,
            base_url=settings.octav_api_url,
            timeout=timeout,
            logger=logging.getLogger("navigator.providers.octav"),
            transport=transport,
        )

    def all(self) -> dict[str, BaseProvider]:
        return {"1inch": self.oneinch, "pendle": self.pendle, "octav": self.octav}

    async def initialize_all(self) -> None:
        for name, p in self.all().items():
            try:
                await p.initialize()
                logger.info(f"Initialized provider: {name}")
            except Exception as e:
                logger.warning(f"Failed to initialize {name}: {e}")

    async def close_all(self) -> None:
        for name, p in self.all().items():
            try:
                await p.close()
            except Exception as e:
                logger.warning(f"Failed to close {name}: {e}")
