from fastapi import Depends, Request

from navigator.config import Settings
from navigator.errors import NotConfiguredError
from navigator.providers.octav import OctavProvider
from navigator.providers.oneinch import OneInchProvider
from navigator.providers.pendle import PendleProvider
from navigator.providers.registry import ProviderRegistry
from navigator.services.normalizer import RequestNormalizer


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_registry(request: Request) -> ProviderRegistry:
    return request.app.state.registry


def get_normalizer(settings: Settings = Depends(get_settings)) -> RequestNormalizer:
    return RequestNormalizer(
        default_chain_id=settings.default_chain_id,
        default_slippage=settings.default_slippage,
    )


def require_oneinch(
    settings: Settings = Depends(get_settings),
    registry: ProviderRegistry = Depends(get_registry),
) -> OneInchProvider:
    # Resolved before the handler runs, so nothing reaches 1inch without a key
    if not settings.oneinch_configured:
        raise NotConfiguredError("1inch API key not configured")
    return registry.oneinch


def get_pendle(registry: ProviderRegistry = Depends(get_registry)) -> PendleProvider:
    return registry.pendle


def get_octav(registry: ProviderRegistry = Depends(get_registry)) -> OctavProvider:
    return registry.octav
