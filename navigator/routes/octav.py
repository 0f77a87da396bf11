import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query

from navigator.config import Settings
from navigator.dependencies import get_octav, get_settings
from navigator.errors import NotConfiguredError, RequestValidationFailed
from navigator.providers.octav import OctavProvider
from navigator.routes.utils import failure_message, ok
from navigator.schemas.common import ApiResponse
from navigator.schemas.octav import PortfolioSummary
from navigator.services.normalizer import require_fields
from navigator.services.portfolio import collect_history, summarize_portfolio

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/octav-portfolio", response_model=ApiResponse[PortfolioSummary], response_model_exclude_none=True)
async def get_portfolio(
    address: Optional[str] = None,
    include_images: bool = Query(False, alias="includeImages"),
    wait_for_sync: bool = Query(False, alias="waitForSync"),
    octav: OctavProvider = Depends(get_octav),
    settings: Settings = Depends(get_settings),
):
    require_fields(address=address)

    if not settings.octav_configured:
        logger.warning("OCTAV_API_KEY not set, returning empty portfolio")
        return ok(PortfolioSummary())

    logger.info(f"Fetching Octav portfolio for {address}")
    with failure_message("Failed to fetch data from Octav"):
        portfolio = await octav.get_portfolio(address, include_images=include_images, wait_for_sync=wait_for_sync)
        summary = summarize_portfolio(portfolio)

    logger.info(
        f"Octav portfolio for {address}: {len(summary.assets)} assets, "
        f"{len(summary.positions)} positions, total ${summary.total_value_usd:,.2f}"
    )
    summary.portfolio = portfolio
    return ok(summary)


@router.get("/octav/wallet", response_model=ApiResponse[dict[str, Any]])
async def get_wallet(
    addresses: Optional[str] = None,
    address: Optional[str] = None,
    octav: OctavProvider = Depends(get_octav),
    settings: Settings = Depends(get_settings),
):
    address = addresses or address
    require_fields(address=address)

    if not settings.octav_configured:
        logger.warning("OCTAV_API_KEY not set, returning empty wallet data")
        return ok(None)

    with failure_message("Failed to fetch data from Octav Wallet API"):
        wallet = await octav.get_wallet(address)
    return ok(wallet)


@router.get("/octav/historical", response_model=ApiResponse[list[dict[str, Any]]])
async def get_historical(
    address: Optional[str] = None,
    days: int = 30,
    octav: OctavProvider = Depends(get_octav),
    settings: Settings = Depends(get_settings),
):
    require_fields(address=address)
    if not 1 <= days <= 365:
        raise RequestValidationFailed("Days must be between 1 and 365")
    if not settings.octav_configured:
        raise NotConfiguredError("OCTAV_API_KEY not configured")

    logger.info(f"Fetching {days} days of historical data for {address}")
    with failure_message("Failed to fetch historical data"):
        snapshots = await collect_history(
            octav, address, days, delay_seconds=settings.historical_request_delay_seconds
        )
    return ok(snapshots)
