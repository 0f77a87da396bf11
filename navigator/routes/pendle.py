import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query

from navigator.config import Settings
from navigator.dependencies import get_normalizer, get_octav, get_pendle, get_settings
from navigator.errors import NotFoundError, RequestValidationFailed, UpstreamError
from navigator.providers.octav import OctavProvider
from navigator.providers.pendle import PendleProvider
from navigator.routes.utils import failure_message, ok
from navigator.schemas.common import ApiResponse
from navigator.schemas.pendle import (
    ConvertResult,
    LiquidityRequest,
    MintRequest,
    PendlePool,
    PendlePositions,
    PoolsRecommendRequest,
    RecommendationSummary,
    RedeemRequest,
    SwapRequest,
)
from navigator.services import pools as pool_service
from navigator.services.normalizer import RequestNormalizer, is_valid_address
from navigator.services.portfolio import summarize_portfolio

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/swap", response_model=ApiResponse[ConvertResult], response_model_exclude_none=True)
async def swap(
    req: SwapRequest,
    pendle: PendleProvider = Depends(get_pendle),
    normalizer: RequestNormalizer = Depends(get_normalizer),
):
    convert = normalizer.swap(req)
    logger.info(f"Getting swap transaction data: {convert.tokens_in[0]} -> {convert.tokens_out[0]}")

    with failure_message("Failed to get swap transaction data"):
        result = await pendle.convert(convert)
    return ok(result)


@router.post("/liquidity", response_model=ApiResponse[ConvertResult], response_model_exclude_none=True)
async def liquidity(
    req: LiquidityRequest,
    pendle: PendleProvider = Depends(get_pendle),
    normalizer: RequestNormalizer = Depends(get_normalizer),
):
    convert = normalizer.liquidity(req)
    logger.info(
        f"Getting {req.action} liquidity transaction data: "
        f"{','.join(convert.tokens_in)} -> {','.join(convert.tokens_out)}"
    )

    with failure_message("Failed to get liquidity transaction data"):
        result = await pendle.convert(convert)
    return ok(result)


@router.post("/mint", response_model=ApiResponse[ConvertResult], response_model_exclude_none=True)
async def mint(
    req: MintRequest,
    pendle: PendleProvider = Depends(get_pendle),
    normalizer: RequestNormalizer = Depends(get_normalizer),
):
    convert = normalizer.mint(req)
    logger.info(f"Getting mint {req.type.upper()} transaction data: {convert.tokens_in[0]} -> {','.join(convert.tokens_out)}")

    with failure_message("Failed to get mint transaction data"):
        result = await pendle.convert(convert)
    return ok(result)


@router.post("/redeem", response_model=ApiResponse[ConvertResult], response_model_exclude_none=True)
async def redeem(
    req: RedeemRequest,
    pendle: PendleProvider = Depends(get_pendle),
    normalizer: RequestNormalizer = Depends(get_normalizer),
):
    convert = normalizer.redeem(req)
    logger.info(
        f"Getting redeem {req.type.upper()} transaction data: "
        f"{','.join(convert.tokens_in)}({','.join(convert.amounts_in)}) -> {convert.tokens_out[0]}"
    )

    with failure_message("Failed to get redeem transaction data"):
        result = await pendle.convert(convert)
    return ok(result)


@router.get("/markets", response_model=ApiResponse[list[dict[str, Any]]])
async def active_markets(
    chain_id: Optional[int] = Query(None, alias="chainId"),
    pendle: PendleProvider = Depends(get_pendle),
    settings: Settings = Depends(get_settings),
):
    with failure_message("Failed to fetch Pendle markets"):
        markets = await pendle.get_active_markets(chain_id or settings.default_chain_id)
    return ok(markets)


@router.get("/pools", response_model=ApiResponse[list[PendlePool]], response_model_exclude_none=True)
async def pools(
    stablecoin: bool = False,
    chain_id: Optional[int] = Query(None, alias="chainId"),
    pendle: PendleProvider = Depends(get_pendle),
    settings: Settings = Depends(get_settings),
):
    chain_id = chain_id or settings.default_chain_id
    try:
        markets = await pendle.get_active_markets(chain_id)
    except UpstreamError as e:
        logger.warning(f"Pendle markets unavailable for chain {chain_id}: {e.message}")
        markets = []

    result = pool_service.markets_to_pools(markets)
    if not result:
        logger.warning(f"No usable Pendle markets for chain {chain_id}, serving mock pools")
        return ok(pool_service.filter_stablecoin_pools(pool_service.MOCK_POOLS, pool_service.MOCK_STABLECOINS))

    if stablecoin:
        result = pool_service.filter_stablecoin_pools(result)
    logger.info(f"Serving {len(result)} Pendle pools for chain {chain_id}")
    return ok(result)


@router.post("/recommend", response_model=ApiResponse[RecommendationSummary], response_model_exclude_none=True)
async def recommend(
    req: PoolsRecommendRequest,
    pendle: PendleProvider = Depends(get_pendle),
    settings: Settings = Depends(get_settings),
):
    if not req.assets:
        raise RequestValidationFailed("Assets array is required. Please provide an array of assets.")
    holdings = [a for a in req.assets if (a.value_usd or 0) > 0]
    if not holdings:
        raise RequestValidationFailed("No assets with value found.")
    risk_level = pool_service.validate_risk_level(req.risk_level)

    with failure_message("Failed to generate recommendations"):
        markets = await pendle.get_active_markets(req.chain_id or settings.default_chain_id)
    if not markets:
        raise NotFoundError("No Pendle markets found for the specified chain.")

    available = pool_service.markets_to_pools(markets)
    if not available:
        raise NotFoundError("No valid pools found.")

    summary = pool_service.recommend_for_portfolio(holdings, available, risk_level)
    if not summary.recommendations:
        raise NotFoundError("No matching pools found for your assets.")

    logger.info(f"Built {summary.total_opportunities} recommendations ({risk_level}) from {len(available)} pools")
    return ok(summary)


@router.get("/positions", response_model=ApiResponse[PendlePositions], response_model_exclude_none=True)
async def positions(
    address: Optional[str] = None,
    chain_id: Optional[int] = Query(None, alias="chainId"),
    pendle: PendleProvider = Depends(get_pendle),
    octav: OctavProvider = Depends(get_octav),
    settings: Settings = Depends(get_settings),
):
    if not address:
        raise RequestValidationFailed("Wallet address is required")
    if not is_valid_address(address):
        raise RequestValidationFailed("Invalid wallet address format")

    if not settings.octav_configured:
        logger.warning("OCTAV_API_KEY not set, returning no Pendle positions")
        return ok(PendlePositions())

    with failure_message("Failed to fetch Pendle positions"):
        portfolio = await octav.get_portfolio(address)
    held = summarize_portfolio(portfolio).positions

    chain_id = chain_id or settings.default_chain_id
    try:
        markets = await pendle.get_active_markets(chain_id)
    except UpstreamError as e:
        logger.warning(f"Pendle markets unavailable for chain {chain_id}, positions carry no APY: {e.message}")
        markets = []

    pool_service.attach_pool_apy(held, pool_service.markets_to_pools(markets))
    return ok(pool_service.summarize_positions(held))
