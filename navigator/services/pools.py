"""
Pendle market -> pool view, pool scoring, and asset-based recommendations.

Prices here are estimates derived from implied yield and time to maturity;
they are good enough for ranking, not for execution.
"""

import logging
import math
import time
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from dateutil.parser import isoparse

from navigator.errors import RequestValidationFailed
from navigator.schemas.octav import UserPosition
from navigator.schemas.pendle import (
    Allocation,
    Holding,
    HoldingSummary,
    PendlePool,
    PendlePositions,
    PoolRecommendation,
    PoolStrategy,
    PositionTotals,
    RecommendationSummary,
    RecommendedPools,
)
from navigator.services.normalizer import normalize_address

logger = logging.getLogger(__name__)

SUPPORTED_STABLECOINS = ("USDC", "sUSDe", "cUSD", "USD0++", "fUSD", "sKAITO")
DEFAULT_APY = 0.10
IMPLIED_YIELD_PREMIUM = 1.05
RISK_LEVELS = ("conservative", "neutral", "aggressive")

# Split is recommended unless one side's score beats the other by this factor
STRATEGY_MARGIN = 1.2


def _utc(year: int, month: int, day: int) -> int:
    return int(datetime(year, month, day, tzinfo=timezone.utc).timestamp())


# Served when the Pendle API is unreachable or has no active markets
MOCK_POOLS = [
    PendlePool(
        address="0x1234567890123456789012345678901234567890",
        name="PT-sUSDe-26DEC2024",
        symbol="PT-sUSDe",
        underlying_asset="sUSDe",
        maturity=_utc(2024, 12, 26),
        tvl=52_000_000,
        apy=15.8,
        implied_yield=16.5,
        pt_price=0.973,
        yt_price=0.027,
        pt_discount=0.027,
        days_to_maturity=34,
        strategy_tag="Best PT",
    ),
    PendlePool(
        address="0x2345678901234567890123456789012345678901",
        name="PT-USDC-29JAN2025",
        symbol="PT-USDC",
        underlying_asset="USDC",
        maturity=_utc(2025, 1, 29),
        tvl=38_500_000,
        apy=12.3,
        implied_yield=13.1,
        pt_price=0.985,
        yt_price=0.015,
        pt_discount=0.015,
        days_to_maturity=68,
        strategy_tag="Neutral",
    ),
    PendlePool(
        address="0x3456789012345678901234567890123456789012",
        name="PT-USD0++-27FEB2025",
        symbol="PT-USD0++",
        underlying_asset="USD0++",
        maturity=_utc(2025, 2, 27),
        tvl=15_200_000,
        apy=22.5,
        implied_yield=24.8,
        pt_price=0.945,
        yt_price=0.055,
        pt_discount=0.055,
        days_to_maturity=97,
        strategy_tag="Best YT",
    ),
    PendlePool(
        address="0x4567890123456789012345678901234567890123",
        name="PT-fUSD-30MAR2025",
        symbol="PT-fUSD",
        underlying_asset="fUSD",
        maturity=_utc(2025, 3, 30),
        tvl=8_900_000,
        apy=18.7,
        implied_yield=19.2,
        pt_price=0.962,
        yt_price=0.038,
        pt_discount=0.038,
        days_to_maturity=128,
        strategy_tag="Best PT",
    ),
    PendlePool(
        address="0x5678901234567890123456789012345678901234",
        name="PT-cUSD-25APR2025",
        symbol="PT-cUSD",
        underlying_asset="cUSD",
        maturity=_utc(2025, 4, 25),
        tvl=6_200_000,
        apy=28.3,
        implied_yield=31.5,
        pt_price=0.912,
        yt_price=0.088,
        pt_discount=0.088,
        days_to_maturity=154,
        strategy_tag="Risky",
    ),
    PendlePool(
        address="0x6789012345678901234567890123456789012345",
        name="PT-sKAITO-15MAY2025",
        symbol="PT-sKAITO",
        underlying_asset="sKAITO",
        maturity=_utc(2025, 5, 15),
        tvl=3_800_000,
        apy=35.6,
        implied_yield=38.9,
        pt_price=0.889,
        yt_price=0.111,
        pt_discount=0.111,
        days_to_maturity=174,
        strategy_tag="Risky",
    ),
]

# The mock list predates sKAITO being treated as a stablecoin
MOCK_STABLECOINS = ("USDC", "sUSDe", "cUSD", "USD0++", "fUSD")


def is_supported_stablecoin(symbol: str) -> bool:
    return symbol in SUPPORTED_STABLECOINS


def strategy_tag(apy: float, implied_yield: float, pt_discount: float, days_to_maturity: int) -> str:
    """Tag a pool from its metrics. ``apy`` and ``implied_yield`` are percentages."""
    yield_diff = implied_yield - apy
    discount_pct = pt_discount * 100

    if discount_pct > 3 and yield_diff > 1:
        return "Best PT"
    if apy > 20 and discount_pct < 2 and days_to_maturity > 60:
        return "Best YT"
    if apy > 30 or discount_pct > 10:
        return "Risky"
    return "Neutral"


def underlying_from_name(name: Optional[str]) -> str:
    """``PT-sUSDe-26DEC2024`` -> ``sUSDe``; ``sUSDe`` -> ``sUSDe``."""
    if not name:
        return "UNKNOWN"
    parts = name.split("-")
    if len(parts) > 1 and parts[0] == "PT":
        return parts[1]
    return parts[0]


def _positive(value: Any) -> float:
    try:
        number = float(value or 0)
    except (TypeError, ValueError):
        return 0.0
    return number if number > 0 else 0.0


def _token(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return normalize_address(value) or None


def market_to_pool(market: dict[str, Any], now: float) -> Optional[PendlePool]:
    """One active market as a pool, or None when it has no address or usable expiry."""
    if not market.get("address") or not market.get("expiry"):
        return None
    try:
        expiry = isoparse(str(market["expiry"]))
    except ValueError:
        logger.debug(f"Skipping market {market['address']}: bad expiry {market['expiry']!r}")
        return None
    if expiry.tzinfo is None:
        expiry = expiry.replace(tzinfo=timezone.utc)

    maturity = int(expiry.timestamp())
    days_to_maturity = math.ceil((maturity - now) / 86400) if maturity > now else 0

    details = market.get("details") or {}
    underlying_apy = _positive(details.get("underlyingApy"))
    implied_apy = _positive(details.get("impliedApy"))
    aggregated_apy = _positive(details.get("aggregatedApy")) or underlying_apy

    apy = aggregated_apy or DEFAULT_APY
    implied_yield = implied_apy or apy * IMPLIED_YIELD_PREMIUM
    tvl = _positive(details.get("totalTvl")) or _positive(details.get("liquidity"))

    time_factor = days_to_maturity / 365
    if days_to_maturity > 0:
        pt_price = max(0.5, min(1.0, 1 - implied_yield * time_factor))
        yt_price = max(0.0, min(0.5, implied_yield * time_factor))
    else:
        pt_price, yt_price = 0.95, 0.05
    pt_discount = 1 - pt_price

    underlying = underlying_from_name(market.get("name"))
    name = market.get("name") or f"PT-{underlying}"
    return PendlePool(
        address=market["address"],
        name=name,
        symbol=name,
        underlying_asset=underlying,
        maturity=maturity,
        tvl=tvl,
        apy=apy * 100,
        implied_yield=implied_yield * 100,
        pt_price=pt_price,
        yt_price=yt_price,
        pt_discount=pt_discount,
        days_to_maturity=days_to_maturity,
        strategy_tag=strategy_tag(apy * 100, implied_yield * 100, pt_discount, days_to_maturity),
        pt_token=_token(market.get("pt")),
        yt_token=_token(market.get("yt")),
        sy_token=_token(market.get("sy")),
    )


def markets_to_pools(markets: Iterable[dict[str, Any]], now: Optional[float] = None) -> list[PendlePool]:
    now = time.time() if now is None else now
    pools = []
    for market in markets:
        if not isinstance(market, dict):
            continue
        pool = market_to_pool(market, now)
        if pool:
            pools.append(pool)
    return pools


def filter_stablecoin_pools(pools: list[PendlePool], stablecoins: Iterable[str] = SUPPORTED_STABLECOINS) -> list[PendlePool]:
    allowed = set(stablecoins)
    return [p for p in pools if p.underlying_asset in allowed]


# Scoring


def score_pool_for_pt(pool: PendlePool) -> float:
    discount_score = pool.pt_discount * 100
    yield_diff = pool.implied_yield - pool.apy
    tvl_score = min(pool.tvl / 1_000_000 * 10, 100)
    maturity_score = 100 if 30 < pool.days_to_maturity < 180 else 50
    return discount_score * 0.4 + max(0.0, yield_diff * 3) * 0.3 + tvl_score * 0.2 + maturity_score * 0.1


def score_pool_for_yt(pool: PendlePool) -> float:
    apy_score = min(pool.apy, 50)
    discount_score = 100 if pool.pt_discount < 0.02 else 50
    tvl_score = min(pool.tvl / 1_000_000 * 10, 100)
    maturity_score = 100 if pool.days_to_maturity > 60 else 50
    return apy_score * 0.4 + discount_score * 0.3 + tvl_score * 0.2 + maturity_score * 0.1


def find_matching_pools(symbol: str, pools: list[PendlePool]) -> list[PendlePool]:
    """Pools whose underlying equals or contains the asset symbol (or the reverse), case-insensitive."""
    wanted = symbol.upper()
    if not wanted:
        return []
    matches = []
    for pool in pools:
        underlying = pool.underlying_asset.upper()
        if underlying and (wanted == underlying or wanted in underlying or underlying in wanted):
            matches.append(pool)
    return matches


def _holding_balance(holding: Holding) -> float:
    try:
        return float(holding.balance or 0)
    except ValueError:
        return 0.0


def _strategy_for(best_pt: PendlePool, best_yt: PendlePool, risk_level: str) -> PoolStrategy:
    pt_score = score_pool_for_pt(best_pt)
    yt_score = score_pool_for_yt(best_yt)

    if pt_score >= yt_score * STRATEGY_MARGIN:
        recommended, allocation = "PT", Allocation(pt=100, yt=0)
        reasoning = f"{best_pt.name} trades at a {best_pt.pt_discount * 100:.1f}% discount; lock in the fixed yield"
    elif yt_score >= pt_score * STRATEGY_MARGIN:
        recommended, allocation = "YT", Allocation(pt=0, yt=100)
        reasoning = f"{best_yt.name} pays {best_yt.apy:.1f}% APY with little PT discount; go long yield"
    else:
        recommended, allocation = "SPLIT", Allocation(pt=50, yt=50)
        reasoning = "PT and YT score close together; split between fixed and floating yield"

    if risk_level == "conservative" and recommended == "YT":
        recommended, allocation = "SPLIT", Allocation(pt=70, yt=30)
        reasoning += " (capped for a conservative profile)"
    elif risk_level == "aggressive" and recommended == "PT":
        recommended, allocation = "SPLIT", Allocation(pt=30, yt=70)
        reasoning += " (tilted to YT for an aggressive profile)"

    expected_apy = (allocation.pt * best_pt.implied_yield + allocation.yt * best_yt.apy) / 100
    if allocation.yt <= 30:
        risk = "low"
    elif allocation.yt <= 70:
        risk = "medium"
    else:
        risk = "high"

    return PoolStrategy(
        recommended=recommended,
        allocation=allocation,
        expected_apy=round(expected_apy, 2),
        reasoning=reasoning,
        risk_level=risk,
    )


def recommend_for_holding(holding: Holding, pools: list[PendlePool], risk_level: str) -> Optional[PoolRecommendation]:
    matching = find_matching_pools(holding.token_symbol, pools)
    if not matching:
        return None

    best_pt = max(matching, key=score_pool_for_pt)
    best_yt = max(matching, key=score_pool_for_yt)
    alternatives = sorted(
        (p for p in matching if p.address not in (best_pt.address, best_yt.address)),
        key=lambda p: max(score_pool_for_pt(p), score_pool_for_yt(p)),
        reverse=True,
    )[:3]

    return PoolRecommendation(
        asset=HoldingSummary(
            symbol=holding.token_symbol,
            balance=_holding_balance(holding),
            value_usd=holding.value_usd or 0.0,
        ),
        pools=RecommendedPools(best_pt=best_pt, best_yt=best_yt, alternatives=alternatives),
        strategy=_strategy_for(best_pt, best_yt, risk_level),
    )


def validate_risk_level(value: Optional[str]) -> str:
    risk_level = value or "neutral"
    if risk_level not in RISK_LEVELS:
        raise RequestValidationFailed('Invalid riskLevel. Must be "conservative", "neutral" or "aggressive"')
    return risk_level


def recommend_for_portfolio(holdings: list[Holding], pools: list[PendlePool], risk_level: str = "neutral") -> RecommendationSummary:
    risk_level = validate_risk_level(risk_level)
    recommendations = []
    for holding in holdings:
        rec = recommend_for_holding(holding, pools, risk_level)
        if rec:
            recommendations.append(rec)

    return RecommendationSummary(
        total_opportunities=len(recommendations),
        best_overall_apy=max((r.strategy.expected_apy for r in recommendations), default=0.0),
        total_potential_value=sum(r.asset.value_usd for r in recommendations),
        recommendations=recommendations,
    )


# Positions


def attach_pool_apy(positions: list[UserPosition], pools: list[PendlePool]) -> None:
    """Set ``current_apy`` on positions whose token is a pool's PT (implied yield) or YT (APY)."""
    by_token = {}
    for pool in pools:
        if pool.pt_token:
            by_token[pool.pt_token.lower()] = pool.implied_yield
        if pool.yt_token:
            by_token[pool.yt_token.lower()] = pool.apy
    for position in positions:
        apy = by_token.get(position.pool.lower())
        if apy is not None:
            position.current_apy = apy


def summarize_positions(positions: list[UserPosition]) -> PendlePositions:
    total_value = sum(p.current_value for p in positions)
    total_pnl = sum(p.realized_pnl + p.unrealized_pnl for p in positions)
    weighted = sum((p.current_apy or 0.0) * p.current_value for p in positions)
    return PendlePositions(
        positions=positions,
        summary=PositionTotals(
            total_positions=len(positions),
            total_value=total_value,
            total_pnl=total_pnl,
            weighted_apy=weighted / total_value if total_value else 0.0,
        ),
    )
