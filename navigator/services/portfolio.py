"""Octav portfolio -> dashboard summary, and historical snapshot collection."""

import asyncio
import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Optional

from navigator.errors import UpstreamError
from navigator.providers.octav import OctavProvider
from navigator.schemas.octav import OctavPortfolio, OctavProtocol, PortfolioSummary, UserPosition, WalletAsset

logger = logging.getLogger(__name__)

# Octav gives no cost basis per asset; positions are estimated off current value
COST_BASIS_RATIO = 0.95


def _to_float(value: Optional[str]) -> float:
    try:
        return float(value or 0)
    except ValueError:
        return 0.0


def find_pendle_protocol(portfolio: OctavPortfolio) -> Optional[OctavProtocol]:
    for key, protocol in portfolio.asset_by_protocols.items():
        if "pendle" in key.lower():
            return protocol
    return None


def summarize_portfolio(portfolio: OctavPortfolio) -> PortfolioSummary:
    wallet = portfolio.asset_by_protocols.get("wallet")
    assets = [
        WalletAsset(
            token=a.contract_address or "",
            symbol=a.symbol or "UNKNOWN",
            balance=_to_float(a.balance),
            value_usd=_to_float(a.value),
        )
        for a in (wallet.assets if wallet else [])
    ]

    positions = []
    pendle = find_pendle_protocol(portfolio)
    for a in pendle.assets if pendle else []:
        symbol = (a.symbol or "").lower()
        is_pt = "pt" in symbol
        is_yt = "yt" in symbol
        if not (is_pt or is_yt):
            continue
        balance = _to_float(a.balance)
        value = _to_float(a.value)
        positions.append(
            UserPosition(
                pool=a.contract_address or a.symbol or "unknown",
                pt_balance=balance if is_pt else 0.0,
                yt_balance=balance if is_yt else 0.0,
                maturity_value=balance if is_pt else 0.0,
                cost_basis=value * COST_BASIS_RATIO,
                current_value=value,
                unrealized_pnl=value * (1 - COST_BASIS_RATIO),
            )
        )

    return PortfolioSummary(
        assets=assets,
        positions=positions,
        total_value_usd=_to_float(portfolio.networth),
    )


async def collect_history(
    octav: OctavProvider,
    address: str,
    days: int,
    delay_seconds: float = 0.1,
    today: Optional[date] = None,
) -> list[dict[str, Any]]:
    """Fetch one snapshot per day, newest first, and return them oldest first.

    Days Octav has no data for are skipped. Other failures are logged and
    skipped so one bad day does not lose the rest.
    """
    today = today or datetime.now(timezone.utc).date()
    snapshots = []
    failures = []

    for i in range(days):
        day = today - timedelta(days=i)
        day_str = day.isoformat()
        try:
            snapshot = await octav.get_historical(address, day_str)
        except UpstreamError as e:
            failures.append((day_str, e.message))
            snapshot = None
        if snapshot:
            timestamp = int(datetime.combine(day, time(), tzinfo=timezone.utc).timestamp() * 1000)
            snapshots.append({"date": day_str, "timestamp": timestamp, **snapshot})

        if i < days - 1 and delay_seconds:
            await asyncio.sleep(delay_seconds)

    for day_str, message in failures:
        logger.warning(f"Historical snapshot for {address} on {day_str} failed: {message}")
    logger.info(f"Fetched {len(snapshots)} historical snapshots ({len(failures)} errors)")

    # Fetched newest first
    snapshots.reverse()
    return snapshots
