import logging
from fractions import Fraction
from typing import Optional

from fastapi import APIRouter, Depends, Query

from navigator.dependencies import get_normalizer, require_oneinch
from navigator.providers.oneinch import OneInchProvider
from navigator.routes.utils import failure_message, ok
from navigator.schemas.common import ApiResponse
from navigator.schemas.oneinch import (
    AllowanceData,
    ApprovalData,
    ApproveRequest,
    QuoteRequest,
    SwapQuote,
    SwapRequest,
    SwapTransaction,
    TokenInfo,
)
from navigator.services.normalizer import RequestNormalizer, from_wei

logger = logging.getLogger(__name__)

router = APIRouter()


def execution_price(from_amount: str, to_amount: str) -> str:
    """to/from truncated to 6 places, exact for any magnitude."""
    src = Fraction(from_amount)
    if not src:
        return "0.000000"
    micros = int(Fraction(to_amount) * 1_000_000 / src)
    return f"{micros // 1_000_000}.{micros % 1_000_000:06d}"


@router.get("/approve", response_model=ApiResponse[AllowanceData], response_model_exclude_none=True)
async def check_allowance(
    token_address: Optional[str] = Query(None, alias="tokenAddress"),
    wallet_address: Optional[str] = Query(None, alias="walletAddress"),
    chain_id: Optional[int] = Query(None, alias="chainId"),
    oneinch: OneInchProvider = Depends(require_oneinch),
    normalizer: RequestNormalizer = Depends(get_normalizer),
):
    check = normalizer.allowance(token_address, wallet_address, chain_id)
    logger.debug(f"Checking allowance of {check.token_address} for {check.wallet_address} on {check.chain_id}")

    with failure_message("Failed to check allowance"):
        allowance = await oneinch.get_allowance(check)
    return ok(AllowanceData(allowance=allowance))


@router.post("/approve", response_model=ApiResponse[ApprovalData], response_model_exclude_none=True)
async def build_approval(
    req: ApproveRequest,
    oneinch: OneInchProvider = Depends(require_oneinch),
    normalizer: RequestNormalizer = Depends(get_normalizer),
):
    approval = normalizer.approval(req)
    logger.debug(f"Generating approval for {approval.token_address} amount={approval.amount_wei}")

    with failure_message("Failed to generate approval transaction"):
        spender = await oneinch.get_spender(approval.chain_id)
        tx = await oneinch.get_approval_transaction(approval)
    logger.info(f"Approval transaction prepared: to={tx.to} spender={spender}")
    return ok(ApprovalData(tx=tx, spender=spender))


@router.get("/quote", response_model=ApiResponse[SwapQuote], response_model_exclude_none=True)
async def get_quote(
    from_token: Optional[str] = Query(None, alias="fromToken"),
    to_token: Optional[str] = Query(None, alias="toToken"),
    amount: Optional[str] = None,
    slippage: Optional[float] = None,
    from_decimals: int = Query(18, alias="fromDecimals"),
    to_decimals: int = Query(18, alias="toDecimals"),
    chain_id: Optional[int] = Query(None, alias="chainId"),
    from_symbol: Optional[str] = Query(None, alias="fromSymbol"),
    from_name: Optional[str] = Query(None, alias="fromName"),
    to_symbol: Optional[str] = Query(None, alias="toSymbol"),
    to_name: Optional[str] = Query(None, alias="toName"),
    oneinch: OneInchProvider = Depends(require_oneinch),
    normalizer: RequestNormalizer = Depends(get_normalizer),
):
    req = QuoteRequest(
        from_token=from_token,
        to_token=to_token,
        amount=amount,
        slippage=slippage,
        from_decimals=from_decimals,
        to_decimals=to_decimals,
        chain_id=chain_id,
    )
    quote = normalizer.quote(req)
    logger.debug(f"1inch quote {quote.src} -> {quote.dst} amount={quote.amount_wei} chain={quote.chain_id}")

    with failure_message("Failed to get swap quote"):
        payload = await oneinch.get_quote(quote)
        to_amount = from_wei(payload.dst_amount, quote.to_decimals)

    return ok(
        SwapQuote(
            from_token=TokenInfo(
                address=quote.src,
                symbol=from_symbol or "Unknown",
                name=from_name or "Unknown",
                decimals=quote.from_decimals,
            ),
            to_token=TokenInfo(
                address=quote.dst,
                symbol=to_symbol or "Unknown",
                name=to_name or "Unknown",
                decimals=quote.to_decimals,
            ),
            from_amount=quote.amount,
            to_amount=to_amount,
            from_amount_wei=quote.amount_wei,
            to_amount_wei=payload.dst_amount,
            protocols=payload.protocols,
            estimated_gas=payload.gas or payload.estimated_gas or 0,
            slippage=quote.slippage,
            execution_price=execution_price(quote.amount, to_amount),
        )
    )


@router.post("/swap", response_model=ApiResponse[SwapTransaction], response_model_exclude_none=True)
async def build_swap(
    req: SwapRequest,
    oneinch: OneInchProvider = Depends(require_oneinch),
    normalizer: RequestNormalizer = Depends(get_normalizer),
):
    swap = normalizer.aggregator_swap(req)
    logger.debug(f"1inch swap {swap.src} -> {swap.dst} amount={swap.amount_wei} from={swap.from_address}")

    with failure_message("Failed to prepare swap transaction"):
        payload = await oneinch.get_swap(swap)

    tx = payload.tx
    logger.info(f"Swap transaction prepared: to={tx.to} from={tx.from_} gas={tx.gas}")
    return ok(
        SwapTransaction(
            from_=tx.from_,
            to=tx.to,
            data=tx.data,
            value=tx.value,
            gas=tx.gas,
            gas_price=tx.gas_price,
        )
    )
