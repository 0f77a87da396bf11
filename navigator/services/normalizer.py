"""
Request normalization: required fields, address format, slippage bounds,
and decimal <-> base-unit conversion.

Every check here runs before a route contacts a collaborator.
"""

import math
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional, Union

from web3 import Web3

from navigator.errors import RequestValidationFailed

ADDRESS_RE = re.compile(r"0x[a-fA-F0-9]{40}")
_DECIMAL_RE = re.compile(r"(?P<whole>[0-9]*)(?:\.(?P<fraction>[0-9]*))?")
_BASE_UNITS_RE = re.compile(r"[0-9]+")

MIN_SLIPPAGE = 0.001  # 0.1%
MAX_SLIPPAGE = 0.1  # 10%
MAX_DECIMALS = 77
SLIPPAGE_MESSAGE = "Slippage must be between 0.1% (0.001) and 10% (0.1)"

Amount = Union[str, int, float]


def normalize_address(value: str) -> str:
    """Strip a ``<chainId>-`` prefix, e.g. ``8453-0xabc...`` -> ``0xabc...``."""
    if not value:
        return ""
    if "-" in value:
        return value.split("-")[-1] or value
    return value


def is_valid_address(value: Optional[str]) -> bool:
    if not value:
        return False
    return ADDRESS_RE.fullmatch(normalize_address(value)) is not None


def validate_address(value: Optional[str], field: str) -> str:
    if not is_valid_address(value):
        raise RequestValidationFailed(f"Invalid {field} address format: {value}")
    return Web3.to_checksum_address(normalize_address(value))


def validate_slippage(value: Optional[float], default: float) -> float:
    if value is None:
        return default
    if isinstance(value, bool) or not (MIN_SLIPPAGE <= value <= MAX_SLIPPAGE):
        raise RequestValidationFailed(SLIPPAGE_MESSAGE)
    return float(value)


def require_fields(**values: Any) -> None:
    missing = [name for name, value in values.items() if value is None or value == ""]
    if missing:
        raise RequestValidationFailed(f"Missing required parameters: {', '.join(missing)}")


def _check_decimals(decimals: int) -> None:
    if isinstance(decimals, bool) or not isinstance(decimals, int) or not 0 <= decimals <= MAX_DECIMALS:
        raise RequestValidationFailed(f"Invalid decimals: {decimals}")


def coerce_amount(value: Optional[Amount], field: str) -> Optional[str]:
    """Render an inbound amount as a plain decimal string (no exponent)."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise RequestValidationFailed(f"Invalid {field}: {value}")
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise RequestValidationFailed(f"Invalid {field}: {value}")
        return format(Decimal(repr(value)), "f")
    return value.strip()


def to_wei(amount: str, decimals: int) -> str:
    """Convert a human decimal string to base units, truncating extra digits."""
    _check_decimals(decimals)
    match = _DECIMAL_RE.fullmatch(amount.strip())
    if not match or not (match.group("whole") or match.group("fraction")):
        raise RequestValidationFailed(f"Invalid amount: {amount}")

    whole = match.group("whole")
    fraction = (match.group("fraction") or "")[:decimals].ljust(decimals, "0")
    return (whole + fraction).lstrip("0") or "0"


def from_wei(base_units: str, decimals: int) -> str:
    """Inverse of :func:`to_wei`."""
    _check_decimals(decimals)
    if not _BASE_UNITS_RE.fullmatch(base_units):
        raise RequestValidationFailed(f"Invalid base-unit amount: {base_units}")

    padded = base_units.rjust(decimals + 1, "0")
    if decimals:
        whole, fraction = padded[:-decimals], padded[-decimals:].rstrip("0")
    else:
        whole, fraction = padded, ""
    whole = whole.lstrip("0") or "0"
    return f"{whole}.{fraction}" if fraction else whole


def base_units(value: str, field: str, decimals: Optional[int]) -> str:
    """Amount already in base units, or converted when ``decimals`` is given."""
    if decimals is not None:
        return to_wei(value, decimals)
    if not _BASE_UNITS_RE.fullmatch(value):
        raise RequestValidationFailed(
            f"{field} must be an integer amount in base units (or pass decimals)"
        )
    return value.lstrip("0") or "0"


# Normalized requests handed to providers


@dataclass
class ConvertRequest:
    chain_id: int
    tokens_in: list[str]
    amounts_in: list[str]
    tokens_out: list[str]
    receiver: str
    slippage: float
    enable_aggregator: Optional[bool] = None
    aggregators: Optional[str] = None
    additional_data: Optional[str] = None


@dataclass
class AggregatorQuote:
    chain_id: int
    src: str
    dst: str
    amount: str
    amount_wei: str
    slippage: float
    from_decimals: int
    to_decimals: int


@dataclass
class AggregatorSwap:
    chain_id: int
    src: str
    dst: str
    amount_wei: str
    from_address: str
    slippage: float


@dataclass
class AllowanceCheck:
    chain_id: int
    token_address: str
    wallet_address: str


@dataclass
class ApprovalTransaction:
    chain_id: int
    token_address: str
    amount_wei: Optional[str]


class RequestNormalizer:
    def __init__(self, default_chain_id: int, default_slippage: float):
        self.default_chain_id = default_chain_id
        self.default_slippage = default_slippage

    def _chain(self, chain_id: Optional[int]) -> int:
        return self.default_chain_id if chain_id is None else chain_id

    # Pendle

    def swap(self, req) -> ConvertRequest:
        amount_in = coerce_amount(req.amount_in, "amountIn")
        require_fields(tokenIn=req.token_in, amountIn=amount_in, tokenOut=req.token_out, receiver=req.receiver)
        token_in = validate_address(req.token_in, "tokenIn")
        token_out = validate_address(req.token_out, "tokenOut")
        receiver = validate_address(req.receiver, "receiver")
        slippage = validate_slippage(req.slippage, self.default_slippage)

        return ConvertRequest(
            chain_id=self._chain(req.chain_id),
            tokens_in=[token_in],
            amounts_in=[base_units(amount_in, "amountIn", req.decimals)],
            tokens_out=[token_out],
            receiver=receiver,
            slippage=slippage,
            enable_aggregator=req.enable_aggregator,
            aggregators=req.aggregators,
        )

    def liquidity(self, req) -> ConvertRequest:
        amount_in = coerce_amount(req.amount_in, "amountIn")
        required = dict(
            action=req.action, tokenIn=req.token_in, amountIn=amount_in, lpToken=req.lp_token, receiver=req.receiver
        )
        if req.action == "remove":
            required["tokenOut"] = req.token_out
        require_fields(**required)
        if req.action not in ("add", "remove"):
            raise RequestValidationFailed('Invalid action. Must be "add" or "remove"')

        token_in = validate_address(req.token_in, "tokenIn")
        lp_token = validate_address(req.lp_token, "lpToken")
        receiver = validate_address(req.receiver, "receiver")
        slippage = validate_slippage(req.slippage, self.default_slippage)
        amount = base_units(amount_in, "amountIn", req.decimals)

        if req.action == "remove":
            # tokenIn carries the LP token being withdrawn
            tokens_out = [validate_address(req.token_out, "tokenOut")]
        elif req.zpi_mode and req.yt_token:
            tokens_out = [lp_token, validate_address(req.yt_token, "ytToken")]
        else:
            tokens_out = [lp_token]

        return ConvertRequest(
            chain_id=self._chain(req.chain_id),
            tokens_in=[token_in],
            amounts_in=[amount],
            tokens_out=tokens_out,
            receiver=receiver,
            slippage=slippage,
        )

    def mint(self, req) -> ConvertRequest:
        amount_in = coerce_amount(req.amount_in, "amountIn")
        required = dict(type=req.type, tokenIn=req.token_in, amountIn=amount_in, receiver=req.receiver)
        if req.type == "sy":
            required["syToken"] = req.sy_token
        elif req.type == "py":
            required.update(ptToken=req.pt_token, ytToken=req.yt_token)
        require_fields(**required)
        if req.type not in ("sy", "py"):
            raise RequestValidationFailed('Invalid type. Must be "sy" or "py"')

        token_in = validate_address(req.token_in, "tokenIn")
        receiver = validate_address(req.receiver, "receiver")
        slippage = validate_slippage(req.slippage, self.default_slippage)
        if req.type == "sy":
            tokens_out = [validate_address(req.sy_token, "syToken")]
        else:
            tokens_out = [validate_address(req.pt_token, "ptToken"), validate_address(req.yt_token, "ytToken")]

        return ConvertRequest(
            chain_id=self._chain(req.chain_id),
            tokens_in=[token_in],
            amounts_in=[base_units(amount_in, "amountIn", req.decimals)],
            tokens_out=tokens_out,
            receiver=receiver,
            slippage=slippage,
        )

    def redeem(self, req) -> ConvertRequest:
        pt_amount = coerce_amount(req.pt_amount, "ptAmount")
        yt_amount = coerce_amount(req.yt_amount, "ytAmount")
        sy_amount = coerce_amount(req.sy_amount, "syAmount")
        required = dict(type=req.type, tokenOut=req.token_out, receiver=req.receiver)
        if req.type == "py":
            required.update(ptToken=req.pt_token, ytToken=req.yt_token, ptAmount=pt_amount, ytAmount=yt_amount)
        elif req.type == "sy":
            required.update(syToken=req.sy_token, syAmount=sy_amount)
        require_fields(**required)
        if req.type not in ("py", "sy"):
            raise RequestValidationFailed('Invalid type. Must be "py" or "sy"')

        token_out = validate_address(req.token_out, "tokenOut")
        receiver = validate_address(req.receiver, "receiver")
        slippage = validate_slippage(req.slippage, self.default_slippage)
        if req.type == "py":
            tokens_in = [validate_address(req.pt_token, "ptToken"), validate_address(req.yt_token, "ytToken")]
            amounts_in = [
                base_units(pt_amount, "ptAmount", req.decimals),
                base_units(yt_amount, "ytAmount", req.decimals),
            ]
        else:
            tokens_in = [validate_address(req.sy_token, "syToken")]
            amounts_in = [base_units(sy_amount, "syAmount", req.decimals)]

        return ConvertRequest(
            chain_id=self._chain(req.chain_id),
            tokens_in=tokens_in,
            amounts_in=amounts_in,
            tokens_out=[token_out],
            receiver=receiver,
            slippage=slippage,
        )

    # 1inch

    def quote(self, req) -> AggregatorQuote:
        amount = coerce_amount(req.amount, "amount")
        require_fields(fromToken=req.from_token, toToken=req.to_token, amount=amount)
        src = validate_address(req.from_token, "fromToken")
        dst = validate_address(req.to_token, "toToken")
        slippage = validate_slippage(req.slippage, self.default_slippage)
        _check_decimals(req.to_decimals)

        return AggregatorQuote(
            chain_id=self._chain(req.chain_id),
            src=src,
            dst=dst,
            amount=amount,
            amount_wei=to_wei(amount, req.from_decimals),
            slippage=slippage,
            from_decimals=req.from_decimals,
            to_decimals=req.to_decimals,
        )

    def aggregator_swap(self, req) -> AggregatorSwap:
        amount = coerce_amount(req.amount, "amount")
        require_fields(fromToken=req.from_token, toToken=req.to_token, amount=amount, fromAddress=req.from_address)
        src = validate_address(req.from_token, "fromToken")
        dst = validate_address(req.to_token, "toToken")
        from_address = validate_address(req.from_address, "fromAddress")
        slippage = validate_slippage(req.slippage, self.default_slippage)

        return AggregatorSwap(
            chain_id=self._chain(req.chain_id),
            src=src,
            dst=dst,
            amount_wei=to_wei(amount, req.from_decimals),
            from_address=from_address,
            slippage=slippage,
        )

    def allowance(self, token_address: Optional[str], wallet_address: Optional[str], chain_id: Optional[int]) -> AllowanceCheck:
        require_fields(tokenAddress=token_address, walletAddress=wallet_address)
        return AllowanceCheck(
            chain_id=self._chain(chain_id),
            token_address=validate_address(token_address, "tokenAddress"),
            wallet_address=validate_address(wallet_address, "walletAddress"),
        )

    def approval(self, req) -> ApprovalTransaction:
        amount = coerce_amount(req.amount, "amount")
        require_fields(tokenAddress=req.token_address)
        return ApprovalTransaction(
            chain_id=self._chain(req.chain_id),
            token_address=validate_address(req.token_address, "tokenAddress"),
            amount_wei=to_wei(amount, req.decimals) if amount else None,
        )
