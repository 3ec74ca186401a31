"""
Argument validation for wallet tool calls.

Each validator takes the raw ``arguments`` mapping produced by the LLM and
returns a typed argument object, or raises a ``ValidationError`` subclass.
Presence of required fields is checked before any type or format check, and
nothing here touches the network.
"""

import math
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

from ...config import settings
from ...services.address import NETWORKS, is_valid_solana_address, normalize_network
from ..errors import (
    InvalidAddress,
    InvalidAmount,
    InvalidTokenSelection,
    MissingField,
    ValidationError,
)
from ..swap.constants import MAX_BASE_UNITS, SOL_DECIMALS, SWAPPABLE_SYMBOLS, TokenInfo, get_token
from . import catalog

_SYMBOL_RE = re.compile(r"^[A-Za-z0-9]{1,10}(-USD)?$", re.IGNORECASE)


@dataclass(frozen=True)
class BalanceArgs:
    address: str


@dataclass(frozen=True)
class TransferArgs:
    recipient: str
    amount: float
    network: str

    @property
    def lamports(self) -> int:
        return to_base_units(self.amount, SOL_DECIMALS)


@dataclass(frozen=True)
class SwapArgs:
    input_token: TokenInfo
    output_token: TokenInfo
    amount: float

    @property
    def base_amount(self) -> int:
        return to_base_units(self.amount, self.input_token.decimals)


@dataclass(frozen=True)
class PriceArgs:
    symbol: str


@dataclass(frozen=True)
class TrackArgs:
    symbol: str
    target_price: float
    condition: str
    volatility_threshold: Optional[float] = None
    email: Optional[str] = None


def to_base_units(amount: float, decimals: int) -> int:
    """Human amount -> integer base units, rounded down."""
    return math.floor(amount * (10 ** decimals))


# =============================================================================
# Field helpers
# =============================================================================

def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def require(arguments: Mapping[str, Any], *fields: str) -> None:
    """Raise MissingField for the first absent field, in the order given."""
    for field in fields:
        if _is_missing(arguments.get(field)):
            raise MissingField(field, label=field[:1].upper() + field[1:])


def coerce_amount(value: Any, field: str = "amount", label: str = "Amount") -> float:
    """Coerce a str/int/float into a finite number greater than zero."""
    if isinstance(value, bool):
        raise InvalidAmount(f"{label} must be a number", field=field)
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            raise InvalidAmount(f"{label} must be a number", field=field)
    else:
        raise InvalidAmount(f"{label} must be a number", field=field)

    if math.isnan(number) or math.isinf(number) or number <= 0:
        raise InvalidAmount(f"{label} must be greater than 0", field=field)
    return number


def check_address(value: Any, field: str, label: str = "Solana address") -> str:
    address = value.strip() if isinstance(value, str) else value
    if not isinstance(address, str) or not is_valid_solana_address(address):
        raise InvalidAddress(value, field=field, label=label)
    return address


def check_symbol(value: Any, field: str = "symbol") -> str:
    """Normalize a ticker to its upper-case base symbol (``btc-usd`` -> ``BTC``)."""
    symbol = value.strip() if isinstance(value, str) else ""
    if not _SYMBOL_RE.match(symbol):
        raise ValidationError(f"Invalid cryptocurrency symbol: {value}", field=field)
    symbol = symbol.upper()
    if symbol.endswith("-USD"):
        symbol = symbol[: -len("-USD")]
    return symbol


def check_swap_token(value: Any, field: str) -> TokenInfo:
    token = get_token(value) if isinstance(value, str) else None
    if token is None:
        raise InvalidTokenSelection(
            f"Invalid token selection: {value}. Supported tokens: {', '.join(SWAPPABLE_SYMBOLS)}",
            field=field,
        )
    return token


# =============================================================================
# Per-tool validators
# =============================================================================

def validate_check_balance(arguments: Mapping[str, Any]) -> BalanceArgs:
    require(arguments, "address")
    return BalanceArgs(address=check_address(arguments["address"], "address"))


def validate_transfer_sol(arguments: Mapping[str, Any]) -> TransferArgs:
    # Older prompts produced ``address`` instead of ``recipient``
    recipient = arguments.get("recipient")
    if _is_missing(recipient):
        recipient = arguments.get("address")
    if _is_missing(recipient):
        raise MissingField("recipient", label="Recipient")
    require(arguments, "amount")

    address = check_address(recipient, "recipient", label="recipient address")
    amount = coerce_amount(arguments["amount"])

    network = normalize_network(arguments.get("network"), default=settings.default_network)
    if network not in NETWORKS:
        raise ValidationError(
            f"Unsupported network: {arguments.get('network')}. Use one of {', '.join(NETWORKS)}",
            field="network",
        )

    args = TransferArgs(recipient=address, amount=amount, network=network)
    if args.lamports <= 0:
        raise InvalidAmount("Amount is smaller than 1 lamport")
    if args.lamports > MAX_BASE_UNITS:
        raise InvalidAmount(f"Amount is larger than any SOL balance: {amount}")
    return args


def validate_swap_tokens(arguments: Mapping[str, Any]) -> SwapArgs:
    require(arguments, "inputToken", "outputToken", "amount")

    input_token = check_swap_token(arguments["inputToken"], "inputToken")
    output_token = check_swap_token(arguments["outputToken"], "outputToken")
    if input_token.symbol == output_token.symbol:
        raise InvalidTokenSelection("Cannot swap same tokens", field="outputToken")

    amount = coerce_amount(arguments["amount"])
    args = SwapArgs(input_token=input_token, output_token=output_token, amount=amount)
    if args.base_amount <= 0:
        raise InvalidAmount(f"Amount is below the smallest {input_token.symbol} unit")
    if args.base_amount > MAX_BASE_UNITS:
        raise InvalidAmount(f"Amount is larger than any {input_token.symbol} balance: {amount}")
    return args


def validate_check_crypto_price(arguments: Mapping[str, Any]) -> PriceArgs:
    require(arguments, "symbol")
    return PriceArgs(symbol=check_symbol(arguments["symbol"]))


def validate_track_crypto_price(arguments: Mapping[str, Any]) -> TrackArgs:
    require(arguments, "symbol", "targetPrice", "condition")

    symbol = check_symbol(arguments["symbol"])
    target_price = coerce_amount(arguments["targetPrice"], field="targetPrice", label="Target price")

    condition = arguments["condition"]
    condition = condition.strip().lower() if isinstance(condition, str) else condition
    if condition not in catalog.PRICE_CONDITIONS:
        raise ValidationError("Condition must be 'above' or 'below'", field="condition")

    threshold = arguments.get("volatilityThreshold")
    volatility_threshold = None
    if not _is_missing(threshold):
        volatility_threshold = coerce_amount(
            threshold, field="volatilityThreshold", label="Volatility threshold"
        )

    email = arguments.get("email")
    return TrackArgs(
        symbol=symbol,
        target_price=target_price,
        condition=condition,
        volatility_threshold=volatility_threshold,
        email=email if isinstance(email, str) and email.strip() else None,
    )


VALIDATORS: Dict[str, Callable[[Mapping[str, Any]], Any]] = {
    catalog.CHECK_BALANCE: validate_check_balance,
    catalog.TRANSFER_SOL: validate_transfer_sol,
    catalog.SWAP_TOKENS: validate_swap_tokens,
    catalog.CHECK_CRYPTO_PRICE: validate_check_crypto_price,
    catalog.TRACK_CRYPTO_PRICE: validate_track_crypto_price,
}
