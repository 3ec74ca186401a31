from typing import Any, Dict

from fastapi import APIRouter, Depends

from ..core.errors import WalletToolError
from ..core.tools.validation import check_symbol
from ..dependencies import get_price_service
from ..services.price_service import PriceService
from .errors import to_http_exception

router = APIRouter(prefix="/prices")


@router.get("/{symbol}")
async def get_price(symbol: str, prices: PriceService = Depends(get_price_service)) -> Dict[str, Any]:
    """Spot USD price, served from the price cache when fresh."""
    try:
        quote = await prices.get_quote(check_symbol(symbol))
    except WalletToolError as e:
        raise to_http_exception(e) from e
    return quote.to_wire()
