from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from ..core.errors import InvalidAddress, WalletToolError
from ..dependencies import get_jupiter
from ..providers.jupiter import JupiterSwapProvider
from ..services.address import is_valid_solana_address
from ..types import SwapBuildRequest
from .errors import to_http_exception

router = APIRouter(prefix="/swap")


@router.get("/quote")
async def get_swap_quote(
    input_mint: str = Query(..., alias="inputMint", description="Mint of the token being sold"),
    output_mint: str = Query(..., alias="outputMint", description="Mint of the token being bought"),
    amount: int = Query(..., gt=0, description="Input amount in base units"),
    slippage_bps: Optional[int] = Query(None, alias="slippageBps", ge=0, le=5000),
    jupiter: JupiterSwapProvider = Depends(get_jupiter),
) -> Dict[str, Any]:
    """Proxy a Jupiter quote; the raw quote is what /swap/build expects back."""
    try:
        quote = await jupiter.get_quote(input_mint, output_mint, amount, slippage_bps=slippage_bps)
    except WalletToolError as e:
        raise to_http_exception(e) from e
    return quote.raw


@router.post("/build")
async def build_swap(
    request: SwapBuildRequest,
    jupiter: JupiterSwapProvider = Depends(get_jupiter),
) -> Dict[str, Any]:
    try:
        if not is_valid_solana_address(request.user_public_key):
            raise InvalidAddress(request.user_public_key, field="userPublicKey")
        result = await jupiter.build_swap_transaction(request.quote_response, request.user_public_key)
    except WalletToolError as e:
        raise to_http_exception(e) from e
    return result.to_dict()
