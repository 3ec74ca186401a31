"""
Settlement routes.

These calls block until the browser wallet answers the signing requests they
park (see ``/wallet/requests``), the broadcast is confirmed, or something
fails along the way.
"""

import logging

from fastapi import APIRouter, Depends

from ..core.errors import WalletToolError
from ..core.execution import BrowserRelaySigner, SigningRelay, SolanaSettlement
from ..core.tools.models import PendingSwap, PendingTransaction
from ..core.tools.validation import check_swap_token, validate_transfer_sol
from ..dependencies import get_settlement, get_signing_relay
from ..services.address import normalize_network
from ..types import SettlementResponse, SwapSettlementRequest, TransferSettlementRequest
from .errors import to_http_exception

router = APIRouter(prefix="/transactions")
_logger = logging.getLogger(__name__)


@router.post("/transfer")
async def settle_transfer(
    request: TransferSettlementRequest,
    relay: SigningRelay = Depends(get_signing_relay),
    settlement: SolanaSettlement = Depends(get_settlement),
) -> SettlementResponse:
    try:
        args = validate_transfer_sol(
            {"recipient": request.recipient, "amount": request.amount, "network": request.network}
        )
        signer = BrowserRelaySigner(relay, request.wallet)
        pending = PendingTransaction(recipient=args.recipient, amount=args.amount, network=args.network)
        result = await settlement.settle_transfer(pending, signer)
    except WalletToolError as e:
        _logger.warning("Transfer settlement failed for %s: %s", request.wallet, e.message)
        raise to_http_exception(e) from e

    return SettlementResponse(signature=result.signature, message=result.message, network=result.network)


@router.post("/swap")
async def settle_swap(
    request: SwapSettlementRequest,
    relay: SigningRelay = Depends(get_signing_relay),
    settlement: SolanaSettlement = Depends(get_settlement),
) -> SettlementResponse:
    try:
        input_token = check_swap_token(request.input_token, "inputToken")
        output_token = check_swap_token(request.output_token, "outputToken")
        signer = BrowserRelaySigner(relay, request.wallet)
        pending = PendingSwap(
            quote_response=request.quote_response,
            input_token=input_token.symbol,
            output_token=output_token.symbol,
            amount=request.amount,
            estimated=request.estimated,
        )
        result = await settlement.settle_swap(pending, signer, network=normalize_network(request.network, "mainnet"))
    except WalletToolError as e:
        _logger.warning("Swap settlement failed for %s: %s", request.wallet, e.message)
        raise to_http_exception(e) from e

    return SettlementResponse(signature=result.signature, message=result.message, network=result.network)
