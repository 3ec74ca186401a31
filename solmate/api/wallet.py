from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..core.errors import WalletToolError
from ..core.execution import SigningRelay
from ..dependencies import get_signing_relay
from ..types import SigningRequestView, WalletAnswer
from .errors import to_http_exception

router = APIRouter(prefix="/wallet")


@router.get("/requests")
async def list_signing_requests(
    wallet: Optional[str] = Query(None, description="Only requests for this wallet"),
    relay: SigningRelay = Depends(get_signing_relay),
) -> Dict[str, List[SigningRequestView]]:
    """Signing requests the browser wallet still has to answer."""
    return {"requests": [SigningRequestView(**req.view()) for req in relay.pending(wallet)]}


@router.post("/requests/{request_id}")
async def answer_signing_request(
    request_id: str,
    answer: WalletAnswer,
    relay: SigningRelay = Depends(get_signing_relay),
) -> Dict[str, str]:
    try:
        relay.resolve(request_id, answer)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Signing request {request_id} not found or already answered")
    except WalletToolError as e:
        raise to_http_exception(e) from e

    return {"id": request_id, "status": "declined" if answer.declined else "answered"}
