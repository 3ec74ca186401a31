from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..dependencies import get_price_tracker
from ..services.price_tracker import PriceTracker

router = APIRouter(prefix="/tracking")


@router.get("")
async def list_tracking_targets(
    symbol: Optional[str] = Query(None, description="Filter by symbol"),
    tracker: PriceTracker = Depends(get_price_tracker),
) -> Dict[str, Any]:
    targets = tracker.list_targets(symbol.upper() if symbol else None)
    return {
        "targets": [target.to_dict() for target in targets],
        "symbols": tracker.symbols(),
        "running": tracker.running,
    }


@router.delete("/{tracking_id}")
async def remove_tracking_target(
    tracking_id: str,
    tracker: PriceTracker = Depends(get_price_tracker),
) -> Dict[str, Any]:
    if not tracker.remove_target(tracking_id):
        raise HTTPException(status_code=404, detail=f"Tracking target {tracking_id} not found")
    return {"trackingId": tracking_id, "removed": True}
