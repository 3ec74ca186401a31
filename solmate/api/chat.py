from fastapi import APIRouter, Depends, HTTPException

from ..core.chat import ChatService
from ..dependencies import get_chat_service
from ..types import ChatRequest, ChatResponse

router = APIRouter()


@router.post("/chat")
async def chat_endpoint(
    request: ChatRequest,
    chat: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    """Chat endpoint for the wallet assistant"""

    if not request.messages:
        raise HTTPException(status_code=400, detail="At least one message is required")

    try:
        return await chat.run_chat(request)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Chat processing failed: {str(e)}")
