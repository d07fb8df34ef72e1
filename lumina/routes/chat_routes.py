from __future__ import annotations
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException

from lumina.models.chat_model import ChatRequest, ChatResponse
from lumina.services.chat_service import ChatTurnError, run_chat_turn
from lumina.services.container import Services, get_services
from lumina.utils.wallet import normalize_wallet

logger = logging.getLogger("chat_routes")

router = APIRouter(prefix="/api", tags=["chat"])


# ---------------- Chat ----------------
@router.post("/chat", response_model=ChatResponse)
def chat(
    body: ChatRequest,
    background_tasks: BackgroundTasks,
    services: Services = Depends(get_services),
):
    """
    Fuel-metered chat turn. The title is generated in the background once
    the conversation reaches three exchanges.
    """
    if not body.wallet_address:
        raise HTTPException(status_code=400, detail="Wallet not connected")
    try:
        wallet = normalize_wallet(body.wallet_address)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        result = run_chat_turn(
            services,
            wallet,
            [m.model_dump() for m in body.messages],
            turn_type=body.type,
            conversation_id=body.conversation_id,
        )
    except ChatTurnError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Chat error: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    background_tasks.add_task(
        services.titles.maybe_summarize, result.conversation_id, result.message_count
    )

    return ChatResponse(
        text=result.text,
        conversation_id=result.conversation_id,
        is_new_chat=result.is_new_chat,
    )
