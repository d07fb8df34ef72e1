from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from lumina.database.conversation_store import InvalidConversationId
from lumina.models.chat_model import ConversationSummary, DeleteResponse, MessageOut
from lumina.services.container import Services, get_services
from lumina.utils.wallet import normalize_wallet

# Logger setup
logger = logging.getLogger("conversation_routes")

router = APIRouter(prefix="/api/chats", tags=["chats"])


# -- Conversations List ----sidebar listing, most recently updated first ---#
@router.get("", response_model=List[ConversationSummary])
def list_chats(
    wallet_address: Optional[str] = Query(None, alias="walletAddress"),
    services: Services = Depends(get_services),
):
    if not wallet_address:
        raise HTTPException(400, "Wallet address required")
    try:
        wallet = normalize_wallet(wallet_address)
    except ValueError as e:
        raise HTTPException(400, str(e))

    try:
        return services.store.list_conversations(wallet)
    except Exception as e:
        logger.error(f"Error fetching chats: {e}")
        raise HTTPException(500, str(e))


# -- One Conversation ----replay of an old chat, oldest message first ---------
@router.get("/{chat_id}", response_model=List[MessageOut])
def get_chat_messages(chat_id: str, services: Services = Depends(get_services)):
    try:
        return services.store.get_messages(chat_id)
    except InvalidConversationId as e:
        raise HTTPException(400, str(e))
    except Exception as e:
        logger.error(f"Error fetching messages: {e}")
        raise HTTPException(500, str(e))


# ---------------- Delete Whole Conversation ----------------
@router.delete("", response_model=DeleteResponse)
def delete_chat(
    chat_id: Optional[str] = Query(None, alias="id"),
    services: Services = Depends(get_services),
):
    if not chat_id:
        raise HTTPException(400, "Chat ID required")
    try:
        deleted = services.store.delete_conversation(chat_id)
    except InvalidConversationId as e:
        raise HTTPException(400, str(e))
    except Exception as e:
        logger.error(f"Error deleting chat: {e}")
        raise HTTPException(500, str(e))
    return DeleteResponse(success=True, deleted_messages=deleted)
