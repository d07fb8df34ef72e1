# lumina/services/chat_service.py
import logging
from dataclasses import dataclass
from typing import List, Optional

from lumina.database.conversation_store import InvalidConversationId
from lumina.services.chain_service import FuelDebitError, fuel_cost

logger = logging.getLogger("chat_service")
logging.basicConfig(level=logging.INFO)

CONFIG_ERROR_MESSAGE = "Backend system synchronization error. Please contact administrator."
INSUFFICIENT_FUEL_MESSAGE = "Insufficient fuel. Please deposit MON."


# ---------------- Errors ----------------
class ChatTurnError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InsufficientFuelError(ChatTurnError):
    status_code = 402


class ConfigurationError(ChatTurnError):
    status_code = 500


class ConversationNotFound(ChatTurnError):
    status_code = 404


@dataclass
class TurnResult:
    text: str
    conversation_id: str
    is_new_chat: bool
    message_count: int
    tx_hash: str


# ---------------- Main fuel-metered turn ----------------
def run_chat_turn(
    services,
    wallet_address: str,
    messages: List[dict],
    turn_type: str = "text",
    conversation_id: Optional[str] = None,
) -> TurnResult:
    """
    One paid turn: balance check, generation, debit, persistence.

    Any stage before persistence aborts the turn with a ChatTurnError and
    leaves the store untouched. Titling is left to the caller.
    """
    if not messages or not (messages[-1].get("content") or "").strip():
        raise ChatTurnError("Message content required", status_code=400)
    prompt = messages[-1]["content"]

    ledger = services.ledger
    if ledger is None:
        logger.error("Chat refused: fuel contract address or admin key missing")
        raise ConfigurationError(CONFIG_ERROR_MESSAGE)

    store = services.store
    if conversation_id:
        try:
            conv = store.get_conversation(conversation_id)
        except InvalidConversationId as e:
            raise ChatTurnError(str(e), status_code=400)
        if not conv or conv.get("wallet_address") != wallet_address:
            raise ConversationNotFound("Conversation not found")

    required = fuel_cost(turn_type, services.settings)

    # same-wallet turns are serialized from balance check through persistence
    with services.locks.hold(wallet_address):
        try:
            balance = ledger.get_balance(wallet_address)
        except Exception as e:
            logger.error(f"Balance read failed for {wallet_address}: {e}")
            raise ChatTurnError(str(e))

        logger.info(f"Fuel check {wallet_address}: balance={balance} required={required}")
        if balance < required:
            raise InsufficientFuelError(INSUFFICIENT_FUEL_MESSAGE)

        try:
            response_text = services.generator.generate(prompt, turn_type)
        except Exception as e:
            logger.error(f"Generation call failed: {e}")
            raise ChatTurnError(str(e))

        try:
            tx_hash = ledger.debit(wallet_address, required)
        except FuelDebitError as e:
            logger.error(f"Relayer debit failed strictly: {e}")
            raise ChatTurnError(f"Fuel debit failure: {e}")

        # ---- Persist (failures propagate; the debit has already landed)
        is_new_chat = not conversation_id
        try:
            if is_new_chat:
                conversation_id = store.create_conversation(wallet_address)
            store.append_turn(conversation_id, wallet_address, prompt, response_text, turn_type)
            message_count = store.count_messages(conversation_id)
        except Exception as e:
            logger.error(f"Persisting turn failed after debit {tx_hash}: {e}")
            raise ChatTurnError(str(e))

    return TurnResult(
        text=response_text,
        conversation_id=str(conversation_id),
        is_new_chat=is_new_chat,
        message_count=message_count,
        tx_hash=tx_hash,
    )
