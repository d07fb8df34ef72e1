# lumina/database/conversation_store.py
import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING
from pymongo.database import Database

logger = logging.getLogger("conversation_store")

DEFAULT_TITLE = "New Synthesis"


class InvalidConversationId(ValueError):
    pass


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _oid(conversation_id) -> ObjectId:
    if isinstance(conversation_id, ObjectId):
        return conversation_id
    try:
        return ObjectId(str(conversation_id))
    except (InvalidId, TypeError):
        raise InvalidConversationId(f"Invalid conversation id: {conversation_id!r}")


class ConversationStore:
    """
    Conversations and their messages, kept in two collections.

    Messages reference their conversation by ObjectId and carry the wallet
    address as well so per-wallet queries need no join.
    """

    def __init__(self, db: Database, clock: Callable[[], datetime] = _now):
        self.db = db
        self._clock = clock
        self.conversations = db["conversations"]
        self.messages = db["messages"]

    # -------- Conversations --------
    def create_conversation(self, wallet_address: str, title: str = DEFAULT_TITLE) -> str:
        now = self._clock()
        res = self.conversations.insert_one({
            "wallet_address": wallet_address,
            "title": title,
            "created_at": now,
            "updated_at": now,
        })
        return str(res.inserted_id)

    def get_conversation(self, conversation_id) -> Optional[dict]:
        return self.conversations.find_one({"_id": _oid(conversation_id)})

    def list_conversations(self, wallet_address: str) -> List[dict]:
        cur = self.conversations.find(
            {"wallet_address": wallet_address},
            {"title": 1, "updated_at": 1},
        ).sort("updated_at", DESCENDING)
        return [
            {"_id": str(c["_id"]), "title": c.get("title") or DEFAULT_TITLE, "updated_at": c.get("updated_at")}
            for c in cur
        ]

    def set_title(self, conversation_id, title: str) -> None:
        self.conversations.update_one(
            {"_id": _oid(conversation_id)},
            {"$set": {"title": title, "updated_at": self._clock()}},
        )

    def delete_conversation(self, conversation_id) -> int:
        """Remove the conversation, then its messages. Returns messages removed."""
        cid = _oid(conversation_id)
        self.conversations.delete_one({"_id": cid})
        res = self.messages.delete_many({"conversation_id": cid})
        logger.info(f"Deleted conversation {cid} with {res.deleted_count} messages")
        return res.deleted_count

    # -------- Messages --------
    def _message_doc(self, cid: ObjectId, wallet_address: str, role: str, content: str, turn_type: str) -> dict:
        return {
            "conversation_id": cid,
            "wallet_address": wallet_address,
            "role": role,
            "content": content,
            "type": turn_type,
            "created_at": self._clock(),
        }

    def append_turn(
        self,
        conversation_id,
        wallet_address: str,
        user_content: str,
        assistant_content: str,
        turn_type: str = "text",
    ) -> None:
        """Insert the user message, then the assistant reply, then bump updated_at."""
        cid = _oid(conversation_id)
        self.messages.insert_one(self._message_doc(cid, wallet_address, "user", user_content, turn_type))
        self.messages.insert_one(self._message_doc(cid, wallet_address, "assistant", assistant_content, turn_type))
        self.conversations.update_one({"_id": cid}, {"$set": {"updated_at": self._clock()}})

    def count_messages(self, conversation_id) -> int:
        return self.messages.count_documents({"conversation_id": _oid(conversation_id)})

    def get_messages(self, conversation_id) -> List[dict]:
        # _id breaks ties between the two inserts of one turn (Mongo keeps ms precision)
        cur = self.messages.find({"conversation_id": _oid(conversation_id)}).sort(
            [("created_at", ASCENDING), ("_id", ASCENDING)]
        )
        return [
            {
                "_id": str(m["_id"]),
                "conversation_id": str(m["conversation_id"]),
                "wallet_address": m.get("wallet_address"),
                "role": m["role"],
                "content": m["content"],
                "type": m.get("type", "text"),
                "created_at": m.get("created_at"),
            }
            for m in cur
        ]
