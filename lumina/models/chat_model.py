# models/chat_model.py
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ChatMessageIn(BaseModel):
    role: str = Field(default="user", pattern="^(user|assistant|system)$")
    content: str = ""


class ChatRequest(_CamelModel):
    messages: List[ChatMessageIn] = Field(default_factory=list)
    wallet_address: Optional[str] = Field(default=None, alias="walletAddress")
    type: Literal["text", "image"] = "text"
    conversation_id: Optional[str] = Field(default=None, alias="conversationId")


class ChatResponse(_CamelModel):
    text: str
    conversation_id: str = Field(alias="conversationId")
    is_new_chat: bool = Field(alias="isNewChat")


class ConversationSummary(_CamelModel):
    id: str = Field(alias="_id")
    title: str
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")


class MessageOut(_CamelModel):
    id: str = Field(alias="_id")
    conversation_id: str = Field(alias="conversationId")
    wallet_address: Optional[str] = Field(default=None, alias="walletAddress")
    role: Literal["user", "assistant"]
    content: str
    type: Literal["text", "image"] = "text"
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")


class DeleteResponse(BaseModel):
    success: bool = True
    deleted_messages: int = 0


class FuelStatus(_CamelModel):
    wallet_address: str = Field(alias="walletAddress")
    balance: str
    text_cost: str = Field(alias="textCost")
    image_cost: str = Field(alias="imageCost")
    can_chat: bool = Field(alias="canChat")
    can_image: bool = Field(alias="canImage")
