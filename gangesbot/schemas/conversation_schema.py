from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CreateConversationRequest(BaseModel):
    title: str = Field(default="New Chat", min_length=1, max_length=255)


class ConversationResponse(BaseModel):
    id: int
    title: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ConversationListItem(ConversationResponse):
    message_count: int = 0
    last_message: Optional[str] = None


class MessageResponse(BaseModel):
    id: int
    conversation_id: int
    content: str
    is_user_message: bool
    file_url: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ConversationDetail(BaseModel):
    id: int
    title: str
    messages: list[MessageResponse]
