from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from gangesbot.schemas.conversation_schema import MessageResponse


class ChatRequest(BaseModel):
    text: str = Field(..., max_length=4000, description="User message")
    order_id: Optional[int] = Field(default=None, description="Selected order to ask about (omit to clear)")


class PredefinedSelectRequest(BaseModel):
    order_id: Optional[int] = Field(default=None, description="Selected order to ask about (omit to clear)")


class ChatResponse(BaseModel):
    conversation_id: int
    user_message: MessageResponse
    reply: MessageResponse
    matched: bool = Field(..., description="False when the fallback escalation offer was returned")


class FlagRequest(BaseModel):
    reply_text: str = Field(default="", max_length=4000, description="The reply the user found unhelpful")


class EscalatedQueryResponse(BaseModel):
    id: int
    conversation_id: Optional[int] = None
    query_text: str
    status: str
    admin_response: Optional[str] = None
    response_date: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
