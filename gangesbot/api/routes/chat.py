from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile

from gangesbot.api.security import get_attachment_session, get_conversation_session
from gangesbot.core.config import settings
from gangesbot.schemas.chat_schema import (
    ChatRequest,
    ChatResponse,
    EscalatedQueryResponse,
    FlagRequest,
    PredefinedSelectRequest,
)
from gangesbot.schemas.conversation_schema import ConversationResponse, MessageResponse
from gangesbot.services.conversation_service import ConversationSession, SubmitResult


router = APIRouter()


def _to_response(conversation_id: int, result: SubmitResult) -> ChatResponse:
    return ChatResponse(
        conversation_id=conversation_id,
        user_message=MessageResponse.model_validate(result.user_message),
        reply=MessageResponse.model_validate(result.reply),
        matched=result.matched,
    )


@router.post("/session", response_model=ConversationResponse)
def open_chat_session(session: ConversationSession = Depends(get_conversation_session)):
    """Called when the chat screen opens: reuses an empty conversation instead of creating another."""
    return session.resume_or_start()


@router.post("/{conversation_id}/messages", response_model=ChatResponse)
def send_message(
    conversation_id: int,
    request: ChatRequest,
    session: ConversationSession = Depends(get_conversation_session),
):
    order_context = session.resolve_order_context(request.order_id)
    result = session.submit_user_message(conversation_id, request.text, order_context)
    return _to_response(conversation_id, result)


@router.post("/{conversation_id}/predefined/{entry_id}", response_model=ChatResponse)
def ask_predefined_question(
    conversation_id: int,
    entry_id: int,
    request: Optional[PredefinedSelectRequest] = None,
    session: ConversationSession = Depends(get_conversation_session),
):
    order_context = session.resolve_order_context(request.order_id if request else None)
    result = session.select_predefined_question(conversation_id, entry_id, order_context)
    return _to_response(conversation_id, result)


@router.post("/{conversation_id}/attachments", response_model=MessageResponse)
def upload_attachment(
    conversation_id: int,
    file: UploadFile = File(...),
    session: ConversationSession = Depends(get_attachment_session),
):
    # Read one byte past the limit so oversized uploads are rejected without buffering them whole.
    data = file.file.read(settings.MAX_ATTACHMENT_BYTES + 1)
    return session.attach_file(
        conversation_id,
        data,
        file.filename or "",
        file.content_type or "",
    )


@router.post("/{conversation_id}/flag", response_model=EscalatedQueryResponse)
def flag_unhelpful(
    conversation_id: int,
    request: FlagRequest,
    session: ConversationSession = Depends(get_conversation_session),
):
    return session.flag_unhelpful(conversation_id, request.reply_text)
