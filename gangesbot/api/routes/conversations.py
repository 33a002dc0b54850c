from fastapi import APIRouter, Depends

from gangesbot.api.security import get_conversation_session
from gangesbot.schemas.conversation_schema import (
    ConversationDetail,
    ConversationListItem,
    ConversationResponse,
    CreateConversationRequest,
    MessageResponse,
)
from gangesbot.services.conversation_service import ConversationSession


router = APIRouter()


@router.get("/", response_model=list[ConversationListItem])
def list_conversations(session: ConversationSession = Depends(get_conversation_session)):
    return [
        ConversationListItem(
            id=s.conversation.id,
            title=s.conversation.title,
            created_at=s.conversation.created_at,
            updated_at=s.conversation.updated_at,
            message_count=s.message_count,
            last_message=s.last_message,
        )
        for s in session.list_conversations()
    ]


@router.post("/", response_model=ConversationResponse)
def create_conversation(
    request: CreateConversationRequest,
    session: ConversationSession = Depends(get_conversation_session),
):
    return session.start_conversation(title=request.title)


@router.get("/{conversation_id}", response_model=ConversationDetail)
def get_conversation(
    conversation_id: int,
    session: ConversationSession = Depends(get_conversation_session),
):
    conv, messages = session.open_conversation(conversation_id)
    return ConversationDetail(
        id=conv.id,
        title=conv.title,
        messages=[MessageResponse.model_validate(m) for m in messages],
    )
