"""
Conversation Session
Owns the append-only message log of a customer's chat conversations.

Every operation is a strict sequence of store calls. A failure is raised as
RemoteFailure naming the step; earlier committed steps are not rolled back
(a stored user message whose reply failed stays visible).
"""
import logging
import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import PurePath
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from gangesbot.core.config import settings
from gangesbot.core.errors import NotFoundFailure, RemoteFailure, ValidationFailure
from gangesbot.models.conversation import Conversation
from gangesbot.models.escalated_query import EscalatedQuery
from gangesbot.models.message import Message
from gangesbot.models.order import ScooterOrder
from gangesbot.models.predefined_question import PredefinedQuestion
from gangesbot.services.answer_matcher import FALLBACK_REPLY, OrderContext, find_best_answer
from gangesbot.services.auth_service import AuthSession
from gangesbot.services.blob_store import BlobStore

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "New Chat"

_STEP_MESSAGES = {
    "conversation_create": "Could not start a new conversation.",
    "conversation_list": "Could not load conversations.",
    "message_load": "Could not load messages.",
    "catalog_load": "Could not load predefined questions.",
    "user_message_append": "Your message could not be saved. Please try again.",
    "reply_append": "Your message was saved but the reply could not be stored. Please try again.",
    "file_upload": "The file could not be uploaded. Please try again.",
    "file_message_append": "The file was uploaded but could not be added to the conversation.",
    "escalation_insert": "Your query could not be submitted to support. Please try again.",
    "order_load": "Could not load the selected order.",
}

_SAFE_EXT_RE = re.compile(r"^\.[a-z0-9]{1,8}$")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ConversationSummary:
    conversation: Conversation
    message_count: int
    last_message: Optional[str]


@dataclass
class SubmitResult:
    user_message: Message
    reply: Message
    matched: bool


class ConversationSession:
    def __init__(
        self,
        db: Session,
        auth: AuthSession,
        blob_store: Optional[BlobStore] = None,
        *,
        threshold: Optional[int] = None,
        stop_words: Optional[Iterable[str]] = None,
        auto_response: Optional[str] = None,
    ):
        self.db = db
        self.auth = auth
        self.blob_store = blob_store
        self.threshold = settings.MATCHER_MIN_KEYWORD_MATCHES if threshold is None else threshold
        self.stop_words = tuple(settings.MATCHER_STOP_WORDS if stop_words is None else stop_words)
        self.auto_response = settings.ESCALATION_AUTO_RESPONSE if auto_response is None else auto_response
        self._catalog: Optional[List[PredefinedQuestion]] = None

    # ------------------------------------------------------------------
    # Store helpers
    # ------------------------------------------------------------------

    def _fail(self, step: str, exc: BaseException) -> RemoteFailure:
        logger.exception("Store call failed at step '%s' (user_id=%s)", step, self.auth.user_id)
        return RemoteFailure(step, _STEP_MESSAGES.get(step, "Request failed."), cause=exc)

    def _commit(self, step: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise self._fail(step, e) from e

    def _get_conversation(self, conversation_id: int) -> Conversation:
        try:
            conv = (
                self.db.query(Conversation)
                .filter(Conversation.id == conversation_id, Conversation.user_id == self.auth.user_id)
                .first()
            )
        except SQLAlchemyError as e:
            raise self._fail("message_load", e) from e
        if not conv:
            raise NotFoundFailure("Conversation not found")
        return conv

    def _append(
        self,
        conv: Conversation,
        *,
        content: str,
        is_user_message: bool,
        step: str,
        file_url: Optional[str] = None,
    ) -> Message:
        now = _utcnow()
        msg = Message(
            conversation_id=conv.id,
            content=content,
            is_user_message=is_user_message,
            file_url=file_url,
            created_at=now,
        )
        conv.updated_at = now
        self.db.add(msg)
        self._commit(step)
        self.db.refresh(msg)
        return msg

    # ------------------------------------------------------------------
    # Conversations
    # ------------------------------------------------------------------

    def start_conversation(self, title: str = DEFAULT_TITLE) -> Conversation:
        now = _utcnow()
        conv = Conversation(user_id=self.auth.user_id, title=title, created_at=now, updated_at=now)
        self.db.add(conv)
        self._commit("conversation_create")
        self.db.refresh(conv)
        logger.info("Started conversation %s for user %s", conv.id, self.auth.user_id)
        return conv

    def resume_or_start(self) -> Conversation:
        """Reuse the latest conversation if it is still empty, else start a new one."""
        try:
            latest = (
                self.db.query(Conversation)
                .filter(Conversation.user_id == self.auth.user_id)
                .order_by(Conversation.updated_at.desc(), Conversation.id.desc())
                .first()
            )
            is_empty = latest is not None and not (
                self.db.query(Message.id).filter(Message.conversation_id == latest.id).first()
            )
        except SQLAlchemyError as e:
            raise self._fail("conversation_list", e) from e

        if is_empty:
            return latest
        return self.start_conversation()

    def list_conversations(self) -> List[ConversationSummary]:
        try:
            convs = (
                self.db.query(Conversation)
                .filter(Conversation.user_id == self.auth.user_id)
                .order_by(Conversation.updated_at.desc(), Conversation.id.desc())
                .all()
            )
            if not convs:
                return []

            conv_ids = [c.id for c in convs]
            stats = (
                self.db.query(Message.conversation_id, func.count(Message.id), func.max(Message.id))
                .filter(Message.conversation_id.in_(conv_ids))
                .group_by(Message.conversation_id)
                .all()
            )
            last_ids = [last_id for _, _, last_id in stats]
            last_content = dict(
                self.db.query(Message.id, Message.content).filter(Message.id.in_(last_ids)).all()
            ) if last_ids else {}
        except SQLAlchemyError as e:
            raise self._fail("conversation_list", e) from e

        by_conv = {cid: (count, last_content.get(last_id)) for cid, count, last_id in stats}
        return [
            ConversationSummary(
                conversation=c,
                message_count=by_conv.get(c.id, (0, None))[0],
                last_message=by_conv.get(c.id, (0, None))[1],
            )
            for c in convs
        ]

    def load_messages(self, conversation_id: int) -> List[Message]:
        return self._messages_for(self._get_conversation(conversation_id))

    def open_conversation(self, conversation_id: int) -> Tuple[Conversation, List[Message]]:
        """The conversation and its timeline, with a single ownership check."""
        conv = self._get_conversation(conversation_id)
        return conv, self._messages_for(conv)

    def _messages_for(self, conv: Conversation) -> List[Message]:
        try:
            return (
                self.db.query(Message)
                .filter(Message.conversation_id == conv.id)
                .order_by(Message.created_at.asc(), Message.id.asc())
                .all()
            )
        except SQLAlchemyError as e:
            raise self._fail("message_load", e) from e

    # ------------------------------------------------------------------
    # Answering
    # ------------------------------------------------------------------

    def load_catalog(self) -> List[PredefinedQuestion]:
        """Active predefined entries, read once per session."""
        if self._catalog is None:
            try:
                self._catalog = (
                    self.db.query(PredefinedQuestion)
                    .filter(PredefinedQuestion.is_active.is_(True))
                    .order_by(PredefinedQuestion.category.asc(), PredefinedQuestion.id.asc())
                    .all()
                )
            except SQLAlchemyError as e:
                raise self._fail("catalog_load", e) from e
        return self._catalog

    def resolve_order_context(self, order_id: Optional[int]) -> Optional[OrderContext]:
        if order_id is None:
            return None
        try:
            order = (
                self.db.query(ScooterOrder)
                .filter(ScooterOrder.id == order_id, ScooterOrder.user_id == self.auth.user_id)
                .first()
            )
        except SQLAlchemyError as e:
            raise self._fail("order_load", e) from e
        if not order:
            raise NotFoundFailure("Order not found")
        return OrderContext.from_order(order)

    def submit_user_message(
        self,
        conversation_id: int,
        text: str,
        order_context: Optional[OrderContext] = None,
    ) -> SubmitResult:
        text = (text or "").strip()
        if not text:
            raise ValidationFailure("Message text is required")

        conv = self._get_conversation(conversation_id)
        catalog = self.load_catalog()

        user_msg = self._append(conv, content=text, is_user_message=True, step="user_message_append")

        answer = find_best_answer(
            text,
            catalog,
            order_context,
            threshold=self.threshold,
            stop_words=self.stop_words,
        )
        reply = self._append(
            conv,
            content=answer if answer is not None else FALLBACK_REPLY,
            is_user_message=False,
            step="reply_append",
        )
        if answer is None:
            logger.info("No predefined answer matched in conversation %s", conv.id)
        return SubmitResult(user_message=user_msg, reply=reply, matched=answer is not None)

    def select_predefined_question(
        self,
        conversation_id: int,
        entry_id: int,
        order_context: Optional[OrderContext] = None,
    ) -> SubmitResult:
        entry = next((e for e in self.load_catalog() if e.id == entry_id), None)
        if entry is None:
            raise NotFoundFailure("Question not found")
        return self.submit_user_message(conversation_id, entry.question, order_context)

    # ------------------------------------------------------------------
    # Attachments
    # ------------------------------------------------------------------

    def validate_attachment(self, size: int, file_name: str, mime_type: str) -> None:
        if not file_name or not file_name.strip():
            raise ValidationFailure("File name is required")
        if size <= 0:
            raise ValidationFailure("File is empty")
        if size > settings.MAX_ATTACHMENT_BYTES:
            raise ValidationFailure(
                f"File is too large. Maximum size is {settings.MAX_ATTACHMENT_BYTES // (1024 * 1024)} MB."
            )
        if (mime_type or "").lower() not in settings.ALLOWED_ATTACHMENT_TYPES:
            raise ValidationFailure("Only JPEG, PNG images and PDF files are allowed.")

    def attach_file(self, conversation_id: int, data: bytes, file_name: str, mime_type: str) -> Message:
        self.validate_attachment(len(data), file_name, mime_type)
        if self.blob_store is None:
            raise RuntimeError("ConversationSession was created without a blob store")

        conv = self._get_conversation(conversation_id)

        ext = PurePath(file_name).suffix.lower()
        if not _SAFE_EXT_RE.match(ext):
            ext = ""
        path = f"{self.auth.user_id}/{conv.id}/{uuid.uuid4().hex}{ext}"
        try:
            file_url = self.blob_store.upload(data, path, mime_type.lower())
        except Exception as e:
            raise self._fail("file_upload", e) from e
        logger.info("Uploaded attachment %s (%d bytes) for conversation %s", path, len(data), conv.id)

        return self._append(
            conv,
            content=f"Shared a file: {file_name}",
            is_user_message=True,
            step="file_message_append",
            file_url=file_url,
        )

    # ------------------------------------------------------------------
    # Escalation
    # ------------------------------------------------------------------

    def latest_user_message(self, conversation_id: int) -> Optional[Message]:
        try:
            return (
                self.db.query(Message)
                .filter(Message.conversation_id == conversation_id, Message.is_user_message.is_(True))
                .order_by(Message.created_at.desc(), Message.id.desc())
                .first()
            )
        except SQLAlchemyError as e:
            raise self._fail("message_load", e) from e

    def flag_unhelpful(self, conversation_id: int, triggering_reply_text: str = "") -> EscalatedQuery:
        """Record an escalated query for the latest user message in the conversation.

        The flagged reply is context only; it is stored as the query text only
        when the conversation has no user message at all.
        """
        conv = self._get_conversation(conversation_id)
        last_user = self.latest_user_message(conv.id)
        query_text = last_user.content if last_user else (triggering_reply_text or "").strip()
        if not query_text:
            raise ValidationFailure("Nothing to escalate in this conversation")

        query = EscalatedQuery(
            user_id=self.auth.user_id,
            conversation_id=conv.id,
            query_text=query_text,
            status="pending",
        )
        if self.auto_response:
            query.status = "responded"
            query.admin_response = self.auto_response
            query.response_date = _utcnow()

        self.db.add(query)
        self._commit("escalation_insert")
        self.db.refresh(query)
        logger.info("Escalated query %s from conversation %s (status=%s)", query.id, conv.id, query.status)
        return query
