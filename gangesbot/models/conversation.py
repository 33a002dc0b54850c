from sqlalchemy import Column, Integer, String, DateTime, ForeignKey

from gangesbot.core.database import Base


class Conversation(Base):
    __tablename__ = "chat_conversations"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    title = Column(String(255), nullable=False, default="New Chat")

    # Stamped by ConversationSession; updated_at moves on every appended message.
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, index=True)
