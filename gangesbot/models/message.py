from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey

from gangesbot.core.database import Base


class Message(Base):
    __tablename__ = "chat_messages"

    id = Column(Integer, primary_key=True, index=True)
    conversation_id = Column(Integer, ForeignKey("chat_conversations.id"), index=True, nullable=False)

    content = Column(Text, nullable=False)
    is_user_message = Column(Boolean, nullable=False)
    file_url = Column(String(1024), nullable=True)

    # Set at append time (not server_default) so ordering follows the append sequence.
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
