from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.sql import func

from gangesbot.core.database import Base


class EscalatedQuery(Base):
    __tablename__ = "customer_queries"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    conversation_id = Column(Integer, ForeignKey("chat_conversations.id"), index=True, nullable=True)

    query_text = Column(Text, nullable=False)
    # "pending" | "responded" | "resolved"
    status = Column(String(32), default="pending", nullable=False, index=True)
    admin_response = Column(Text, nullable=True)
    response_date = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
