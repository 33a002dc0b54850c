from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func

from gangesbot.core.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    phone_number = Column(String(32), unique=True, index=True, nullable=False)
    # "customer" | "admin"
    role = Column(String(32), nullable=False, default="customer")
    is_test_account = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
