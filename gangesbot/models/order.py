from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.sql import func

from gangesbot.core.database import Base


class ScooterOrder(Base):
    __tablename__ = "scooter_orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)

    order_number = Column(String(32), unique=True, index=True, nullable=False)
    scooter_model = Column(String(64), nullable=False)
    # "processing" | "confirmed" | "shipped" | "delivered" | "cancelled"
    order_status = Column(String(32), nullable=False, default="processing")
    order_date = Column(DateTime(timezone=True), nullable=False)
    expected_delivery = Column(DateTime(timezone=True), nullable=True)
    tracking_number = Column(String(32), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
