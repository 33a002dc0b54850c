from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class OrderResponse(BaseModel):
    id: int
    order_number: str
    scooter_model: str
    order_status: str
    order_date: datetime
    expected_delivery: Optional[datetime] = None
    tracking_number: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
