from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class QuestionCreateRequest(BaseModel):
    question: str = Field(..., min_length=3, max_length=1000)
    answer: str = Field(..., min_length=1, max_length=4000)
    category: Optional[str] = Field(default=None, max_length=128)


class QuestionResponse(BaseModel):
    id: int
    question: str
    answer: str
    category: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
