from pydantic import BaseModel, Field


class RespondQueryRequest(BaseModel):
    admin_response: str = Field(..., min_length=1, max_length=4000)
    resolve: bool = Field(default=False, description="Mark the query resolved instead of responded")
