from typing import Optional

from pydantic import BaseModel, Field, ConfigDict


class OtpRequest(BaseModel):
    phone_number: str = Field(..., min_length=8, max_length=32)


class OtpRequestResponse(BaseModel):
    status: str = "sent"
    expires_in_seconds: int
    # Only populated outside production, where no SMS gateway is wired in.
    debug_code: Optional[str] = None


class OtpVerifyRequest(BaseModel):
    phone_number: str = Field(..., min_length=8, max_length=32)
    code: str = Field(..., min_length=4, max_length=10)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    is_new_user: bool = False


class UserResponse(BaseModel):
    id: int
    phone_number: str
    role: str
    is_test_account: bool

    model_config = ConfigDict(from_attributes=True)
