import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from gangesbot.api.dependencies import get_db
from gangesbot.api.security import get_current_user
from gangesbot.core.config import settings
from gangesbot.core.phone import normalize_phone
from gangesbot.models.user import User
from gangesbot.schemas.auth_schema import (
    OtpRequest,
    OtpRequestResponse,
    OtpVerifyRequest,
    TokenResponse,
    UserResponse,
)
from gangesbot.services.auth_service import (
    OtpError,
    check_otp,
    create_access_token,
    get_or_create_user,
    issue_otp,
)
from gangesbot.services.order_service import generate_demo_orders, has_orders

logger = logging.getLogger(__name__)
router = APIRouter()


def _phone_or_400(raw: str) -> str:
    try:
        return normalize_phone(raw)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid phone number")


@router.post("/otp/request", response_model=OtpRequestResponse)
def request_otp(request: OtpRequest, db: Session = Depends(get_db)):
    phone = _phone_or_400(request.phone_number)
    _challenge, code = issue_otp(db, phone)

    # SMS delivery is handled by the messaging provider; outside production the code is echoed back.
    debug_code = None
    if settings.ENVIRONMENT != "production":
        logger.info("OTP for %s: %s", phone, code)
        debug_code = code

    return OtpRequestResponse(
        expires_in_seconds=settings.OTP_EXPIRE_MINUTES * 60,
        debug_code=debug_code,
    )


@router.post("/otp/verify", response_model=TokenResponse)
def verify_otp(request: OtpVerifyRequest, db: Session = Depends(get_db)):
    phone = _phone_or_400(request.phone_number)
    try:
        check_otp(db, phone, request.code.strip())
    except OtpError as e:
        raise HTTPException(status_code=401, detail=str(e))

    user, created = get_or_create_user(db, phone)
    # Seed any account that still has no orders, not only new ones.
    if settings.SEED_DEMO_ORDERS and not has_orders(db, user.id):
        generate_demo_orders(db, user.id)

    token = create_access_token(subject=str(user.id), extra={"role": user.role})
    return TokenResponse(access_token=token, is_new_user=created)


@router.get("/me", response_model=UserResponse)
def me(user: User = Depends(get_current_user)):
    return user
