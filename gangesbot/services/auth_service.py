import datetime as dt
import logging
import secrets
from dataclasses import dataclass
from typing import Any, Optional, Tuple

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from gangesbot.core.config import settings
from gangesbot.models.otp_challenge import OtpChallenge
from gangesbot.models.user import User

logger = logging.getLogger(__name__)

# Use PBKDF2-SHA256 to avoid bcrypt backend/version issues.
_pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


@dataclass(frozen=True)
class AuthSession:
    """Identity of the caller, resolved once per request and passed into the services."""

    user_id: int
    role: str = "customer"
    is_test_account: bool = False

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @classmethod
    def from_user(cls, user: User) -> "AuthSession":
        return cls(user_id=user.id, role=user.role, is_test_account=bool(user.is_test_account))


class OtpError(ValueError):
    pass


def hash_code(code: str) -> str:
    return _pwd_context.hash(code)


def verify_code(code: str, code_hash: str) -> bool:
    try:
        return _pwd_context.verify(code, code_hash)
    except ValueError:
        return False


def _now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _as_aware(value: dt.datetime) -> dt.datetime:
    # SQLite hands timezone-aware columns back as naive UTC.
    return value if value.tzinfo else value.replace(tzinfo=dt.timezone.utc)


def issue_otp(db: Session, phone_number: str) -> Tuple[OtpChallenge, str]:
    """Create a new OTP challenge for the phone number and return it with the plain code.

    Older open challenges for the same number are consumed so only the latest code works.
    """
    code = "".join(secrets.choice("0123456789") for _ in range(settings.OTP_LENGTH))

    db.query(OtpChallenge).filter(
        OtpChallenge.phone_number == phone_number,
        OtpChallenge.consumed.is_(False),
    ).update({OtpChallenge.consumed: True}, synchronize_session=False)

    challenge = OtpChallenge(
        phone_number=phone_number,
        code_hash=hash_code(code),
        expires_at=_now() + dt.timedelta(minutes=settings.OTP_EXPIRE_MINUTES),
    )
    db.add(challenge)
    db.commit()
    db.refresh(challenge)
    return challenge, code


def check_otp(db: Session, phone_number: str, code: str) -> None:
    """Consume the newest open challenge if ``code`` matches; raise OtpError otherwise."""
    challenge = (
        db.query(OtpChallenge)
        .filter(OtpChallenge.phone_number == phone_number, OtpChallenge.consumed.is_(False))
        .order_by(OtpChallenge.id.desc())
        .first()
    )
    if not challenge:
        raise OtpError("No verification code requested for this number")

    if _as_aware(challenge.expires_at) < _now():
        challenge.consumed = True
        db.commit()
        raise OtpError("Verification code expired")

    if not verify_code(code, challenge.code_hash):
        challenge.attempts += 1
        if challenge.attempts >= settings.OTP_MAX_ATTEMPTS:
            challenge.consumed = True
        db.commit()
        logger.warning("Wrong OTP for %s (attempt %s)", phone_number[-4:], challenge.attempts)
        raise OtpError("Invalid verification code")

    challenge.consumed = True
    db.commit()


def get_or_create_user(db: Session, phone_number: str) -> Tuple[User, bool]:
    """Return (user, created). Test-account status is decided here, once."""
    user = db.query(User).filter(User.phone_number == phone_number).first()
    if user:
        return user, False

    user = User(
        phone_number=phone_number,
        role="customer",
        is_test_account=phone_number in settings.TEST_ACCOUNT_PHONES,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Created user %s (test_account=%s)", user.id, user.is_test_account)
    return user, True


def create_access_token(*, subject: str, expires_minutes: Optional[int] = None, extra: Optional[dict] = None) -> str:
    now = _now()
    expire_minutes = expires_minutes if expires_minutes is not None else settings.ACCESS_TOKEN_EXPIRE_MINUTES
    expire = now + dt.timedelta(minutes=int(expire_minutes))

    payload: dict[str, Any] = {
        "sub": subject,
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
    }
    if extra:
        payload.update(extra)
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict[str, Any]:
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        raise ValueError("Invalid token") from e
