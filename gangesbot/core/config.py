from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from typing import List, Optional
import secrets

from gangesbot.core.phone import normalize_phone


class Settings(BaseSettings):
    # ----------------------------------
    # App General Info
    # ----------------------------------
    PROJECT_NAME: str = "GangesBot"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = Field(
        default="development",
        description="Current environment: development, testing, staging, or production"
    )
    LOG_LEVEL: str = Field(default="INFO")

    # ----------------------------------
    # Relational Database (users, chats, orders, queries)
    # ----------------------------------
    DATABASE_URL: str = Field(default="sqlite:///./ganges_support.db")

    # ----------------------------------
    # Auth (phone OTP + JWT)
    # ----------------------------------
    JWT_SECRET_KEY: str = Field(
        default_factory=lambda: secrets.token_urlsafe(48),
        description="JWT signing secret. Set in .env for stable sessions.",
    )
    JWT_ALGORITHM: str = Field(default="HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=60 * 24)

    OTP_LENGTH: int = Field(default=6)
    OTP_EXPIRE_MINUTES: int = Field(default=5)
    OTP_MAX_ATTEMPTS: int = Field(default=5, description="Wrong codes allowed per challenge before it is burned")
    TEST_ACCOUNT_PHONES: List[str] = Field(
        default=[],
        description="Phone numbers flagged as test accounts when they first sign in",
    )

    # ----------------------------------
    # Admin bootstrap (optional)
    # ----------------------------------
    ADMIN_BOOTSTRAP_PHONE: Optional[str] = Field(default=None, description="Create/promote this phone number to admin on startup")

    # ----------------------------------
    # Orders
    # ----------------------------------
    SEED_DEMO_ORDERS: bool = Field(default=True, description="Generate demo scooter orders for first-time users")

    # ----------------------------------
    # Answer matching & escalation
    # ----------------------------------
    MATCHER_MIN_KEYWORD_MATCHES: int = Field(
        default=2,
        description="A predefined entry is chosen when strictly more keywords than this overlap the question.",
    )
    MATCHER_STOP_WORDS: List[str] = Field(
        default=[],
        description="Words ignored by the keyword matcher. Empty keeps the plain overlap behaviour.",
    )
    ESCALATION_AUTO_RESPONSE: Optional[str] = Field(
        default=None,
        description="If set, flagged replies are stored as 'responded' with this canned support answer.",
    )

    # ----------------------------------
    # Attachments / blob storage
    # ----------------------------------
    MAX_ATTACHMENT_BYTES: int = Field(default=2 * 1024 * 1024)
    ALLOWED_ATTACHMENT_TYPES: List[str] = Field(
        default=["image/jpeg", "image/jpg", "image/png", "application/pdf"],
    )
    BLOB_BACKEND: str = Field(default="local", description="local | s3")
    MEDIA_ROOT: str = Field(default="./media")
    MEDIA_URL_PREFIX: str = Field(default="/media")
    S3_BUCKET_NAME: str = Field(default="", description="Bucket for chat attachments when BLOB_BACKEND=s3")
    S3_REGION: Optional[str] = Field(default=None)
    S3_PUBLIC_BASE_URL: Optional[str] = Field(
        default=None,
        description="Public base URL for the bucket. Defaults to the virtual-hosted S3 URL.",
    )

    @field_validator("TEST_ACCOUNT_PHONES")
    @classmethod
    def normalize_test_phones(cls, value: List[str]) -> List[str]:
        return [normalize_phone(p) for p in value]

    @field_validator("ADMIN_BOOTSTRAP_PHONE")
    @classmethod
    def normalize_admin_phone(cls, value: Optional[str]) -> Optional[str]:
        return normalize_phone(value) if value else None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

settings = Settings()
