import logging
from typing import Generator

from sqlalchemy.orm import Session

from gangesbot.core.database import SessionLocal
from gangesbot.core.errors import RemoteFailure
from gangesbot.services.blob_store import BlobStore, BlobStoreUnavailable, get_blob_store

logger = logging.getLogger(__name__)


def get_db() -> Generator:
    """
    Dependency Injection function to get a database session.
    It ensures the database connection is closed after the request is finished.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_attachment_store() -> BlobStore:
    try:
        return get_blob_store()
    except BlobStoreUnavailable as e:
        logger.error("Attachment storage is misconfigured: %s", e)
        raise RemoteFailure("file_upload", "File uploads are currently unavailable.", cause=e) from e
