from typing import Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from gangesbot.api.dependencies import get_attachment_store, get_db
from gangesbot.models.user import User
from gangesbot.services.auth_service import AuthSession, decode_token
from gangesbot.services.blob_store import BlobStore
from gangesbot.services.conversation_service import ConversationSession


_http_bearer = HTTPBearer(auto_error=False)


def _extract_bearer_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials],
) -> Optional[str]:
    if credentials and credentials.scheme.lower() == "bearer":
        return credentials.credentials

    cookie_token = request.cookies.get("auth_token")
    if cookie_token:
        return cookie_token

    return None


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_http_bearer),
) -> User:
    token = _extract_bearer_token(request, credentials)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        payload = decode_token(token)
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid token")

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token payload")

    user = db.query(User).filter(User.id == int(user_id)).first()
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return user


def get_auth_session(user: User = Depends(get_current_user)) -> AuthSession:
    return AuthSession.from_user(user)


def require_admin(auth: AuthSession = Depends(get_auth_session)) -> AuthSession:
    if not auth.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return auth


def get_conversation_session(
    db: Session = Depends(get_db),
    auth: AuthSession = Depends(get_auth_session),
) -> ConversationSession:
    return ConversationSession(db, auth)


def get_attachment_session(
    db: Session = Depends(get_db),
    auth: AuthSession = Depends(get_auth_session),
    blob_store: BlobStore = Depends(get_attachment_store),
) -> ConversationSession:
    """Session with the attachment store resolved, for the upload route."""
    return ConversationSession(db, auth, blob_store)
