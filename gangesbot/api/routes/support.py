import datetime as dt
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from gangesbot.api.dependencies import get_db
from gangesbot.api.security import get_auth_session, require_admin
from gangesbot.models.escalated_query import EscalatedQuery
from gangesbot.schemas.chat_schema import EscalatedQueryResponse
from gangesbot.schemas.support_schema import RespondQueryRequest
from gangesbot.services.auth_service import AuthSession

router = APIRouter()


@router.get("/queries", response_model=List[EscalatedQueryResponse])
def get_my_queries(db: Session = Depends(get_db), auth: AuthSession = Depends(get_auth_session)):
    """Queries the current user escalated, newest first."""
    return (
        db.query(EscalatedQuery)
        .filter(EscalatedQuery.user_id == auth.user_id)
        .order_by(EscalatedQuery.created_at.desc(), EscalatedQuery.id.desc())
        .all()
    )


@router.get("/admin/queries", response_model=List[EscalatedQueryResponse])
def get_pending_queries(
    include_all: bool = False,
    db: Session = Depends(get_db),
    admin: AuthSession = Depends(require_admin),
):
    q = db.query(EscalatedQuery)
    if not include_all:
        q = q.filter(EscalatedQuery.status == "pending")
    return q.order_by(EscalatedQuery.created_at.desc(), EscalatedQuery.id.desc()).all()


@router.post("/admin/queries/{query_id}/respond", response_model=EscalatedQueryResponse)
def respond_to_query(
    query_id: int,
    request: RespondQueryRequest,
    db: Session = Depends(get_db),
    admin: AuthSession = Depends(require_admin),
):
    query = db.query(EscalatedQuery).filter(EscalatedQuery.id == query_id).first()
    if not query:
        raise HTTPException(status_code=404, detail="Query not found")

    query.status = "resolved" if request.resolve else "responded"
    query.admin_response = request.admin_response
    query.response_date = dt.datetime.now(dt.timezone.utc)
    db.commit()
    db.refresh(query)
    return query
