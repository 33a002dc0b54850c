import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from gangesbot.api.dependencies import get_db
from gangesbot.api.security import get_auth_session, require_admin
from gangesbot.models.predefined_question import PredefinedQuestion
from gangesbot.schemas.question_schema import QuestionCreateRequest, QuestionResponse
from gangesbot.services.auth_service import AuthSession

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/", response_model=list[QuestionResponse])
def get_quick_questions(db: Session = Depends(get_db), auth: AuthSession = Depends(get_auth_session)):
    """Active questions shown as quick questions beside the chat."""
    return (
        db.query(PredefinedQuestion)
        .filter(PredefinedQuestion.is_active.is_(True))
        .order_by(PredefinedQuestion.category.asc(), PredefinedQuestion.id.asc())
        .all()
    )


@router.get("/all", response_model=list[QuestionResponse])
def get_all_questions(db: Session = Depends(get_db), admin: AuthSession = Depends(require_admin)):
    return (
        db.query(PredefinedQuestion)
        .order_by(PredefinedQuestion.created_at.desc(), PredefinedQuestion.id.desc())
        .all()
    )


@router.post("/", response_model=QuestionResponse)
def add_question(
    request: QuestionCreateRequest,
    db: Session = Depends(get_db),
    admin: AuthSession = Depends(require_admin),
):
    question = PredefinedQuestion(
        question=request.question.strip(),
        answer=request.answer.strip(),
        category=(request.category or "").strip() or None,
        is_active=True,
    )
    db.add(question)
    db.commit()
    db.refresh(question)
    logger.info("Admin %s added predefined question %s", admin.user_id, question.id)
    return question


@router.delete("/{question_id}", status_code=204)
def delete_question(question_id: int, db: Session = Depends(get_db), admin: AuthSession = Depends(require_admin)):
    question = db.query(PredefinedQuestion).filter(PredefinedQuestion.id == question_id).first()
    if not question:
        raise HTTPException(status_code=404, detail="Question not found")

    db.delete(question)
    db.commit()
    logger.info("Admin %s deleted predefined question %s", admin.user_id, question_id)
