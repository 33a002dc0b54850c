from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gangesbot.api.dependencies import get_db
from gangesbot.api.security import get_auth_session
from gangesbot.schemas.order_schema import OrderResponse
from gangesbot.services.auth_service import AuthSession
from gangesbot.services.order_service import list_orders


router = APIRouter()


@router.get("/", response_model=list[OrderResponse])
def get_my_orders(db: Session = Depends(get_db), auth: AuthSession = Depends(get_auth_session)):
    return list_orders(db, auth.user_id)
