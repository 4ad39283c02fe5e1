import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import User
from ..models.task import utcnow
from ..schemas.user import User as UserSchema, UserUpdate
from .auth import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=UserSchema)
def read_user(current_user: User = Depends(get_current_user)):
    """Get the signed-in user's profile."""
    return current_user


@router.put("/update", response_model=UserSchema)
def update_user(
    payload: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Rename the signed-in user."""
    current_user.name = f"{payload.first_name} {payload.last_name}"
    current_user.updated_at = utcnow()
    db.commit()
    db.refresh(current_user)
    logger.info("Updated profile of user %s", current_user.id)
    return current_user
