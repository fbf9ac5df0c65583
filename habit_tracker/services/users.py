# habit_tracker/services/users.py
import datetime as dt
import logging
from typing import Tuple
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from habit_tracker.config.settings import settings
from habit_tracker.models.users import User
from habit_tracker.schemas.schema_user import RegisterUserReq
from habit_tracker.services.errors import StoreFailure

logger = logging.getLogger(__name__)


def register_user(db: Session, body: RegisterUserReq) -> Tuple[User, bool]:
    """
    Firebase 가입 성공 후 클라이언트가 호출
    - 같은 firebase_uid가 이미 있으면 (기존 유저, False)
      (예: 구글 로그인으로 이전에 이미 저장된 경우)
    - 없으면 새로 저장 후 (새 유저, True)
    """
    try:
        existing = (
            db.execute(select(User).where(User.firebase_uid == body.firebase_uid))
            .scalars()
            .first()
        )
        if existing:
            return existing, False

        user = User(
            firebase_uid=body.firebase_uid,
            email=body.email,
            full_name=body.full_name,
            photo_url=body.photo_url or None,
            created_at=dt.datetime.now(ZoneInfo(settings.habit_timezone)).replace(tzinfo=None),
        )
        db.add(user)
        db.commit()
        db.refresh(user)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("[users] failed to save user")
        raise StoreFailure("Server error saving user data.")

    logger.info("[users] registered uid=%s", user.firebase_uid)
    return user, True
