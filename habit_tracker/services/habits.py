# habit_tracker/services/habits.py
from __future__ import annotations

import datetime as dt
import logging
import uuid
from contextlib import contextmanager
from typing import List, Optional, Tuple
from zoneinfo import ZoneInfo

from sqlalchemy import select, update, delete, and_, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from habit_tracker.auth.identity import Identity
from habit_tracker.config.settings import settings
from habit_tracker.models.habit import Category, Habit, HabitCompletion
from habit_tracker.schemas.schema_habit import HabitCreate, HabitUpdate
from habit_tracker.services.errors import Forbidden, InvalidId, NotFound, StoreFailure, Unauthenticated

logger = logging.getLogger(__name__)


def _now() -> dt.datetime:
    """HABIT_TIMEZONE 기준 현재 시각 (DB에는 tz 없는 datetime으로 저장)"""
    return dt.datetime.now(ZoneInfo(settings.habit_timezone)).replace(tzinfo=None)


@contextmanager
def _store_errors(db: Session, action: str):
    # DB 예외는 롤백 후 StoreFailure로 감싸서 올림 (상세 내용은 로그에만)
    try:
        yield
    except SQLAlchemyError:
        db.rollback()
        logger.exception("[habits] store failure during %s", action)
        raise StoreFailure()


def _parse_id(habit_id: str) -> str:
    try:
        return str(uuid.UUID(str(habit_id)))
    except ValueError:
        raise InvalidId()


def _require_identity(identity: Optional[Identity]) -> Identity:
    if identity is None:
        raise Unauthenticated()
    return identity


def _recent_first(stmt):
    """
    정렬 규칙:
      1) created_at 내림차순 (최신 먼저)
      2) 같은 시각이면 id 내림차순 (같은 DB 상태에서 항상 같은 순서)
    """
    return (
        stmt.options(selectinload(Habit.completions))
        .order_by(Habit.created_at.desc(), Habit.id.desc())
    )


def _load(db: Session, hid: str) -> Habit:
    row = (
        db.execute(
            select(Habit)
            .where(Habit.id == hid)
            .options(selectinload(Habit.completions))
        )
        .scalars()
        .first()
    )
    if row is None:
        raise NotFound()
    return row


def _load_owned(db: Session, hid: str, identity: Identity) -> Habit:
    row = _load(db, hid)
    if row.owner_email != identity.email:
        raise Forbidden()
    return row


# ---------- 조회 ----------
def list_featured(db: Session, limit: Optional[int] = None) -> List[Habit]:
    """홈 화면용: 최신 공개 습관 6개"""
    if limit is None:
        limit = settings.featured_limit

    stmt = _recent_first(select(Habit).where(Habit.is_public.is_(True))).limit(limit)
    with _store_errors(db, "list_featured"):
        return db.execute(stmt).scalars().all()


def list_public(
    db: Session,
    search: Optional[str] = None,
    category: Optional[Category] = None,
) -> List[Habit]:
    """
    공개 습관 전체 (개수 제한 없음)
    - search: 제목 또는 설명에 포함 (대소문자 무시, 부분 일치)
    - category: 정확히 일치
    """
    conditions = [Habit.is_public.is_(True)]
    if search:
        conditions.append(
            or_(
                Habit.title.icontains(search, autoescape=True),
                Habit.description.icontains(search, autoescape=True),
            )
        )
    if category is not None:
        conditions.append(Habit.category == category)

    stmt = _recent_first(select(Habit).where(and_(*conditions)))
    with _store_errors(db, "list_public"):
        return db.execute(stmt).scalars().all()


def list_owned(db: Session, identity: Optional[Identity]) -> List[Habit]:
    identity = _require_identity(identity)

    stmt = _recent_first(select(Habit).where(Habit.owner_email == identity.email))
    with _store_errors(db, "list_owned"):
        return db.execute(stmt).scalars().all()


def get_detail(db: Session, habit_id: str, identity: Optional[Identity] = None) -> Habit:
    """비공개 습관은 작성자 본인만 조회 가능"""
    hid = _parse_id(habit_id)
    with _store_errors(db, "get_detail"):
        row = _load(db, hid)

    if not row.is_public and (identity is None or identity.email != row.owner_email):
        raise Forbidden()
    return row


# ---------- 생성 ----------
def create_habit(db: Session, body: HabitCreate, identity: Optional[Identity]) -> Habit:
    """
    작성자 정보/생성 시각/공개 여부 기본값은 서버가 채움
    - owner_email, owner_name: 토큰에서
    - is_public: 안 보내면 True
    - completionHistory: 빈 목록
    """
    identity = _require_identity(identity)

    row = Habit(
        id=str(uuid.uuid4()),
        title=body.title,
        description=body.description,
        category=body.category,
        reminder_time=body.reminder_time,
        image=body.image,
        owner_email=identity.email,
        owner_name=identity.display_name,
        is_public=True if body.is_public is None else body.is_public,
        created_at=_now(),
    )
    with _store_errors(db, "create_habit"):
        db.add(row)
        db.commit()
        created = _load(db, row.id)

    logger.info("[habits] created id=%s public=%s", created.id, created.is_public)
    return created


# ---------- 수정 ----------
def update_habit(
    db: Session,
    habit_id: str,
    patch: HabitUpdate,
    identity: Optional[Identity],
) -> Habit:
    """
    부분 수정 (보낸 필드만 변경)
    - 작성자/생성 시각/완료 기록은 patch에서 이미 제거된 상태
    - id + owner_email 조건을 건 UPDATE 한 번으로 처리 (조회 후 수정 X)
    """
    identity = _require_identity(identity)
    hid = _parse_id(habit_id)
    changes = patch.changes()

    with _store_errors(db, "update_habit"):
        if not changes:
            return _load_owned(db, hid, identity)

        result = db.execute(
            update(Habit)
            .where(Habit.id == hid, Habit.owner_email == identity.email)
            .values(**changes)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            db.rollback()
            # 없는 건지, 남의 것인지 구분
            _load_owned(db, hid, identity)
        else:
            db.commit()

        db.expire_all()
        return _load(db, hid)


# ---------- 삭제 ----------
def delete_habit(db: Session, habit_id: str, identity: Optional[Identity]) -> None:
    identity = _require_identity(identity)
    hid = _parse_id(habit_id)

    with _store_errors(db, "delete_habit"):
        result = db.execute(
            delete(Habit)
            .where(Habit.id == hid, Habit.owner_email == identity.email)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            db.rollback()
            _load_owned(db, hid, identity)
            # 소유자 확인은 통과했는데 지워진 게 없으면 그 사이 사라진 것
            raise NotFound()
        db.commit()

    logger.info("[habits] deleted id=%s", hid)


# ---------- 완료 체크 ----------
def complete_habit(db: Session, habit_id: str, identity: Optional[Identity]) -> Tuple[Habit, bool]:
    """
    오늘(HABIT_TIMEZONE 자정 기준) 완료 기록 추가
    - 이미 오늘 기록이 있으면 아무것도 안 하고 (habit, True)
    - 기록 시각은 날짜로 자르지 않은 실제 시각
    - 동시 요청은 (habit_id, completed_on) 유니크 제약으로 막힘 → 늦은 쪽은 '이미 완료'
    """
    identity = _require_identity(identity)
    hid = _parse_id(habit_id)

    with _store_errors(db, "complete_habit"):
        row = _load_owned(db, hid, identity)

        now = _now()
        today = now.date()

        if any(c.completed_on == today for c in row.completions):
            return row, True

        db.add(HabitCompletion(habit_id=hid, completed_at=now, completed_on=today))
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.info("[habits] concurrent completion ignored id=%s day=%s", hid, today)
            db.expire_all()
            return _load(db, hid), True

        db.expire_all()
        completed = _load(db, hid)

    logger.info("[habits] completed id=%s day=%s", hid, today)
    return completed, False
