# habit_tracker/routers/habits.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from habit_tracker.auth.dependencies import get_current_identity, get_optional_identity
from habit_tracker.auth.identity import Identity
from habit_tracker.db.database import get_db
from habit_tracker.models.habit import Category
from habit_tracker.schemas.schema_habit import (
    HabitCreate,
    HabitItem,
    HabitUpdate,
    ResponseComplete,
    ResponseCreated,
    ResponseHabit,
    ResponseHabitList,
    ResponseMessage,
)
from habit_tracker.services import habits as habit_service

router = APIRouter(prefix="/api/v1/habits", tags=["habits"])


def _as_list(rows) -> ResponseHabitList:
    items = [HabitItem.from_row(r) for r in rows]
    return ResponseHabitList(count=len(items), data=items)


# ---------- 공개 ----------
@router.get("/featured", response_model=ResponseHabitList)
def get_featured_habits(db: Session = Depends(get_db)):
    """홈 화면 Featured 섹션: 최신 공개 습관 6개"""
    return _as_list(habit_service.list_featured(db))


@router.get("/public", response_model=ResponseHabitList)
def get_public_habits(
    search: Optional[str] = Query(default=None, description="제목/설명 부분 검색 (대소문자 무시)"),
    category: Optional[Category] = Query(default=None),
    db: Session = Depends(get_db),
):
    return _as_list(habit_service.list_public(db, search=search, category=category))


# ---------- 내 습관 ----------
@router.get("/my", response_model=ResponseHabitList)
def get_my_habits(
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    return _as_list(habit_service.list_owned(db, identity))


@router.get("/{habit_id}", response_model=ResponseHabit)
def get_habit_detail(
    habit_id: str,
    db: Session = Depends(get_db),
    identity: Optional[Identity] = Depends(get_optional_identity),
):
    """
    - 공개 습관: 누구나 조회
    - 비공개 습관: 작성자 토큰으로만 조회 (그 외 403)
    """
    row = habit_service.get_detail(db, habit_id, identity)
    return ResponseHabit(data=HabitItem.from_row(row))


@router.post("", response_model=ResponseCreated, status_code=status.HTTP_201_CREATED)
def create_habit(
    body: HabitCreate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """
    Request JSON:
        {
          "title": "Morning Run",
          "description": "...",
          "category": "Morning" | "Work" | "Fitness" | "Evening" | "Study",
          "reminderTime": "06:30",
          "image": "https://..." (선택),
          "isPublic": true (선택, 기본 true)
        }
    ownerEmail / ownerName / createdAt 은 서버가 채움
    """
    row = habit_service.create_habit(db, body, identity)
    return ResponseCreated(message="Habit created successfully.", data=row.id)


@router.patch("/{habit_id}", response_model=ResponseHabit)
def patch_habit(
    habit_id: str,
    body: HabitUpdate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    row = habit_service.update_habit(db, habit_id, body, identity)
    return ResponseHabit(data=HabitItem.from_row(row))


@router.delete("/{habit_id}", response_model=ResponseMessage)
def delete_habit(
    habit_id: str,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    habit_service.delete_habit(db, habit_id, identity)
    return ResponseMessage(message="Habit deleted successfully.")


@router.post("/{habit_id}/complete", response_model=ResponseComplete)
def complete_habit(
    habit_id: str,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """
    오늘 완료 체크
    - 오늘 이미 완료했으면 200 + alreadyCompleted=true (기록 추가 없음)
    """
    row, already = habit_service.complete_habit(db, habit_id, identity)
    message = "Habit already completed today." if already else "Habit marked as completed."
    return ResponseComplete(message=message, already_completed=already, data=HabitItem.from_row(row))
