# habit_tracker/schemas/schema_habit.py
from __future__ import annotations

import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from habit_tracker.models.habit import Category, Habit

# 클라이언트가 보내더라도 수정 시 무조건 버리는 필드 (camelCase / snake_case 둘 다)
PROTECTED_FIELDS = frozenset({
    "ownerEmail", "owner_email",
    "ownerName", "owner_name",
    "createdAt", "created_at",
    "completionHistory", "completion_history",
    "id", "_id",
})

# 수정 시 null로 비울 수 없는 필드
NON_NULLABLE_FIELDS = ("title", "description", "category", "reminder_time", "is_public")


def _clean_title(v: Optional[str]):
    # 공백만 있는 제목은 빈 제목으로 취급 (None은 수정 안 함 의미라 그대로 통과)
    if v is None:
        return v
    v = v.strip()
    if not v:
        raise ValueError("Habit title is required.")
    return v


class CamelModel(BaseModel):
    # 프론트는 camelCase(reminderTime, isPublic ...)로 주고받음
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HabitCreate(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    title: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=500)
    category: Category
    reminder_time: str = Field(min_length=1, description='예: "18:00"')
    image: Optional[str] = None
    is_public: Optional[bool] = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str):
        return _clean_title(v)


class HabitUpdate(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, min_length=1, max_length=500)
    category: Optional[Category] = None
    reminder_time: Optional[str] = Field(default=None, min_length=1)
    image: Optional[str] = None
    is_public: Optional[bool] = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: Optional[str]):
        return _clean_title(v)

    @model_validator(mode="before")
    @classmethod
    def drop_protected_fields(cls, data):
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if k not in PROTECTED_FIELDS}
        return data

    @model_validator(mode="after")
    def reject_null_required(self):
        for name in NON_NULLABLE_FIELDS:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} cannot be null.")
        return self

    def changes(self) -> dict:
        """실제로 보낸 필드만 (snake_case 컬럼명 기준)"""
        return self.model_dump(exclude_unset=True)


class HabitItem(CamelModel):
    id: str
    title: str
    description: str
    category: Category
    reminder_time: str
    image: Optional[str] = None
    owner_email: str
    owner_name: str
    is_public: bool
    completion_history: List[dt.datetime] = []
    created_at: dt.datetime

    @classmethod
    def from_row(cls, row: Habit) -> "HabitItem":
        return cls(
            id=row.id,
            title=row.title,
            description=row.description,
            category=row.category,
            reminder_time=row.reminder_time,
            image=row.image,
            owner_email=row.owner_email,
            owner_name=row.owner_name,
            is_public=row.is_public,
            completion_history=[c.completed_at for c in row.completions],
            created_at=row.created_at,
        )


# ---------- 응답 envelope ----------
class ResponseMessage(BaseModel):
    success: bool = True
    message: str


class ResponseHabitList(BaseModel):
    success: bool = True
    count: int
    data: List[HabitItem]


class ResponseHabit(BaseModel):
    success: bool = True
    data: HabitItem


class ResponseCreated(BaseModel):
    success: bool = True
    message: str
    data: str  # 새 habit id


class ResponseComplete(CamelModel):
    success: bool = True
    message: str
    already_completed: bool
    data: HabitItem
