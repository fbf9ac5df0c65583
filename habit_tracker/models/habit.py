# habit_tracker/models/habit.py
from __future__ import annotations

import datetime as dt
import enum
from typing import List, Optional

from sqlalchemy import (Boolean, Date, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint, Enum as SqlEnum,)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from habit_tracker.db.database import Base


class Category(str, enum.Enum):
    morning = "Morning"
    work = "Work"
    fitness = "Fitness"
    evening = "Evening"
    study = "Study"


class Habit(Base):
    __tablename__ = "habits"

    # UUID 문자열 (생성 시 서버가 부여, 이후 불변)
    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    category: Mapped[Category] = mapped_column(
        SqlEnum(Category, name="habit_category", values_callable=lambda e: [c.value for c in e]),
        nullable=False,
    )
    reminder_time: Mapped[str] = mapped_column(String(20), nullable=False)  # 예: "18:00"
    image: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # 작성자 정보 (토큰에서 채움, 수정 불가)
    owner_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    owner_name: Mapped[str] = mapped_column(String(120), nullable=False)

    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        Index("idx_habits_public_created", "is_public", "created_at"),
    )

    completions: Mapped[List["HabitCompletion"]] = relationship(
        "HabitCompletion",
        back_populates="habit",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="HabitCompletion.completed_at",
    )


class HabitCompletion(Base):
    """
    습관 완료 기록 (completionHistory 한 칸)
    - completed_at: 완료 버튼을 누른 실제 시각
    - completed_on: completed_at을 HABIT_TIMEZONE 자정 기준으로 자른 날짜
    - (habit_id, completed_on) 유니크 → 하루에 한 번만 기록됨
    """
    __tablename__ = "habit_completions"

    completion_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    habit_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("habits.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    completed_at: Mapped[dt.datetime] = mapped_column(DateTime, nullable=False)
    completed_on: Mapped[dt.date] = mapped_column(Date, nullable=False)

    __table_args__ = (
        UniqueConstraint("habit_id", "completed_on", name="uq_habit_completions_day"),
    )

    habit: Mapped["Habit"] = relationship("Habit", back_populates="completions", uselist=False)
