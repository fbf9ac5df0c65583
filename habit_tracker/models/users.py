# habit_tracker/models/users.py
from __future__ import annotations

import datetime as dt
from typing import Optional

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from habit_tracker.db.database import Base


class User(Base):
    __tablename__ = "users"

    # Firebase uid (토큰의 sub)
    firebase_uid: Mapped[str] = mapped_column(
        String(128),
        primary_key=True,
        nullable=False,
        index=True,
    )

    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    full_name: Mapped[str] = mapped_column(String(120), nullable=False)

    photo_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime, nullable=False)
