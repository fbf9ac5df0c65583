# habit_tracker/schemas/schema_user.py
import datetime as dt
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RegisterUserReq(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str = Field(min_length=3)
    full_name: str = Field(alias="fullName", min_length=1)
    photo_url: Optional[str] = Field(default=None, alias="photoURL")
    firebase_uid: str = Field(alias="firebaseUID", min_length=1)


class UserItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str
    full_name: str = Field(alias="fullName")
    photo_url: Optional[str] = Field(default=None, alias="photoURL")
    firebase_uid: str = Field(alias="firebaseUID")
    created_at: dt.datetime = Field(alias="createdAt")


class ResponseRegisterUser(BaseModel):
    success: bool = True
    message: str
    user: UserItem
