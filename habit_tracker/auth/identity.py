# habit_tracker/auth/identity.py
from pydantic import BaseModel


class Identity(BaseModel):
    """토큰 검증 후 얻는 요청자 정보"""
    email: str
    display_name: str
    subject_id: str
