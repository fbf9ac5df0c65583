# habit_tracker/services/errors.py
from typing import Optional

from fastapi import status


class HabitError(Exception):
    """서비스 계층 결과 중 '실패' 쪽. 라우터/핸들러가 상태코드로 변환"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Server Error."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(HabitError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required."


class InvalidId(HabitError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid habit id."


class NotFound(HabitError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Habit not found."


class Forbidden(HabitError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You do not have permission to access this habit."


class StoreFailure(HabitError):
    # 내부 에러 내용은 사용자에게 노출하지 않음 (로그에만 남김)
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Server Error: Failed to process the request."
