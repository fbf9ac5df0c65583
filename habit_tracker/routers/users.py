# habit_tracker/routers/users.py
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from habit_tracker.db.database import get_db
from habit_tracker.schemas.schema_user import RegisterUserReq, ResponseRegisterUser, UserItem
from habit_tracker.services.users import register_user

router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.post("/register-success", response_model=ResponseRegisterUser, status_code=status.HTTP_201_CREATED)
def register_success(body: RegisterUserReq, db: Session = Depends(get_db)):
    """
    Firebase 회원가입 성공 후 앱이 호출해서 유저 정보를 DB에 저장
    - Body: { email, fullName, photoURL, firebaseUID }
    - 이미 저장된 firebaseUID면 200, 새로 저장하면 201
    """
    user, created = register_user(db, body)

    item = UserItem(
        email=user.email,
        full_name=user.full_name,
        photo_url=user.photo_url,
        firebase_uid=user.firebase_uid,
        created_at=user.created_at,
    )
    if not created:
        res = ResponseRegisterUser(message="User already exists.", user=item)
        return JSONResponse(status_code=status.HTTP_200_OK, content=res.model_dump(mode="json", by_alias=True))

    return ResponseRegisterUser(message="User data saved successfully.", user=item)
