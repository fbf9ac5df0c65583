# habit_tracker/config/settings.py
from typing import Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

load_dotenv()


class Settings(BaseSettings):
    # DATABASE_URL가 있으면 그대로 쓰고, 없으면 DB_* 값으로 MySQL URL 구성
    database_url: Optional[str] = None

    db_user: Optional[str] = None
    db_pass: Optional[str] = None
    db_host: str = "localhost"
    db_port: Optional[int] = None
    db_name: Optional[str] = None

    firebase_project_id: str = ""
    firebase_jwks_url: str = (
        "https://www.googleapis.com/service_accounts/v1/jwk/"
        "securetoken@system.gserviceaccount.com"
    )

    habit_timezone: str = "UTC"
    featured_limit: int = 6

    cors_origins: str = "*"


settings = Settings()
