# habit_tracker/db/database.py
from typing import Optional

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import URL, Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from habit_tracker.config.settings import Settings

Base = declarative_base()


def build_database_url(settings: Settings):
    if settings.database_url:
        return settings.database_url

    return URL.create(
        "mysql+pymysql",
        username=settings.db_user,
        password=settings.db_pass,
        host=settings.db_host,
        port=settings.db_port,
        database=settings.db_name,
    )


def create_db_engine(url) -> Engine:
    """
    SQLite(테스트/로컬)와 MySQL(운영)을 구분해서 엔진 생성
    - sqlite 메모리 DB는 커넥션 하나를 공유해야 테이블이 유지됨
    """
    if str(url).startswith("sqlite"):
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

        # sqlite는 기본으로 FK(ON DELETE CASCADE)를 안 켜줌
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    return create_engine(
        url,
        pool_pre_ping=True,     # 끊긴 커넥션 자동 감지
        pool_recycle=1800,      # 30분마다 커넥션 새로고침
        pool_size=5,
        max_overflow=10,
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


# 의존성 주입을 위한 데이터베이스 세션 생성기
# 엔진/세션 팩토리는 앱 lifespan에서 만들어 app.state에 올려둠
def get_db(request: Request):
    factory: Optional[sessionmaker] = getattr(request.app.state, "session_factory", None)
    if factory is None:
        raise RuntimeError("database is not initialized (lifespan not started)")
    db = factory()
    try:
        yield db
    finally:
        db.close()  # 요청 끝나면 세션 닫음
