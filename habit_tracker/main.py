# habit_tracker/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from habit_tracker.config.settings import settings
from habit_tracker.db.database import Base, build_database_url, create_db_engine, create_session_factory
from habit_tracker.routers import habits, users
from habit_tracker.services.errors import HabitError, StoreFailure

# create_all이 테이블을 인식하도록 모델 import
import habit_tracker.models  # noqa: F401

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
logger = logging.getLogger(__name__)


def create_app(database_url=None) -> FastAPI:
    """
    - 앱 시작 시 DB 엔진/세션 팩토리 생성 후 app.state에 등록
    - 앱 종료 시 엔진 정리
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = create_db_engine(database_url or build_database_url(settings))
        Base.metadata.create_all(bind=engine)  # 테이블 생성만 함 (컬럼 변경은 못함)

        app.state.engine = engine
        app.state.session_factory = create_session_factory(engine)
        logger.info("database connected (%s)", engine.url.get_backend_name())

        try:
            yield
        finally:
            engine.dispose()
            logger.info("database connection closed")

    app = FastAPI(title="Habit Tracker API", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.cors_origins.split(",")],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(HabitError)
    async def habit_error_handler(request: Request, exc: HabitError):
        if isinstance(exc, StoreFailure):
            logger.error("store failure on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": exc.message},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = errors[0].get("msg", "Invalid request.") if errors else "Invalid request."
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "message": message},
        )

    app.include_router(habits.router)
    app.include_router(users.router)

    @app.get("/")
    async def root():
        return {"message": "Habit Tracker Server is running"}

    return app


app = create_app()
