from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from quizbank.core.config import settings
from quizbank.core.database import init_db
from quizbank.core.errors import NotFoundError, ParseError, QuizBankError, StorageError, ValidationError
from quizbank.core.logging_config import setup_logging
from quizbank.routes.admin.admin_routers import admin_router
from quizbank.routes.auth.auth_routers import auth_router
from quizbank.routes.quiz.quiz_routers import quiz_router

ERROR_STATUS = {
    ParseError: 400,
    ValidationError: 400,
    NotFoundError: 404,
    StorageError: 500,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    init_db()
    if not settings.JWT_SECRET_KEY:
        logger.warning("JWT_SECRET_KEY is not set; login and admin routes will fail")
    logger.info("QuizBank API ready")
    yield


app = FastAPI(title="QuizBank API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.exception_handler(QuizBankError)
async def quizbank_error_handler(request: Request, exc: QuizBankError):
    status_code = ERROR_STATUS.get(type(exc), 500)
    if status_code >= 500:
        logger.error("{} {} failed: {}", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


app.include_router(auth_router)
app.include_router(quiz_router)
app.include_router(admin_router)


@app.get("/")
def read_root():
    return {"ok": True, "name": "QuizBank API"}
