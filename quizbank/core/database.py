from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from quizbank.core.config import settings


connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    # sqlite connections are shared with the threadpool FastAPI runs sync routes in
    connect_args = {"check_same_thread": False}

engine = create_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def init_db():
    # models must be imported so their tables are registered on Base.metadata
    from quizbank.models.quiz_db import quiz_db, question_db, option_db, image_db  # noqa: F401
    from quizbank.models.user_db import user_db  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
