from sqlalchemy import Column, Integer, String, DateTime
from quizbank.core.database import Base
from datetime import datetime, timezone


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    hashed_password = Column(String, nullable=False)
    role = Column(String, nullable=False, default="admin")  # "admin" | "user"
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
