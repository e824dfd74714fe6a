from sqlalchemy.orm import Session
from quizbank.models.user_db.user_db import User
from quizbank.schemas.users.user_base import UserCreate
from quizbank.core.security import hash_password


def create_user(db: Session, user: UserCreate):
    db_user = User(
        email=user.email,
        hashed_password=hash_password(user.password),
        role="user" if user.role == "user" else "admin",
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def get_user_by_email(db: Session, email: str):
    return db.query(User).filter(User.email == email).first()
