from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from quizbank.core.database import get_db
from quizbank.core.security import (
    verify_password,
    create_access_token,
    get_current_user
)
from quizbank.models.user_db.user_db import User
from quizbank.models.user_db.user_db_crud import create_user, get_user_by_email
from quizbank.schemas.users.user_base import LoginRequest, UserCreate, UserOut

auth_router = APIRouter(prefix="/auth", tags=["Auth"])


@auth_router.post("/register", response_model=UserOut)
def register(user: UserCreate, db: Session = Depends(get_db)):
    if get_user_by_email(db, user.email):
        raise HTTPException(status_code=409, detail="Email already registered")
    return create_user(db, user)


@auth_router.post("/login")
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = get_user_by_email(db, payload.email)
    if not user or not verify_password(payload.password, user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    token = create_access_token({"sub": user.email, "role": user.role})
    return {"token": token, "token_type": "bearer", "user": UserOut.model_validate(user)}


@auth_router.get("/me", response_model=UserOut)
def get_me(current_user: User = Depends(get_current_user)):
    return current_user
