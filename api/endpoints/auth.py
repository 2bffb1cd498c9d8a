from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from auth import create_access_token
from database import get_db
from schemas.user import RegisterRequest, LoginRequest
from schemas.response import StandardResponse
import crud.user as crud

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=StandardResponse, status_code=status.HTTP_201_CREATED)
def register(user: RegisterRequest, db: Session = Depends(get_db)):
    """Зарегистрировать пользователя и выдать токен"""
    db_user = crud.create_user(db=db, user=user)
    return StandardResponse(
        message="User registered",
        data={"token": create_access_token(db_user), "userId": db_user.user_id}
    )


@router.post("/login", response_model=StandardResponse)
def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    """Вход по email и паролю"""
    db_user = crud.authenticate_user(db, email=credentials.email, password=credentials.password)
    return StandardResponse(
        message="User logged in",
        data={"token": create_access_token(db_user), "userId": db_user.user_id}
    )
