"""Хеширование паролей, выпуск и проверка JWT"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from exceptions import UnauthorizedError
from models.user import UserDB

logger = logging.getLogger(__name__)

security_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt())
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # в хранилище не bcrypt-хеш
        return False


def create_access_token(user: UserDB, expires_delta: Optional[timedelta] = None) -> str:
    """Выпустить токен с текущей версией токенов пользователя"""
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(days=settings.JWT_EXPIRY_DAYS))
    payload = {
        "userId": user.user_id,
        "email": user.email,
        "username": user.username,
        "tokenVersion": user.token_version or 0,
        "exp": expire,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def verify_token(db: Session, token: str) -> str:
    """Проверить токен и вернуть userId.

    Токен отклоняется, если подпись неверна, срок истёк, пользователь удалён
    или tokenVersion в хранилище уже не совпадает с версией в токене
    (email или пароль менялись после выпуска).
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise UnauthorizedError("Invalid or expired token")

    user_id = payload.get("userId")
    user = db.query(UserDB).filter(UserDB.user_id == user_id).first()
    if not user or (user.token_version or 0) != payload.get("tokenVersion"):
        logger.info(f"Rejected stale token for user {user_id}")
        raise UnauthorizedError("Token expired or user not found, please login again")
    return user.user_id


def current_user_auth(
        request: Request,
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
        db: Session = Depends(get_db)
) -> str:
    """Зависимость FastAPI: userId из заголовка Authorization или параметра ?token="""
    token = credentials.credentials if credentials else request.query_params.get("token")
    if not token:
        raise UnauthorizedError("Missing token")
    return verify_token(db, token)
