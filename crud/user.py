from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from typing import List, Optional
import logging
import re

from auth import hash_password, verify_password
from crud.team import remove_member
from exceptions import InvalidInputError, NotFoundError, UnauthorizedError
from models.task import TaskDB
from models.team import TeamDB
from models.user import UserDB, UserStatus
from schemas.user import RegisterRequest, ProfileUpdate, UserResponse

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PASSWORD_ALLOWED_RE = re.compile(r"^[A-Za-z0-9_\-+@]+$")
PASSWORD_RULES = (
    "Password must be at least 8 characters long, include letters and numbers, "
    "and only use a-z, A-Z, 0-9, _ - + @"
)


def user_to_dict(user: UserDB, expose_token: bool = False) -> dict:
    """Публичное представление пользователя. Хеш пароля не покидает сервис"""
    data = UserResponse.model_validate(user).model_dump(by_alias=True)
    if not expose_token:
        data["gitlabAccessToken"] = None
    return data


def validate_email_format(email: str) -> bool:
    return bool(EMAIL_RE.match(email))


def validate_password_strength(password: str) -> bool:
    return (
        len(password) >= 8
        and bool(PASSWORD_ALLOWED_RE.match(password))
        and re.search(r"[A-Za-z]", password) is not None
        and re.search(r"[0-9]", password) is not None
    )


def get_user(db: Session, user_id: str) -> Optional[UserDB]:
    return db.query(UserDB).filter(UserDB.user_id == user_id).first()


def get_user_or_404(db: Session, user_id: str) -> UserDB:
    user = get_user(db, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def get_user_by_email(db: Session, email: str) -> Optional[UserDB]:
    return db.query(UserDB).filter(UserDB.email == email).first()


def get_users(db: Session) -> List[UserDB]:
    return db.query(UserDB).order_by(UserDB.created_at).all()


def create_user(db: Session, user: RegisterRequest) -> UserDB:
    """Регистрация: проверка полей, хеширование пароля, tokenVersion = 0"""
    if not user.username or not user.email or not user.password:
        raise InvalidInputError("Missing fields")
    if not validate_email_format(user.email):
        raise InvalidInputError("Invalid email format")
    if not validate_password_strength(user.password):
        raise InvalidInputError(PASSWORD_RULES)
    if get_user_by_email(db, user.email):
        raise InvalidInputError("Email already exists")

    db_user = UserDB(
        username=user.username,
        email=user.email,
        password=hash_password(user.password),
        token_version=0,
        status=UserStatus.OFFLINE.value
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    logger.info(f"Registered user {db_user.user_id} ({db_user.email})")
    return db_user


def authenticate_user(db: Session, email: Optional[str], password: Optional[str]) -> UserDB:
    if not email or not password:
        raise InvalidInputError("Missing fields")
    user = get_user_by_email(db, email)
    if not user:
        raise UnauthorizedError("User does not exist")
    if not verify_password(password, user.password):
        raise UnauthorizedError("Incorrect password")
    return user


def update_profile(db: Session, user_id: str, profile: ProfileUpdate) -> UserDB:
    """Обновить профиль.

    Смена email на новое значение или пароля на отличный от текущего
    увеличивает tokenVersion ровно на единицу, что делает недействительными
    все ранее выпущенные токены.
    """
    db_user = get_user_or_404(db, user_id)
    update_data = {field: value for field, value in profile.model_dump(exclude_unset=True).items()
                   if value is not None}
    if not update_data:
        raise InvalidInputError("No valid profile fields to update")

    token_sensitive_changed = False

    if "password" in update_data:
        password = update_data.pop("password")
        if not verify_password(password, db_user.password):
            if not validate_password_strength(password):
                raise InvalidInputError(PASSWORD_RULES)
            db_user.password = hash_password(password)
            token_sensitive_changed = True

    if "email" in update_data:
        email = update_data.pop("email")
        if email != db_user.email:
            if not validate_email_format(email):
                raise InvalidInputError("Invalid email format")
            if get_user_by_email(db, email):
                raise InvalidInputError("Email already exists")
            db_user.email = email
            token_sensitive_changed = True

    if "status" in update_data and update_data["status"] not in [s.value for s in UserStatus]:
        raise InvalidInputError("Invalid status")

    for field, value in update_data.items():
        setattr(db_user, field, value)

    if token_sensitive_changed:
        db_user.token_version = (db_user.token_version or 0) + 1
        logger.info(f"User {user_id} changed credentials, tokenVersion -> {db_user.token_version}")

    db.commit()
    db.refresh(db_user)
    return db_user


def set_user_status(db: Session, user_id: str, status: str) -> UserDB:
    if status not in [s.value for s in UserStatus]:
        raise InvalidInputError("Invalid status")
    db_user = get_user_or_404(db, user_id)
    db_user.status = status
    db.commit()
    db.refresh(db_user)
    return db_user


def get_user_status(db: Session, user_id: str) -> str:
    return get_user_or_404(db, user_id).status or UserStatus.OFFLINE.value


def get_all_user_statuses(db: Session) -> List[dict]:
    return [
        {"userId": user.user_id, "status": user.status or UserStatus.OFFLINE.value}
        for user in get_users(db)
    ]


def delete_user(db: Session, user_id: str) -> dict:
    """Удалить пользователя и убрать ссылки на него из задач и команд.

    Каскад выполняется после фиксации основного удаления и не откатывает его:
    ошибка каскада только логируется.
    """
    db_user = get_user_or_404(db, user_id)
    deleted = user_to_dict(db_user)
    db.delete(db_user)
    db.commit()
    logger.info(f"User {user_id} deleted")

    try:
        _remove_user_from_tasks(db, user_id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to remove user {user_id} from tasks: {e}")

    try:
        _remove_user_from_teams(db, user_id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to remove user {user_id} from teams: {e}")

    return deleted


def _remove_user_from_tasks(db: Session, user_id: str) -> None:
    # updatedAt не трогаем: это побочный эффект каскада, а не правка задачи
    changed = False
    for task in db.query(TaskDB).all():
        if user_id in (task.user_ids or []):
            task.user_ids = [uid for uid in task.user_ids if uid != user_id]
            changed = True
    if changed:
        db.commit()


def _remove_user_from_teams(db: Session, user_id: str) -> None:
    changed = False
    for team in db.query(TeamDB).all():
        if user_id not in (team.members or []):
            continue
        if remove_member(team, user_id):
            logger.info(f"Team {team.team_id} lost its last member, deleting")
            db.delete(team)
        changed = True
    if changed:
        db.commit()
