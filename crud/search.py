from sqlalchemy.orm import Session
from typing import List, Optional

from crud.task import task_to_dict
from crud.team import team_to_dict
from crud.user import user_to_dict
from exceptions import InvalidInputError
from models.task import TaskDB
from models.team import TeamDB
from models.user import UserDB

SEARCH_TYPES = ("task", "user", "team")


def _contains(value: Optional[str], keyword: str) -> bool:
    return bool(value) and keyword in value.lower()


def search(db: Session, search_type: Optional[str], keyword: Optional[str]) -> List[dict]:
    """Поиск подстроки без учёта регистра по задачам, пользователям или командам"""
    if not search_type or not keyword:
        raise InvalidInputError("Missing required parameters (type, keyword)")
    if search_type not in SEARCH_TYPES:
        raise InvalidInputError("Invalid type. Must be task, user, or team.")

    kw = keyword.strip().lower()

    if search_type == "task":
        return [
            task_to_dict(task) for task in db.query(TaskDB).all()
            if _contains(task.title, kw) or _contains(task.description, kw) or _contains(task.status, kw)
        ]
    if search_type == "user":
        return [
            user_to_dict(user) for user in db.query(UserDB).all()
            if _contains(user.username, kw) or _contains(user.email, kw)
            or _contains(user.phone, kw) or _contains(user.role, kw)
        ]
    return [
        team_to_dict(team) for team in db.query(TeamDB).all()
        if _contains(team.team_name, kw) or _contains(team.team_id, kw)
    ]
