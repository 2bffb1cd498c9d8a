from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from typing import List, Optional, Tuple
import datetime
import logging

from exceptions import InvalidInputError, InvalidStateError, NotFoundError
from models.team import TeamDB
from models.task import TaskDB
from models.user import UserDB
from schemas.team import TeamCreate, TeamResponse, TeamMemberDetailed, MemberTask

logger = logging.getLogger(__name__)

MSG_USER_LEFT = "User left the team"
MSG_ADMIN_LEFT_TEAM_DELETED = "Administrator left, team deleted"


def team_to_dict(team: TeamDB) -> dict:
    """Преобразовать TeamDB в словарь {teamId, teamName, ...}"""
    return TeamResponse.model_validate(team).model_dump(by_alias=True)


def get_team(db: Session, team_id: str) -> Optional[TeamDB]:
    return db.query(TeamDB).filter(TeamDB.team_id == team_id).first()


def get_team_or_404(db: Session, team_id: str) -> TeamDB:
    team = get_team(db, team_id)
    if not team:
        raise NotFoundError("Team not found")
    return team


def _get_user_or_404(db: Session, user_id: str) -> UserDB:
    user = db.query(UserDB).filter(UserDB.user_id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def create_team(db: Session, team: TeamCreate) -> TeamDB:
    """Создать команду: создатель - единственный участник и администратор"""
    if not team.team_name or not team.user_id:
        raise InvalidInputError("Missing teamName or userId")
    creator = _get_user_or_404(db, team.user_id)

    db_team = TeamDB(
        team_name=team.team_name,
        description=team.description or "",
        administrator=creator.user_id,
        members=[creator.user_id],
        created_at=datetime.datetime.utcnow()
    )
    db.add(db_team)
    db.flush()
    creator.team_id = db_team.team_id
    db.commit()
    db.refresh(db_team)
    logger.info(f"Team {db_team.team_id} '{db_team.team_name}' created by {creator.user_id}")
    return db_team


def add_member(db: Session, team_id: str, user_id: str) -> TeamDB:
    """Добавить участника. Повторное добавление ничего не меняет"""
    db_team = get_team_or_404(db, team_id)
    user = _get_user_or_404(db, user_id)

    if user.user_id in db_team.members:
        logger.debug(f"User {user_id} already in team {team_id}, skipping")
        return db_team

    db_team.members = [*db_team.members, user.user_id]
    user.team_id = team_id
    user.join_date = datetime.datetime.utcnow()
    db.commit()
    db.refresh(db_team)
    logger.info(f"User {user_id} joined team {team_id}")
    return db_team


def assign_role(db: Session, team_id: str, user_id: str, role: str) -> UserDB:
    """Назначить роль. Роль хранится у пользователя, а не в команде"""
    user = _get_user_or_404(db, user_id)
    if user.team_id != team_id:
        raise InvalidStateError("User not in this team")

    user.role = role
    db.commit()
    db.refresh(user)
    return user


def remove_member(team: TeamDB, user_id: str) -> bool:
    """Убрать участника из members и применить правило преемственности.

    Новым администратором становится самый ранний из оставшихся участников
    (members[0] после удаления). Возвращает True, если ушёл администратор и
    участников не осталось - такую команду нужно удалить.
    """
    team.members = [member for member in team.members if member != user_id]
    if team.administrator != user_id:
        return False
    if not team.members:
        return True
    team.administrator = team.members[0]
    logger.info(f"Team {team.team_id}: administrator passed from {user_id} to {team.administrator}")
    return False


def leave_team(db: Session, team_id: str, user_id: str) -> Tuple[str, Optional[TeamDB]]:
    """Выход из команды. Возвращает (сообщение, команда или None, если команда удалена)"""
    db_team = get_team_or_404(db, team_id)
    if user_id not in db_team.members:
        raise InvalidStateError("User not in team")

    team_is_empty = remove_member(db_team, user_id)

    user = db.query(UserDB).filter(UserDB.user_id == user_id).first()
    if user:
        user.team_id = None
        user.role = None

    if team_is_empty:
        db.delete(db_team)
        db.commit()
        logger.info(f"Administrator {user_id} left, team {team_id} deleted")
        return MSG_ADMIN_LEFT_TEAM_DELETED, None

    db.commit()
    db.refresh(db_team)
    logger.info(f"User {user_id} left team {team_id}")
    return MSG_USER_LEFT, db_team


def delete_team(db: Session, team_id: str) -> dict:
    """Удалить команду и очистить teamId у её участников. Роль не сбрасывается"""
    db_team = get_team_or_404(db, team_id)
    deleted = team_to_dict(db_team)
    db.delete(db_team)
    db.commit()
    logger.info(f"Team {team_id} deleted")

    try:
        _clear_team_affiliation(db, team_id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to clear teamId after deleting team {team_id}: {e}")

    return deleted


def _clear_team_affiliation(db: Session, team_id: str) -> None:
    affiliated = db.query(UserDB).filter(UserDB.team_id == team_id).all()
    for user in affiliated:
        user.team_id = None
    if affiliated:
        db.commit()


def get_team_members_detailed(db: Session, team_id: str) -> List[dict]:
    """Участники команды в порядке вступления вместе с назначенными им задачами"""
    db_team = get_team_or_404(db, team_id)
    users = {user.user_id: user for user in db.query(UserDB).filter(UserDB.user_id.in_(db_team.members)).all()}
    tasks = db.query(TaskDB).all()

    details = []
    for member_id in db_team.members:
        user = users.get(member_id)
        if not user:
            continue
        member = TeamMemberDetailed(
            user_id=user.user_id,
            username=user.username,
            email=user.email,
            image=user.image or None,
            phone=user.phone or "",
            role=user.role or "",
            tasks=[MemberTask.model_validate(task) for task in tasks if member_id in (task.user_ids or [])]
        )
        details.append(member.model_dump(by_alias=True))
    return details
