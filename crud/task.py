from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from typing import Dict, List, Optional
import datetime
import logging

from exceptions import InvalidInputError, NotFoundError
from models.task import TaskDB, TaskStatus
from models.team import TeamDB
from models.user import UserDB
from schemas.task import TaskCreate, TaskUpdate, TaskResponse

logger = logging.getLogger(__name__)

# Поля происхождения: upsert никогда их не перезаписывает
PROVENANCE_FIELDS = ("created_at", "creator")


def task_to_dict(task: TaskDB) -> dict:
    """Преобразовать TaskDB в словарь {taskId, title, ..., gitlabProjectId}"""
    return TaskResponse.model_validate(task).model_dump(by_alias=True)


def get_task(db: Session, task_id: str) -> Optional[TaskDB]:
    return db.query(TaskDB).filter(TaskDB.task_id == task_id).first()


def get_task_or_404(db: Session, task_id: str) -> TaskDB:
    task = get_task(db, task_id)
    if not task:
        raise NotFoundError("Task not found")
    return task


def _has_assignee_in(task: TaskDB, member_ids: set) -> bool:
    return any(uid in member_ids for uid in (task.user_ids or []))


def get_tasks(
        db: Session,
        status: Optional[str] = None,
        team_id: Optional[str] = None,
        user_id: Optional[str] = None
) -> List[TaskDB]:
    """Получить список задач с фильтрацией. Фильтры комбинируются"""
    query = db.query(TaskDB)
    if status:
        query = query.filter(TaskDB.status == status)
    tasks = query.order_by(TaskDB.created_at).all()

    if team_id:
        team = db.query(TeamDB).filter(TeamDB.team_id == team_id).first()
        if not team:
            raise NotFoundError("Team not found")
        member_ids = set(team.members)
        tasks = [task for task in tasks if _has_assignee_in(task, member_ids)]

    if user_id:
        tasks = [task for task in tasks if user_id in (task.user_ids or [])]

    return tasks


def group_tasks(db: Session, by: Optional[str]) -> Dict[str, List[TaskDB]]:
    """Сгруппировать задачи по статусу или по командам исполнителей"""
    tasks = db.query(TaskDB).order_by(TaskDB.created_at).all()

    if by == "status":
        groups: Dict[str, List[TaskDB]] = {}
        for task in tasks:
            groups.setdefault(task.status or "Unknown", []).append(task)
        return groups

    if by == "team":
        groups = {}
        for team in db.query(TeamDB).order_by(TeamDB.created_at).all():
            member_ids = set(team.members)
            groups[team.team_id] = [task for task in tasks if _has_assignee_in(task, member_ids)]
        return groups

    raise InvalidInputError('Invalid grouping method. Use "status" or "team".')


def create_task(db: Session, task: TaskCreate) -> TaskDB:
    """Создать новую задачу"""
    if not task.title or not task.title.strip():
        raise InvalidInputError("Missing required title")
    if not task.user_id:
        raise InvalidInputError("Missing userId")
    if task.user_ids is None:
        raise InvalidInputError("'userIds' must be an array")

    now = datetime.datetime.utcnow()
    db_task = TaskDB(
        title=task.title,
        description=task.description,
        status=task.status,
        deadline=task.deadline,
        user_ids=list(dict.fromkeys(task.user_ids)),
        gitlab_issue_id=None,
        creator=task.user_id,
        created_at=now,
        updated_at=now
    )
    db.add(db_task)
    db.commit()
    db.refresh(db_task)
    logger.info(f"Task {db_task.task_id} created by {task.user_id}")
    return db_task


def update_task(db: Session, task_id: str, task_update: TaskUpdate) -> TaskDB:
    """Поверхностно слить переданные поля с задачей и обновить updatedAt.

    В отличие от upsert_tasks, creator и createdAt здесь перезаписываются,
    если вызывающий их передал.
    """
    db_task = get_task_or_404(db, task_id)
    update_data = task_update.model_dump(exclude_unset=True)

    if "title" in update_data and not (update_data["title"] or "").strip():
        raise InvalidInputError("Title cannot be empty")
    if "status" in update_data and not update_data["status"]:
        raise InvalidInputError("Status cannot be empty")
    if "user_ids" in update_data:
        update_data["user_ids"] = list(dict.fromkeys(update_data["user_ids"] or []))

    for field, value in update_data.items():
        setattr(db_task, field, value)
    db_task.updated_at = datetime.datetime.utcnow()
    db.commit()
    db.refresh(db_task)
    return db_task


def assign_user(db: Session, task_id: str, user_id: str) -> TaskDB:
    """Назначить пользователя на задачу без дублей. updatedAt обновляется всегда"""
    db_task = get_task_or_404(db, task_id)
    if user_id not in (db_task.user_ids or []):
        db_task.user_ids = [*(db_task.user_ids or []), user_id]
    db_task.updated_at = datetime.datetime.utcnow()
    db.commit()
    db.refresh(db_task)
    return db_task


def change_status(db: Session, task_id: str, new_status: str) -> TaskDB:
    """Сменить статус. Значение не проверяется по TaskStatus"""
    db_task = get_task_or_404(db, task_id)
    db_task.status = new_status
    db_task.updated_at = datetime.datetime.utcnow()
    db.commit()
    db.refresh(db_task)
    return db_task


def upsert_tasks(db: Session, tasks: List[dict]) -> List[TaskDB]:
    """Вставить или слить пачку задач по taskId за одну фиксацию.

    Для существующей задачи все переданные поля заменяются новыми
    значениями, кроме created_at и creator: они остаются от уже сохранённой
    записи. Ключи словарей - имена атрибутов TaskDB.
    """
    incoming_ids = [task["task_id"] for task in tasks]
    existing = {
        task.task_id: task
        for task in db.query(TaskDB).filter(TaskDB.task_id.in_(incoming_ids)).all()
    }

    result = []
    inserted = 0
    for incoming in tasks:
        db_task = existing.get(incoming["task_id"])
        if db_task is not None:
            for field, value in incoming.items():
                if field in PROVENANCE_FIELDS:
                    continue
                setattr(db_task, field, value)
        else:
            db_task = TaskDB(**incoming)
            db.add(db_task)
            existing[db_task.task_id] = db_task
            inserted += 1
        result.append(db_task)

    db.commit()
    for db_task in result:
        db.refresh(db_task)
    logger.info(f"Upserted {len(tasks)} task(s): {inserted} inserted, {len(tasks) - inserted} merged")
    return result


def _clear_task_references(db: Session, task_id: Optional[str] = None) -> None:
    """Очистить устаревшие ссылки taskId / tasks[] у пользователей.

    task_id=None очищает ссылки на любые задачи.
    """
    changed = False
    for user in db.query(UserDB).all():
        if user.task_id and (task_id is None or user.task_id == task_id):
            user.task_id = None
            changed = True
        if user.tasks:
            remaining = [] if task_id is None else [tid for tid in user.tasks if tid != task_id]
            if len(remaining) != len(user.tasks):
                user.tasks = remaining
                changed = True
    if changed:
        db.commit()


def delete_task(db: Session, task_id: str) -> dict:
    """Удалить задачу и очистить ссылки на неё у пользователей"""
    db_task = get_task_or_404(db, task_id)
    deleted = task_to_dict(db_task)
    db.delete(db_task)
    db.commit()
    logger.info(f"Task {task_id} deleted")

    try:
        _clear_task_references(db, task_id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to clear user references to task {task_id}: {e}")

    return deleted


def delete_all_tasks(db: Session) -> int:
    """Удалить все задачи. Возвращает число удалённых, 0 - удалять было нечего"""
    count = db.query(TaskDB).count()
    if not count:
        logger.debug("No tasks to delete")
        return 0

    db.query(TaskDB).delete()
    db.commit()
    logger.info(f"Deleted all {count} task(s)")

    try:
        _clear_task_references(db)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to clear user task references after deleting all tasks: {e}")

    return count


def get_task_summary(db: Session) -> dict:
    """Сводка для дашборда: всего, выполнено (Done), осталось"""
    total = db.query(TaskDB).count()
    completed = db.query(TaskDB).filter(TaskDB.status == TaskStatus.DONE.value).count()
    return {"total": total, "completed": completed, "remaining": total - completed}


def get_calendar(db: Session) -> List[dict]:
    return [
        {"taskId": task.task_id, "title": task.title, "deadline": task.deadline, "status": task.status}
        for task in db.query(TaskDB).order_by(TaskDB.created_at).all()
    ]


def get_task_progress(db: Session, task_id: str) -> dict:
    """Прогресс задачи: Done - 100, In Progress - 50, иначе 0"""
    task = get_task_or_404(db, task_id)
    if task.status == TaskStatus.DONE.value:
        progress = 100
    elif task.status == TaskStatus.IN_PROGRESS.value:
        progress = 50
    else:
        progress = 0
    return {
        "taskId": task.task_id,
        "title": task.title,
        "status": task.status,
        "progress_percent": progress
    }
