from sqlalchemy.orm import Session
from typing import Any, Callable, Dict, List, Optional
import datetime
import logging

from crud.task import upsert_tasks
from crud.user import get_user, get_user_or_404
from exceptions import NotFoundError, UnauthorizedError
from gitlab_client import GitLabClient
from models.task import TaskDB, TaskStatus, GITLAB_TASK_PREFIX
from models.user import UserDB

logger = logging.getLogger(__name__)

# Принимает access token (или None для обмена OAuth code) и возвращает клиент
ClientFactory = Callable[[Optional[str]], GitLabClient]


def gitlab_task_id(issue_id: Any) -> str:
    return f"{GITLAB_TASK_PREFIX}{issue_id}"


def _parse_date(value: Optional[str]) -> Optional[datetime.date]:
    if not value:
        return None
    return datetime.date.fromisoformat(value[:10])


def _parse_datetime(value: Optional[str]) -> Optional[datetime.datetime]:
    """ISO 8601 из GitLab -> naive UTC, как и остальные метки времени в хранилище"""
    if not value:
        return None
    parsed = datetime.datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return parsed


def resolve_assignees(issue: Dict[str, Any], users: List[UserDB]) -> List[str]:
    """Сопоставить исполнителей GitLab локальным пользователям по gitlabUserId.

    Поддерживаются обе формы: список assignees и одиночный объект assignee.
    Исполнители без локальной пары молча отбрасываются.
    """
    by_remote_id: Dict[int, str] = {}
    for user in users:
        if user.gitlab_user_id is not None:
            by_remote_id.setdefault(user.gitlab_user_id, user.user_id)

    assignees = issue.get("assignees")
    if isinstance(assignees, list):
        remote = assignees
    elif issue.get("assignee"):
        remote = [issue["assignee"]]
    else:
        remote = []

    user_ids = []
    for assignee in remote:
        user_id = by_remote_id.get((assignee or {}).get("id"))
        if user_id and user_id not in user_ids:
            user_ids.append(user_id)
    return user_ids


def issue_to_task(
        issue: Dict[str, Any],
        project_id: str,
        users: List[UserDB],
        importer_id: str,
        now: Optional[datetime.datetime] = None
) -> dict:
    """Преобразовать issue GitLab в поля TaskDB.

    closed -> Done, любое другое состояние -> To Do: локальный In Progress
    при повторном импорте открытой задачи сбрасывается.
    """
    now = now or datetime.datetime.utcnow()
    return {
        "task_id": gitlab_task_id(issue["id"]),
        "title": issue.get("title") or "",
        "description": issue.get("description") or "",
        "deadline": _parse_date(issue.get("due_date")),
        "status": TaskStatus.DONE.value if issue.get("state") == "closed" else TaskStatus.TODO.value,
        "user_ids": resolve_assignees(issue, users),
        "gitlab_issue_id": issue["id"],
        "gitlab_issue_iid": issue.get("iid"),
        "gitlab_project_id": str(project_id),
        "created_at": _parse_datetime(issue.get("created_at")) or now,
        "updated_at": _parse_datetime(issue.get("updated_at")) or now,
        "creator": importer_id,
    }


def _linked_token(db: Session, user_id: str) -> str:
    user = get_user(db, user_id)
    if not user or not user.gitlab_access_token:
        raise UnauthorizedError("GitLab not linked")
    return user.gitlab_access_token


def import_project_issues(
        db: Session,
        user_id: str,
        project_id: str,
        client_factory: ClientFactory = GitLabClient
) -> List[TaskDB]:
    """Импортировать все issue проекта как задачи (upsert по gitlab-<id>)"""
    token = _linked_token(db, user_id)
    with client_factory(token) as client:
        issues = client.list_issues(project_id)

    users = db.query(UserDB).all()
    now = datetime.datetime.utcnow()
    tasks = [issue_to_task(issue, project_id, users, user_id, now) for issue in issues]
    logger.info(f"Importing {len(tasks)} issue(s) from GitLab project {project_id} for user {user_id}")
    if not tasks:
        return []
    return upsert_tasks(db, tasks)


def import_single_issue(
        db: Session,
        user_id: str,
        project_id: str,
        issue_iid: int,
        client_factory: ClientFactory = GitLabClient
) -> TaskDB:
    """Импортировать одну issue проекта по iid"""
    token = _linked_token(db, user_id)
    with client_factory(token) as client:
        issue = client.get_issue(project_id, issue_iid)
    if not issue:
        raise NotFoundError("Issue not found")

    users = db.query(UserDB).all()
    task = issue_to_task(issue, project_id, users, user_id)
    logger.info(f"Importing GitLab issue {project_id}#{issue_iid} as {task['task_id']}")
    return upsert_tasks(db, [task])[0]


def link_account(db: Session, code: str, state: str, client_factory: ClientFactory = GitLabClient) -> UserDB:
    """Завершить OAuth: сохранить access token и id пользователя GitLab"""
    user = get_user_or_404(db, state)
    with client_factory(None) as client:
        access_token = client.exchange_code(code)
    with client_factory(access_token) as client:
        remote_user = client.get_current_user()

    user.gitlab_access_token = access_token
    user.gitlab_user_id = remote_user.get("id")
    db.commit()
    db.refresh(user)
    logger.info(f"User {user.user_id} linked GitLab account {user.gitlab_user_id}")
    return user


def unlink_account(db: Session, user_id: str) -> UserDB:
    """Отвязать GitLab. gitlabUserId остаётся для сопоставления исполнителей"""
    user = get_user_or_404(db, user_id)
    user.gitlab_access_token = None
    db.commit()
    db.refresh(user)
    return user


def get_linked_user(db: Session, user_id: str, client_factory: ClientFactory = GitLabClient) -> Dict[str, Any]:
    with client_factory(_linked_token(db, user_id)) as client:
        return client.get_current_user()


def list_projects(db: Session, user_id: str, client_factory: ClientFactory = GitLabClient) -> List[Dict[str, Any]]:
    with client_factory(_linked_token(db, user_id)) as client:
        return client.list_projects()


def list_project_names(db: Session, user_id: str, client_factory: ClientFactory = GitLabClient) -> List[dict]:
    with client_factory(_linked_token(db, user_id)) as client:
        projects = client.list_projects(simple=True)
    return [{"id": project["id"], "name": project["name"]} for project in projects]


def list_issue_ids(
        db: Session,
        user_id: str,
        project_id: str,
        client_factory: ClientFactory = GitLabClient
) -> List[dict]:
    with client_factory(_linked_token(db, user_id)) as client:
        issues = client.list_issues(project_id, per_page=100)
    return [
        {"issueId": issue["id"], "title": issue.get("title"), "state": issue.get("state"), "issueIid": issue.get("iid")}
        for issue in issues
    ]
