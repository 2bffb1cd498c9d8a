from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session
from typing import Optional

from auth import current_user_auth
from config import settings
from crud.gitlab import ClientFactory
from database import get_db
from exceptions import InvalidInputError
from gitlab_client import GitLabClient, build_authorize_url
from schemas.response import StandardResponse
import crud.gitlab as gitlab_crud
import crud.task as task_crud

router = APIRouter(prefix="/gitlab", tags=["gitlab"])


def get_gitlab_client_factory() -> ClientFactory:
    """Фабрика клиентов GitLab, в тестах подменяется через dependency_overrides"""
    return GitLabClient


@router.get("/login")
def gitlab_login(current_user_id: str = Depends(current_user_auth)):
    """Перенаправить на страницу авторизации GitLab"""
    return RedirectResponse(build_authorize_url(current_user_id))


@router.get("/callback")
def gitlab_callback(
        code: Optional[str] = Query(None),
        state: Optional[str] = Query(None),
        db: Session = Depends(get_db),
        client_factory: ClientFactory = Depends(get_gitlab_client_factory)
):
    """OAuth callback: state содержит userId, для которого привязывается аккаунт"""
    if not code or not state:
        raise InvalidInputError("Missing code or state")
    gitlab_crud.link_account(db, code, state, client_factory)
    return RedirectResponse(f"{settings.FRONTEND_URL}/gitlab?gitlab=success")


@router.get("/user", response_model=StandardResponse)
def read_gitlab_user(
        db: Session = Depends(get_db),
        current_user_id: str = Depends(current_user_auth),
        client_factory: ClientFactory = Depends(get_gitlab_client_factory)
):
    return StandardResponse(
        message="GitLab user retrieved",
        data=gitlab_crud.get_linked_user(db, current_user_id, client_factory)
    )


@router.get("/projects", response_model=StandardResponse)
def read_projects(
        db: Session = Depends(get_db),
        current_user_id: str = Depends(current_user_auth),
        client_factory: ClientFactory = Depends(get_gitlab_client_factory)
):
    """Проекты, в которых состоит пользователь"""
    return StandardResponse(
        message="GitLab projects retrieved",
        data=gitlab_crud.list_projects(db, current_user_id, client_factory)
    )


@router.get("/projects/names", response_model=StandardResponse)
def read_project_names(
        db: Session = Depends(get_db),
        current_user_id: str = Depends(current_user_auth),
        client_factory: ClientFactory = Depends(get_gitlab_client_factory)
):
    return StandardResponse(
        message="GitLab project names retrieved",
        data=gitlab_crud.list_project_names(db, current_user_id, client_factory)
    )


@router.get("/projects/{project_id}/issues/as-tasks", response_model=StandardResponse)
def import_issues(
        project_id: str,
        db: Session = Depends(get_db),
        current_user_id: str = Depends(current_user_auth),
        client_factory: ClientFactory = Depends(get_gitlab_client_factory)
):
    """Импортировать все issue проекта как задачи. Повторный импорт не плодит дублей"""
    tasks = gitlab_crud.import_project_issues(db, current_user_id, project_id, client_factory)
    return StandardResponse(
        message="GitLab issues converted to tasks",
        data=[task_crud.task_to_dict(task) for task in tasks]
    )


@router.get("/projects/{project_id}/issues/ids", response_model=StandardResponse)
def read_issue_ids(
        project_id: str,
        db: Session = Depends(get_db),
        current_user_id: str = Depends(current_user_auth),
        client_factory: ClientFactory = Depends(get_gitlab_client_factory)
):
    return StandardResponse(
        message="GitLab issue ids retrieved",
        data=gitlab_crud.list_issue_ids(db, current_user_id, project_id, client_factory)
    )


@router.get(
    "/projects/{project_id}/issues/{issue_iid}",
    response_model=StandardResponse,
    status_code=status.HTTP_201_CREATED
)
def import_issue(
        project_id: str,
        issue_iid: int,
        db: Session = Depends(get_db),
        current_user_id: str = Depends(current_user_auth),
        client_factory: ClientFactory = Depends(get_gitlab_client_factory)
):
    """Импортировать одну issue по iid"""
    task = gitlab_crud.import_single_issue(db, current_user_id, project_id, issue_iid, client_factory)
    return StandardResponse(
        message="Issue imported as task",
        data=task_crud.task_to_dict(task)
    )


@router.delete("/unlink", response_model=StandardResponse)
def unlink_gitlab(db: Session = Depends(get_db), current_user_id: str = Depends(current_user_auth)):
    """Отвязать аккаунт GitLab"""
    gitlab_crud.unlink_account(db, current_user_id)
    return StandardResponse(message="GitLab account unlinked", data={"userId": current_user_id})
