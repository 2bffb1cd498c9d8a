from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from typing import Optional

from auth import current_user_auth
from database import get_db
from schemas.task import TaskCreate, TaskUpdate, TaskAssign, TaskStatusUpdate
from schemas.response import StandardResponse
import crud.task as task_crud

router = APIRouter(prefix="/task", tags=["tasks"])


@router.post("", response_model=StandardResponse, status_code=status.HTTP_201_CREATED)
def create_task(task: TaskCreate, db: Session = Depends(get_db), current_user_id: str = Depends(current_user_auth)):
    """Создать новую задачу"""
    db_task = task_crud.create_task(db=db, task=task)
    return StandardResponse(
        message="Task created",
        data=task_crud.task_to_dict(db_task)
    )


@router.get("", response_model=StandardResponse)
def read_tasks(
        status: Optional[str] = Query(None, description="Filter by status"),
        team_id: Optional[str] = Query(None, alias="teamId", description="Tasks assigned to members of the team"),
        user_id: Optional[str] = Query(None, alias="userId", description="Tasks assigned to the user"),
        db: Session = Depends(get_db),
        current_user_id: str = Depends(current_user_auth)
):
    """Получить список задач с фильтрацией"""
    tasks = task_crud.get_tasks(db, status=status, team_id=team_id, user_id=user_id)
    return StandardResponse(
        message="Tasks retrieved",
        data=[task_crud.task_to_dict(task) for task in tasks]
    )


@router.get("/grouped", response_model=StandardResponse)
def read_grouped_tasks(
        by: Optional[str] = Query(None, description='"status" or "team"'),
        db: Session = Depends(get_db),
        current_user_id: str = Depends(current_user_auth)
):
    """Задачи, сгруппированные по статусу или команде"""
    groups = task_crud.group_tasks(db, by)
    return StandardResponse(
        message="Tasks grouped",
        data={"groups": {key: [task_crud.task_to_dict(task) for task in tasks] for key, tasks in groups.items()}}
    )


@router.get("/{task_id}", response_model=StandardResponse)
def read_task(task_id: str, db: Session = Depends(get_db), current_user_id: str = Depends(current_user_auth)):
    """Получить задачу по ID"""
    return StandardResponse(
        message="Task retrieved successfully",
        data=task_crud.task_to_dict(task_crud.get_task_or_404(db, task_id))
    )


@router.put("/{task_id}", response_model=StandardResponse)
def update_task(
        task_id: str,
        task: TaskUpdate,
        db: Session = Depends(get_db),
        current_user_id: str = Depends(current_user_auth)
):
    """Обновить задачу"""
    db_task = task_crud.update_task(db, task_id=task_id, task_update=task)
    return StandardResponse(
        message="Task updated",
        data=task_crud.task_to_dict(db_task)
    )


@router.patch("/{task_id}/assign", response_model=StandardResponse)
def assign_user_to_task(
        task_id: str,
        assignment: TaskAssign,
        db: Session = Depends(get_db),
        current_user_id: str = Depends(current_user_auth)
):
    """Назначить пользователя на задачу"""
    db_task = task_crud.assign_user(db, task_id, assignment.user_id)
    return StandardResponse(
        message="User assigned to task",
        data=task_crud.task_to_dict(db_task)
    )


@router.patch("/{task_id}/status", response_model=StandardResponse)
def update_task_status(
        task_id: str,
        status_update: TaskStatusUpdate,
        db: Session = Depends(get_db),
        current_user_id: str = Depends(current_user_auth)
):
    """Обновить статус задачи"""
    db_task = task_crud.change_status(db, task_id, status_update.new_status)
    return StandardResponse(
        message="Task status updated",
        data=task_crud.task_to_dict(db_task)
    )


@router.delete("/all", response_model=StandardResponse)
def delete_all_tasks(db: Session = Depends(get_db), current_user_id: str = Depends(current_user_auth)):
    """Удалить все задачи"""
    deleted = task_crud.delete_all_tasks(db)
    if not deleted:
        return StandardResponse(message="No tasks to delete", data={"deleted": 0})
    return StandardResponse(
        message="All tasks deleted",
        data={"deleted": deleted}
    )


@router.delete("/{task_id}", response_model=StandardResponse)
def delete_task(task_id: str, db: Session = Depends(get_db), current_user_id: str = Depends(current_user_auth)):
    """Удалить задачу"""
    return StandardResponse(
        message="Task deleted",
        data=task_crud.delete_task(db, task_id=task_id)
    )
