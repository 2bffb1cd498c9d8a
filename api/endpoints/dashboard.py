from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from auth import current_user_auth
from database import get_db
from schemas.response import StandardResponse, TaskSummary
import crud.task as task_crud

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/calendar", response_model=StandardResponse)
def read_calendar(db: Session = Depends(get_db), current_user_id: str = Depends(current_user_auth)):
    """Задачи со сроками для календаря"""
    return StandardResponse(
        message="Calendar data retrieved",
        data=task_crud.get_calendar(db)
    )


@router.get("/summary", response_model=StandardResponse)
def read_summary(db: Session = Depends(get_db), current_user_id: str = Depends(current_user_auth)):
    """Получить сводку по задачам"""
    return StandardResponse(
        message="Task summary retrieved",
        data=TaskSummary(**task_crud.get_task_summary(db))
    )


@router.get("/task-progress/{task_id}", response_model=StandardResponse)
def read_task_progress(task_id: str, db: Session = Depends(get_db), current_user_id: str = Depends(current_user_auth)):
    return StandardResponse(
        message="Task progress retrieved",
        data=task_crud.get_task_progress(db, task_id)
    )
