from pydantic import Field
from datetime import date, datetime
from typing import List, Optional

from models.task import TaskStatus
from schemas.base import CamelModel


class TaskCreate(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    deadline: Optional[date] = None
    status: str = Field(TaskStatus.TODO.value, description="To Do | In Progress | Done")
    user_ids: Optional[List[str]] = None
    user_id: Optional[str] = Field(None, description="ID пользователя-создателя задачи")


class TaskUpdate(CamelModel):
    """Частичное обновление. creator и createdAt не защищены, в отличие от upsert"""
    title: Optional[str] = None
    description: Optional[str] = None
    deadline: Optional[date] = None
    status: Optional[str] = None
    user_ids: Optional[List[str]] = None
    creator: Optional[str] = None
    created_at: Optional[datetime] = None
    gitlab_issue_id: Optional[int] = None
    gitlab_issue_iid: Optional[int] = None
    gitlab_project_id: Optional[str] = None


class TaskAssign(CamelModel):
    user_id: str


class TaskStatusUpdate(CamelModel):
    new_status: str = Field(..., description="To Do | In Progress | Done")


class TaskResponse(CamelModel):
    task_id: str
    title: str
    description: Optional[str] = None
    status: str
    deadline: Optional[date] = None
    user_ids: List[str] = Field(default_factory=list)
    creator: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    gitlab_issue_id: Optional[int] = None
    gitlab_issue_iid: Optional[int] = None
    gitlab_project_id: Optional[str] = None
