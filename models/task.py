import enum
import uuid
from sqlalchemy import Column, Integer, String, DateTime, Date, Text, JSON
import datetime
from database import Base


class TaskStatus(str, enum.Enum):
    """Канонические статусы задач. Колонка хранит произвольную строку"""
    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    DONE = "Done"


GITLAB_TASK_PREFIX = "gitlab-"


class TaskDB(Base):
    __tablename__ = "tasks"

    task_id = Column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(255), nullable=False)
    description = Column(Text)
    status = Column(String(50), nullable=False, default=TaskStatus.TODO.value)
    deadline = Column(Date, nullable=True)
    user_ids = Column(JSON, nullable=False, default=list)
    creator = Column(String(36), nullable=True)
    created_at = Column(DateTime, default=datetime.datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.datetime.utcnow)

    # Происхождение для задач, импортированных из GitLab
    gitlab_issue_id = Column(Integer, nullable=True)
    gitlab_issue_iid = Column(Integer, nullable=True)
    gitlab_project_id = Column(String(255), nullable=True)

    def __repr__(self):
        return f"<Task(task_id={self.task_id}, title='{self.title}', status='{self.status}')>"
