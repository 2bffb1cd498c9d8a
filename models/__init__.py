from .user import UserDB, UserStatus
from .task import TaskDB, TaskStatus
from .team import TeamDB

__all__ = ["UserDB", "UserStatus", "TaskDB", "TaskStatus", "TeamDB"]
