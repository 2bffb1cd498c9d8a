from .user import RegisterRequest, LoginRequest, ProfileUpdate, StatusUpdate, UserResponse, UserStatusResponse
from .task import TaskCreate, TaskUpdate, TaskAssign, TaskStatusUpdate, TaskResponse
from .team import TeamCreate, TeamMemberAdd, TeamRoleAssign, TeamLeave, TeamResponse, TeamMemberDetailed
from .response import (
    StandardResponse,
    ErrorResponse,
    TaskSummary,
    HealthCheckResponse
)

__all__ = [
    # User schemas
    "RegisterRequest", "LoginRequest", "ProfileUpdate", "StatusUpdate", "UserResponse", "UserStatusResponse",

    # Task schemas
    "TaskCreate", "TaskUpdate", "TaskAssign", "TaskStatusUpdate", "TaskResponse",

    # Team schemas
    "TeamCreate", "TeamMemberAdd", "TeamRoleAssign", "TeamLeave", "TeamResponse", "TeamMemberDetailed",

    # Response schemas
    "StandardResponse",
    "ErrorResponse",
    "TaskSummary",
    "HealthCheckResponse"
]
