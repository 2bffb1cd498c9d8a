from pydantic import Field
from datetime import date, datetime
from typing import List, Optional

from schemas.base import CamelModel


class TeamCreate(CamelModel):
    team_name: Optional[str] = None
    user_id: Optional[str] = None
    description: Optional[str] = None


class TeamMemberAdd(CamelModel):
    user_id: str


class TeamRoleAssign(CamelModel):
    user_id: str
    role: str


class TeamLeave(CamelModel):
    user_id: str


class TeamResponse(CamelModel):
    team_id: str
    team_name: str
    description: Optional[str] = ""
    administrator: str
    members: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None


class MemberTask(CamelModel):
    task_id: str
    title: str
    status: str
    deadline: Optional[date] = None


class TeamMemberDetailed(CamelModel):
    user_id: str
    username: str
    email: str
    image: Optional[str] = None
    phone: str = ""
    role: str = ""
    tasks: List[MemberTask] = Field(default_factory=list)
