from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from auth import current_user_auth
from database import get_db
from schemas.team import TeamCreate, TeamMemberAdd, TeamRoleAssign, TeamLeave
from schemas.response import StandardResponse
import crud.team as team_crud

router = APIRouter(prefix="/team", tags=["teams"])


@router.post("", response_model=StandardResponse, status_code=status.HTTP_201_CREATED)
def create_team(team: TeamCreate, db: Session = Depends(get_db), current_user_id: str = Depends(current_user_auth)):
    """Создать команду"""
    db_team = team_crud.create_team(db, team)
    return StandardResponse(
        message="Team created",
        data=team_crud.team_to_dict(db_team)
    )


@router.get("/{team_id}", response_model=StandardResponse)
def read_team(team_id: str, db: Session = Depends(get_db), current_user_id: str = Depends(current_user_auth)):
    """Получить команду по ID"""
    return StandardResponse(
        message="Team retrieved successfully",
        data=team_crud.team_to_dict(team_crud.get_team_or_404(db, team_id))
    )


@router.get("/{team_id}/members/detailed", response_model=StandardResponse)
def read_team_members_detailed(
        team_id: str,
        db: Session = Depends(get_db),
        current_user_id: str = Depends(current_user_auth)
):
    """Участники команды с их задачами"""
    return StandardResponse(
        message="Team members retrieved successfully",
        data=team_crud.get_team_members_detailed(db, team_id)
    )


@router.patch("/{team_id}/member", response_model=StandardResponse)
def add_member(
        team_id: str,
        member: TeamMemberAdd,
        db: Session = Depends(get_db),
        current_user_id: str = Depends(current_user_auth)
):
    """Добавить участника в команду"""
    db_team = team_crud.add_member(db, team_id, member.user_id)
    return StandardResponse(
        message="Member added to team",
        data=team_crud.team_to_dict(db_team)
    )


@router.patch("/{team_id}/role", response_model=StandardResponse)
def assign_role(
        team_id: str,
        assignment: TeamRoleAssign,
        db: Session = Depends(get_db),
        current_user_id: str = Depends(current_user_auth)
):
    """Назначить роль участнику команды"""
    db_user = team_crud.assign_role(db, team_id, assignment.user_id, assignment.role)
    return StandardResponse(
        message="Role assigned",
        data={"userId": db_user.user_id, "role": db_user.role}
    )


@router.post("/{team_id}/leave", response_model=StandardResponse)
def leave_team(
        team_id: str,
        leave: TeamLeave,
        db: Session = Depends(get_db),
        current_user_id: str = Depends(current_user_auth)
):
    """Выйти из команды. Если ушёл последний участник-администратор, команда удаляется"""
    message, db_team = team_crud.leave_team(db, team_id, leave.user_id)
    return StandardResponse(
        message=message,
        data=team_crud.team_to_dict(db_team) if db_team else None
    )


@router.delete("/{team_id}", response_model=StandardResponse)
def delete_team(team_id: str, db: Session = Depends(get_db), current_user_id: str = Depends(current_user_auth)):
    """Удалить команду"""
    return StandardResponse(
        message="Team deleted",
        data=team_crud.delete_team(db, team_id)
    )
