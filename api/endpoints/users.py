from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from auth import current_user_auth
from database import get_db
from schemas.user import ProfileUpdate, StatusUpdate, UserStatusResponse
from schemas.response import StandardResponse
import crud.user as crud

router = APIRouter(prefix="/user", tags=["users"])


@router.get("/all", response_model=StandardResponse)
def read_users(db: Session = Depends(get_db), current_user_id: str = Depends(current_user_auth)):
    """Получить список пользователей"""
    users = crud.get_users(db)
    return StandardResponse(
        message="Users retrieved successfully",
        data=[crud.user_to_dict(user) for user in users]
    )


@router.get("/status/all", response_model=StandardResponse)
def read_all_statuses(db: Session = Depends(get_db), current_user_id: str = Depends(current_user_auth)):
    """Статусы присутствия всех пользователей"""
    return StandardResponse(
        message="Statuses retrieved successfully",
        data=crud.get_all_user_statuses(db)
    )


@router.get("/{user_id}/status", response_model=StandardResponse)
def read_status(user_id: str, db: Session = Depends(get_db), current_user_id: str = Depends(current_user_auth)):
    return StandardResponse(
        message="Status retrieved successfully",
        data=UserStatusResponse(user_id=user_id, status=crud.get_user_status(db, user_id))
    )


@router.patch("/{user_id}/status", response_model=StandardResponse)
def update_status(
        user_id: str,
        status_update: StatusUpdate,
        db: Session = Depends(get_db),
        current_user_id: str = Depends(current_user_auth)
):
    """Обновить статус присутствия (online, busy, offline)"""
    db_user = crud.set_user_status(db, user_id, status_update.status)
    return StandardResponse(
        message="Status updated",
        data=UserStatusResponse(user_id=db_user.user_id, status=db_user.status)
    )


@router.get("/{user_id}/profile", response_model=StandardResponse)
def read_profile(user_id: str, db: Session = Depends(get_db), current_user_id: str = Depends(current_user_auth)):
    """Получить профиль пользователя"""
    db_user = crud.get_user_or_404(db, user_id)
    return StandardResponse(
        message="Profile retrieved successfully",
        data=crud.user_to_dict(db_user, expose_token=user_id == current_user_id)
    )


@router.patch("/{user_id}/profile", response_model=StandardResponse)
def update_profile(
        user_id: str,
        profile: ProfileUpdate,
        db: Session = Depends(get_db),
        current_user_id: str = Depends(current_user_auth)
):
    """Обновить профиль пользователя"""
    db_user = crud.update_profile(db, user_id=user_id, profile=profile)
    return StandardResponse(
        message="Profile updated",
        data=crud.user_to_dict(db_user, expose_token=user_id == current_user_id)
    )


@router.delete("/{user_id}", response_model=StandardResponse)
def delete_user(user_id: str, db: Session = Depends(get_db), current_user_id: str = Depends(current_user_auth)):
    """Удалить пользователя вместе со ссылками на него"""
    deleted = crud.delete_user(db, user_id=user_id)
    return StandardResponse(
        message="User deleted",
        data=deleted
    )
