from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from auth import current_user_auth
from database import get_db
from schemas.response import StandardResponse
import crud.search as search_crud

router = APIRouter(prefix="/search", tags=["search"])


@router.get("", response_model=StandardResponse)
def search(
        type: Optional[str] = Query(None, description="task, user or team"),
        keyword: Optional[str] = Query(None, description="Case-insensitive substring"),
        db: Session = Depends(get_db),
        current_user_id: str = Depends(current_user_auth)
):
    """Поиск по задачам, пользователям или командам"""
    return StandardResponse(
        message="Search completed",
        data={"result": search_crud.search(db, type, keyword)}
    )
