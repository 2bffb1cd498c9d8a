from pydantic import BaseModel, Field
from typing import Any, Optional
from datetime import datetime


class StandardResponse(BaseModel):
    """Стандартный ответ для успешных операций"""
    success: bool = True
    message: str
    data: Optional[Any] = None
    timestamp: datetime = Field(default_factory=datetime.now)

    class Config:
        from_attributes = True


class ErrorResponse(BaseModel):
    """Стандартный ответ для ошибок"""
    success: bool = False
    error: str
    details: Optional[Any] = None
    timestamp: datetime = Field(default_factory=datetime.now)

    class Config:
        from_attributes = True


class TaskSummary(BaseModel):
    """Сводка по задачам для дашборда"""
    total: int = 0
    completed: int = 0
    remaining: int = 0


class HealthCheckResponse(BaseModel):
    """Ответ для health check эндпоинта"""
    status: str = "ok"
    service: str
