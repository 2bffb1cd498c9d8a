"""Ошибки предметной области и их HTTP-статусы"""

from fastapi import status


class CollabMateError(Exception):
    """Базовая ошибка сервиса"""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)


class InvalidInputError(CollabMateError):
    """Отсутствующие или некорректные поля запроса"""
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(CollabMateError):
    """Сущность не найдена"""
    status_code = status.HTTP_404_NOT_FOUND


class UnauthorizedError(CollabMateError):
    """Нет токена, токен недействителен или устарел, GitLab не привязан"""
    status_code = status.HTTP_401_UNAUTHORIZED


class InvalidStateError(CollabMateError):
    """Операция невозможна при текущих связях сущностей"""
    status_code = status.HTTP_400_BAD_REQUEST


class RemoteFailureError(CollabMateError):
    """Внешний трекер задач вернул ошибку или недоступен"""
    status_code = status.HTTP_502_BAD_GATEWAY
