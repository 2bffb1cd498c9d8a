"""Конфигурация приложения из переменных окружения"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Настройки из окружения или локального .env файла"""

    # App
    APP_NAME: str = "CollabMate API"
    LOG_LEVEL: str = "INFO"
    FRONTEND_URL: str = "http://localhost:5173"
    CORS_ORIGINS: list[str] = ["http://localhost:5173"]

    # Record store
    DATABASE_URL: str = "sqlite:///./collabmate.db"

    # Auth
    JWT_SECRET: str = "demo-secret-key"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRY_DAYS: int = 7

    # GitLab
    GITLAB_CLIENT_ID: str = ""
    GITLAB_CLIENT_SECRET: str = ""
    GITLAB_REDIRECT_URI: str = "http://localhost:3000/gitlab/callback"
    GITLAB_OAUTH_URL: str = "https://gitlab.com/oauth/authorize"
    GITLAB_TOKEN_URL: str = "https://gitlab.com/oauth/token"
    GITLAB_API_URL: str = "https://gitlab.com/api/v4"
    GITLAB_ISSUES_PER_PAGE: int = 50
    GITLAB_TIMEOUT_SECONDS: float = 15.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


settings = Settings()
