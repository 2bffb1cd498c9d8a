from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from config import settings
from database import engine, Base
from exceptions import CollabMateError
from schemas.response import ErrorResponse, HealthCheckResponse
from api.endpoints import (
    auth_router,
    users_router,
    teams_router,
    tasks_router,
    dashboard_router,
    search_router,
    gitlab_router
)
import models  # noqa: F401 регистрирует таблицы в Base.metadata
import logging

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

Base.metadata.create_all(bind=engine)
app = FastAPI(title=settings.APP_NAME, version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CollabMateError)
async def collabmate_exception_handler(request: Request, exc: CollabMateError):
    logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.message).model_dump(mode="json")
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = [
        {"field": ".".join(str(part) for part in err["loc"][1:]), "message": err["msg"]}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(error="Invalid request", details=details).model_dump(mode="json")
    )


app.include_router(auth_router)
app.include_router(users_router)
app.include_router(teams_router)
app.include_router(tasks_router)
app.include_router(dashboard_router)
app.include_router(search_router)
app.include_router(gitlab_router)


@app.get("/")
def read_root():
    return {"message": f"{settings.APP_NAME} API"}


@app.get("/health", response_model=HealthCheckResponse)
def health_check():
    return HealthCheckResponse(status="healthy", service=settings.APP_NAME)

#Запуск через консоль: uvicorn main:app --reload
