from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.v1.attendance.router import router as attendance_router
from app.api.v1.auth.router import router as auth_router
from app.api.v1.enrollments.router import router as enrollments_router
from app.api.v1.grades.router import router as grades_router
from app.api.v1.groups.router import router as groups_router
from app.api.v1.participation.router import router as participation_router
from app.api.v1.reports.router import router as reports_router
from app.api.v1.students.router import router as students_router
from app.api.v1.subjects.router import router as subjects_router
from app.api.v1.task_submissions.router import router as task_submissions_router
from app.api.v1.tasks.router import router as tasks_router
from app.api.v1.users.router import router as users_router
from app.core.app_logger import get_logger, setup_logging
from app.core.audit_service import audit_recorder
from app.core.config import settings
from app.core.exceptions import ServiceError
from app.core.schemas import ErrorResponse, ok

logger = get_logger("app")


def _error(status_code: int, message: str, details=None, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(message=message, details=jsonable_encoder(details)).model_dump(),
        headers=headers,
    )


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == status.HTTP_401_UNAUTHORIZED else None
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return _error(exc.status_code, "Internal server error")
    return _error(exc.status_code, exc.message, exc.details, headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = exc.detail
    message = detail if isinstance(detail, str) else "Request failed"
    details = None if isinstance(detail, str) else detail
    return _error(exc.status_code, message, details, getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _error(status.HTTP_400_BAD_REQUEST, "Validation error", exc.errors())


async def unexpected_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    # Stack trace stays in the log; the caller gets a generic message
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info("Starting school records API (env=%s)", settings.app_env)
    yield
    await audit_recorder.drain()
    logger.info("Shutdown complete")


def create_app() -> FastAPI:
    app = FastAPI(title="School Records Backend", lifespan=lifespan)

    # CORS: allow the administrative frontend to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unexpected_exception_handler)

    # Routers
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(groups_router)
    app.include_router(students_router)
    app.include_router(subjects_router)
    app.include_router(enrollments_router)
    app.include_router(attendance_router)
    app.include_router(tasks_router)
    app.include_router(task_submissions_router)
    app.include_router(grades_router)
    app.include_router(participation_router)
    app.include_router(reports_router)

    @app.get("/health", tags=["health"])
    async def health():
        return ok({"status": "online", "env": settings.app_env}, "API is running")

    return app


app = create_app()
