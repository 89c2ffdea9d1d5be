from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from edugate.application.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    PermissionDeniedError,
    UnauthenticatedError,
    ValidationError,
)
from edugate.application.services.demo_service import build_demo_mode
from edugate.config import settings
from edugate.infrastructure.logging import clear_request_context, configure_logging, get_logger
from edugate.interfaces.api.v1.router import api_router

logger = get_logger(__name__)

OPENAPI_DESCRIPTION = """
School management API with tenant and branch scoped data visibility.

How to call this API:
- Authenticate at `POST /api/v1/auth/token`.
- Use `Authorization: Bearer <access_token>` in protected endpoints.
- Every read and write is narrowed to the caller's school, and to their home branch when they have one.
"""

OPENAPI_TAGS = [
    {"name": "health", "description": "Service health and connectivity checks."},
    {"name": "auth", "description": "Authentication and token issuance."},
    {"name": "me", "description": "Caller identity, resolved scope, own profile and viewing branch."},
    {"name": "principals", "description": "Principal provisioning and scope changes (admin-managed)."},
    {"name": "branches", "description": "Branches of the caller's school."},
    {"name": "students", "description": "Scoped student records."},
    {"name": "teachers", "description": "Scoped teacher records."},
    {"name": "parents", "description": "Scoped parent records."},
    {"name": "classes", "description": "Scoped class records."},
    {"name": "fees", "description": "Scoped fee records."},
    {"name": "attendance", "description": "Scoped attendance records."},
    {"name": "notifications", "description": "Direct and audience-targeted notifications."},
    {"name": "admin", "description": "Audited administrative checks."},
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    app.state.demo_mode = build_demo_mode(settings)
    logger.info(
        "app_startup",
        app_name=settings.app_name,
        version=settings.app_version,
        unassigned_branch_policy=settings.unassigned_branch_policy.value,
        enable_rls=settings.enable_rls,
    )
    yield
    logger.info("app_shutdown", app_name=settings.app_name)


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description=OPENAPI_DESCRIPTION,
    openapi_tags=OPENAPI_TAGS,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url, "http://localhost:3000", "http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def reset_log_context(request: Request, call_next):
    clear_request_context()
    return await call_next(request)


@app.get("/")
def root():
    return {"message": f"{settings.app_name} is running"}


@app.exception_handler(UnauthenticatedError)
async def handle_unauthenticated(_: Request, exc: UnauthenticatedError):
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": str(exc)},
        headers={"WWW-Authenticate": "Bearer"},
    )


@app.exception_handler(NotFoundError)
async def handle_not_found(_: Request, exc: NotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(PermissionDeniedError)
async def handle_permission_denied(_: Request, exc: PermissionDeniedError):
    # Denied and absent rows look the same to the caller.
    logger.info("permission_denied", detail=str(exc))
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": "Not found"})


@app.exception_handler(ConflictError)
async def handle_conflict(_: Request, exc: ConflictError):
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})


@app.exception_handler(ForbiddenError)
async def handle_forbidden(_: Request, exc: ForbiddenError):
    return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": str(exc)})


@app.exception_handler(ValidationError)
async def handle_validation(_: Request, exc: ValidationError):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


app.include_router(api_router)
