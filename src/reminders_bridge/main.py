import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .errors import (
    BinaryValidationError,
    InvalidDateError,
    NotFoundError,
    PermissionDeniedError,
    ProcessExecutionError,
    ProcessSpawnError,
    ProcessTimeoutError,
    RemindersError,
    describe_failure,
)
from .permissions import ensure_permissions
from .routers import lists as lists_router
from .routers import permissions as permissions_router
from .routers import reminders as reminders_router
from .runtime import RuntimeContext
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "reminders", "description": "Read, create, update, delete and move reminders."},
    {"name": "lists", "description": "Read, create, rename and delete reminder lists."},
    {"name": "permissions", "description": "Data-access and automation permission probes."},
]

# Exception type -> HTTP status; first match wins, so subclasses come first.
ERROR_STATUS = (
    (NotFoundError, 404),
    (PermissionDeniedError, 403),
    (InvalidDateError, 422),
    (ProcessTimeoutError, 504),
    (ProcessExecutionError, 502),
    (ProcessSpawnError, 502),
    (BinaryValidationError, 500),
)


# PUBLIC_INTERFACE
def configure_logging(settings: Settings) -> None:
    """Set the root log level from settings; DEBUG whenever the debug flag is on."""
    level = "DEBUG" if settings.debug else settings.log_level
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)


_settings = get_settings()
configure_logging(_settings)


@asynccontextmanager
async def lifespan(app: FastAPI):
    runtime: RuntimeContext = app.state.runtime
    binary_path = await runtime.helper_path()
    if runtime.settings.check_permissions_on_start:
        try:
            await ensure_permissions(binary_path, runtime.settings, runtime.runner)
        except PermissionDeniedError:
            # Guidance is already logged; reads and writes will surface the failure per request.
            logger.warning("Starting without all required permissions")
    yield


app = FastAPI(
    title="Reminders Bridge",
    description="Backend API service that drives Apple Reminders through AppleScript and a native EventKit helper.",
    version="0.1.0",
    openapi_tags=openapi_tags,
    lifespan=lifespan,
)
app.state.runtime = RuntimeContext(_settings)

# Configure CORS based on settings (CORS_ALLOW_ORIGINS), with '*' fallback
allow_all = (_settings.cors_allow_origins == ["*"]) or (len(_settings.cors_allow_origins) == 0)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_all else _settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _operation(request: Request) -> str:
    """Human name of the operation behind a request, e.g. 'create reminder'."""
    endpoint = request.scope.get("endpoint")
    name = getattr(endpoint, "__name__", None) or "process request"
    return name.replace("_", " ")


# Global exception handlers for consistent JSON on validation errors
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Return a consistent JSON structure for request validation errors.

    Response format:
        {
            "error": "ValidationError",
            "detail": [... pydantic/fastapi error details ...],
            "message": "Request validation failed"
        }
    """
    return JSONResponse(
        status_code=422,
        content={
            "error": "ValidationError",
            "message": "Request validation failed",
            "detail": jsonable_encoder(exc.errors()),
        },
    )


@app.exception_handler(ValidationError)
async def model_validation_exception_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Query-string models validated inside a route get the same 422 shape."""
    return JSONResponse(
        status_code=422,
        content={
            "error": "ValidationError",
            "message": "Request validation failed",
            "detail": exc.errors(include_url=False, include_context=False),
        },
    )


@app.exception_handler(RemindersError)
async def reminders_exception_handler(request: Request, exc: RemindersError) -> JSONResponse:
    """
    Map bridge failures to a status code and one human-readable message.

    Response format:
        {"error": "<kind>", "message": "Failed to <operation>: ..."}
    """
    status_code = next((code for kind, code in ERROR_STATUS if isinstance(exc, kind)), 500)
    operation = _operation(request)
    if status_code >= 500:
        logger.error("Failed to %s: %s", operation, exc)
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.kind, "message": describe_failure(operation, exc, request.app.state.runtime.settings)},
    )


# PUBLIC_INTERFACE
@app.get("/", summary="Health Check", tags=["health"])
def health_check():
    """
    Health check endpoint.

    Returns:
        A JSON object indicating service health.
    """
    return {"message": "Healthy", "environment": _settings.environment}


# Include routers
app.include_router(reminders_router.router)
app.include_router(lists_router.router)
app.include_router(permissions_router.router)
