"""
FastAPI application entrypoint with Lambda support.
"""

import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from mangum import Mangum
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

import unison.api.v1 as v1
from unison.core.config import settings
from unison.core.errors import IdentityError, StorageError
from unison.core.unison_logger import UnisonLogger

# Logger
fastapi_logger = UnisonLogger.get_fastapi_logger()

# Track if AWS secrets have been loaded
_aws_secrets_loaded = False


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"ok": False, "error": message, "code": code},
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    fastapi_logger.info(f"Starting {settings.app_name} (storage: {settings.storage_backend})")
    yield
    fastapi_logger.info(f"Shutting down {settings.app_name}")


# Initialize FastAPI
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Identity resolution and credential recovery API",
    lifespan=lifespan,
)


@app.exception_handler(IdentityError)
async def identity_exception_handler(request: Request, exc: IdentityError):
    if isinstance(exc, StorageError):
        fastapi_logger.error(f"Storage failure on {request.url.path}: {exc.__cause__!r}")
    return _error_response(exc.status_code, exc.code, exc.message)


# Envelope codes for errors raised as plain HTTP exceptions
_HTTP_ERROR_CODES = {
    401: "Unauthorized",
    403: "Forbidden",
    404: "NotFound",
    405: "MethodNotAllowed",
}


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    code = _HTTP_ERROR_CODES.get(exc.status_code, "HTTPError")
    response = _error_response(exc.status_code, code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"Invalid {field}" if field else "Invalid request body"
    return _error_response(400, "ValidationError", message)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    fastapi_logger.exception("Unhandled exception")
    return JSONResponse(
        status_code=500,
        content={
            "ok": False,
            "error": "Internal server error",
            "code": "InternalError",
            "detail": str(exc) if settings.debug else "An unexpected error occurred",
        },
    )


# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

# Session middleware for OAuth2 flows
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.secret_key,
    max_age=3600,  # 1 hour
    same_site="lax",
    https_only=False,  # Set to True in production with HTTPS
)

app.include_router(v1.auth_router, prefix="/api")


@app.get("/")
def root():
    return {
        "message": settings.app_name,
        "version": settings.app_version,
        "status": "running",
    }


@app.get("/api/health")
def health():
    return {
        "ok": True,
        "status": "healthy",
        "time": datetime.now(timezone.utc).isoformat(),
    }


asgi_handler = Mangum(app, api_gateway_base_path="/", lifespan="off")


# Lambda handler
def handler(event, context):
    """Mangum Lambda entrypoint. Loads AWS secrets once per cold start."""
    global _aws_secrets_loaded

    if os.environ.get("AWS_EXECUTION_ENV") and not _aws_secrets_loaded:
        fastapi_logger.info("Detected AWS Lambda environment, loading secrets...")
        settings.load_aws_secrets()
        _aws_secrets_loaded = True

    return asgi_handler(event, context)
