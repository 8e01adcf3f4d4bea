from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hrm_user_service.api.routers import auth, rpc, users
from hrm_user_service.core.config import get_settings
from hrm_user_service.core.db import init_db
from hrm_user_service.core.errors import ServiceError
from hrm_user_service.core.logging import configure_logging
from hrm_user_service.deps.auth import get_hr_client, get_permission_client
from hrm_user_service.schemas.common import APIMessage

settings = get_settings()
logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "Auth", "description": "Registration, login and JWT token lifecycle."},
    {"name": "Users", "description": "User and account management with role/permission assignment."},
    {"name": "RPC", "description": "Service-to-service methods for other platform services."},
]


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    configure_logging(settings.log_level)
    if settings.auto_create_schema:
        init_db()
        logger.info("Database schema ensured")
    yield
    get_permission_client().close()
    get_hr_client().close()


app = FastAPI(
    title="HRM User Service",
    description="User accounts, credentials and JWT authentication for the HRM platform.",
    version="0.1.0",
    openapi_tags=openapi_tags,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "%s %s -> %s",
        request.method,
        request.url.path,
        response.status_code,
        extra={"latency_ms": round((time.perf_counter() - started) * 1000, 2)},
    )
    return response


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message, extra={"code": exc.code})
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
        headers=headers,
    )


@app.get(
    "/",
    response_model=APIMessage,
    summary="Health check",
    description="Service health check endpoint.",
    tags=["Auth"],
)
# PUBLIC_INTERFACE
def health_check():
    """Health check endpoint.

    Returns:
        JSON with a 'message' field.
    """
    return {"message": "Healthy"}


app.include_router(auth.router)
app.include_router(users.router)
app.include_router(rpc.router)
