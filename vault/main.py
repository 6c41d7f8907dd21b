"""Entry point for the vault service."""

import time
import uuid

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from common.logging_config import setup_logging
from vault.config import VAULT_HOST, VAULT_PORT
from vault.database import get_db_connection, init_database
from vault.exceptions import (
    AccessDeniedError,
    ChunkOrderError,
    InvalidPrincipalError,
    InvalidShareError,
    NotAuthenticatedError,
    ObjectAlreadyExistsError,
    ObjectNotFoundError,
    PermissionNotFoundError,
    VaultException,
)
from vault.routes import object_router, sharing_router
from vault.schemas import ErrorResponse

logger = setup_logging('vault')

app = FastAPI(
    title="MediVault Storage",
    description="Chunked object vault with owner-scoped sharing grants",
    version="1.0.0"
)

# exception class -> (HTTP status, error code)
_ERROR_MAP = {
    NotAuthenticatedError: (status.HTTP_401_UNAUTHORIZED, "NOT_AUTHENTICATED"),
    ObjectAlreadyExistsError: (status.HTTP_409_CONFLICT, "OBJECT_EXISTS"),
    ChunkOrderError: (status.HTTP_409_CONFLICT, "CHUNK_OUT_OF_ORDER"),
    ObjectNotFoundError: (status.HTTP_404_NOT_FOUND, "OBJECT_NOT_FOUND"),
    PermissionNotFoundError: (status.HTTP_404_NOT_FOUND, "PERMISSION_NOT_FOUND"),
    AccessDeniedError: (status.HTTP_403_FORBIDDEN, "ACCESS_DENIED"),
    InvalidShareError: (status.HTTP_400_BAD_REQUEST, "INVALID_SHARE"),
    InvalidPrincipalError: (status.HTTP_400_BAD_REQUEST, "INVALID_PRINCIPAL"),
}


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Middleware to log all HTTP requests and responses.

    Reuses the caller's X-Request-ID when one is sent.
    """
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()

    logger.info(
        f"Request started: {request.method} {request.url.path} [request_id={request_id}]"
    )

    response = await call_next(request)

    duration = time.time() - start_time
    principal = getattr(request.state, 'principal', None)

    logger.info(
        f"Request completed: {request.method} {request.url.path} "
        f"status={response.status_code} duration={duration:.3f}s "
        f"[request_id={request_id}] [principal={principal or 'anonymous'}]"
    )

    response.headers["X-Request-ID"] = request_id

    return response


@app.on_event("startup")
async def startup_event():
    """
    Initialize database on application startup.
    """
    logger.info("Vault service starting up...")
    init_database()
    logger.info("Database initialized")


@app.exception_handler(VaultException)
async def vault_exception_handler(request: Request, exc: VaultException):
    request_id = getattr(request.state, 'request_id', 'unknown')

    for exc_type in type(exc).__mro__:
        if exc_type in _ERROR_MAP:
            status_code, code = _ERROR_MAP[exc_type]
            logger.warning(
                f"{type(exc).__name__}: {exc} [request_id={request_id}] path={request.url.path}"
            )
            break
    else:
        status_code, code = status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR"
        logger.error(
            f"Vault exception: {exc} [request_id={request_id}] path={request.url.path}",
            exc_info=True
        )

    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(detail=str(exc), code=code).model_dump()
    )


app.include_router(object_router)
app.include_router(sharing_router)


@app.get("/")
async def root():
    """
    Root endpoint for health check.
    """
    return {"message": "MediVault Storage API", "status": "running"}


@app.get("/health")
async def health_check():
    """
    Health check endpoint for Docker healthcheck.
    """
    return {"status": "healthy", "service": "vault"}


@app.get("/ready")
async def ready_check():
    """
    Readiness check endpoint. Verifies database connectivity.
    """
    try:
        with get_db_connection() as conn:
            conn.execute("SELECT 1 FROM objects LIMIT 1")
        db_status = "ok"
    except Exception as e:
        db_status = f"error: {str(e)}"

    ready = db_status == "ok"
    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"ready": ready, "database": db_status}
    )


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    uvicorn.run(
        "vault.main:app",
        host=VAULT_HOST,
        port=VAULT_PORT,
    )


if __name__ == "__main__":
    main()
