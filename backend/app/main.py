"""
SocietyOps API application.

Wires settings, logging, middleware, error envelopes and the v1 router.
Run locally with ``uvicorn app.main:app --reload`` from ``backend/``.
"""
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from app.api.v1 import router as api_v1_router
from app.core.limiter import apply_rate_limiting
from app.core.settings import settings
from app.exceptions import SocietyException
from app.logging_config import get_logger, setup_logging
from app.schemas.common import StatusResponse

setup_logging()
logger = get_logger(__name__)

_HTTP_ERROR_CODES = {
    401: "AUTHENTICATION_ERROR",
    403: "PERMISSION_DENIED",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


def _envelope(
    status_code: int,
    error: str,
    error_code: str,
    details: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    body: Dict[str, Any] = {"success": False, "error": error, "error_code": error_code}
    if details:
        body["details"] = details
    body["timestamp"] = datetime.utcnow().isoformat() + "Z"
    return JSONResponse(status_code=status_code, content=body, headers=headers)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Browser hardening headers on every response; HSTS only in production."""

    HEADERS = {
        "X-Frame-Options": "DENY",
        "X-Content-Type-Options": "nosniff",
        "Referrer-Policy": "strict-origin-when-cross-origin",
        "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
    }

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers.update(self.HEADERS)
        if settings.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response


def prepare_database() -> None:
    """Create missing tables, then warn about workflows with no default status.

    Plots created without explicit statuses take the defaults, so a missing
    default is worth a warning but not a failed start.
    """
    from app.db.base import Base
    from app.db.session import SessionLocal, engine
    from app.models.development_status import DevelopmentStatus
    from app.models.sales_status import SalesStatus

    try:
        Base.metadata.create_all(bind=engine)
        with SessionLocal() as db:
            for model, label in ((SalesStatus, "sales"), (DevelopmentStatus, "development")):
                default = (
                    db.query(model.id)
                    .filter(model.is_default.is_(True), model.is_active.is_(True))
                    .filter(model.is_deleted.is_(False))
                    .first()
                )
                if default is None:
                    logger.warning(f"No active default {label} status configured")
    except SQLAlchemyError as e:
        logger.error(f"Database preparation failed: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Starting SocietyOps API",
        extra={"version": settings.VERSION, "environment": settings.ENVIRONMENT, "debug": settings.DEBUG},
    )
    prepare_database()
    yield
    logger.info("SocietyOps API stopped")


app = FastAPI(
    title=f"{settings.PROJECT_NAME} API",
    description="Housing society back office: plot sales and development status workflow",
    version=settings.VERSION,
    lifespan=lifespan,
)

if not apply_rate_limiting(app).enabled:
    logger.info("Rate limiting disabled")

app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Accept"],
)


@app.exception_handler(SocietyException)
async def society_exception_handler(request: Request, exc: SocietyException):
    logger.warning(
        f"{exc.error_code}: {exc.message}",
        extra={"details": exc.details, "path": request.url.path},
    )
    return _envelope(exc.status_code, exc.message, exc.error_code, exc.details)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # Malformed bodies and path params are client errors like any other: 400, not 422
    errors = [
        {
            "field": ".".join(str(part) for part in error["loc"] if part != "body"),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    logger.warning(f"Rejected request to {request.url.path}", extra={"errors": errors})
    return _envelope(400, "Request validation failed", "VALIDATION_ERROR", {"errors": errors})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _envelope(
        exc.status_code,
        str(exc.detail),
        _HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR"),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning(f"Constraint violation on {request.url.path}: {exc.orig}")
    return _envelope(409, "The change conflicts with an existing record", "CONFLICT")


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Database error on {request.url.path}: {exc}", exc_info=True)
    return _envelope(500, "A database error occurred. Please try again.", "DATABASE_ERROR")


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=True)
    return _envelope(500, "An unexpected error occurred. Please try again later.", "INTERNAL_ERROR")


app.include_router(api_v1_router, prefix=settings.API_V1_STR)


@app.get("/")
async def root():
    return {"message": "SocietyOps API", "version": settings.VERSION, "status": "online"}


@app.get("/health", response_model=StatusResponse)
async def health_check():
    return StatusResponse(status="healthy")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host="0.0.0.0", port=8001, reload=settings.DEBUG)
