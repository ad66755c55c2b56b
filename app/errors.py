import logging

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class NotFoundError(HTTPException):
    """Missing resource, or one outside the caller's business.

    Both cases carry the same message so existence never leaks across tenants.
    """

    code = "not_found"

    def __init__(self, detail: str = "Not found") -> None:
        super().__init__(status_code=404, detail=detail)


class InvalidArgumentError(HTTPException):
    code = "invalid_argument"

    def __init__(self, detail: str = "Invalid argument") -> None:
        super().__init__(status_code=400, detail=detail)


class PermissionDeniedError(HTTPException):
    code = "permission_denied"

    def __init__(self, detail: str = "Permission denied") -> None:
        super().__init__(status_code=403, detail=detail)


class TransientStorageError(HTTPException):
    """Persistence is unavailable. Callers may retry; nothing retries internally."""

    code = "storage_unavailable"

    def __init__(self, detail: str = "Storage temporarily unavailable") -> None:
        super().__init__(status_code=503, detail=detail)


def _error_payload(code: str, message: str, details):
    return {"code": code, "message": message, "details": details}


def register_error_handlers(app) -> None:
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        detail = exc.detail
        code = getattr(exc, "code", None) or f"http_{exc.status_code}"
        message = "Request failed"
        details = None
        if isinstance(detail, dict):
            code = detail.get("code", code)
            message = detail.get("message", message)
            details = detail.get("details")
        elif isinstance(detail, str):
            message = detail
        else:
            details = detail
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_payload(code, message, details),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        # exc.errors() ctx may contain raw Exception objects (not JSON-serialisable).
        errors = [
            {k: str(v) if k == "ctx" else v for k, v in err.items()}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=422,
            content=_error_payload("validation_error", "Validation error", errors),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content=_error_payload("internal_error", "Internal server error", None),
        )
