"""Global error handlers: every failure is rendered as the JSON error envelope."""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from donatehub.errors import DonateHubError, InternalError
from donatehub.responses import error_body

logger = structlog.get_logger()


def _validation_message(exc: RequestValidationError) -> str:
    """First pydantic error as a human-readable sentence."""
    errors = exc.errors()
    if not errors:
        return "Validation error"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    return f"{location}: {first.get('msg', 'invalid value')}" if location else first.get("msg", "Validation error")


def setup_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(DonateHubError)
    async def domain_exception_handler(request: Request, exc: DonateHubError) -> JSONResponse:
        """Render domain errors with the status code of their class."""
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            "request_failed",
            path=request.url.path,
            method=request.method,
            error_type=type(exc).__name__,
            status_code=exc.status_code,
            error=exc.message,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.message, exc.status_code),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Handle HTTP exceptions (unknown routes, bad methods) with the same envelope."""
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(str(exc.detail), exc.status_code),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        """Malformed request bodies and query parameters are caller errors (400)."""
        return JSONResponse(
            status_code=400,
            content=error_body(_validation_message(exc), 400, errors=_jsonable_errors(exc)),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions, always rendered as JSON."""
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        internal = InternalError()
        return JSONResponse(
            status_code=internal.status_code,
            content=error_body(internal.message, internal.status_code),
        )


def _jsonable_errors(exc: RequestValidationError) -> list[dict[str, object]]:
    """Pydantic errors may carry exception objects in ``ctx``; keep the serializable parts."""
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
