"""Exception handlers: every error leaves the app as JSON.

Domain errors render as ``{"detail", "code"}``, framework HTTP errors as
``{"detail"}``, validation failures as 422 with the pydantic error list.
"""

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from deficit.errors import AppError, UpstreamFailure

logger = structlog.get_logger()


async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    if isinstance(exc, UpstreamFailure):
        logger.warning("upstream_failure", path=request.url.path, status=exc.status_code, error=exc.message)
    elif exc.status_code >= 500:
        logger.error("app_error", path=request.url.path, code=exc.code, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "code": exc.code})


async def handle_http_exception(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=exc.headers)


async def handle_validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": "Validation error", "errors": _serialisable(exc.errors())})


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.error("unhandled_exception", method=request.method, path=request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def _serialisable(errors: Any) -> list[dict[str, Any]]:  # noqa: ANN401
    # pydantic puts the raising exception instance under "ctx"
    cleaned = []
    for err in errors:
        item = dict(err)
        if "ctx" in item:
            item["ctx"] = {key: str(value) for key, value in item["ctx"].items()}
        cleaned.append(item)
    return cleaned


def setup_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, handle_app_error)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, handle_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, handle_unexpected)
