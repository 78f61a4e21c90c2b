"""Uniform JSON error envelope for every inbound endpoint."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import ConfigurationError
from llm_gateway import LlmGatewayError
from services.sessions import SessionStateError
from tavus_gateway import TavusApiError

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Error answered as ``{error, details?, status?, message?}`` with ``status_code``."""

    def __init__(
        self,
        status_code: int,
        error: str,
        *,
        details: Optional[str] = None,
        status: Optional[int] = None,
        message: Optional[str] = None,
    ) -> None:
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.details = details
        self.status = status
        self.message = message


def envelope(error: str, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"error": error}
    body.update({key: value for key, value in extra.items() if value is not None})
    return body


@contextmanager
def guard(operation: str) -> Iterator[None]:
    """Let known errors through; turn anything else into a logged generic 500."""
    try:
        yield
    except (ApiError, ConfigurationError, TavusApiError, LlmGatewayError, SessionStateError):
        raise
    except Exception as exc:  # noqa: BLE001
        logger.exception("Unexpected error during %s", operation)
        raise ApiError(500, "Internal server error", message=str(exc)) from exc


def _describe_validation(exc: RequestValidationError) -> str:
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query")]
        field = ".".join(loc)
        if field == "category":
            return "Invalid interview category"
        if err.get("type") == "missing" and field:
            return f"{field} is required"
        if field:
            return f"Invalid value for {field}: {err.get('msg', 'invalid')}"
    return "Invalid request"


def install_error_handlers(app: FastAPI) -> None:  # Register envelope handlers on the app
    @app.exception_handler(ApiError)
    async def _api_error(_: Request, exc: ApiError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=envelope(exc.error, details=exc.details, status=exc.status, message=exc.message),
        )

    @app.exception_handler(ConfigurationError)
    async def _configuration_error(_: Request, exc: ConfigurationError) -> JSONResponse:
        logger.error("Configuration error: %s", exc)
        return JSONResponse(status_code=500, content=envelope(str(exc)))

    @app.exception_handler(TavusApiError)
    async def _tavus_error(_: Request, exc: TavusApiError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.http_status,
            content=envelope(exc.error, details=exc.details, status=exc.status),
        )

    @app.exception_handler(LlmGatewayError)
    async def _llm_error(_: Request, exc: LlmGatewayError) -> JSONResponse:
        logger.error("Completion provider failed: %s", exc)
        return JSONResponse(status_code=500, content=envelope(str(exc), status=exc.status))

    @app.exception_handler(SessionStateError)
    async def _session_state_error(_: Request, exc: SessionStateError) -> JSONResponse:
        return JSONResponse(status_code=409, content=envelope(str(exc)))

    @app.exception_handler(RequestValidationError)
    async def _validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content=envelope(_describe_validation(exc)))

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(_: Request, exc: StarletteHTTPException) -> JSONResponse:
        error = "Method not allowed" if exc.status_code == 405 else str(exc.detail)
        return JSONResponse(status_code=exc.status_code, content=envelope(error), headers=getattr(exc, "headers", None))


__all__ = ["ApiError", "envelope", "guard", "install_error_handlers"]
