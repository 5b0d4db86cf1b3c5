"""Request-terminal errors and the handlers that turn them into responses.

Services raise these instead of ``HTTPException`` so the task rules stay
independent of the transport; ``register_exception_handlers`` maps each one to
its status code and JSON shape.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from taskhub.core.config import settings

logger = logging.getLogger(__name__)


class TaskhubError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Something went wrong!"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_body(self) -> Dict[str, Any]:
        return {"message": self.message}


class ValidationError(TaskhubError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation failed"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(message)
        self.errors = errors or []

    def to_body(self) -> Dict[str, Any]:
        return {"message": self.message, "errors": self.errors}


class Conflict(TaskhubError):
    # Duplicate credentials are reported like the other input problems
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Resource already exists"


class Unauthenticated(TaskhubError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Could not validate credentials"


class Forbidden(TaskhubError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not authorized"


class NotFound(TaskhubError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


def _field_name(loc) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path")]
    return ".".join(parts) or "request"


async def taskhub_error_handler(request: Request, exc: TaskhubError):
    headers = None
    if isinstance(exc, Unauthenticated):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(status_code=exc.status_code, content=exc.to_body(), headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": _field_name(err.get("loc", ())), "message": err.get("msg", "Invalid value")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Validation failed", "errors": errors},
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "message": "Something went wrong!",
            "error": str(exc) if settings.is_development else "Internal Server Error",
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TaskhubError, taskhub_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
