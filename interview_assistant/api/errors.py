import logging

import fastapi
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from interview_assistant.config.manager import settings
from interview_assistant.models.schemas.base import ErrorResponse
from interview_assistant.utilities.exceptions.database import EntityDoesNotExist
from interview_assistant.utilities.exceptions.interview import InvalidSlot, InvalidTransition

logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str, error: str | None = None) -> JSONResponse:
    """`{message, error?}`; `error` carries details only outside production."""
    body = ErrorResponse(message=message, error=None if settings.is_production else error)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    return f"Invalid {location}: {first.get('msg')}" if location else str(first.get("msg"))


async def http_exception_handler(request: fastapi.Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail))


async def validation_exception_handler(request: fastapi.Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(fastapi.status.HTTP_400_BAD_REQUEST, _validation_message(exc), error=str(exc.errors()))


async def not_found_handler(request: fastapi.Request, exc: EntityDoesNotExist) -> JSONResponse:
    return error_response(fastapi.status.HTTP_404_NOT_FOUND, str(exc) or "Not found")


async def bad_request_handler(request: fastapi.Request, exc: Exception) -> JSONResponse:
    return error_response(fastapi.status.HTTP_400_BAD_REQUEST, str(exc))


async def database_error_handler(request: fastapi.Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return error_response(fastapi.status.HTTP_500_INTERNAL_SERVER_ERROR, "Database error", error=str(exc))


async def unexpected_error_handler(request: fastapi.Request, exc: Exception) -> JSONResponse:
    logger.exception("Unexpected error on %s %s", request.method, request.url.path)
    return error_response(fastapi.status.HTTP_500_INTERNAL_SERVER_ERROR, "Something went wrong!", error=str(exc))


def register_exception_handlers(backend_app: fastapi.FastAPI) -> None:
    backend_app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    backend_app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    backend_app.add_exception_handler(EntityDoesNotExist, not_found_handler)  # type: ignore[arg-type]
    backend_app.add_exception_handler(InvalidSlot, bad_request_handler)
    backend_app.add_exception_handler(InvalidTransition, bad_request_handler)
    backend_app.add_exception_handler(SQLAlchemyError, database_error_handler)  # type: ignore[arg-type]
    backend_app.add_exception_handler(Exception, unexpected_error_handler)
