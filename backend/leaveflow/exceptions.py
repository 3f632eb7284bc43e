from __future__ import annotations

import uuid

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    error: str
    detail: str | None = None
    status_code: int


class AppError(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundError(AppError):
    """A referenced request, user, or leave type does not exist."""

    def __init__(self, entity: str, entity_id: uuid.UUID | str) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found", status_code=status.HTTP_404_NOT_FOUND)


class InsufficientBalanceError(AppError):
    """The owner's category balance cannot cover the requested duration."""

    def __init__(self, category: str, available: int, requested: int) -> None:
        self.category = category
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient {category.lower()} leave balance: {available} available, {requested} requested",
            status_code=status.HTTP_400_BAD_REQUEST,
        )


class UnauthorizedError(AppError):
    """The actor may not perform the attempted transition."""

    def __init__(self, transition: str, request_id: uuid.UUID | None = None, reason: str | None = None) -> None:
        self.transition = transition
        self.request_id = request_id
        target = f"leave request {request_id}" if request_id is not None else "this leave request"
        message = f"Not authorized to {transition} {target}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, status_code=status.HTTP_403_FORBIDDEN)


class InvalidStateError(AppError):
    """The request is not in the state the transition requires."""

    def __init__(self, transition: str, request_id: uuid.UUID, current_status: str | None = None) -> None:
        self.transition = transition
        self.request_id = request_id
        self.current_status = current_status
        if current_status is None:
            message = f"Cannot {transition} leave request {request_id}: it is no longer pending"
        else:
            message = f"Cannot {transition} leave request {request_id} with status {current_status}"
        super().__init__(message, status_code=status.HTTP_409_CONFLICT)


async def _app_exception_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=type(exc).__name__,
            detail=exc.message,
            status_code=exc.status_code,
        ).model_dump(),
    )


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=ErrorResponse(
            error="ValidationError",
            detail=str(exc.errors()),
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        ).model_dump(),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the application."""
    app.add_exception_handler(AppError, _app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)  # type: ignore[arg-type]
