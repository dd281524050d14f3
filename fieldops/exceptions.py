from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

if TYPE_CHECKING:
    from fieldops.schemas.conflict import ConflictReport


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    error: str
    detail: str | None = None
    status_code: int
    data: dict[str, Any] | None = None


class AppError(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)

    def payload(self) -> dict[str, Any] | None:
        """Structured detail rendered alongside the message, if any."""
        return None


class InvalidRequestError(AppError):
    """Malformed window, missing fields or a duration below the minimum."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST)


class AuthorizationError(AppError):
    """The actor is not entitled to perform the action."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_403_FORBIDDEN)


class NotFoundError(AppError):
    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_404_NOT_FOUND)


class StateError(AppError):
    """The entity is not in a state that allows the action."""

    def __init__(self, message: str, current_status: str | None = None) -> None:
        self.current_status = current_status
        super().__init__(message, status_code=status.HTTP_409_CONFLICT)

    def payload(self) -> dict[str, Any] | None:
        if self.current_status is None:
            return None
        return {"status": self.current_status}


class LeaveStateError(StateError):
    pass


class TaskStateError(StateError):
    pass


class SchedulingConflictError(StateError):
    """A blocking user or leave conflict prevents the assignment."""

    def __init__(self, message: str, report: ConflictReport) -> None:
        self.report = report
        super().__init__(message)

    def payload(self) -> dict[str, Any] | None:
        return self.report.model_dump(mode="json")


async def _app_exception_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=type(exc).__name__,
            detail=exc.message,
            status_code=exc.status_code,
            data=exc.payload(),
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
