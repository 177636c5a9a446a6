"""Error taxonomy + FastAPI handlers

- validation: field-level, raised before any network call (422)
- state: action not allowed for the current booking/workflow state (409)
- auth: identity provider rejected the request (401/400)
- store: catalog store insert/update/query failed (503)

Notification failures never get here; they are logged by the notifier.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class SurgeryHubError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_detail(self):
        return self.message


class BookingValidationError(SurgeryHubError):
    status_code = 422

    def __init__(self, errors: dict[str, str]):
        super().__init__("; ".join(f"{k}: {v}" for k, v in errors.items()))
        self.errors = errors

    def to_detail(self):
        return {"message": "Please fill in all required fields.", "fields": self.errors}


class WorkflowStateError(SurgeryHubError):
    status_code = 409


class BookingStateError(SurgeryHubError):
    status_code = 409


class AuthError(SurgeryHubError):
    status_code = 400


class InvalidCredentialsError(AuthError):
    status_code = 401

    def __init__(self, message: str = "Invalid email or password. Please try again."):
        super().__init__(message)


class AccountExistsError(AuthError):
    def __init__(self, message: str = "An account with this email already exists. Please log in."):
        super().__init__(message)


class StoreError(SurgeryHubError):
    status_code = 503

    def __init__(self, action: str, cause: Exception | str | None = None):
        underlying = str(cause) if cause else ""
        message = f"{action} failed: {underlying}" if underlying else f"{action} failed. Please try again."
        super().__init__(message)
        self.action = action


class NotFoundError(SurgeryHubError):
    status_code = 404


async def _handle(request: Request, exc: SurgeryHubError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_detail()})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SurgeryHubError, _handle)
