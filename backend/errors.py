"""
Error taxonomy for the conversation/automation core and the FastAPI
handlers that turn it into `{"error": ...}` payloads.

Diagnostics (echoed payloads, recent rows, raw DB errors) travel on the
exception but are only rendered when EXPOSE_DIAGNOSTICS is on.
"""
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from backend.config import settings

logger = logging.getLogger("leadline")


class CRMError(Exception):
    status_code = 500

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        diagnostics: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details
        self.diagnostics = diagnostics or {}

    def to_payload(self, include_diagnostics: bool = False) -> dict:
        payload = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        if include_diagnostics:
            payload.update(self.diagnostics)
        return payload


class ValidationError(CRMError):
    status_code = 400


class AuthenticationError(CRMError):
    status_code = 401


class NotFoundError(CRMError):
    status_code = 404


class InvalidTransitionError(CRMError):
    status_code = 400


class MissingIntegrationDataError(CRMError):
    status_code = 400


class DeliveryError(CRMError):
    """A downstream send failed after local state was already persisted."""

    status_code = 502


class StorageError(CRMError):
    status_code = 500


async def crm_error_handler(request: Request, exc: CRMError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message} ({exc.details})")
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_payload(include_diagnostics=settings.expose_diagnostics),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    field = "body"
    if errors:
        loc = [str(part) for part in errors[0].get("loc", ()) if part != "body"]
        field = loc[-1] if loc else field
    payload = {"error": f"Missing or invalid required field: {field}"}
    if settings.expose_diagnostics:
        payload["receivedPayload"] = getattr(exc, "body", None)
    return JSONResponse(status_code=400, content=payload)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CRMError, crm_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
