import logging
from typing import Any

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class DispatchError(Exception):
  """Base class for failures that abort a wallpaper notification invocation."""


class BadRequestError(DispatchError):
  """Raised when the trigger payload is malformed or lacks a wallpaper id."""


class WallpaperNotFoundError(DispatchError):
  """Raised when the requested wallpaper does not exist."""

  def __init__(self, wallpaper_id: str) -> None:
    super().__init__(f"Wallpaper not found: {wallpaper_id}")
    self.wallpaper_id = wallpaper_id


class NoRecipientsError(DispatchError):
  """Raised when no pair member has a push token and strict mode is enabled."""


class AuthError(DispatchError):
  """Raised when the service-account token cannot be signed or exchanged."""


class DataStoreError(DispatchError):
  """Raised when the data store cannot be queried."""


class ConfigurationError(DispatchError):
  """Raised when required runtime configuration is missing."""


class GatewayError(Exception):
  """Describes a failed push for one recipient; recorded in results, never aborts a batch."""

  def __init__(self, user_id: str, message: str) -> None:
    super().__init__(message)
    self.user_id = user_id


def _error_payload(message: str) -> dict[str, Any]:
  """Build the error body returned to callers; correlation ids travel in the x-request-id header."""
  return {"error": message}


def _sanitize_validation_errors(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
  """Return validation errors without raw input payloads."""
  sanitized: list[dict[str, Any]] = []
  for error in errors:
    scrubbed = {key: value for key, value in error.items() if key not in {"input", "ctx", "url"}}
    scrubbed["loc"] = [str(part) for part in scrubbed.get("loc", ())]
    sanitized.append(scrubbed)

  return sanitized


async def dispatch_exception_handler(request: Request, exc: DispatchError) -> JSONResponse:
  """Render aborting dispatch failures as a 500 with the failure message."""
  logger = logging.getLogger("uvicorn.error")
  request_id = getattr(request.state, "request_id", None)
  logger.error("Dispatch failure request_id=%s path=%s error_type=%s error=%s", request_id, request.url.path, type(exc).__name__, exc)
  return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=_error_payload(str(exc)))


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
  """Global exception handler to catch unhandled errors."""
  logger = logging.getLogger("uvicorn.error")
  request_id = getattr(request.state, "request_id", None)
  logger.error("Global exception request_id=%s path=%s error_type=%s", request_id, request.url.path, type(exc).__name__, exc_info=True)
  return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=_error_payload("Internal Server Error"))


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
  """Log request validation errors without leaking payloads."""
  request_id = getattr(request.state, "request_id", None)
  sanitized_errors = _sanitize_validation_errors(list(exc.errors()))
  logger = logging.getLogger("uvicorn.error")
  logger.warning("Request validation failed request_id=%s path=%s method=%s errors=%s", request_id, request.url.path, request.method, sanitized_errors)
  return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content={"error": "Invalid request", "detail": sanitized_errors})


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
  """Handle FastAPI HTTPExceptions while avoiding leaking internal diagnostics."""
  request_id = getattr(request.state, "request_id", None)
  if exc.status_code >= 500:
    logger = logging.getLogger("uvicorn.error")
    logger.error("HTTPException request_id=%s path=%s status_code=%s detail=%s", request_id, request.url.path, exc.status_code, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=_error_payload("Internal Server Error"))

  return JSONResponse(status_code=exc.status_code, content=_error_payload(str(exc.detail)))
