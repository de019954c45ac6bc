import json
import logging
import time
import uuid
from typing import Any

from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Receive, Scope, Send

from wallpaper_push.config import get_settings

logger = logging.getLogger("wallpaper_push.core.middleware")

SENSITIVE_KEYS = {"token", "fcm_token", "access_token", "assertion", "key", "private_key", "apikey", "authorization", "secret", "display_name", "sender_name"}


def _redact_sensitive_keys(data: Any) -> Any:
  """Redact sensitive keys from a dictionary or list recursively."""
  if isinstance(data, dict):
    return {k: ("***" if str(k).lower() in SENSITIVE_KEYS else _redact_sensitive_keys(v)) for k, v in data.items()}
  if isinstance(data, list):
    return [_redact_sensitive_keys(item) for item in data]
  return data


def _normalize_headers(scope: Scope) -> dict[str, str]:
  return {key.decode("latin-1").lower(): value.decode("latin-1") for key, value in scope.get("headers", [])}


def _format_body_for_log(body: bytes, content_type: str | None, max_bytes: int) -> str:
  """Format a request/response body for logging with redaction."""
  if not body:
    return "<empty>"

  if not content_type or "json" not in content_type.lower():
    return f"<non-json body {len(body)} bytes>"

  # Truncated JSON cannot be redacted reliably, so only its size is logged.
  if len(body) > max_bytes:
    return f"<json body {len(body)} bytes, over {max_bytes} byte limit>"

  try:
    parsed = json.loads(body.decode("utf-8"))
  except (UnicodeDecodeError, json.JSONDecodeError):
    return f"<invalid json body {len(body)} bytes>"

  return json.dumps(_redact_sensitive_keys(parsed), ensure_ascii=True)


class RequestLoggingMiddleware:
  """Log request/response details while preserving body streams for downstream handlers."""

  def __init__(self, app: ASGIApp) -> None:
    self.app = app

  async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
    """Record request/response metadata and, when enabled, redacted bodies."""
    if scope["type"] != "http":
      await self.app(scope, receive, send)
      return

    settings = get_settings()
    log_http_bodies = settings.log_http_bodies
    max_bytes = settings.log_http_body_bytes

    # Store the request id for exception handlers.
    request_id = str(uuid.uuid4())
    scope.setdefault("state", {})["request_id"] = request_id

    start_time = time.time()
    logger.info("Incoming request request_id=%s %s %s", request_id, scope.get("method", "UNKNOWN"), scope.get("path", ""))
    content_type = _normalize_headers(scope).get("content-type")

    receive_wrapper = receive
    if log_http_bodies:
      # Drain the body so it can be logged, then replay it downstream.
      body_chunks: list[bytes] = []
      more_body = True
      while more_body:
        message = await receive()
        if message.get("type") != "http.request":
          break
        body_chunks.append(message.get("body", b""))
        more_body = message.get("more_body", False)

      request_body = b"".join(body_chunks)
      body_sent = False

      async def receive_wrapper() -> dict[str, Any]:
        nonlocal body_sent
        if body_sent:
          return {"type": "http.request", "body": b"", "more_body": False}
        body_sent = True
        return {"type": "http.request", "body": request_body, "more_body": False}

      logger.info("Request body request_id=%s body=%s", request_id, _format_body_for_log(request_body, content_type, max_bytes))

    status_code: int | None = None
    response_chunks: list[bytes] = []
    response_content_type: str | None = None

    async def send_wrapper(message: dict[str, Any]) -> None:
      nonlocal status_code, response_content_type
      if message.get("type") == "http.response.start":
        status_code = message.get("status")
        response_headers = MutableHeaders(scope=message)
        if "x-request-id" not in response_headers:
          response_headers["x-request-id"] = request_id
        response_content_type = response_headers.get("content-type")

      if log_http_bodies and message.get("type") == "http.response.body":
        response_chunks.append(message.get("body", b""))

      await send(message)

    await self.app(scope, receive_wrapper, send_wrapper)

    process_time = (time.time() - start_time) * 1000
    logger.info("Response request_id=%s status=%s (took %.2fms)", request_id, status_code or 0, process_time)
    if log_http_bodies:
      formatted = _format_body_for_log(b"".join(response_chunks), response_content_type, max_bytes)
      logger.info("Response body request_id=%s body=%s", request_id, formatted)
