"""HTTP trigger for wallpaper shared notifications."""

from __future__ import annotations

from collections.abc import Callable
from contextlib import AbstractContextManager
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from wallpaper_push.config import Settings, get_settings
from wallpaper_push.services.dispatch import DispatchOutcome, WallpaperNotificationService
from wallpaper_push.services.factory import notification_service

router = APIRouter()

ServiceFactory = Callable[[Settings], AbstractContextManager[WallpaperNotificationService]]


def get_service_factory() -> ServiceFactory:
  """Return the factory used to build a per-invocation notification service."""
  return notification_service


def _run_invocation(factory: ServiceFactory, settings: Settings, body: Any) -> DispatchOutcome:
  with factory(settings) as service:
    return service.handle(body)


@router.post("/")
@router.post("/send-wallpaper-notification")
async def send_wallpaper_notification(request: Request, settings: Settings = Depends(get_settings), factory: ServiceFactory = Depends(get_service_factory)) -> JSONResponse:  # noqa: B008
  """Notify the members of a pair that a wallpaper was shared."""
  try:
    body = await request.json()
  except ValueError:
    # Malformed JSON is reported by the service as a bad request.
    body = None

  # Outbound HTTP is synchronous; keep it off the event loop.
  outcome = await run_in_threadpool(_run_invocation, factory, settings, body)
  return JSONResponse(status_code=outcome.status_code, content=outcome.body)
