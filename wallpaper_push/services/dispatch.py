"""Orchestration of a single "wallpaper shared" notification invocation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from wallpaper_push.core.exceptions import BadRequestError, DispatchError, NoRecipientsError, WallpaperNotFoundError
from wallpaper_push.notifications.contracts import AccessTokenProvider, DispatchResult, PushDispatcher, ServiceAccountCredentials, WallpaperStore
from wallpaper_push.notifications.recipients import resolve_recipients

logger = logging.getLogger(__name__)


class WallpaperNotificationRequest(BaseModel):
  """Trigger payload sent when a wallpaper is shared."""

  wallpaper_id: str = Field(min_length=1, max_length=128)
  model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)


@dataclass(frozen=True)
class DispatchOutcome:
  """HTTP-shaped result of an invocation."""

  status_code: int
  body: dict[str, Any]
  results: list[DispatchResult] = field(default_factory=list)
  error: DispatchError | None = None

  @property
  def ok(self) -> bool:
    return self.error is None

  @classmethod
  def success(cls, results: list[DispatchResult]) -> DispatchOutcome:
    body = {"success": True, "sent": len(results), "results": [result.to_dict() for result in results]}
    return cls(status_code=200, body=body, results=results)

  @classmethod
  def failure(cls, error: DispatchError) -> DispatchOutcome:
    return cls(status_code=500, body={"error": str(error)}, error=error)


def parse_wallpaper_id(body: Any) -> str:
  """Extract the wallpaper id from a decoded trigger body."""
  if not isinstance(body, dict):
    raise BadRequestError("Request body must be a JSON object with a wallpaper_id")

  try:
    return WallpaperNotificationRequest.model_validate(body).wallpaper_id
  except ValidationError as exc:
    raise BadRequestError("wallpaper_id must be a non-empty string") from exc


class WallpaperNotificationService:
  """Loads a wallpaper, resolves its recipients and pushes to each of them."""

  def __init__(self, *, store: WallpaperStore, token_provider: AccessTokenProvider, dispatcher: PushDispatcher, credentials: ServiceAccountCredentials, require_recipients: bool = False) -> None:
    self._store = store
    self._token_provider = token_provider
    self._dispatcher = dispatcher
    self._credentials = credentials
    self._require_recipients = require_recipients

  def handle(self, body: Any) -> DispatchOutcome:
    """Run one invocation and convert aborting failures into a 500 outcome."""
    try:
      results = self._run(body)
    except DispatchError as exc:
      logger.error("Wallpaper notification aborted error_type=%s error=%s", type(exc).__name__, exc)
      return DispatchOutcome.failure(exc)

    failed = sum(1 for result in results if not result.ok)
    logger.info("Wallpaper notification finished sent=%d failed=%d", len(results), failed)
    return DispatchOutcome.success(results)

  def _run(self, body: Any) -> list[DispatchResult]:
    wallpaper_id = parse_wallpaper_id(body)
    logger.info("Processing wallpaper notification wallpaper_id=%s", wallpaper_id)

    wallpaper = self._store.get_wallpaper(wallpaper_id)
    if wallpaper is None:
      raise WallpaperNotFoundError(wallpaper_id)

    users = self._store.list_pair_users_with_tokens(wallpaper.pair_id)
    if not users:
      if self._require_recipients:
        raise NoRecipientsError("No users with FCM tokens found")
      logger.warning("No users with FCM tokens wallpaper_id=%s pair_id=%s", wallpaper.id, wallpaper.pair_id)
      return []

    selection = resolve_recipients(wallpaper, users)
    logger.info("Sending to %d recipients wallpaper_id=%s apply_to=%s", len(selection.recipients), wallpaper.id, wallpaper.apply_to)
    if not selection.recipients:
      return []

    # One token is shared by every send in this invocation.
    access_token = self._token_provider.obtain_access_token(self._credentials)
    return self._dispatcher.dispatch(selection.recipients, wallpaper, selection.sender_first_name, access_token, sender_name=selection.sender_name)
