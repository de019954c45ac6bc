"""FCM HTTP v1 delivery for wallpaper sync pushes."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import httpx

from wallpaper_push.core.exceptions import GatewayError
from wallpaper_push.notifications.contracts import DEFAULT_SOURCE_TYPE, AccessToken, DispatchResult, PairUser, PushDispatcher, Wallpaper

logger = logging.getLogger(__name__)

MESSAGE_TYPE = "wallpaper_sync"
SENDER_ALERT_TITLE = "Wallpaper updated"
SENDER_ALERT_BODY = "Your wallpaper was just applied."


def build_alert(*, is_sender: bool, sender_first_name: str) -> dict[str, str]:
  """Return the APNs alert shown to the sender or to their partner."""
  if is_sender:
    return {"title": SENDER_ALERT_TITLE, "body": SENDER_ALERT_BODY}

  return {
    "title": f"New wallpaper from {sender_first_name}",
    "body": f"{sender_first_name} has sent you a new wallpaper! It will be applied when your next Shortcut automation runs.",
  }


def build_data(wallpaper: Wallpaper, *, sender_name: str) -> dict[str, str]:
  """Build the data-only payload read by the app; FCM requires string values."""
  return {
    "type": MESSAGE_TYPE,
    "wallpaper_id": wallpaper.id,
    "image_url": wallpaper.image_url,
    "sender_id": wallpaper.sender_id,
    "pair_id": wallpaper.pair_id,
    "apply_to": wallpaper.apply_to or "",
    "source_type": wallpaper.source_type or DEFAULT_SOURCE_TYPE,
    "sender_name": sender_name,
  }


def build_message(recipient: PairUser, wallpaper: Wallpaper, *, sender_first_name: str, sender_name: str) -> dict[str, Any]:
  """Build the FCM v1 request body for one recipient."""
  is_sender = recipient.id == wallpaper.sender_id
  return {
    "message": {
      "token": recipient.fcm_token,
      "data": build_data(wallpaper, sender_name=sender_name),
      "android": {"priority": "high"},
      "apns": {"payload": {"aps": {"mutable-content": 1, "alert": build_alert(is_sender=is_sender, sender_first_name=sender_first_name)}}},
    }
  }


class FcmPushDispatcher(PushDispatcher):
  """Sends wallpaper pushes through the FCM HTTP v1 API, one recipient at a time."""

  def __init__(self, *, client: httpx.Client, project_id: str, base_url: str = "https://fcm.googleapis.com/v1") -> None:
    self._client = client
    self._send_url = f"{base_url.rstrip('/')}/projects/{project_id}/messages:send"

  @property
  def send_url(self) -> str:
    return self._send_url

  def dispatch(self, recipients: Sequence[PairUser], wallpaper: Wallpaper, sender_first_name: str, access_token: AccessToken, *, sender_name: str = "") -> list[DispatchResult]:
    """Send sequentially and record every outcome; one failure never stops the batch."""
    results: list[DispatchResult] = []
    headers = {"Authorization": access_token.authorization_header, "Content-Type": "application/json"}

    for recipient in recipients:
      message = build_message(recipient, wallpaper, sender_first_name=sender_first_name, sender_name=sender_name)
      try:
        response = self._client.post(self._send_url, json=message, headers=headers)
      except httpx.RequestError as exc:
        failure = GatewayError(recipient.id, f"{type(exc).__name__}: {exc}")
        logger.error("FCM request failed user_id=%s wallpaper_id=%s error=%s", recipient.id, wallpaper.id, failure)
        results.append(DispatchResult(user_id=recipient.id, status_code=None, result=None, error=str(failure), exception=failure))
        continue

      result = DispatchResult(user_id=recipient.id, status_code=response.status_code, result=_response_body(response))
      if result.ok:
        logger.info("FCM sent successfully user_id=%s wallpaper_id=%s", recipient.id, wallpaper.id)
      else:
        logger.error("FCM error user_id=%s wallpaper_id=%s status=%s body=%s", recipient.id, wallpaper.id, response.status_code, result.result)
      results.append(result)

    return results


def _response_body(response: httpx.Response) -> dict[str, Any]:
  """Return the gateway body as a mapping, wrapping non-JSON payloads."""
  try:
    body = response.json()
  except ValueError:
    return {"raw": response.text}

  if isinstance(body, dict):
    return body
  return {"raw": body}
