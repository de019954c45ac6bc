"""Contracts for wallpaper push notification delivery."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from wallpaper_push.core.exceptions import GatewayError

SYSTEM_SENDER_ID = "00000000-0000-0000-0000-000000000000"
DEFAULT_SOURCE_TYPE = "shared_board"


def _required_column(row: dict[str, Any], column: str) -> str:
  value = row.get(column)
  if value is None or not str(value).strip():
    raise KeyError(column)
  return str(value)


@dataclass(frozen=True)
class Wallpaper:
  """A shared wallpaper record as stored by the data store."""

  id: str
  pair_id: str
  sender_id: str
  image_url: str
  apply_to: str | None
  source_type: str | None = None

  @classmethod
  def from_row(cls, row: dict[str, Any]) -> Wallpaper:
    """Build a wallpaper from a PostgREST row, ignoring unknown columns.

    Raises KeyError naming the column when `id` or `pair_id` is absent, null or blank.
    """
    return cls(
      id=_required_column(row, "id"),
      pair_id=_required_column(row, "pair_id"),
      sender_id=str(row.get("sender_id") or ""),
      image_url=str(row.get("image_url") or ""),
      apply_to=row.get("apply_to"),
      source_type=row.get("source_type"),
    )


@dataclass(frozen=True)
class PairUser:
  """A member of a pair as seen by the dispatcher."""

  id: str
  fcm_token: str | None
  display_name: str | None = None
  pair_id: str | None = None

  @classmethod
  def from_row(cls, row: dict[str, Any]) -> PairUser:
    return cls(id=str(row["id"]), fcm_token=row.get("fcm_token"), display_name=row.get("display_name"), pair_id=row.get("pair_id"))


@dataclass(frozen=True)
class AccessToken:
  """Short-lived OAuth bearer credential scoped to one invocation."""

  value: str = field(repr=False)
  expires_at: int

  @property
  def authorization_header(self) -> str:
    return f"Bearer {self.value}"


@dataclass(frozen=True)
class ServiceAccountCredentials:
  """Service-account material used to mint FCM access tokens."""

  project_id: str
  client_email: str
  private_key: str = field(repr=False)
  token_uri: str = "https://oauth2.googleapis.com/token"


@dataclass(frozen=True)
class DispatchResult:
  """Per-recipient outcome of a push gateway call."""

  user_id: str
  status_code: int | None
  result: dict[str, Any] | None
  error: str | None = None
  exception: GatewayError | None = field(default=None, repr=False, compare=False)

  @property
  def ok(self) -> bool:
    return self.status_code is not None and 200 <= self.status_code < 300

  def to_dict(self) -> dict[str, Any]:
    payload: dict[str, Any] = {"user_id": self.user_id, "ok": self.ok, "status_code": self.status_code, "result": self.result}
    if self.error is not None:
      payload["error"] = self.error
    return payload


class WallpaperStore(Protocol):
  """Read-only data store capabilities needed by the dispatcher."""

  def get_wallpaper(self, wallpaper_id: str) -> Wallpaper | None:
    """Return the wallpaper with the given id, or None when it does not exist."""

  def list_pair_users_with_tokens(self, pair_id: str) -> list[PairUser]:
    """Return the users of a pair that have a non-null push token."""


class AccessTokenProvider(Protocol):
  """Mints bearer tokens for the push gateway."""

  def obtain_access_token(self, credentials: ServiceAccountCredentials) -> AccessToken:
    """Exchange service-account credentials for a bearer token."""


class PushDispatcher(Protocol):
  """Delivery contract for wallpaper push notifications."""

  def dispatch(self, recipients: Sequence[PairUser], wallpaper: Wallpaper, sender_first_name: str, access_token: AccessToken, *, sender_name: str = "") -> list[DispatchResult]:
    """Send one push per recipient and return per-recipient results."""
