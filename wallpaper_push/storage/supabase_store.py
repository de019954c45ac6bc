"""Read-only access to wallpapers and pair members through Supabase PostgREST."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from wallpaper_push.core.exceptions import DataStoreError
from wallpaper_push.notifications.contracts import PairUser, Wallpaper, WallpaperStore

logger = logging.getLogger(__name__)

USER_COLUMNS = "id,fcm_token,display_name,pair_id"


class SupabaseWallpaperStore(WallpaperStore):
  """PostgREST-backed store using the service-role key."""

  def __init__(self, *, client: httpx.Client, base_url: str, service_role_key: str) -> None:
    self._client = client
    self._rest_url = f"{base_url.rstrip('/')}/rest/v1"
    self._headers = {"apikey": service_role_key, "Authorization": f"Bearer {service_role_key}", "Accept": "application/json"}

  def _select(self, table: str, params: dict[str, str]) -> list[dict[str, Any]]:
    """Run a PostgREST select and return the decoded rows."""
    url = f"{self._rest_url}/{table}"
    try:
      response = self._client.get(url, params=params, headers=self._headers)
    except httpx.RequestError as exc:
      logger.error("Data store request failed table=%s error_type=%s", table, type(exc).__name__)
      raise DataStoreError(f"Failed to query {table}: {type(exc).__name__}") from exc

    if not response.is_success:
      logger.error("Data store query rejected table=%s status=%s body=%s", table, response.status_code, response.text[:512])
      raise DataStoreError(f"Failed to query {table}: status {response.status_code}")

    try:
      rows = response.json()
    except ValueError as exc:
      raise DataStoreError(f"Failed to query {table}: response was not JSON") from exc

    if not isinstance(rows, list):
      raise DataStoreError(f"Failed to query {table}: unexpected response shape")

    return rows

  def get_wallpaper(self, wallpaper_id: str) -> Wallpaper | None:
    rows = self._select("wallpapers", {"id": f"eq.{wallpaper_id}", "select": "*", "limit": "1"})
    if not rows:
      return None

    try:
      return Wallpaper.from_row(rows[0])
    except KeyError as exc:
      raise DataStoreError(f"Wallpaper row is missing column {exc.args[0]}") from exc

  def list_pair_users_with_tokens(self, pair_id: str) -> list[PairUser]:
    rows = self._select("users", {"pair_id": f"eq.{pair_id}", "fcm_token": "not.is.null", "select": USER_COLUMNS})
    # PostgREST already filters null tokens; drop blanks as well.
    return [PairUser.from_row(row) for row in rows if row.get("id") is not None and row.get("fcm_token")]
