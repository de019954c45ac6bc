"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache

from wallpaper_push.utils.env import default_env_path, load_env_file

load_env_file(default_env_path(), override=False)

DEFAULT_TOKEN_URI = "https://oauth2.googleapis.com/token"
DEFAULT_FCM_BASE_URL = "https://fcm.googleapis.com/v1"
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


@dataclass(frozen=True)
class Settings:
  """Typed settings for the wallpaper push dispatcher."""

  environment: str
  firebase_project_id: str | None
  firebase_client_email: str | None
  firebase_private_key: str | None = field(repr=False)
  supabase_url: str | None
  supabase_service_role_key: str | None = field(repr=False)
  token_uri: str
  fcm_base_url: str
  http_timeout_seconds: float
  require_recipients: bool
  log_level: str
  log_file: str | None
  log_max_bytes: int
  log_backup_count: int
  log_http_bodies: bool
  log_http_body_bytes: int

  def missing_required(self) -> list[str]:
    """Return the names of required variables that are not configured."""
    required = {
      "FIREBASE_PROJECT_ID": self.firebase_project_id,
      "FIREBASE_CLIENT_EMAIL": self.firebase_client_email,
      "FIREBASE_PRIVATE_KEY": self.firebase_private_key,
      "SUPABASE_URL": self.supabase_url,
      "SUPABASE_SERVICE_ROLE_KEY": self.supabase_service_role_key,
    }
    return [name for name, value in required.items() if not value]


def _parse_bool(raw: str | None) -> bool:
  """Parse a boolean-ish string from environment variables."""

  if raw is None:
    return False

  normalized = raw.strip().lower()
  return normalized in {"1", "true", "yes", "on"}


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None
  value = raw.strip()
  if value == "":
    return None
  return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  environment = os.getenv("TWAIN_ENV", "development").lower()

  http_timeout_seconds = float(os.getenv("TWAIN_HTTP_TIMEOUT_SECONDS", "10"))
  if http_timeout_seconds <= 0:
    raise ValueError("TWAIN_HTTP_TIMEOUT_SECONDS must be a positive number.")

  log_max_bytes = int(os.getenv("TWAIN_LOG_MAX_BYTES", "5242880"))  # 5MB default
  if log_max_bytes <= 0:
    raise ValueError("TWAIN_LOG_MAX_BYTES must be a positive integer.")

  log_backup_count = int(os.getenv("TWAIN_LOG_BACKUP_COUNT", "10"))
  if log_backup_count < 0:
    raise ValueError("TWAIN_LOG_BACKUP_COUNT must be zero or a positive integer.")

  # Allow opt-in logging of HTTP request/response bodies with a size cap.
  log_http_bodies = _parse_bool(os.getenv("TWAIN_LOG_HTTP_BODIES"))
  log_http_body_bytes = int(os.getenv("TWAIN_LOG_HTTP_BODY_BYTES", "2048"))
  if log_http_body_bytes <= 0:
    raise ValueError("TWAIN_LOG_HTTP_BODY_BYTES must be a positive integer.")

  log_level = (os.getenv("TWAIN_LOG_LEVEL") or "INFO").strip().upper()
  if log_level not in LOG_LEVELS:
    raise ValueError(f"TWAIN_LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}.")

  supabase_url = _optional_str(os.getenv("SUPABASE_URL"))
  if supabase_url:
    supabase_url = supabase_url.rstrip("/")

  return Settings(
    environment=environment,
    firebase_project_id=_optional_str(os.getenv("FIREBASE_PROJECT_ID")),
    firebase_client_email=_optional_str(os.getenv("FIREBASE_CLIENT_EMAIL")),
    firebase_private_key=_optional_str(os.getenv("FIREBASE_PRIVATE_KEY")),
    supabase_url=supabase_url,
    supabase_service_role_key=_optional_str(os.getenv("SUPABASE_SERVICE_ROLE_KEY")),
    token_uri=(os.getenv("TWAIN_TOKEN_URI") or DEFAULT_TOKEN_URI).strip(),
    fcm_base_url=(os.getenv("TWAIN_FCM_BASE_URL") or DEFAULT_FCM_BASE_URL).strip().rstrip("/"),
    http_timeout_seconds=http_timeout_seconds,
    require_recipients=_parse_bool(os.getenv("TWAIN_REQUIRE_RECIPIENTS")),
    log_level=log_level,
    log_file=_optional_str(os.getenv("TWAIN_LOG_FILE")),
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
    log_http_bodies=log_http_bodies,
    log_http_body_bytes=log_http_body_bytes,
  )
