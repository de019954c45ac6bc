"""Factory helpers for the notification service."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import httpx

from wallpaper_push.config import Settings
from wallpaper_push.core.exceptions import ConfigurationError
from wallpaper_push.notifications.contracts import ServiceAccountCredentials
from wallpaper_push.notifications.push_sender import FcmPushDispatcher
from wallpaper_push.notifications.token_signer import ServiceAccountTokenSigner
from wallpaper_push.services.dispatch import WallpaperNotificationService
from wallpaper_push.storage.supabase_store import SupabaseWallpaperStore


def build_credentials(settings: Settings) -> ServiceAccountCredentials:
  """Assemble service-account credentials from settings."""
  if not (settings.firebase_project_id and settings.firebase_client_email and settings.firebase_private_key):
    raise ConfigurationError("Firebase service account is not configured")

  return ServiceAccountCredentials(project_id=settings.firebase_project_id, client_email=settings.firebase_client_email, private_key=settings.firebase_private_key, token_uri=settings.token_uri)


@contextmanager
def notification_service(settings: Settings, *, transport: httpx.BaseTransport | None = None) -> Iterator[WallpaperNotificationService]:
  """Yield a service whose HTTP client lives only for one invocation."""
  missing = settings.missing_required()
  if missing:
    raise ConfigurationError(f"Missing required configuration: {', '.join(missing)}")

  credentials = build_credentials(settings)
  # Every outbound call is bounded so the invocation cannot hang on one collaborator.
  with httpx.Client(timeout=settings.http_timeout_seconds, transport=transport) as client:
    yield WallpaperNotificationService(
      store=SupabaseWallpaperStore(client=client, base_url=settings.supabase_url or "", service_role_key=settings.supabase_service_role_key or ""),
      token_provider=ServiceAccountTokenSigner(client=client),
      dispatcher=FcmPushDispatcher(client=client, project_id=credentials.project_id, base_url=settings.fcm_base_url),
      credentials=credentials,
      require_recipients=settings.require_recipients,
    )
