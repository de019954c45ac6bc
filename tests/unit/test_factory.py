from __future__ import annotations

from dataclasses import replace

import httpx
import pytest

from wallpaper_push.core.exceptions import ConfigurationError
from wallpaper_push.services.factory import build_credentials, notification_service


def test_service_client_uses_configured_timeout(settings):
  configured = replace(settings, http_timeout_seconds=2.5)

  with notification_service(configured, transport=httpx.MockTransport(lambda request: httpx.Response(200, json=[]))) as service:
    client = service._store._client
    assert client.timeout == httpx.Timeout(2.5)
    assert service._token_provider._client is client
    assert service._dispatcher._client is client

  assert client.is_closed


def test_missing_configuration_is_reported_by_name(settings):
  with pytest.raises(ConfigurationError, match="SUPABASE_SERVICE_ROLE_KEY"):
    with notification_service(replace(settings, supabase_service_role_key=None)):
      pass


def test_build_credentials_carries_token_uri(settings):
  credentials = build_credentials(replace(settings, token_uri="https://oauth.example.test/token"))

  assert credentials.project_id == "twain-test"
  assert credentials.token_uri == "https://oauth.example.test/token"
