"""Test configuration for importing the application package."""

from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
  sys.path.insert(0, str(ROOT))

import pytest  # noqa: E402
from cryptography.hazmat.primitives import serialization  # noqa: E402
from cryptography.hazmat.primitives.asymmetric import rsa  # noqa: E402

from wallpaper_push.config import Settings  # noqa: E402
from wallpaper_push.notifications.contracts import PairUser, ServiceAccountCredentials, Wallpaper  # noqa: E402

SENDER_ID = "11111111-1111-1111-1111-111111111111"
PARTNER_ID = "22222222-2222-2222-2222-222222222222"
PAIR_ID = "pair-1"


@pytest.fixture(scope="session")
def rsa_private_key() -> rsa.RSAPrivateKey:
  return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_key_pem(rsa_private_key) -> str:
  return rsa_private_key.private_bytes(encoding=serialization.Encoding.PEM, format=serialization.PrivateFormat.PKCS8, encryption_algorithm=serialization.NoEncryption()).decode("utf-8")


@pytest.fixture
def credentials(private_key_pem) -> ServiceAccountCredentials:
  return ServiceAccountCredentials(project_id="twain-test", client_email="push@twain-test.iam.gserviceaccount.com", private_key=private_key_pem)


@pytest.fixture
def settings(private_key_pem) -> Settings:
  return Settings(
    environment="test",
    firebase_project_id="twain-test",
    firebase_client_email="push@twain-test.iam.gserviceaccount.com",
    firebase_private_key=private_key_pem.replace("\n", "\\n"),
    supabase_url="https://db.example.supabase.co",
    supabase_service_role_key="service-role",
    token_uri="https://oauth2.googleapis.com/token",
    fcm_base_url="https://fcm.googleapis.com/v1",
    http_timeout_seconds=10.0,
    require_recipients=False,
    log_level="INFO",
    log_file=None,
    log_max_bytes=5242880,
    log_backup_count=10,
    log_http_bodies=False,
    log_http_body_bytes=2048,
  )


@pytest.fixture
def make_wallpaper():
  def _make(**overrides) -> Wallpaper:
    values = {"id": "wp-1", "pair_id": PAIR_ID, "sender_id": SENDER_ID, "image_url": "https://cdn.example.com/wp-1.jpg", "apply_to": "partner", "source_type": None}
    values.update(overrides)
    return Wallpaper(**values)

  return _make


@pytest.fixture
def sender() -> PairUser:
  return PairUser(id=SENDER_ID, fcm_token="token-sender", display_name="Ada Lovelace", pair_id=PAIR_ID)


@pytest.fixture
def partner() -> PairUser:
  return PairUser(id=PARTNER_ID, fcm_token="token-partner", display_name="Charles Babbage", pair_id=PAIR_ID)
