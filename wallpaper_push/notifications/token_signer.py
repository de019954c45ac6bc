"""Service-account JWT signing and OAuth access token exchange for FCM.

The assertion is an RS256 JWT signed with the service account's PKCS8 key and
exchanged at the OAuth token endpoint using the JWT-bearer grant. The resulting
bearer token is held in memory for a single invocation and never logged.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

import httpx
import jwt
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jwt.utils import base64url_encode

from wallpaper_push.core.exceptions import AuthError
from wallpaper_push.notifications.contracts import AccessToken, AccessTokenProvider, ServiceAccountCredentials

logger = logging.getLogger(__name__)

FCM_SCOPE = "https://www.googleapis.com/auth/firebase.messaging"
JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"
TOKEN_LIFETIME_SECONDS = 3600


def encode_segment(data: bytes) -> str:
  """Base64url-encode bytes without padding, as used for JWT segments."""
  return base64url_encode(data).decode("ascii")


def normalize_private_key(pem: str) -> str:
  """Restore newlines in PEM keys that were stored with escaped `\\n` sequences."""
  return pem.replace("\\n", "\n").strip()


def load_private_key(pem: str) -> rsa.RSAPrivateKey:
  """Parse a PEM-encoded RSA private key."""
  try:
    key = serialization.load_pem_private_key(normalize_private_key(pem).encode("utf-8"), password=None)
  except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
    raise AuthError("Service account private key could not be parsed") from exc

  if not isinstance(key, rsa.RSAPrivateKey):
    raise AuthError("Service account private key must be an RSA key")

  return key


def build_claims(credentials: ServiceAccountCredentials, *, issued_at: int) -> dict[str, Any]:
  """Build the JWT claim set for the messaging scope."""
  return {
    "iss": credentials.client_email,
    "sub": credentials.client_email,
    "aud": credentials.token_uri,
    "iat": issued_at,
    "exp": issued_at + TOKEN_LIFETIME_SECONDS,
    "scope": FCM_SCOPE,
  }


def build_assertion(credentials: ServiceAccountCredentials, *, issued_at: int) -> str:
  """Return a signed `header.claims.signature` assertion for the token endpoint."""
  key = load_private_key(credentials.private_key)
  claims = build_claims(credentials, issued_at=issued_at)
  try:
    return jwt.encode(claims, key, algorithm="RS256", headers={"typ": "JWT"})
  except (jwt.PyJWTError, ValueError, TypeError) as exc:
    raise AuthError("Failed to sign service account assertion") from exc


class ServiceAccountTokenSigner(AccessTokenProvider):
  """Mints FCM bearer tokens from service-account credentials."""

  def __init__(self, *, client: httpx.Client, clock: Callable[[], float] = time.time) -> None:
    self._client = client
    self._clock = clock

  def obtain_access_token(self, credentials: ServiceAccountCredentials) -> AccessToken:
    """Sign an assertion and exchange it for an access token."""
    issued_at = int(self._clock())
    assertion = build_assertion(credentials, issued_at=issued_at)

    try:
      response = self._client.post(credentials.token_uri, data={"grant_type": JWT_BEARER_GRANT, "assertion": assertion}, headers={"Content-Type": "application/x-www-form-urlencoded"})
    except httpx.RequestError as exc:
      logger.error("Token exchange request failed token_uri=%s error_type=%s", credentials.token_uri, type(exc).__name__)
      raise AuthError(f"Token exchange request failed: {type(exc).__name__}") from exc

    body = _json_or_none(response)
    if not response.is_success:
      error_code = body.get("error") if isinstance(body, dict) else None
      logger.error("Token exchange rejected token_uri=%s status=%s error=%s", credentials.token_uri, response.status_code, error_code)
      raise AuthError(f"Token exchange failed with status {response.status_code}")

    if not isinstance(body, dict):
      raise AuthError("Token endpoint returned a non-JSON body")

    access_token = body.get("access_token")
    if not isinstance(access_token, str) or not access_token:
      raise AuthError("Token endpoint response did not include an access_token")

    expires_in = body.get("expires_in")
    if isinstance(expires_in, int | float) and not isinstance(expires_in, bool) and expires_in > 0:
      expires_at = issued_at + int(expires_in)
    else:
      expires_at = issued_at + TOKEN_LIFETIME_SECONDS

    logger.info("Obtained FCM access token client_email=%s expires_at=%s", credentials.client_email, expires_at)
    return AccessToken(value=access_token, expires_at=expires_at)


def _json_or_none(response: httpx.Response) -> Any:
  try:
    return response.json()
  except ValueError:
    return None
