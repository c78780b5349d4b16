"""Allow-list access check for bearer credentials.

The credential is exchanged for an identity at the Supabase auth endpoint,
and the identity's email is looked up in an allow-list table through the
PostgREST interface, using the service key.
"""

from __future__ import annotations

import httpx

from srtlingo.core.config import AuthConfig
from srtlingo.core.errors import AccessDenied, ConfigError
from srtlingo.core.models import Identity


def bearer_token(header: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not header or not header.lower().startswith("bearer "):
        return None
    return header[7:].strip() or None


class AccessChecker:
    """Check bearer credentials against the allow-list."""

    def __init__(self, config: AuthConfig, client: httpx.Client | None = None):
        if not config.configured:
            raise ConfigError(["auth.supabase_url", "auth.service_key"])
        self.config = config
        self.base_url = config.supabase_url.rstrip("/")
        self.client = client or httpx.Client(timeout=10.0)

    def identify(self, token: str) -> Identity:
        """Exchange a bearer token for the account it belongs to."""
        try:
            response = self.client.get(
                f"{self.base_url}/auth/v1/user",
                headers={"apikey": self.config.service_key, "Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as e:
            raise AccessDenied(500, f"Auth request failed: {e}") from e

        if response.status_code in (401, 403, 404):
            raise AccessDenied(401, _error_message(response) or "Invalid token")
        if response.is_error:
            raise AccessDenied(500, _error_message(response) or "Auth service error")

        data = response.json()
        if not data.get("id"):
            raise AccessDenied(401, "Invalid token")
        return Identity(
            user_id=data["id"],
            email=data.get("email") or None,
            metadata=data.get("user_metadata") or {},
        )

    def is_allowed(self, email: str) -> bool:
        key = self.config.service_key
        try:
            response = self.client.get(
                f"{self.base_url}/rest/v1/{self.config.table}",
                params={"select": "email", "email": f"eq.{email.lower()}"},
                headers={"apikey": key, "Authorization": f"Bearer {key}"},
            )
        except httpx.HTTPError as e:
            raise AccessDenied(500, f"Allow-list lookup failed: {e}") from e
        if response.is_error:
            raise AccessDenied(500, _error_message(response) or "Allow-list lookup failed")
        rows = response.json()
        return isinstance(rows, list) and len(rows) > 0

    def check(self, authorization: str | None) -> Identity:
        """Validate an Authorization header value.

        Raises:
            AccessDenied: 401 for a missing or invalid token, 403 when the
                account has no email or the email is not allowed, 500 when
                the backend cannot be reached.
        """
        token = bearer_token(authorization)
        if not token:
            raise AccessDenied(401, "Missing bearer token")

        identity = self.identify(token)
        if not identity.email:
            raise AccessDenied(403, "No email on account")
        if not self.is_allowed(identity.email):
            raise AccessDenied(403, "Email not allowed")
        return identity

    def close(self) -> None:
        self.client.close()


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(data, dict):
        return str(data.get("msg") or data.get("message") or data.get("error_description") or "")
    return ""
