"""Fyers authorization-code flow used by the bridge's HTTP routes."""

from __future__ import annotations

import hashlib
import logging
from typing import Any
from urllib.parse import urlencode

import httpx

from ..config import settings

log = logging.getLogger(__name__)


class ConfigurationError(RuntimeError):
    """Raised when required credentials are missing."""


class FyersAuthError(Exception):
    """Raised when Fyers rejects or fails an auth-code exchange."""


class FyersAuth:
    def __init__(
        self,
        app_id: str,
        secret_key: str,
        *,
        api_base: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ) -> None:
        if not app_id or not secret_key:
            raise ConfigurationError("FYERS_APP_ID and FYERS_SECRET_KEY must be set")
        self.app_id = app_id
        self.secret_key = secret_key
        self.api_base = (api_base or settings.fyers_api_base).rstrip("/")
        self._client = client
        self.timeout = settings.http_timeout if timeout is None else timeout

    @classmethod
    def from_settings(cls) -> "FyersAuth":
        return cls(settings.fyers_app_id or "", settings.fyers_secret_key or "")

    @property
    def app_id_hash(self) -> str:
        return hashlib.sha256(f"{self.app_id}:{self.secret_key}".encode()).hexdigest()

    def login_url(self, redirect_uri: str, state: str = "auratrade") -> str:
        query = urlencode(
            {
                "client_id": self.app_id,
                "redirect_uri": redirect_uri,
                "response_type": "code",
                "state": state,
            }
        )
        return f"{self.api_base}/generate-authcode?{query}"

    async def access_token(self, auth_code: str, redirect_uri: str | None = None) -> dict[str, Any]:
        """Exchange ``auth_code`` for the broker response containing ``access_token``."""

        payload = {
            "grant_type": "authorization_code",
            "appIdHash": self.app_id_hash,
            "code": auth_code,
        }
        url = f"{self.api_base}/validate-authcode"
        try:
            if self._client is not None:
                resp = await self._client.post(url, json=payload)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    resp = await client.post(url, json=payload)
        except httpx.HTTPError as exc:
            raise FyersAuthError(f"Fyers request failed: {exc}") from exc

        try:
            body = resp.json()
        except ValueError as exc:
            raise FyersAuthError(f"Invalid response from Fyers (HTTP {resp.status_code})") from exc
        if not isinstance(body, dict):
            raise FyersAuthError(f"Invalid response from Fyers (HTTP {resp.status_code})")
        if resp.is_error or body.get("s") == "error" or not body.get("access_token"):
            raise FyersAuthError(body.get("message") or "Failed to get access token")
        return body


__all__ = ["FyersAuth", "FyersAuthError", "ConfigurationError"]
