"""HTTP client for the bridge's authorization-code exchange routes."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..config import settings

log = logging.getLogger(__name__)


class AuthExchangeError(Exception):
    """Raised when the bridge cannot produce a login URL or access token."""


class ProxyAuthClient:
    def __init__(
        self,
        base_url: str | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ) -> None:
        self.base_url = (base_url if base_url is not None else settings.proxy_base_url).rstrip("/")
        self._client = client
        self.timeout = settings.http_timeout if timeout is None else timeout

    def _check_configured(self) -> None:
        if not self.base_url or "PASTE_YOUR" in self.base_url:
            raise AuthExchangeError("Proxy URL not configured. Please set PROXY_BASE_URL")

    async def _post(self, path: str, payload: dict[str, Any], fallback_error: str) -> dict[str, Any]:
        self._check_configured()
        url = f"{self.base_url}{path}"
        try:
            if self._client is not None:
                resp = await self._client.post(url, json=payload)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    resp = await client.post(url, json=payload)
        except httpx.HTTPError as exc:
            log.error("Error calling %s: %s", url, exc)
            raise AuthExchangeError(str(exc)) from exc

        try:
            body = resp.json()
        except ValueError:
            body = {}
        if resp.is_error:
            message = body.get("error") if isinstance(body, dict) else None
            log.error("%s failed with status %s", url, resp.status_code)
            raise AuthExchangeError(message or fallback_error)
        if not isinstance(body, dict):
            raise AuthExchangeError(fallback_error)
        return body

    async def get_login_url(self, redirect_uri: str) -> str:
        body = await self._post(
            "/get-login-url",
            {"redirectUri": redirect_uri},
            "Failed to fetch login URL from proxy",
        )
        login_url = body.get("loginUrl")
        if not login_url:
            raise AuthExchangeError("Failed to fetch login URL from proxy")
        return login_url

    async def get_access_token(self, auth_code: str, redirect_uri: str) -> dict[str, Any]:
        return await self._post(
            "/get-access-token",
            {"authCode": auth_code, "redirectUri": redirect_uri},
            "Failed to fetch access token from proxy",
        )
