from __future__ import annotations

import logging

from ..storage.local import ACCESS_TOKEN_KEY, LocalStore
from ..types import AuthStatus
from .client import AuthExchangeError, ProxyAuthClient

log = logging.getLogger(__name__)


class AuthSession:
    """Tracks the bearer credential that gates the data-feed connection.

    A token persisted by a previous run is restored on construction.
    """

    def __init__(self, client: ProxyAuthClient, store: LocalStore) -> None:
        self.client = client
        self.store = store
        self.status = AuthStatus.IDLE
        self.access_token: str | None = None
        self.error: str | None = None

        token = store.get(ACCESS_TOKEN_KEY)
        if token:
            self.access_token = token
            self.status = AuthStatus.AUTHENTICATED

    @property
    def authenticated(self) -> bool:
        return self.status is AuthStatus.AUTHENTICATED

    async def login(self, redirect_uri: str) -> str | None:
        """Return the broker login URL the user must visit, or ``None`` on error."""
        self.status = AuthStatus.AUTHENTICATING
        self.error = None
        try:
            return await self.client.get_login_url(redirect_uri)
        except AuthExchangeError as exc:
            log.error("Error getting login URL: %s", exc)
            self.error = f"Failed to start login. Is the proxy running? Error: {exc}"
            self.status = AuthStatus.ERROR
            return None

    async def handle_redirect(self, auth_code: str | None, redirect_uri: str) -> bool:
        """Exchange ``auth_code`` for an access token.  Returns ``True`` on success."""
        if not auth_code or self.status is AuthStatus.AUTHENTICATED:
            return False
        self.status = AuthStatus.AUTHENTICATING
        try:
            body = await self.client.get_access_token(auth_code, redirect_uri)
            token = body.get("access_token")
            if not token:
                raise AuthExchangeError("Access token not received from proxy.")
        except AuthExchangeError as exc:
            log.error("Error exchanging auth code: %s", exc)
            self.error = f"Authentication failed. Error: {exc}"
            self.status = AuthStatus.ERROR
            return False

        self.store.set(ACCESS_TOKEN_KEY, token)
        self.access_token = token
        self.error = None
        self.status = AuthStatus.AUTHENTICATED
        return True

    def logout(self) -> None:
        self.store.remove(ACCESS_TOKEN_KEY)
        self.access_token = None
        self.status = AuthStatus.IDLE
