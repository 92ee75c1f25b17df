from .client import AuthExchangeError, ProxyAuthClient
from .session import AuthSession

__all__ = ["AuthExchangeError", "ProxyAuthClient", "AuthSession"]
