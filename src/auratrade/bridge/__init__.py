"""Feed bridge: relays broker push-feeds to browser websocket clients."""
from .fyers_auth import ConfigurationError, FyersAuth, FyersAuthError
from .session import BridgeSession
from .upstream import FyersFeed, UpstreamEvent, UpstreamFeed

__all__ = [
    "BridgeSession",
    "ConfigurationError",
    "FyersAuth",
    "FyersAuthError",
    "FyersFeed",
    "UpstreamEvent",
    "UpstreamFeed",
]
