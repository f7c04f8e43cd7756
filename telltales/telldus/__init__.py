"""
Telldus Live API client module.

This module provides the signed, rate-limited channel to Telldus Live:

- TelldusClient: OAuth 1.0a signed HTTP client (the session)
- RateLimiter: Process-wide request pacing shared by all clients
- Entry, Category: Listed controllers, devices and sensors

Authentication (obtaining the token the client signs with) is handled by
the telltales.oauth module.
"""

from .client import TelldusClient
from .exceptions import (
    NetworkError,
    RemoteError,
    TelldusAPIError,
    TokenRejectedError,
    UnexpectedResponseError,
)
from .models import Category, Entry
from .rate_limiter import RateLimiter

__all__ = [
    "TelldusClient",
    "RateLimiter",
    "Category",
    "Entry",
    "TelldusAPIError",
    "NetworkError",
    "RemoteError",
    "TokenRejectedError",
    "UnexpectedResponseError",
]
