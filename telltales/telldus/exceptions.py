"""Exceptions for the Telldus Live API client."""

from typing import Optional

from telltales.oauth.exceptions import TelltalesError


class TelldusAPIError(TelltalesError):
    """Base exception for Telldus Live API errors."""

    pass


class NetworkError(TelldusAPIError):
    """Request never produced a response (connection error or timeout)."""

    pass


class RemoteError(TelldusAPIError):
    """
    Telldus Live answered with a non-success status.

    Attributes:
        status: HTTP status code (None when the status itself was fine)
        body: Response body text
    """

    def __init__(self, message: str, status: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status = status
        self.body = body


class TokenRejectedError(RemoteError):
    """
    Telldus Live rejected the OAuth credentials (401).

    The stored access token is invalid or revoked; the authentication flow
    reacts by running a new handshake.
    """

    pass


class UnexpectedResponseError(RemoteError):
    """Response body could not be decoded or lacked expected fields."""

    pass
