"""
Exception classes for telltales authentication.

This module defines the exception hierarchy for credential handling and
the OAuth 1.0a handshake with Telldus Live.
"""


class TelltalesError(Exception):
    """Base exception for all telltales errors."""

    pass


class TelltalesOAuthError(TelltalesError):
    """Base exception for authentication errors."""

    pass


class ConfigurationError(TelltalesOAuthError):
    """Configuration error (missing consumer keys or invalid settings)."""

    pass


class CredentialStorageError(TelltalesOAuthError):
    """Credential file could not be read, parsed or written."""

    pass


class HandshakeError(TelltalesOAuthError):
    """The OAuth handshake returned an unusable response."""

    pass


class AuthorizationDeniedError(HandshakeError):
    """The operator refused access on the Telldus authorization page."""

    pass


class VerifierError(TelltalesOAuthError):
    """Base exception for failures obtaining the OAuth verifier."""

    pass


class VerifierNotFoundError(VerifierError):
    """Operator input or callback did not carry an oauth_verifier."""

    pass


class VerifierTimeoutError(VerifierError):
    """No verifier was received before the deadline."""

    pass


class VerifierAbortedError(VerifierError):
    """The operator aborted while the verifier was awaited."""

    pass


class AuthenticationFailedError(TelltalesOAuthError):
    """
    Authentication ended in the failed state.

    Attributes:
        reason: Human-readable reason reported to the operator
    """

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason
