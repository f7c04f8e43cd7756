"""
OAuth 1.0a module for Telldus Live authentication.

This module provides the credential and session core of telltales:
consumer keys and access tokens persisted in a YAML file, and the
three-legged OAuth flow that obtains a fresh access token when the
stored one is missing or rejected.

Public API:
    TelltalesConfig: Configuration management
    Credentials: Credential data structure
    CredentialStore: File-based credential persistence
    VerifierAcquisition: Callback listener / prompt race for the verifier

The flow itself lives in telltales.oauth.coordinator (AuthCoordinator)
and telltales.oauth.handshake; import those modules directly.

Exceptions:
    TelltalesError: Base exception
    ConfigurationError: Configuration error
    CredentialStorageError: Storage operation failed
    HandshakeError: OAuth handshake leg failed
    VerifierError: Verifier could not be obtained
    AuthenticationFailedError: Authentication ended in failure
"""

from .config import TelltalesConfig, default_credentials_file
from .credential_store import Credentials, CredentialStore, prompt_for_missing
from .exceptions import (
    AuthenticationFailedError,
    AuthorizationDeniedError,
    ConfigurationError,
    CredentialStorageError,
    HandshakeError,
    TelltalesError,
    TelltalesOAuthError,
    VerifierAbortedError,
    VerifierError,
    VerifierNotFoundError,
    VerifierTimeoutError,
)
from .verifier import (
    OOB_CALLBACK,
    CallbackListener,
    PromptStrategy,
    VerifierAcquisition,
    extract_verifier,
)

__all__ = [
    # Configuration
    "TelltalesConfig",
    "default_credentials_file",
    # Credential Store
    "Credentials",
    "CredentialStore",
    "prompt_for_missing",
    # Verifier
    "OOB_CALLBACK",
    "CallbackListener",
    "PromptStrategy",
    "VerifierAcquisition",
    "extract_verifier",
    # Exceptions
    "TelltalesError",
    "TelltalesOAuthError",
    "ConfigurationError",
    "CredentialStorageError",
    "HandshakeError",
    "AuthorizationDeniedError",
    "VerifierError",
    "VerifierNotFoundError",
    "VerifierTimeoutError",
    "VerifierAbortedError",
    "AuthenticationFailedError",
]
