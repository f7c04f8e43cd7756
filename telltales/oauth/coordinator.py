"""
Authentication coordinator for Telldus Live.

This module provides the main interface for authentication in telltales.
It drives the flow from stored credentials to an authenticated session:

    START -> CHECK_TOKEN -> (AUTHENTICATED | HANDSHAKE)
    HANDSHAKE -> AWAIT_VERIFIER -> EXCHANGE -> VALIDATE -> AUTHENTICATED

Any failure along the way ends in FAILED with a reason for the operator.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

import click
import requests

from telltales.telldus.client import TelldusClient
from telltales.telldus.exceptions import TokenRejectedError
from telltales.telldus.rate_limiter import RateLimiter

from .config import TelltalesConfig
from .credential_store import CredentialStore, Credentials, prompt_for_missing
from .exceptions import AuthenticationFailedError, TelltalesError
from .handshake import OAuthHandshake, verify_profile
from .verifier import PromptStrategy, VerifierAcquisition

logger = logging.getLogger(__name__)


class AuthState(Enum):
    """States of the authentication flow."""

    START = "start"
    CHECK_TOKEN = "check_token"
    HANDSHAKE = "handshake"
    AWAIT_VERIFIER = "await_verifier"
    EXCHANGE = "exchange"
    VALIDATE = "validate"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


@dataclass
class AuthResult:
    """
    Terminal outcome of one authentication run.

    Attributes:
        state: AUTHENTICATED or FAILED
        credentials: Credentials in effect when the run ended
        account_name: Display name from the validated profile
        tokens_refreshed: True if a new access token was obtained and saved
        reason: Why the run failed (FAILED only)
        transitions: States visited, in order
    """

    state: AuthState
    credentials: Optional[Credentials] = None
    account_name: Optional[str] = None
    tokens_refreshed: bool = False
    reason: Optional[str] = None
    transitions: List[AuthState] = field(default_factory=list)

    @property
    def authenticated(self) -> bool:
        return self.state is AuthState.AUTHENTICATED


class AuthCoordinator:
    """
    High-level coordinator for Telldus Live authentication.

    This is the interface commands use to obtain an authenticated session.
    It is re-entrant: every command needing authentication may call it.

    Example:
        coordinator = AuthCoordinator()
        result = coordinator.run()
        if result.authenticated:
            print(f"Authenticated as {result.account_name}")

        # Or, for commands that only need the session:
        client = coordinator.ensure_authenticated()
        devices = client.list_devices()
    """

    def __init__(
        self,
        config: Optional[TelltalesConfig] = None,
        store: Optional[CredentialStore] = None,
        rate_limiter: Optional[RateLimiter] = None,
        http_session: Optional[requests.Session] = None,
        prompt: Callable[..., str] = click.prompt,
        echo: Callable[..., None] = click.echo,
        verifier_factory: Optional[Callable[[], VerifierAcquisition]] = None,
    ):
        """
        Initialize authentication coordinator.

        Args:
            config: telltales configuration (loads from environment if not provided)
            store: Credential store (uses config.credentials_file if not provided)
            rate_limiter: Process-wide request pacer (creates one if not provided)
            http_session: requests session shared by all clients
            prompt: Prompt function for operator input (click.prompt compatible)
            echo: Output function for operator messages
            verifier_factory: Builds the verifier acquisition for a handshake
        """
        self.config = config or TelltalesConfig.from_env()
        self.store = store or CredentialStore(self.config.credentials_file)
        self.rate_limiter = rate_limiter or RateLimiter(self.config.request_interval)
        self.http_session = http_session or requests.Session()
        self.prompt = prompt
        self.echo = echo
        self.verifier_factory = verifier_factory or self._default_verifier

    def _default_verifier(self) -> VerifierAcquisition:
        return VerifierAcquisition(
            self.config,
            prompt=PromptStrategy(prompt=self.prompt, echo=self.echo),
            echo=self.echo,
        )

    def client_for(self, credentials: Credentials) -> TelldusClient:
        """Client signing with the given credentials, sharing the rate limiter."""
        return TelldusClient(
            self.config, credentials, self.rate_limiter, http_session=self.http_session
        )

    def _ensure_consumer_keys(self) -> Credentials:
        """Load credentials, prompting for and saving missing consumer keys."""
        credentials = self.store.load()
        if credentials.is_complete:
            return credentials

        self.echo(
            f"Telldus Live credentials are required. Values are stored in {self.store.path}."
        )
        credentials = prompt_for_missing(credentials, prompt=self.prompt)
        self.store.save(credentials)
        return credentials

    def _handshake(self, credentials: Credentials, enter: Callable) -> Credentials:
        """Run the OAuth handshake and persist the new token pair."""
        enter(AuthState.HANDSHAKE)
        handshake = OAuthHandshake(self.client_for(credentials))

        with self.verifier_factory() as acquisition:
            callback_uri = acquisition.open()
            temporary = handshake.request_temporary_credentials(callback_uri)

            enter(AuthState.AWAIT_VERIFIER)
            verifier = acquisition.acquire(temporary.authorization_url)

        enter(AuthState.EXCHANGE)
        token, token_secret = handshake.exchange(temporary, verifier)

        updated = credentials.with_token(token, token_secret)
        self.store.save(updated)
        self.echo("Stored refreshed OAuth access token.")
        return updated

    def run(self) -> AuthResult:
        """
        Run the authentication flow to a terminal state.

        Returns:
            AuthResult (AUTHENTICATED or FAILED with a reason)
        """
        transitions: List[AuthState] = []
        credentials: Optional[Credentials] = None

        def enter(state: AuthState) -> None:
            transitions.append(state)
            logger.debug(f"Authentication state: {state.value}")

        try:
            enter(AuthState.START)
            credentials = self._ensure_consumer_keys()

            enter(AuthState.CHECK_TOKEN)
            if credentials.has_token:
                try:
                    account_name = verify_profile(self.client_for(credentials))
                    enter(AuthState.AUTHENTICATED)
                    logger.info("Stored access token is valid")
                    return AuthResult(
                        AuthState.AUTHENTICATED,
                        credentials=credentials,
                        account_name=account_name,
                        transitions=transitions,
                    )
                except TokenRejectedError:
                    logger.warning("Stored access token was rejected")
                    self.echo(
                        "Stored tokens were rejected by Telldus Live; starting OAuth flow."
                    )
            else:
                logger.info("No stored access token, starting OAuth flow")

            credentials = self._handshake(credentials, enter)

            enter(AuthState.VALIDATE)
            try:
                account_name = verify_profile(self.client_for(credentials))
            except TelltalesError as e:
                raise AuthenticationFailedError(
                    f"Newly issued access token failed validation: {e}"
                ) from e

            enter(AuthState.AUTHENTICATED)
            logger.info("Authorization complete, tokens saved")
            return AuthResult(
                AuthState.AUTHENTICATED,
                credentials=credentials,
                account_name=account_name,
                tokens_refreshed=True,
                transitions=transitions,
            )

        except TelltalesError as e:
            logger.error(f"Authentication failed: {e}")
            transitions.append(AuthState.FAILED)
            return AuthResult(
                AuthState.FAILED,
                credentials=credentials,
                reason=str(e),
                transitions=transitions,
            )

    def ensure_authenticated(self) -> TelldusClient:
        """
        Authenticated session for API commands.

        Returns:
            TelldusClient signing with a validated access token

        Raises:
            AuthenticationFailedError: If the flow ends in FAILED
        """
        result = self.run()
        if not result.authenticated:
            raise AuthenticationFailedError(result.reason or "Authentication failed")
        return self.client_for(result.credentials)
