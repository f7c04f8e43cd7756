"""
OAuth 1.0a handshake legs for Telldus Live.

This module implements the network legs of the three-legged flow:

- Temporary credentials (request token), signed with the consumer keys
- Authorization URL the operator opens in the browser
- Verifier exchange for the permanent access token pair
- Profile fetch used to validate an access token

All requests go through the TelldusClient, so they are signed and paced
by the shared rate limiter like any other API call.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple
from urllib.parse import parse_qsl, urlencode

from telltales.telldus import endpoints
from telltales.telldus.client import TelldusClient
from telltales.telldus.exceptions import RemoteError, TokenRejectedError
from telltales.telldus.parsers import parse_account_name

from .exceptions import AuthorizationDeniedError, HandshakeError
from .verifier import OOB_CALLBACK

logger = logging.getLogger(__name__)


@dataclass
class TemporaryCredentials:
    """
    Short-lived request token pair from the first OAuth leg.

    Never persisted; discarded once exchanged or once the handshake ends.

    Attributes:
        request_token: oauth_token from the request token response
        request_token_secret: oauth_token_secret from the request token response
        authorization_url: URL where the operator approves access
    """

    request_token: str
    request_token_secret: str
    authorization_url: str


def parse_token_response(body: str) -> Tuple[str, str]:
    """
    Parse a form-encoded OAuth token response.

    Args:
        body: Response body (oauth_token=...&oauth_token_secret=...)

    Returns:
        Tuple of (oauth_token, oauth_token_secret)

    Raises:
        AuthorizationDeniedError: If the operator refused access
        HandshakeError: If the response reports a problem or lacks a field
    """
    data: Dict[str, str] = dict(parse_qsl((body or "").strip()))

    problem = data.get("oauth_problem")
    if problem:
        if problem == "user_refused":
            raise AuthorizationDeniedError("OAuth authorization was denied")
        raise HandshakeError(f"Telldus Live rejected the OAuth request: {problem}")

    for field in ("oauth_token", "oauth_token_secret"):
        if not data.get(field):
            raise HandshakeError(f"OAuth response missing field `{field}`")

    return data["oauth_token"], data["oauth_token_secret"]


class OAuthHandshake:
    """
    Network legs of the Telldus Live OAuth 1.0a flow.

    Example:
        handshake = OAuthHandshake(client)
        temp = handshake.request_temporary_credentials(callback_url)
        verifier = ...  # obtained from the operator
        token, secret = handshake.exchange(temp, verifier)
    """

    def __init__(self, client: TelldusClient):
        """
        Initialize handshake.

        Args:
            client: Client carrying the consumer keys and shared rate limiter
        """
        self.client = client

    def build_authorization_url(self, request_token: str, callback_uri: str) -> str:
        """
        Authorization URL for the operator's browser.

        The callback is repeated on the URL so the redirect reaches the
        local listener; it is left out for out-of-band authorization.
        """
        params = {"oauth_token": request_token}
        if callback_uri and callback_uri != OOB_CALLBACK:
            params["oauth_callback"] = callback_uri
        base_url = self.client.config.api_url.rstrip("/")
        return f"{base_url}{endpoints.OAUTH_AUTHORIZE}?{urlencode(params)}"

    def request_temporary_credentials(
        self, callback_uri: str = OOB_CALLBACK
    ) -> TemporaryCredentials:
        """
        Obtain a request token pair, signed with the consumer keys only.

        Args:
            callback_uri: Local listener URL, or "oob"

        Returns:
            TemporaryCredentials including the authorization URL

        Raises:
            HandshakeError: If the consumer keys are rejected or the response is unusable
            RemoteError, NetworkError: From the client
        """
        logger.info("Requesting OAuth temporary credentials")
        try:
            response = self.client.request(
                "POST",
                endpoints.OAUTH_REQUEST_TOKEN,
                auth=self.client.signer(callback_uri=callback_uri),
            )
        except TokenRejectedError as e:
            raise HandshakeError(
                f"Telldus Live rejected the consumer keys: {e.body or e}"
            ) from e
        token, secret = parse_token_response(response.text)

        return TemporaryCredentials(
            request_token=token,
            request_token_secret=secret,
            authorization_url=self.build_authorization_url(token, callback_uri),
        )

    def exchange(self, temporary: TemporaryCredentials, verifier: str) -> Tuple[str, str]:
        """
        Trade the request token pair and verifier for an access token pair.

        Args:
            temporary: Credentials from request_temporary_credentials()
            verifier: oauth_verifier approved by the operator

        Returns:
            Tuple of (access_token, access_token_secret)

        Raises:
            AuthorizationDeniedError: If the operator refused access
            HandshakeError: If Telldus Live rejects the exchange
        """
        logger.info("Exchanging OAuth verifier for access token")
        try:
            response = self.client.request(
                "POST",
                endpoints.OAUTH_ACCESS_TOKEN,
                auth=self.client.signer(
                    token=temporary.request_token,
                    token_secret=temporary.request_token_secret,
                    verifier=verifier.strip(),
                ),
            )
        except TokenRejectedError as e:
            raise HandshakeError(
                f"Telldus Live rejected the verification code: {e.body or e}"
            ) from e

        return parse_token_response(response.text)


def verify_profile(client: TelldusClient) -> Optional[str]:
    """
    Validate the client's access token with a profile fetch.

    Args:
        client: Client signing with the access token under test

    Returns:
        Account display name, if the profile carries one

    Raises:
        TokenRejectedError: If the token is rejected
        RemoteError: If the profile status is missing or not "success"
    """
    profile = client.get_profile()

    status = profile.get("status") or "unknown"
    if status != "success":
        raise RemoteError(f"Telldus Live rejected the request with status {status}")

    return parse_account_name(profile)
