"""
Telldus Live API client with OAuth 1.0a request signing.

This module provides the signed, rate-limited HTTP channel every telltales
command uses to talk to Telldus Live. It handles:

- OAuth 1.0a (HMAC-SHA1) signing with the consumer keys and token pair
- Process-wide request pacing through a shared RateLimiter
- Bounded retry of network errors
- Classification of 401 responses as token rejections
"""

import logging
import time
from typing import Any, Dict, List, Optional

import requests
from requests_oauthlib import OAuth1

from telltales import __version__
from telltales.oauth.config import TelltalesConfig
from telltales.oauth.credential_store import Credentials
from telltales.oauth.exceptions import ConfigurationError

from . import endpoints
from .exceptions import (
    NetworkError,
    RemoteError,
    TokenRejectedError,
    UnexpectedResponseError,
)
from .models import Entry
from .parsers import parse_controllers, parse_devices, parse_sensors
from .rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


class TelldusClient:
    """
    Signed, rate-limited HTTP client for Telldus Live.

    One client (the session) exists per process. Its RateLimiter is shared
    by reference with any client derived from it, so all requests of the
    process are spaced by the same clock.

    Example:
        limiter = RateLimiter(config.request_interval)
        client = TelldusClient(config, credentials, limiter)
        profile = client.get_profile()
        devices = client.list_devices()
    """

    def __init__(
        self,
        config: TelltalesConfig,
        credentials: Credentials,
        rate_limiter: Optional[RateLimiter] = None,
        http_session: Optional[requests.Session] = None,
    ):
        """
        Initialize Telldus Live client.

        Args:
            config: telltales configuration (base URL, timeouts, retries)
            credentials: Consumer keys and, once authorized, the token pair
            rate_limiter: Shared request pacer (creates one if not provided)
            http_session: requests session (creates one if not provided)
        """
        self.config = config
        self.credentials = credentials
        self.rate_limiter = rate_limiter or RateLimiter(config.request_interval)
        self.session = http_session or requests.Session()
        self.session.headers.update(
            {
                "Accept": "application/json",
                "User-Agent": f"telltales-cli/{__version__}",
            }
        )

    def with_credentials(self, credentials: Credentials) -> "TelldusClient":
        """
        Client bound to other credentials, sharing the rate limiter and session.

        Args:
            credentials: Credentials to sign with

        Returns:
            New TelldusClient
        """
        return TelldusClient(
            self.config, credentials, self.rate_limiter, http_session=self.session
        )

    def _get_full_url(self, endpoint: str) -> str:
        """
        Construct full API URL from endpoint path.

        Args:
            endpoint: API endpoint path (e.g., "/json/devices/list")

        Returns:
            Full URL with base URL
        """
        if endpoint.startswith(("http://", "https://")):
            return endpoint

        if not endpoint.startswith("/"):
            endpoint = f"/{endpoint}"

        return f"{self.config.api_url.rstrip('/')}{endpoint}"

    def signer(
        self,
        token: Optional[str] = None,
        token_secret: Optional[str] = None,
        callback_uri: Optional[str] = None,
        verifier: Optional[str] = None,
    ) -> OAuth1:
        """
        Build an OAuth 1.0a signer from the consumer keys.

        Args:
            token: Request or access token (None signs with consumer keys only)
            token_secret: Secret belonging to token
            callback_uri: oauth_callback value (temporary credentials leg)
            verifier: oauth_verifier value (token exchange leg)

        Returns:
            requests auth object

        Raises:
            ConfigurationError: If a consumer key is missing
        """
        if not self.credentials.is_complete:
            raise ConfigurationError(
                "Consumer keys are required before talking to Telldus Live "
                f"(missing: {', '.join(self.credentials.missing_fields())})"
            )

        return OAuth1(
            self.credentials.public_key,
            client_secret=self.credentials.private_key,
            resource_owner_key=token,
            resource_owner_secret=token_secret,
            callback_uri=callback_uri,
            verifier=verifier,
        )

    def session_signer(self) -> OAuth1:
        """Signer using the stored access token pair."""
        return self.signer(
            token=self.credentials.access_token,
            token_secret=self.credentials.access_token_secret,
        )

    def request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        auth: Optional[OAuth1] = None,
    ) -> requests.Response:
        """
        Make a signed HTTP request to Telldus Live.

        Every attempt waits for its rate limiter slot. Network errors are
        retried up to max_attempts total attempts; HTTP error statuses are
        never retried.

        Args:
            method: HTTP method (GET, POST)
            endpoint: API endpoint path or absolute URL
            params: Query parameters
            auth: Signer (defaults to the session's access token signer)

        Returns:
            Response object

        Raises:
            TokenRejectedError: If Telldus Live rejects the credentials (401)
            RemoteError: For any other non-success status
            NetworkError: If no response arrives after all attempts
            ConfigurationError: If consumer keys are missing
        """
        auth = auth or self.session_signer()
        url = self._get_full_url(endpoint)
        max_attempts = self.config.max_attempts

        logger.debug(f"{method} {url}")
        if params:
            logger.debug(f"  Params: {params}")

        for attempt in range(1, max_attempts + 1):
            try:
                with self.rate_limiter.slot():
                    response = self.session.request(
                        method,
                        url,
                        params=params,
                        auth=auth,
                        timeout=self.config.request_timeout,
                    )
            except requests.exceptions.RequestException as e:
                if attempt < max_attempts:
                    delay = self.config.retry_delay * (2 ** (attempt - 1))
                    logger.warning(
                        f"Network error: {e}. Retrying in {delay}s "
                        f"(attempt {attempt}/{max_attempts})"
                    )
                    if delay > 0:
                        time.sleep(delay)
                    continue
                logger.error(f"Network error after {max_attempts} attempts: {e}")
                raise NetworkError(
                    f"Could not reach Telldus Live after {max_attempts} attempts: {e}"
                ) from e

            return self._check_response(response, endpoint)

        # max_attempts >= 1 is validated by TelltalesConfig
        raise NetworkError(f"No request attempted for {endpoint}")

    def _check_response(
        self, response: requests.Response, endpoint: str
    ) -> requests.Response:
        """Raise the matching exception for an unsuccessful response."""
        if response.status_code == 401:
            logger.warning(f"Telldus Live rejected the OAuth credentials (401): {endpoint}")
            raise TokenRejectedError(
                "Telldus Live rejected the OAuth credentials",
                status=401,
                body=response.text,
            )

        if not response.ok:
            logger.error(f"API error ({response.status_code}): {response.text}")
            raise RemoteError(
                f"Telldus Live error ({response.status_code}): {response.text}",
                status=response.status_code,
                body=response.text,
            )

        logger.debug(f"Response: {response.status_code}")
        return response

    def get_json(
        self, endpoint: str, params: Optional[Dict[str, Any]] = None
    ) -> Any:
        """
        Make a signed GET request and decode the JSON body.

        Telldus Live reports some failures as {"error": "..."} with a 200
        status; those are raised as RemoteError.

        Raises:
            UnexpectedResponseError: If the body is not JSON
            TokenRejectedError, RemoteError, NetworkError: See request()
        """
        response = self.request("GET", endpoint, params=params)
        try:
            data = response.json()
        except ValueError as e:
            raise UnexpectedResponseError(
                f"Unexpected Telldus Live response from {endpoint}: {e}",
                status=response.status_code,
                body=response.text,
            ) from e

        if isinstance(data, dict) and data.get("error"):
            raise RemoteError(
                f"Telldus Live error: {data['error']}",
                status=response.status_code,
                body=response.text,
            )
        return data

    def get_profile(self) -> Dict[str, Any]:
        """
        Fetch the account profile (used to validate the access token).

        Returns:
            Profile JSON

        Raises:
            TokenRejectedError: If the access token is rejected
        """
        data = self.get_json(endpoints.USER_PROFILE)
        if not isinstance(data, dict):
            raise UnexpectedResponseError(
                "Unexpected Telldus Live profile response", body=str(data)
            )
        return data

    def list_controllers(self) -> List[Entry]:
        """List Telldus controllers (gateways) on the account."""
        return parse_controllers(self.get_json(endpoints.CLIENTS_LIST))

    def list_devices(self) -> List[Entry]:
        """List devices on the account."""
        return parse_devices(self.get_json(endpoints.DEVICES_LIST))

    def list_sensors(self) -> List[Entry]:
        """List sensors with their latest values."""
        params = {"includeIgnored": "0", "includeValues": "1", "includeScale": "1"}
        return parse_sensors(self.get_json(endpoints.SENSORS_LIST, params=params))
