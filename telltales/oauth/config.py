"""
Configuration for the telltales CLI.

Endpoint locations, the credential file path, callback listener settings
and request pacing. Values can be provided programmatically or loaded
from environment variables.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from .exceptions import ConfigurationError


def default_credentials_file() -> str:
    """Per-user credential file (~/.config/telltales/credentials.yaml)."""
    return str(Path.home() / ".config" / "telltales" / "credentials.yaml")


@dataclass
class TelltalesConfig:
    """
    Configuration for Telldus Live access.

    Attributes:
        api_url: Telldus Live API base URL
        credentials_file: Path to the YAML credential file
        callback_host: Interface the local OAuth callback listener binds to
        callback_port: Listener port (0 picks an ephemeral port)
        callback_path: URL path served by the callback listener
        verifier_timeout: Seconds to wait for the operator to authorize
        open_browser: Whether to open the authorization URL automatically
        request_interval: Minimum seconds between two API requests
        request_timeout: Per-request HTTP timeout in seconds
        max_attempts: Total attempts for a request failing with a network error
        retry_delay: Base delay in seconds before retrying a network error
    """

    api_url: str = "https://pa-api.telldus.com"
    credentials_file: str = field(default_factory=default_credentials_file)

    # Local callback listener
    callback_host: str = "127.0.0.1"
    callback_port: int = 0
    callback_path: str = "/telltales/callback"
    verifier_timeout: float = 300.0
    open_browser: bool = False

    # Request pacing
    request_interval: float = 1.0
    request_timeout: float = 30.0
    max_attempts: int = 3
    retry_delay: float = 1.0

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.api_url.startswith(("http://", "https://")):
            raise ConfigurationError("api_url must start with http:// or https://")

        if not self.credentials_file:
            raise ConfigurationError("credentials_file cannot be empty")

        if not isinstance(self.callback_port, int) or not (
            0 <= self.callback_port <= 65535
        ):
            raise ConfigurationError(
                f"callback_port must be between 0 and 65535, got {self.callback_port}"
            )

        if not self.callback_path.startswith("/"):
            raise ConfigurationError("callback_path must start with /")

        if self.verifier_timeout <= 0:
            raise ConfigurationError("verifier_timeout must be positive")

        if self.request_interval < 0:
            raise ConfigurationError("request_interval cannot be negative")

        if self.max_attempts < 1:
            raise ConfigurationError("max_attempts must be at least 1")

    @classmethod
    def from_env(cls) -> "TelltalesConfig":
        """
        Load configuration from environment variables.

        Optional environment variables:
            TELLTALES_CREDENTIALS_FILE: Credential file path
                (default: ~/.config/telltales/credentials.yaml)
            TELLTALES_API_URL: API base URL (default: https://pa-api.telldus.com)
            TELLTALES_CALLBACK_PORT: Callback listener port (default: 0, ephemeral)
            TELLTALES_VERIFIER_TIMEOUT: Seconds to wait for authorization (default: 300)
            TELLTALES_REQUEST_INTERVAL: Seconds between API requests (default: 1)
            TELLTALES_OPEN_BROWSER: "1" to open the authorization URL automatically

        Returns:
            TelltalesConfig instance

        Raises:
            ConfigurationError: If a variable holds an invalid value
        """
        try:
            return cls(
                api_url=os.environ.get("TELLTALES_API_URL", "https://pa-api.telldus.com"),
                credentials_file=os.environ.get(
                    "TELLTALES_CREDENTIALS_FILE", default_credentials_file()
                ),
                callback_port=int(os.environ.get("TELLTALES_CALLBACK_PORT", "0")),
                verifier_timeout=float(
                    os.environ.get("TELLTALES_VERIFIER_TIMEOUT", "300")
                ),
                request_interval=float(
                    os.environ.get("TELLTALES_REQUEST_INTERVAL", "1")
                ),
                open_browser=os.environ.get("TELLTALES_OPEN_BROWSER", "0")
                in ("1", "true", "yes"),
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid telltales environment setting: {e}") from e
