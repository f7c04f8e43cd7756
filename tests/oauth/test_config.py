"""Tests for telltales configuration module."""

import os
from pathlib import Path
from unittest import mock

import pytest

from telltales.oauth.config import TelltalesConfig, default_credentials_file
from telltales.oauth.exceptions import ConfigurationError


class TestTelltalesConfig:
    """Tests for TelltalesConfig class."""

    def test_config_defaults(self):
        """Config can be created without parameters."""
        config = TelltalesConfig()

        assert config.api_url == "https://pa-api.telldus.com"
        assert config.credentials_file == default_credentials_file()
        assert config.callback_host == "127.0.0.1"
        assert config.callback_port == 0
        assert config.callback_path == "/telltales/callback"
        assert config.verifier_timeout == 300.0
        assert config.open_browser is False
        assert config.request_interval == 1.0
        assert config.max_attempts == 3

    def test_default_credentials_file_location(self):
        """Credential file defaults to ~/.config/telltales/credentials.yaml."""
        path = Path(default_credentials_file())

        assert path.name == "credentials.yaml"
        assert path.parent.name == "telltales"
        assert path.parent.parent.name == ".config"

    def test_config_with_all_params(self):
        """Config can be created with all parameters."""
        config = TelltalesConfig(
            api_url="http://localhost:8080",
            credentials_file="/tmp/creds.yaml",
            callback_host="0.0.0.0",
            callback_port=9000,
            callback_path="/cb",
            verifier_timeout=10,
            open_browser=True,
            request_interval=0,
            request_timeout=5,
            max_attempts=1,
            retry_delay=0,
        )

        assert config.api_url == "http://localhost:8080"
        assert config.credentials_file == "/tmp/creds.yaml"
        assert config.callback_port == 9000
        assert config.callback_path == "/cb"
        assert config.request_interval == 0
        assert config.max_attempts == 1

    def test_config_validates_api_url_scheme(self):
        """Config rejects a base URL without http(s) scheme."""
        with pytest.raises(ConfigurationError, match="api_url must start with"):
            TelltalesConfig(api_url="pa-api.telldus.com")

    def test_config_validates_empty_credentials_file(self):
        """Config raises error for empty credentials_file."""
        with pytest.raises(ConfigurationError, match="credentials_file cannot be empty"):
            TelltalesConfig(credentials_file="")

    def test_config_validates_port_range(self):
        """Config validates callback port is in valid range."""
        with pytest.raises(ConfigurationError, match="between 0 and 65535, got 70000"):
            TelltalesConfig(callback_port=70000)

        with pytest.raises(ConfigurationError, match="between 0 and 65535"):
            TelltalesConfig(callback_port=-1)

    def test_config_validates_callback_path(self):
        """Config requires callback path to start with /."""
        with pytest.raises(ConfigurationError, match="callback_path must start with /"):
            TelltalesConfig(callback_path="callback")

    def test_config_validates_timing(self):
        """Config validates verifier timeout, interval and attempts."""
        with pytest.raises(ConfigurationError, match="verifier_timeout must be positive"):
            TelltalesConfig(verifier_timeout=0)

        with pytest.raises(ConfigurationError, match="request_interval cannot be negative"):
            TelltalesConfig(request_interval=-0.5)

        with pytest.raises(ConfigurationError, match="max_attempts must be at least 1"):
            TelltalesConfig(max_attempts=0)


class TestTelltalesConfigFromEnv:
    """Tests for TelltalesConfig.from_env."""

    @mock.patch.dict(os.environ, {}, clear=True)
    def test_from_env_defaults(self):
        """from_env uses defaults when no variables are set."""
        config = TelltalesConfig.from_env()

        assert config.api_url == "https://pa-api.telldus.com"
        assert config.callback_port == 0
        assert config.open_browser is False

    @mock.patch.dict(
        os.environ,
        {
            "TELLTALES_API_URL": "http://127.0.0.1:5000",
            "TELLTALES_CREDENTIALS_FILE": "/tmp/telltales.yaml",
            "TELLTALES_CALLBACK_PORT": "8765",
            "TELLTALES_VERIFIER_TIMEOUT": "60",
            "TELLTALES_REQUEST_INTERVAL": "0.25",
            "TELLTALES_OPEN_BROWSER": "true",
        },
        clear=True,
    )
    def test_from_env_reads_variables(self):
        """from_env reads all TELLTALES_* variables."""
        config = TelltalesConfig.from_env()

        assert config.api_url == "http://127.0.0.1:5000"
        assert config.credentials_file == "/tmp/telltales.yaml"
        assert config.callback_port == 8765
        assert config.verifier_timeout == 60.0
        assert config.request_interval == 0.25
        assert config.open_browser is True

    @mock.patch.dict(os.environ, {"TELLTALES_CALLBACK_PORT": "not-a-port"}, clear=True)
    def test_from_env_invalid_number(self):
        """from_env reports unparsable numbers as ConfigurationError."""
        with pytest.raises(ConfigurationError, match="Invalid telltales environment setting"):
            TelltalesConfig.from_env()
