"""Shared fixtures for telltales tests."""

import json
from unittest import mock

import pytest
import requests

from telltales.oauth.config import TelltalesConfig


def _make_response(status_code=200, text="", json_data=None):
    response = requests.Response()
    response.status_code = status_code
    if json_data is not None:
        text = json.dumps(json_data)
    response._content = text.encode("utf-8")
    response.encoding = "utf-8"
    return response


@pytest.fixture
def make_response():
    """Factory for canned requests.Response objects."""
    return _make_response


@pytest.fixture
def config(tmp_path):
    """Create test config without request pacing or retry delays."""
    return TelltalesConfig(
        credentials_file=str(tmp_path / "telltales" / "credentials.yaml"),
        request_interval=0,
        retry_delay=0,
        verifier_timeout=5,
    )


@pytest.fixture
def http_session():
    """requests session whose request method is a mock."""
    session = requests.Session()
    session.request = mock.Mock()
    return session
