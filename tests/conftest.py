"""Shared fixtures for the Pushover relay test suite."""

import pytest

from pushover_relay.config.models import AgentOptions
from pushover_relay.logging.context import clear_log_context
from tests.helpers import make_session


@pytest.fixture(autouse=True)
def clean_log_context():
    """Clear logging context before and after each test."""
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture
def mock_env_vars(monkeypatch):
    """Set Pushover credentials in the environment."""
    monkeypatch.setenv("PUSHOVER_TOKEN", "env-token")
    monkeypatch.setenv("PUSHOVER_USER", "env-user")
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("ENVIRONMENT", raising=False)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every variable the relay reads from the environment."""
    for name in ("PUSHOVER_TOKEN", "PUSHOVER_USER", "LOG_LEVEL", "ENVIRONMENT"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def agent_options():
    """Agent options with the default field templates and html left blank."""
    return AgentOptions(token="T", user="U", html="")


@pytest.fixture
def mock_session():
    """Session mock whose get returns a PNG and post returns HTTP 200."""
    return make_session()
