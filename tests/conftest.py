"""
Pytest configuration and shared fixtures for all tests
"""

import os
import sys
import shutil
import tempfile

import pytest

# Add project root to Python path
project_root = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, os.path.dirname(project_root))


@pytest.fixture(scope="session")
def test_env_vars():
    """Provide test environment variables."""
    return {
        "PANEL_SERVER_NAME": "test-host",
        "DAEMON_API_URL": "https://localhost:47990",
        "DAEMON_API_USER": "admin",
        "DAEMON_API_PASSWORD": "test-password",
        "STATUS_POLL_INTERVAL": "0.05",
        "SESSION_POLL_INTERVAL": "0.05",
        "RECOVERY_DELAY": "0.1",
        "WATCHDOG_DELAY": "0.1",
        "LOG_LEVEL": "DEBUG",
    }


@pytest.fixture
def mock_env(monkeypatch, test_env_vars):
    """Mock environment variables for testing."""
    for key, value in test_env_vars.items():
        monkeypatch.setenv(key, value)


@pytest.fixture
def workspace_dir():
    """Temporary directory standing in for the daemon and panel data dirs."""
    temp_dir = tempfile.mkdtemp(prefix="stream_host_")
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)
