"""Shared test fixtures and configuration."""

import pytest

from capserve.api.mcp.app import CapabilityServer
from capserve.core.config.settings import reset_settings
from capserve.servers.demo import register_demo

_ENV_VARS = (
    "CAPSERVE_PROMPTS_DIR",
    "MCP_SERVER_NAME",
    "MCP_TRANSPORT",
    "MCP_HOST",
    "MCP_PORT",
    "MCP_PATH",
    "MCP_HANDLER_TIMEOUT",
    "MCP_PROMPTS_DIR",
    "APP_ENV",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep tests away from the real config directory and environment."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


class CallCounter:
    """Records every call made to the handlers it wraps."""

    def __init__(self):
        self.calls: list[tuple[str, dict]] = []

    def count(self, name: str) -> int:
        return sum(1 for called, _ in self.calls if called == name)

    def record(self, name: str, **kwargs) -> None:
        self.calls.append((name, kwargs))


@pytest.fixture
def counter():
    """Fresh call counter."""
    return CallCounter()


@pytest.fixture
def server():
    """Capability server with the demo capabilities registered."""
    server = CapabilityServer(default_timeout=5.0)
    register_demo(server)
    return server
