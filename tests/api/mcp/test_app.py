"""Tests for the CapabilityServer facade."""

import pytest

from capserve.api.mcp.app import CapabilityServer
from capserve.core.config.settings import get_settings
from capserve.core.mcp.descriptors import Parameter, ToolDescriptor
from capserve.core.mcp.exceptions import DuplicateNameError, RegistryFrozenError
from capserve.core.mcp.registry import Registry


@pytest.fixture
def app():
    return CapabilityServer(name="test", default_timeout=2.0)


class TestRegistration:
    """Test registering handlers on the facade."""

    @pytest.mark.unit
    def test_parameters_derived_from_signature(self, app):
        """Test names, types, defaults and docs come from the function."""

        def search(query: str, limit: int = 10) -> list:
            """Search the index.

            Args:
                query: Text to look for
                limit: Maximum number of hits
            """
            return []

        descriptor = app.add_tool(search)

        assert descriptor.name == "search"
        assert descriptor.description == "Search the index."
        assert descriptor.parameters == (
            Parameter(name="query", type=str, description="Text to look for"),
            Parameter(
                name="limit", type=int, description="Maximum number of hits", default=10
            ),
        )
        assert descriptor.return_type is list

    @pytest.mark.unit
    def test_explicit_parameters_win(self, app):
        descriptor = app.add_tool(
            lambda **kw: kw,
            name="echo",
            description="Echo arguments",
            parameters=[Parameter(name="text")],
        )

        assert descriptor.name == "echo"
        assert [p.name for p in descriptor.parameters] == ["text"]

    @pytest.mark.unit
    def test_decorators(self, app):
        """Test the decorator forms register and return the function."""

        @app.tool
        def ping() -> str:
            """Reply with pong."""
            return "pong"

        @app.tool(name="shout")
        def loud(text: str) -> str:
            return text.upper()

        @app.resource("notes://{note_id}", mime_type="text/markdown")
        def note(note_id: str) -> str:
            return f"# {note_id}"

        @app.prompt
        def hello(name: str) -> str:
            return f"Hello {name}"

        assert ping() == "pong"
        assert [t["name"] for t in app.list_tools()] == ["ping", "shout"]
        assert app.list_tools()[0]["description"] == "Reply with pong."
        assert app.list_resources()[0]["mimeType"] == "text/markdown"
        assert app.list_prompts()[0]["name"] == "hello"

    @pytest.mark.unit
    def test_resource_handler_must_accept_placeholders(self, app):
        """Test a handler missing a placeholder parameter is rejected."""

        def profile() -> dict:
            return {}

        with pytest.raises(ValueError, match="user_id"):
            app.add_resource("user://{user_id}/profile", profile)

    @pytest.mark.unit
    def test_resource_handler_must_accept_params(self, app):
        def report(kind: str) -> str:
            return kind

        with pytest.raises(ValueError, match="region"):
            app.add_resource("report://{kind}", report, params={"region": "eu"})

    @pytest.mark.unit
    def test_duplicate_tool(self, app):
        app.add_tool(lambda: 1, name="one")
        with pytest.raises(DuplicateNameError):
            app.add_tool(lambda: 2, name="one")

    @pytest.mark.unit
    def test_provider(self, app):
        """Test providers register into the shared registry."""

        class Provider:
            def register(self, registry: Registry) -> None:
                registry.register_tool(ToolDescriptor(name="two", handler=lambda: 2))

        app.add_provider(Provider())
        assert app.registry.get_tool("two").name == "two"

    @pytest.mark.unit
    def test_freeze(self, app):
        app.freeze()
        with pytest.raises(RegistryFrozenError):
            app.add_tool(lambda: 1, name="late")

    @pytest.mark.unit
    def test_from_settings(self, monkeypatch):
        """Test name and timeout come from settings."""
        monkeypatch.setenv("MCP_SERVER_NAME", "configured")
        monkeypatch.setenv("MCP_HANDLER_TIMEOUT", "2.5")

        app = CapabilityServer.from_settings(get_settings())

        assert app.name == "configured"
        assert app.default_timeout == 2.5


class TestServing:
    """Test the request-serving surface."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_call_tool(self, server):
        result = await server.call_tool("add", {"a": 2, "b": "3"})
        assert result.value == 5

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_read_resource(self, server):
        contents = await server.read_resource("user://grace/profile")
        assert contents.value["name"] == "Grace Hopper"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_get_prompt(self, server):
        messages = await server.get_prompt(
            "compare_profiles", {"first": "ada", "second": "grace"}
        )

        assert len(messages) == 3
        assert messages[0].content == "Compare the profiles of ada and grace."
        assert [m.resource.uri for m in messages[1:]] == [
            "user://ada/profile",
            "user://grace/profile",
        ]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_handle_mapping_request(self, server):
        """Test handle accepts a plain mapping."""
        response = await server.handle(
            {"method": "resources/read", "params": {"uri": "user://nobody/profile"}}
        )

        assert response.error.kind == "ExecutionError"
        assert "nobody" in response.error.detail

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_handle_malformed_envelope(self, server):
        """Test an envelope without a method is reported as a ValidationError."""
        response = await server.handle({"params": {}})

        assert not response.ok
        assert response.method == ""
        assert response.error.kind == "ValidationError"
        assert "method" in response.error.detail

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_handle_non_mapping_params(self, server):
        response = await server.handle({"method": "tools/call", "params": "divide"})

        assert response.method == "tools/call"
        assert response.error.kind == "ValidationError"
        assert "params" in response.error.detail
