"""FastMCP server adapter implementation.

Mirrors every descriptor of a CapabilityServer onto a FastMCP instance so
the registry can be served over stdio, streamable HTTP or SSE. Each bridge
function delegates back to the capserve dispatcher; FastMCP only carries
the bytes.
"""

import inspect
import logging
import re
from collections.abc import Awaitable, Callable
from typing import Any

from fastmcp import FastMCP
from fastmcp.exceptions import PromptError, ResourceError, ToolError
from fastmcp.prompts import Message as FastMcpMessage
from mcp.types import (
    BlobResourceContents,
    EmbeddedResource,
    TextContent,
    TextResourceContents,
)

from capserve.core.mcp.descriptors import (
    ContentKind,
    InvocationResult,
    Message,
    Parameter,
    PromptDescriptor,
    ResourceContents,
    ResourceDescriptor,
    Role,
    ToolDescriptor,
)
from capserve.core.mcp.dispatcher import McpRequest
from capserve.core.mcp.exceptions import McpError
from capserve.core.mcp.protocols import CapabilityProvider
from capserve.core.mcp.uri_template import UriTemplate

from .app import CapabilityServer

logger = logging.getLogger(__name__)


def _signature(parameters: tuple[Parameter, ...]) -> inspect.Signature:
    return inspect.Signature(
        [
            inspect.Parameter(
                p.name,
                inspect.Parameter.KEYWORD_ONLY,
                annotation=p.type,
                default=inspect.Parameter.empty if p.required else p.default,
            )
            for p in parameters
        ]
    )


def _with_signature(
    fn: Callable[..., Awaitable[Any]],
    name: str,
    parameters: tuple[Parameter, ...],
    doc: str,
) -> Callable[..., Awaitable[Any]]:
    fn.__name__ = name
    fn.__doc__ = doc or None
    fn.__signature__ = _signature(parameters)  # type: ignore[attr-defined]
    fn.__annotations__ = {p.name: p.type for p in parameters}
    return fn


def _resource_value(contents: ResourceContents) -> str | bytes:
    if contents.content_kind is ContentKind.BINARY:
        return bytes(contents.value)
    return contents.text


def _prompt_message(message: Message) -> FastMcpMessage:
    role = "assistant" if message.role is Role.ASSISTANT else "user"
    resource = message.resource
    if not isinstance(resource, ResourceContents):
        text = message.content or ""
        if message.role is Role.SYSTEM:
            text = f"[system] {text}"
        return FastMcpMessage(TextContent(type="text", text=text), role=role)

    if resource.content_kind is ContentKind.BINARY:
        body: TextResourceContents | BlobResourceContents = BlobResourceContents(
            uri=resource.uri, mimeType=resource.mime_type, blob=resource.text
        )
    else:
        body = TextResourceContents(
            uri=resource.uri, mimeType=resource.mime_type, text=resource.text
        )
    return FastMcpMessage(EmbeddedResource(type="resource", resource=body), role=role)


class FastMcpServerAdapter:
    """Adapter that serves a CapabilityServer through FastMCP."""

    def __init__(self, server: CapabilityServer, name: str | None = None):
        """Initialize the FastMCP server adapter.

        Args:
            server: Capability server whose registry is exposed
            name: Server name for MCP identification (defaults to server.name)
        """
        self._server = server
        self._mcp = FastMCP(name or server.name)
        self._mounted = False

    def add_provider(self, provider: CapabilityProvider) -> None:
        """Add a capability provider before the server starts.

        Args:
            provider: Object implementing the CapabilityProvider protocol
        """
        self._server.add_provider(provider)

    def mount(self) -> None:
        """Freeze the registry and mirror every descriptor onto FastMCP."""
        if self._mounted:
            return
        self._server.freeze()

        registry = self._server.registry
        for tool in registry.tools():
            self._register_tool(tool)
        for resource in registry.resources():
            self._register_resource(resource)
        for prompt in registry.prompts():
            self._register_prompt(prompt)

        self._mounted = True
        logger.info(
            f"Mounted {len(registry.tools())} tools, {len(registry.resources())} "
            f"resources and {len(registry.prompts())} prompts on FastMCP"
        )

    def _register_tool(self, descriptor: ToolDescriptor) -> None:
        dispatcher = self._server.dispatcher
        tool_name = descriptor.name

        async def tool_bridge(**kwargs: Any) -> Any:
            request = McpRequest(
                method="tools/call", params={"name": tool_name, "arguments": kwargs}
            )
            try:
                result: InvocationResult = await dispatcher.dispatch(request)
            except McpError as e:
                raise ToolError(f"{e.kind}: {e.detail}") from e
            if result.error is not None:
                raise ToolError(f"{result.error.kind}: {result.error.detail}")
            return result.value

        self._mcp.tool(
            _with_signature(
                tool_bridge, tool_name, descriptor.parameters, descriptor.description
            ),
            name=tool_name,
            description=descriptor.description or None,
        )

    def _register_resource(self, descriptor: ResourceDescriptor) -> None:
        dispatcher = self._server.dispatcher
        template = UriTemplate(descriptor.uri)

        async def read(uri: str) -> str | bytes:
            request = McpRequest(method="resources/read", params={"uri": uri})
            try:
                contents: ResourceContents = await dispatcher.dispatch(request)
            except McpError as e:
                raise ResourceError(f"{e.kind}: {e.detail}") from e
            return _resource_value(contents)

        async def resource_bridge(**kwargs: Any) -> str | bytes:
            return await read(template.expand(kwargs))

        parameters = tuple(Parameter(name=n) for n in template.placeholders)
        self._mcp.resource(
            descriptor.uri,
            name=descriptor.name,
            description=descriptor.description or None,
            mime_type=descriptor.mime_type,
        )(
            _with_signature(
                resource_bridge,
                "read_" + re.sub(r"\W+", "_", descriptor.uri).strip("_"),
                parameters,
                descriptor.description,
            )
        )

    def _register_prompt(self, descriptor: PromptDescriptor) -> None:
        dispatcher = self._server.dispatcher
        prompt_name = descriptor.name

        async def prompt_bridge(**kwargs: Any) -> list[FastMcpMessage]:
            request = McpRequest(
                method="prompts/get", params={"name": prompt_name, "arguments": kwargs}
            )
            try:
                messages: list[Message] = await dispatcher.dispatch(request)
            except McpError as e:
                raise PromptError(f"{e.kind}: {e.detail}") from e
            return [_prompt_message(m) for m in messages]

        self._mcp.prompt(
            _with_signature(
                prompt_bridge,
                prompt_name,
                descriptor.parameters,
                descriptor.description,
            ),
            name=prompt_name,
            description=descriptor.description or None,
        )

    def start(self, transport: str = "stdio", **kwargs: Any) -> None:
        """Start the MCP server.

        Args:
            transport: Transport type (stdio, http, sse)
            **kwargs: Additional server configuration (host, port, path for HTTP)
        """
        if transport not in ("stdio", "http", "sse"):
            raise ValueError(f"Unsupported transport: {transport}")

        self.mount()
        if transport == "stdio":
            self._mcp.run(transport="stdio")
        elif transport == "http":
            host = kwargs.get("host", "127.0.0.1")
            port = kwargs.get("port", 8000)
            path = kwargs.get("path", "/mcp")
            logger.info(f"Starting HTTP MCP server at http://{host}:{port}{path}")
            self._mcp.run(transport="http", host=host, port=port, path=path)
        else:
            host = kwargs.get("host", "127.0.0.1")
            port = kwargs.get("port", 8000)
            logger.info(f"Starting SSE MCP server at http://{host}:{port}")
            self._mcp.run(transport="sse", host=host, port=port)

    async def stop(self) -> None:
        """Stop the MCP server."""
        # FastMCP handles cleanup automatically
        pass

    @property
    def mcp(self) -> FastMCP:
        """Access to underlying FastMCP instance."""
        return self._mcp
