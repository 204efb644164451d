"""MCP protocols for type-safe composition."""

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .registry import Registry


@runtime_checkable
class CapabilityProvider(Protocol):
    """Protocol for objects that contribute tools, resources or prompts."""

    def register(self, registry: "Registry") -> None:
        """Register this provider's descriptors.

        Args:
            registry: Registry to add descriptors to

        Raises:
            DuplicateNameError: If a name or URI pattern is already taken
        """
        ...


class McpServer(Protocol):
    """Protocol for transport-facing MCP server implementations."""

    def start(self, transport: str = "stdio", **kwargs: Any) -> None:
        """Start serving.

        Args:
            transport: Transport type
            **kwargs: Transport-specific configuration
        """
        ...

    async def stop(self) -> None:
        """Stop the MCP server."""
        ...
