"""MCP-related exceptions.

Every error carries a stable ``kind`` that clients and models can branch on,
plus a human-readable ``detail``.
"""

from collections.abc import Sequence
from typing import Any

from .descriptors import ErrorInfo


class McpError(Exception):
    """Base exception for MCP-related errors."""

    kind: str = "McpError"

    def __init__(self, detail: str, details: dict[str, Any] | None = None):
        self.detail = detail
        self.details = details or {}
        super().__init__(detail)

    def to_info(self) -> ErrorInfo:
        """Convert to the structured error payload returned to clients."""
        return ErrorInfo(kind=self.kind, detail=self.detail)


class NotFoundError(McpError):
    """Raised when a tool, resource URI or prompt is not registered."""

    kind = "NotFoundError"

    def __init__(self, namespace: str, key: str):
        self.namespace = namespace
        self.key = key
        super().__init__(f"Unknown {namespace.rstrip('s')}: '{key}'")


class ValidationError(McpError):
    """Raised when arguments do not match a parameter schema."""

    kind = "ValidationError"

    def __init__(self, target: str, detail: str, fields: Sequence[str] = ()):
        self.target = target
        self.fields = list(fields)
        super().__init__(detail, {"fields": self.fields})


class ExecutionError(McpError):
    """Raised when a resource or prompt handler fails."""

    kind = "ExecutionError"

    def __init__(self, target: str, message: str):
        self.target = target
        super().__init__(f"{target} failed: {message}")


class HandlerTimeoutError(McpError):
    """Raised when a handler exceeds its execution bound."""

    kind = "TimeoutError"

    def __init__(self, target: str, timeout: float):
        self.target = target
        self.timeout = timeout
        super().__init__(f"{target} did not complete within {timeout:g}s")


class DuplicateNameError(McpError):
    """Raised when registering an identifier that already exists."""

    kind = "DuplicateNameError"

    def __init__(self, namespace: str, key: str):
        self.namespace = namespace
        self.key = key
        super().__init__(f"{namespace} already contains '{key}'")


class RegistryFrozenError(McpError):
    """Raised when registering after the registry has been frozen."""

    kind = "RegistryFrozenError"

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Cannot register '{key}': registry is frozen")


class UnsupportedMethodError(McpError):
    """Raised when the dispatcher has no route for a method."""

    kind = "UnsupportedMethodError"

    def __init__(self, method: str):
        self.method = method
        super().__init__(f"Unsupported method: '{method}'")
