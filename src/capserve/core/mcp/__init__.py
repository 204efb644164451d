"""Core MCP abstractions: descriptors, registry and request handling."""

from .descriptors import (
    ContentKind,
    ErrorInfo,
    InvocationResult,
    Message,
    Parameter,
    PromptDescriptor,
    ResourceContents,
    ResourceDescriptor,
    ResourceReference,
    Role,
    ToolDescriptor,
)
from .dispatcher import Dispatcher, McpRequest, McpResponse
from .exceptions import (
    DuplicateNameError,
    ExecutionError,
    HandlerTimeoutError,
    McpError,
    NotFoundError,
    RegistryFrozenError,
    UnsupportedMethodError,
    ValidationError,
)
from .expander import PromptExpander
from .invoker import Invoker
from .protocols import CapabilityProvider, McpServer
from .registry import Namespace, Registry
from .resolver import Resolver
from .uri_template import UriTemplate

__all__ = [
    # Descriptors and payloads
    "ContentKind",
    "ErrorInfo",
    "InvocationResult",
    "Message",
    "Parameter",
    "PromptDescriptor",
    "ResourceContents",
    "ResourceDescriptor",
    "ResourceReference",
    "Role",
    "ToolDescriptor",
    # Components
    "Dispatcher",
    "Invoker",
    "Namespace",
    "PromptExpander",
    "Registry",
    "Resolver",
    "UriTemplate",
    "McpRequest",
    "McpResponse",
    # Protocols
    "CapabilityProvider",
    "McpServer",
    # Errors
    "McpError",
    "NotFoundError",
    "ValidationError",
    "ExecutionError",
    "HandlerTimeoutError",
    "DuplicateNameError",
    "RegistryFrozenError",
    "UnsupportedMethodError",
]
