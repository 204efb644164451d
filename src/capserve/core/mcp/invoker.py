"""Tool invocation."""

import logging
from collections.abc import Mapping
from typing import Any

from .descriptors import InvocationResult, ToolDescriptor
from .exceptions import ExecutionError, HandlerTimeoutError
from .execution import run_handler
from .registry import Namespace, Registry
from .validation import arguments_schema, validate_arguments

logger = logging.getLogger(__name__)


def _type_name(tp: Any) -> str | None:
    if tp is None:
        return None
    return getattr(tp, "__name__", None) or str(tp)


class Invoker:
    """Calls tools by name.

    Unknown tools and bad arguments raise before the handler is touched.
    Anything that goes wrong inside the handler, including a timeout, comes
    back as a failed InvocationResult the calling model can read and react to.
    """

    def __init__(self, registry: Registry, default_timeout: float | None = None):
        self._registry = registry
        self._default_timeout = default_timeout

    async def invoke(
        self,
        tool_name: str,
        arguments: Mapping[str, Any] | None = None,
        timeout: float | None = None,
    ) -> InvocationResult:
        """Invoke a tool.

        Args:
            tool_name: Registered tool name
            arguments: Raw arguments, coerced to the declared parameter types
            timeout: Seconds before giving up; falls back to the default

        Returns:
            Success payload unchanged, or a failure with kind
            ``ExecutionError`` / ``TimeoutError``

        Raises:
            NotFoundError: If no tool has that name
            ValidationError: If arguments do not match the schema
        """
        descriptor = self._registry.get_tool(tool_name)
        model = self._registry.arguments_model(Namespace.TOOLS, tool_name)
        kwargs = validate_arguments(f"tool '{tool_name}'", model, arguments)

        bound = timeout if timeout is not None else self._default_timeout
        try:
            value = await run_handler(
                f"tool '{tool_name}'", descriptor.handler, kwargs, bound
            )
        except HandlerTimeoutError as e:
            return InvocationResult.failure(e.kind, e.detail)
        except Exception as e:
            logger.warning(f"Tool '{tool_name}' raised: {e}", exc_info=True)
            error = ExecutionError(f"tool '{tool_name}'", str(e) or type(e).__name__)
            return InvocationResult.failure(error.kind, error.detail)

        return InvocationResult.success(value)

    def describe(self, descriptor: ToolDescriptor) -> dict[str, Any]:
        """Listing entry for a tool, including its JSON input schema."""
        model = self._registry.arguments_model(Namespace.TOOLS, descriptor.name)
        entry: dict[str, Any] = {
            "name": descriptor.name,
            "description": descriptor.description,
            "inputSchema": arguments_schema(model),
        }
        return_type = _type_name(descriptor.return_type)
        if return_type:
            entry["returnType"] = return_type
        return entry

    def list_tools(self) -> list[dict[str, Any]]:
        """All tools in registration order."""
        return [self.describe(d) for d in self._registry.tools()]
