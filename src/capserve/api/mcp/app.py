"""Capability server: one registry wired to its invoker, resolver and expander."""

import inspect
import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any, TypeVar

from capserve.core.config.settings import Settings, get_settings
from capserve.core.mcp.descriptors import (
    ContentKind,
    InvocationResult,
    Message,
    Parameter,
    PromptDescriptor,
    ResourceContents,
    ResourceDescriptor,
    ToolDescriptor,
)
from capserve.core.mcp.dispatcher import (
    Dispatcher,
    McpRequest,
    McpResponse,
    parse_request,
)
from capserve.core.mcp.exceptions import ValidationError
from capserve.core.mcp.expander import PromptExpander
from capserve.core.mcp.invoker import Invoker
from capserve.core.mcp.protocols import CapabilityProvider
from capserve.core.mcp.registry import Registry
from capserve.core.mcp.resolver import Resolver
from capserve.core.mcp.uri_template import UriTemplate
from capserve.utils.schema import (
    docstring_summary,
    parameters_from_function,
    return_type_of,
)

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _check_resource_handler(
    uri: str, handler: Callable[..., Any], names: Iterable[str]
) -> None:
    sig = inspect.signature(handler)
    if any(p.kind is inspect.Parameter.VAR_KEYWORD for p in sig.parameters.values()):
        return
    missing = [n for n in names if n not in sig.parameters]
    if missing:
        raise ValueError(
            f"Handler for resource '{uri}' does not accept parameters {missing}"
        )


class CapabilityServer:
    """Registers tools, resources and prompts and serves requests for them.

    Descriptors can be added explicitly or with the ``tool``, ``resource``
    and ``prompt`` decorators. When no parameter list is given, it is derived
    from the handler's signature and docstring.
    """

    def __init__(
        self,
        name: str = "capserve",
        default_timeout: float | None = None,
        registry: Registry | None = None,
    ):
        """Initialize the server.

        Args:
            name: Server name advertised to clients
            default_timeout: Seconds any handler may run; None means unbounded
            registry: Existing registry to serve, or a fresh one
        """
        self.name = name
        self.default_timeout = default_timeout
        self.registry = registry if registry is not None else Registry()
        self.invoker = Invoker(self.registry, default_timeout)
        self.resolver = Resolver(self.registry, default_timeout)
        self.expander = PromptExpander(self.registry, self.resolver, default_timeout)
        self.dispatcher = Dispatcher(self.invoker, self.resolver, self.expander)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "CapabilityServer":
        settings = settings or get_settings()
        return cls(
            name=settings.server.server_name,
            default_timeout=settings.server.handler_timeout,
        )

    # Registration

    def add_tool(
        self,
        handler: Callable[..., Any],
        name: str | None = None,
        description: str | None = None,
        parameters: Iterable[Parameter] | None = None,
        return_type: Any = None,
    ) -> ToolDescriptor:
        descriptor = ToolDescriptor(
            name=name or handler.__name__,
            handler=handler,
            description=description
            if description is not None
            else docstring_summary(handler),
            parameters=tuple(parameters)
            if parameters is not None
            else parameters_from_function(handler),
            return_type=return_type
            if return_type is not None
            else return_type_of(handler),
        )
        return self.registry.register_tool(descriptor)

    def add_resource(
        self,
        uri: str,
        handler: Callable[..., Any],
        name: str = "",
        description: str | None = None,
        mime_type: str = "text/plain",
        content_kind: ContentKind | str = ContentKind.TEXT,
        params: Mapping[str, Any] | None = None,
        side_effect_free: bool = True,
    ) -> ResourceDescriptor:
        params = dict(params or {})
        template = UriTemplate(uri)
        _check_resource_handler(uri, handler, [*template.placeholders, *params])

        descriptor = ResourceDescriptor(
            uri=uri,
            handler=handler,
            name=name,
            description=description
            if description is not None
            else docstring_summary(handler),
            mime_type=mime_type,
            content_kind=ContentKind(content_kind),
            params=params,
            side_effect_free=side_effect_free,
        )
        return self.registry.register_resource(descriptor)

    def add_prompt(
        self,
        handler: Callable[..., Any],
        name: str | None = None,
        description: str | None = None,
        parameters: Iterable[Parameter] | None = None,
    ) -> PromptDescriptor:
        descriptor = PromptDescriptor(
            name=name or handler.__name__,
            handler=handler,
            description=description
            if description is not None
            else docstring_summary(handler),
            parameters=tuple(parameters)
            if parameters is not None
            else parameters_from_function(handler),
        )
        return self.registry.register_prompt(descriptor)

    def add_provider(self, provider: CapabilityProvider) -> None:
        """Let a provider register its descriptors."""
        provider.register(self.registry)
        logger.debug(f"Added provider {type(provider).__name__}")

    def tool(
        self,
        func: F | None = None,
        *,
        name: str | None = None,
        description: str | None = None,
        parameters: Iterable[Parameter] | None = None,
    ) -> Any:
        """Decorator form of ``add_tool``; usable bare or with arguments."""

        def decorator(fn: F) -> F:
            self.add_tool(fn, name=name, description=description, parameters=parameters)
            return fn

        return decorator(func) if func is not None else decorator

    def resource(
        self,
        uri: str,
        *,
        name: str = "",
        description: str | None = None,
        mime_type: str = "text/plain",
        content_kind: ContentKind | str = ContentKind.TEXT,
        params: Mapping[str, Any] | None = None,
        side_effect_free: bool = True,
    ) -> Callable[[F], F]:
        """Decorator form of ``add_resource``."""

        def decorator(fn: F) -> F:
            self.add_resource(
                uri,
                fn,
                name=name,
                description=description,
                mime_type=mime_type,
                content_kind=content_kind,
                params=params,
                side_effect_free=side_effect_free,
            )
            return fn

        return decorator

    def prompt(
        self,
        func: F | None = None,
        *,
        name: str | None = None,
        description: str | None = None,
        parameters: Iterable[Parameter] | None = None,
    ) -> Any:
        """Decorator form of ``add_prompt``; usable bare or with arguments."""

        def decorator(fn: F) -> F:
            self.add_prompt(
                fn, name=name, description=description, parameters=parameters
            )
            return fn

        return decorator(func) if func is not None else decorator

    def freeze(self) -> None:
        """Close registration before serving."""
        self.registry.freeze()

    # Serving

    async def call_tool(
        self,
        name: str,
        arguments: Mapping[str, Any] | None = None,
        timeout: float | None = None,
    ) -> InvocationResult:
        return await self.invoker.invoke(name, arguments, timeout)

    async def read_resource(
        self, uri: str, timeout: float | None = None
    ) -> ResourceContents:
        return await self.resolver.resolve(uri, timeout)

    def list_tools(self) -> list[dict[str, Any]]:
        return self.invoker.list_tools()

    def list_resources(self) -> list[dict[str, Any]]:
        return self.resolver.list_resources()

    def list_prompts(self) -> list[dict[str, Any]]:
        return self.expander.list_prompts()

    async def get_prompt(
        self,
        name: str,
        arguments: Mapping[str, Any] | None = None,
        timeout: float | None = None,
    ) -> list[Message]:
        return await self.expander.get_prompt(name, arguments, timeout)

    async def handle(self, request: McpRequest | Mapping[str, Any]) -> McpResponse:
        """Single entry point for method-tagged requests."""
        if not isinstance(request, McpRequest):
            try:
                request = parse_request(request)
            except ValidationError as e:
                method = request.get("method") if isinstance(request, Mapping) else None
                logger.info(f"Rejected request envelope: {e.detail}")
                return McpResponse(
                    method=method if isinstance(method, str) else "",
                    error=e.to_info(),
                )
        return await self.dispatcher.handle(request)
