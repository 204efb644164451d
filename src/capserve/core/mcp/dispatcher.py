"""Request routing.

The dispatcher is a routing table keyed by method name. It validates the
request envelope, hands the params to the matching component, and, in
``handle``, turns any McpError into a structured error response.
"""

import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from .descriptors import ErrorInfo, InvocationResult, Message, ResourceContents
from .exceptions import McpError, UnsupportedMethodError, ValidationError
from .expander import PromptExpander
from .invoker import Invoker
from .resolver import Resolver
from .validation import format_validation_errors, offending_fields

logger = logging.getLogger(__name__)


class McpRequest(BaseModel):
    """A method-tagged request."""

    method: str
    params: dict[str, Any] = Field(default_factory=dict)


class McpResponse(BaseModel):
    """Either a result or an error for one request."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    method: str
    result: Any = None
    error: ErrorInfo | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_payload(self) -> dict[str, Any]:
        """JSON-safe form of the response."""
        if self.error is not None:
            return {"method": self.method, "error": self.error.model_dump()}
        return {"method": self.method, "result": _jsonable(self.result)}


def _jsonable(value: Any) -> Any:
    if isinstance(value, InvocationResult | ResourceContents | Message):
        return value.to_payload()
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    return value


class ToolCallParams(BaseModel):
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)
    timeout: float | None = Field(None, gt=0)


class ResourceReadParams(BaseModel):
    uri: str
    timeout: float | None = Field(None, gt=0)


class PromptGetParams(BaseModel):
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)
    timeout: float | None = Field(None, gt=0)


Route = Callable[[dict[str, Any]], Awaitable[Any]]
P = TypeVar("P", bound=BaseModel)


def _parse(method: str, model: type[P], params: dict[str, Any]) -> P:
    try:
        return model.model_validate(params)
    except PydanticValidationError as e:
        raise ValidationError(
            method,
            format_validation_errors(e, f"params for {method}"),
            offending_fields(e),
        ) from e


def parse_request(data: Mapping[str, Any]) -> McpRequest:
    """Validate a raw request envelope.

    Raises:
        ValidationError: If the envelope has no method or malformed params
    """
    try:
        return McpRequest.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(
            "request",
            format_validation_errors(e, "request envelope"),
            offending_fields(e),
        ) from e


class Dispatcher:
    """Routes requests to the invoker, resolver and prompt expander."""

    def __init__(self, invoker: Invoker, resolver: Resolver, expander: PromptExpander):
        self._invoker = invoker
        self._resolver = resolver
        self._expander = expander
        self._routes: dict[str, Route] = {
            "tools/call": self._call_tool,
            "tools/list": self._list_tools,
            "resources/read": self._read_resource,
            "resources/list": self._list_resources,
            "resources/templates/list": self._list_templates,
            "prompts/get": self._get_prompt,
            "prompts/list": self._list_prompts,
        }

    @property
    def methods(self) -> list[str]:
        return list(self._routes)

    async def dispatch(self, request: McpRequest) -> Any:
        """Route a request and return the component's result.

        Raises:
            UnsupportedMethodError: If no route exists for the method
            McpError: Whatever the target component raises
        """
        route = self._routes.get(request.method)
        if route is None:
            raise UnsupportedMethodError(request.method)
        return await route(request.params)

    async def handle(self, request: McpRequest) -> McpResponse:
        """Route a request, reporting every McpError as a structured error."""
        try:
            result = await self.dispatch(request)
        except McpError as e:
            logger.info(f"{request.method} failed with {e.kind}: {e.detail}")
            return McpResponse(method=request.method, error=e.to_info())
        return McpResponse(method=request.method, result=result)

    async def _call_tool(self, params: dict[str, Any]) -> InvocationResult:
        p = _parse("tools/call", ToolCallParams, params)
        return await self._invoker.invoke(p.name, p.arguments, p.timeout)

    async def _list_tools(self, params: dict[str, Any]) -> list[dict[str, Any]]:
        return self._invoker.list_tools()

    async def _read_resource(self, params: dict[str, Any]) -> ResourceContents:
        p = _parse("resources/read", ResourceReadParams, params)
        return await self._resolver.resolve(p.uri, p.timeout)

    async def _list_resources(self, params: dict[str, Any]) -> list[dict[str, Any]]:
        return self._resolver.list_resources()

    async def _list_templates(self, params: dict[str, Any]) -> list[dict[str, Any]]:
        return self._resolver.list_templates()

    async def _get_prompt(self, params: dict[str, Any]) -> list[Message]:
        p = _parse("prompts/get", PromptGetParams, params)
        return await self._expander.get_prompt(p.name, p.arguments, p.timeout)

    async def _list_prompts(self, params: dict[str, Any]) -> list[dict[str, Any]]:
        return self._expander.list_prompts()
