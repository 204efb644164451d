"""Resource resolution for static and templated URIs."""

import logging
from typing import Any

from .descriptors import ContentKind, ResourceContents, ResourceDescriptor
from .exceptions import ExecutionError, HandlerTimeoutError, NotFoundError
from .execution import run_handler
from .registry import Namespace, Registry

logger = logging.getLogger(__name__)


def _contents(uri: str, descriptor: ResourceDescriptor, value: Any) -> ResourceContents:
    if isinstance(value, ResourceContents):
        return value
    if isinstance(value, bytes | bytearray):
        kind = ContentKind.BINARY
        value = bytes(value)
    elif isinstance(value, dict | list):
        kind = ContentKind.JSON
    elif descriptor.content_kind is ContentKind.BINARY:
        kind = ContentKind.BINARY
        value = str(value).encode("utf-8")
    elif isinstance(value, str) or descriptor.content_kind is ContentKind.JSON:
        kind = descriptor.content_kind
    else:
        kind = ContentKind.TEXT
        value = str(value)

    mime_type = descriptor.mime_type
    if kind is ContentKind.JSON and mime_type == "text/plain":
        mime_type = "application/json"
    elif kind is ContentKind.BINARY and mime_type == "text/plain":
        mime_type = "application/octet-stream"
    return ResourceContents(uri=uri, value=value, mime_type=mime_type, content_kind=kind)


class Resolver:
    """Matches resource URIs against registered patterns and reads them."""

    def __init__(self, registry: Registry, default_timeout: float | None = None):
        self._registry = registry
        self._default_timeout = default_timeout

    def match(self, uri: str) -> tuple[ResourceDescriptor, dict[str, str]]:
        """Find the descriptor for a concrete URI.

        Literal URIs win outright. Among templates, the one with the most
        literal segments wins, then the one registered first.

        Raises:
            NotFoundError: If no pattern matches
        """
        static = self._registry.static_resource(uri)
        if static is not None:
            return static, {}

        best: tuple[int, int] | None = None
        found: tuple[ResourceDescriptor, dict[str, str]] | None = None
        for entry in self._registry.templates():
            captured = entry.template.match(uri)
            if captured is None:
                continue
            rank = (-entry.template.literal_count, entry.order)
            if best is None or rank < best:
                best = rank
                found = (entry.descriptor, captured)

        if found is None:
            raise NotFoundError(Namespace.RESOURCES.value, uri)
        return found

    async def resolve(self, uri: str, timeout: float | None = None) -> ResourceContents:
        """Read a resource by URI.

        Raises:
            NotFoundError: If no pattern matches
            ExecutionError: If the handler fails
            HandlerTimeoutError: If the handler exceeds the bound
        """
        descriptor, captured = self.match(uri)
        kwargs = {**descriptor.params, **captured}
        bound = timeout if timeout is not None else self._default_timeout

        try:
            value = await run_handler(
                f"resource '{uri}'", descriptor.handler, kwargs, bound
            )
        except HandlerTimeoutError:
            raise
        except Exception as e:
            logger.warning(f"Resource '{uri}' handler raised: {e}", exc_info=True)
            raise ExecutionError(
                f"resource '{uri}'", str(e) or type(e).__name__
            ) from e

        return _contents(uri, descriptor, value)

    def list_resources(self) -> list[dict[str, Any]]:
        """Metadata for every registered resource, in registration order.

        Never calls a handler.
        """
        return [d.metadata() for d in self._registry.resources()]

    def list_templates(self) -> list[dict[str, Any]]:
        """Metadata for templated resources only."""
        return [e.descriptor.metadata() for e in self._registry.templates()]
