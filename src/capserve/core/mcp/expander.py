"""Prompt expansion into ordered, self-contained message sequences."""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from .descriptors import (
    Message,
    PromptDescriptor,
    ResourceContents,
    ResourceReference,
    Role,
)
from .exceptions import ExecutionError, HandlerTimeoutError
from .execution import run_handler
from .registry import Namespace, Registry
from .resolver import Resolver
from .validation import validate_arguments

logger = logging.getLogger(__name__)

_ROLES = {r.value for r in Role}


def _to_message(item: Any) -> Message:
    if isinstance(item, Message):
        return item
    if isinstance(item, str):
        return Message(role=Role.USER, content=item)
    if isinstance(item, ResourceReference | ResourceContents):
        return Message(role=Role.RESOURCE_ATTACHMENT, resource=item)
    if isinstance(item, tuple) and len(item) == 2:
        role, body = item
        if isinstance(body, ResourceReference | ResourceContents):
            return Message(role=Role(role), resource=body)
        return Message(role=Role(role), content=str(body))
    return Message.model_validate(item)


def normalize_messages(output: Any) -> list[Message]:
    """Turn whatever a prompt handler returned into a list of messages.

    Accepts a single item or an iterable of Message objects, plain strings
    (user messages), ``(role, text)`` pairs, resource references and dicts.
    """
    if output is None:
        return []
    if isinstance(output, str | Message | ResourceReference | ResourceContents | dict):
        items: Iterable[Any] = [output]
    elif isinstance(output, tuple) and len(output) == 2 and output[0] in _ROLES:
        items = [output]
    else:
        items = output
    return [_to_message(item) for item in items]


class PromptExpander:
    """Expands prompts, resolving embedded resources eagerly."""

    def __init__(
        self,
        registry: Registry,
        resolver: Resolver,
        default_timeout: float | None = None,
    ):
        self._registry = registry
        self._resolver = resolver
        self._default_timeout = default_timeout

    async def get_prompt(
        self,
        name: str,
        arguments: Mapping[str, Any] | None = None,
        timeout: float | None = None,
    ) -> list[Message]:
        """Expand a prompt.

        Every resource reference in the handler's output is read through the
        resolver and returned as a ``resource-attachment`` message carrying
        the resolved content.

        Raises:
            NotFoundError: If the prompt, or an embedded resource, is unknown
            ValidationError: If arguments do not match the schema
            ExecutionError: If the handler fails or returns something unusable
            HandlerTimeoutError: If the handler or a resource read overruns
        """
        descriptor = self._registry.get_prompt(name)
        model = self._registry.arguments_model(Namespace.PROMPTS, name)
        kwargs = validate_arguments(f"prompt '{name}'", model, arguments)
        bound = timeout if timeout is not None else self._default_timeout

        try:
            output = await run_handler(
                f"prompt '{name}'", descriptor.handler, kwargs, bound
            )
            messages = normalize_messages(output)
        except HandlerTimeoutError:
            raise
        except Exception as e:
            logger.warning(f"Prompt '{name}' handler raised: {e}", exc_info=True)
            raise ExecutionError(f"prompt '{name}'", str(e) or type(e).__name__) from e

        expanded = []
        for message in messages:
            if isinstance(message.resource, ResourceReference):
                contents = await self._resolver.resolve(message.resource.uri, bound)
                message = Message(role=Role.RESOURCE_ATTACHMENT, resource=contents)
            expanded.append(message)
        return expanded

    def describe(self, descriptor: PromptDescriptor) -> dict[str, Any]:
        return {
            "name": descriptor.name,
            "description": descriptor.description,
            "arguments": [
                {
                    "name": p.name,
                    "description": p.description,
                    "required": p.required,
                }
                for p in descriptor.parameters
            ],
        }

    def list_prompts(self) -> list[dict[str, Any]]:
        """All prompts in registration order."""
        return [self.describe(d) for d in self._registry.prompts()]
