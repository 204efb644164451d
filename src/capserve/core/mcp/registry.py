"""Registry of tools, resources and prompts.

Tools, resources and prompts live in separate namespaces, so the same name
may be used once in each. Registration happens at startup; after
``freeze()`` the registry is read-only and safe to share between
concurrent requests without locking.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel

from .descriptors import PromptDescriptor, ResourceDescriptor, ToolDescriptor
from .exceptions import DuplicateNameError, NotFoundError, RegistryFrozenError
from .uri_template import UriTemplate
from .validation import build_arguments_model

logger = logging.getLogger(__name__)

Descriptor = ToolDescriptor | ResourceDescriptor | PromptDescriptor


class Namespace(str, Enum):
    """Descriptor namespaces."""

    TOOLS = "tools"
    RESOURCES = "resources"
    PROMPTS = "prompts"


@dataclass(frozen=True)
class TemplateEntry:
    """A templated resource with its compiled pattern."""

    descriptor: ResourceDescriptor
    template: UriTemplate
    order: int


def _model_name(prefix: str, name: str) -> str:
    return prefix + "".join(p.capitalize() for p in re.split(r"[^A-Za-z0-9]+", name))


def _template_shape(template: UriTemplate) -> str:
    # user://{id}/profile and user://{uid}/profile can never both be reached
    return re.sub(r"\{[^}]*\}", "{}", template.template)


class Registry:
    """Holds registered descriptors keyed by name or URI pattern."""

    def __init__(self) -> None:
        self._tools: dict[str, ToolDescriptor] = {}
        self._prompts: dict[str, PromptDescriptor] = {}
        self._resources: dict[str, ResourceDescriptor] = {}
        self._static_resources: dict[str, ResourceDescriptor] = {}
        self._templates: list[TemplateEntry] = []
        self._template_shapes: dict[str, str] = {}
        self._argument_models: dict[tuple[Namespace, str], type[BaseModel]] = {}
        self._frozen = False

    # Registration

    def register(self, descriptor: Descriptor) -> Descriptor:
        """Register any descriptor in its own namespace.

        Raises:
            DuplicateNameError: If the name or pattern is already taken
            RegistryFrozenError: If the registry has been frozen
        """
        if isinstance(descriptor, ToolDescriptor):
            return self.register_tool(descriptor)
        if isinstance(descriptor, ResourceDescriptor):
            return self.register_resource(descriptor)
        if isinstance(descriptor, PromptDescriptor):
            return self.register_prompt(descriptor)
        raise TypeError(f"Cannot register {type(descriptor).__name__}")

    def register_tool(self, descriptor: ToolDescriptor) -> ToolDescriptor:
        self._check_open(descriptor.name)
        if descriptor.name in self._tools:
            raise DuplicateNameError(Namespace.TOOLS.value, descriptor.name)

        self._argument_models[(Namespace.TOOLS, descriptor.name)] = (
            build_arguments_model(
                _model_name("ToolArgs", descriptor.name), descriptor.parameters
            )
        )
        self._tools[descriptor.name] = descriptor
        logger.debug(f"Registered tool: {descriptor.name}")
        return descriptor

    def register_resource(self, descriptor: ResourceDescriptor) -> ResourceDescriptor:
        self._check_open(descriptor.uri)
        if descriptor.uri in self._resources:
            raise DuplicateNameError(Namespace.RESOURCES.value, descriptor.uri)

        template = UriTemplate(descriptor.uri)
        if template.is_template:
            shape = _template_shape(template)
            if shape in self._template_shapes:
                raise DuplicateNameError(
                    Namespace.RESOURCES.value,
                    f"{descriptor.uri} (same shape as {self._template_shapes[shape]})",
                )
            self._template_shapes[shape] = descriptor.uri
            self._templates.append(
                TemplateEntry(descriptor, template, order=len(self._resources))
            )
        else:
            self._static_resources[descriptor.uri] = descriptor

        self._resources[descriptor.uri] = descriptor
        logger.debug(
            f"Registered {'templated' if template.is_template else 'static'} "
            f"resource: {descriptor.uri}"
        )
        return descriptor

    def register_prompt(self, descriptor: PromptDescriptor) -> PromptDescriptor:
        self._check_open(descriptor.name)
        if descriptor.name in self._prompts:
            raise DuplicateNameError(Namespace.PROMPTS.value, descriptor.name)

        self._argument_models[(Namespace.PROMPTS, descriptor.name)] = (
            build_arguments_model(
                _model_name("PromptArgs", descriptor.name), descriptor.parameters
            )
        )
        self._prompts[descriptor.name] = descriptor
        logger.debug(f"Registered prompt: {descriptor.name}")
        return descriptor

    def freeze(self) -> None:
        """Reject further registration."""
        if not self._frozen:
            self._frozen = True
            logger.info(
                f"Registry frozen with {len(self._tools)} tools, "
                f"{len(self._resources)} resources, {len(self._prompts)} prompts"
            )

    @property
    def frozen(self) -> bool:
        return self._frozen

    def _check_open(self, key: str) -> None:
        if self._frozen:
            raise RegistryFrozenError(key)

    # Lookup

    def lookup(self, namespace: Namespace | str, key: str) -> Any:
        """Return the descriptor registered under ``key``.

        Raises:
            NotFoundError: If nothing is registered under that key
        """
        namespace = Namespace(namespace)
        table: dict[str, Any] = {
            Namespace.TOOLS: self._tools,
            Namespace.RESOURCES: self._resources,
            Namespace.PROMPTS: self._prompts,
        }[namespace]
        try:
            return table[key]
        except KeyError:
            raise NotFoundError(namespace.value, key) from None

    def get_tool(self, name: str) -> ToolDescriptor:
        return self.lookup(Namespace.TOOLS, name)  # type: ignore[no-any-return]

    def get_prompt(self, name: str) -> PromptDescriptor:
        return self.lookup(Namespace.PROMPTS, name)  # type: ignore[no-any-return]

    def static_resource(self, uri: str) -> ResourceDescriptor | None:
        """Exact match against literal resource URIs."""
        return self._static_resources.get(uri)

    def templates(self) -> tuple[TemplateEntry, ...]:
        """Templated resources in registration order."""
        return tuple(self._templates)

    def arguments_model(self, namespace: Namespace, name: str) -> type[BaseModel]:
        return self._argument_models[(namespace, name)]

    def tools(self) -> list[ToolDescriptor]:
        return list(self._tools.values())

    def resources(self) -> list[ResourceDescriptor]:
        return list(self._resources.values())

    def prompts(self) -> list[PromptDescriptor]:
        return list(self._prompts.values())
