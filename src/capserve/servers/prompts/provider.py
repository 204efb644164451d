"""YAML prompt library.

Loads prompt definitions from:
1. Built-in guides shipped in the package
2. User-defined prompts in the XDG config directory

User prompts override built-ins with the same name. A definition looks like::

    name: code_review
    description: Review a snippet of code
    arguments:
      - name: code
        description: The code to review
      - name: language
        default: python
    messages:
      - role: system
        content: You are a careful {language} reviewer.
      - role: user
        content: "Please review:\\n{code}"
      - resource: "docs://{language}/style"

``{argument}`` placeholders are substituted in message content and in
resource URIs. Resource entries are resolved when the prompt is expanded.
"""

import logging
import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from capserve.core.mcp.descriptors import (
    Message,
    Parameter,
    PromptDescriptor,
    ResourceDescriptor,
    ResourceReference,
    Role,
)
from capserve.core.mcp.exceptions import DuplicateNameError
from capserve.core.mcp.registry import Registry
from capserve.core.mcp.uri_template import UriTemplate
from capserve.utils.xdg import get_prompts_dir

logger = logging.getLogger(__name__)


class PromptDefinitionError(ValueError):
    """Raised when a YAML prompt definition is malformed."""


_ARGUMENT = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")


def _substitute(text: str, values: Mapping[str, Any]) -> str:
    # Only declared arguments are replaced; any other braces stay literal
    return _ARGUMENT.sub(
        lambda m: str(values[m.group(1)]) if m.group(1) in values else m.group(0),
        text,
    )


def _parse_arguments(raw: Any) -> tuple[Parameter, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise PromptDefinitionError("'arguments' must be a list")

    params = []
    for entry in raw:
        if isinstance(entry, str):
            entry = {"name": entry}
        if not isinstance(entry, dict) or "name" not in entry:
            raise PromptDefinitionError(f"Invalid argument entry: {entry!r}")
        fields: dict[str, Any] = {
            "name": entry["name"],
            "type": str,
            "description": entry.get("description", ""),
        }
        if "default" in entry:
            fields["default"] = str(entry["default"])
        elif entry.get("required") is False:
            fields["required"] = False
            fields["default"] = ""
        params.append(Parameter(**fields))
    return tuple(params)


def _parse_messages(raw: Any, argument_names: set[str]) -> list[dict[str, Any]]:
    if not isinstance(raw, list) or not raw:
        raise PromptDefinitionError("'messages' must be a non-empty list")

    messages = []
    for entry in raw:
        if not isinstance(entry, dict):
            raise PromptDefinitionError(f"Invalid message entry: {entry!r}")
        if "resource" in entry:
            template = UriTemplate(str(entry["resource"]))
            unknown = set(template.placeholders) - argument_names
            if unknown:
                raise PromptDefinitionError(
                    f"Resource '{template.template}' uses undeclared arguments {sorted(unknown)}"
                )
            messages.append({"resource": template})
        elif "content" in entry:
            role = Role(entry.get("role", Role.USER.value))
            messages.append({"role": role, "content": str(entry["content"])})
        else:
            raise PromptDefinitionError(
                f"Message needs 'content' or 'resource': {entry!r}"
            )
    return messages


class YamlPrompt:
    """Handler rendering one YAML definition into messages."""

    def __init__(self, name: str, messages: list[dict[str, Any]]):
        self.name = name
        self._messages = messages

    def __call__(self, **arguments: Any) -> list[Message | ResourceReference]:
        values = {k: "" if v is None else v for k, v in arguments.items()}
        rendered: list[Message | ResourceReference] = []
        for entry in self._messages:
            if "resource" in entry:
                rendered.append(ResourceReference(uri=entry["resource"].expand(values)))
            else:
                rendered.append(
                    Message(
                        role=entry["role"],
                        content=_substitute(entry["content"], values),
                    )
                )
        return rendered


class YamlPromptProvider:
    """Provides YAML prompt definitions as MCP prompts."""

    def __init__(
        self,
        prompts_dir: Path | str | None = None,
        expose_definitions: bool = False,
    ):
        """Initialize the prompt provider.

        Args:
            prompts_dir: Custom prompts directory. If None, uses
                CAPSERVE_PROMPTS_DIR or the XDG default.
            expose_definitions: Also register each raw definition as a
                ``prompt://<name>`` resource
        """
        if prompts_dir:
            self.user_prompts_dir = Path(prompts_dir)
        else:
            env_dir = os.environ.get("CAPSERVE_PROMPTS_DIR")
            if env_dir:
                self.user_prompts_dir = Path(env_dir)
            else:
                self.user_prompts_dir = get_prompts_dir(create=False)

        self.builtin_prompts_dir = Path(__file__).parent / "guides"
        self.expose_definitions = expose_definitions

        self._definitions: dict[str, dict[str, Any]] = {}
        self._load_all_prompts()

    def _load_all_prompts(self) -> None:
        """Load all available prompts from built-in and user directories."""
        if self.builtin_prompts_dir.exists():
            self._load_prompts_from_dir(self.builtin_prompts_dir, is_builtin=True)

        # User prompts override built-ins
        if self.user_prompts_dir.exists():
            self._load_prompts_from_dir(self.user_prompts_dir, is_builtin=False)

        logger.info(f"Loaded {len(self._definitions)} prompt definitions")

    def _load_prompts_from_dir(self, directory: Path, is_builtin: bool) -> None:
        for file_path in sorted(directory.glob("*.yaml")):
            try:
                with file_path.open("r") as f:
                    data = yaml.safe_load(f)
                definition = self._parse_definition(file_path, data)
            except yaml.YAMLError as e:
                logger.error(f"Failed to parse prompt file {file_path}: {e}")
                continue
            except ValueError as e:
                logger.error(f"Invalid prompt file {file_path}: {e}")
                continue

            definition["_source"] = "builtin" if is_builtin else "user"
            name = definition["name"]
            if name in self._definitions and not is_builtin:
                logger.debug(f"User prompt '{name}' overrides built-in")
            self._definitions[name] = definition
            logger.debug(
                f"Loaded {'built-in' if is_builtin else 'user'} prompt: {name}"
            )

    def _parse_definition(self, file_path: Path, data: Any) -> dict[str, Any]:
        if not isinstance(data, dict):
            raise PromptDefinitionError("Top level must be a mapping")

        name = str(data.get("name") or file_path.stem)
        parameters = _parse_arguments(data.get("arguments"))
        messages = _parse_messages(data.get("messages"), {p.name for p in parameters})
        return {
            "name": name,
            "description": str(data.get("description", "")),
            "parameters": parameters,
            "messages": messages,
            "raw": data,
        }

    def register(self, registry: Registry) -> None:
        """Register every loaded definition as a prompt.

        Definitions whose name is already taken in the registry are skipped.
        """
        for name, definition in self._definitions.items():
            try:
                registry.register_prompt(
                    PromptDescriptor(
                        name=name,
                        description=definition["description"],
                        parameters=definition["parameters"],
                        handler=YamlPrompt(name, definition["messages"]),
                    )
                )
            except DuplicateNameError:
                logger.warning(
                    f"Skipping {definition['_source']} prompt '{name}': "
                    "a prompt with that name is already registered"
                )
                continue
            if self.expose_definitions:
                registry.register_resource(
                    ResourceDescriptor(
                        uri=f"prompt://{name}",
                        name=f"Prompt definition: {name}",
                        description=definition["description"],
                        mime_type="text/yaml",
                        handler=self._definition_reader(definition["raw"]),
                    )
                )

    @staticmethod
    def _definition_reader(raw: Mapping[str, Any]) -> Any:
        def read() -> str:
            return yaml.safe_dump(dict(raw), default_flow_style=False, sort_keys=False)

        return read

    def list_prompts(self) -> dict[str, str]:
        """Map prompt names to their source (builtin/user)."""
        return {name: d["_source"] for name, d in self._definitions.items()}
