"""YAML prompt library."""

from .provider import PromptDefinitionError, YamlPrompt, YamlPromptProvider

__all__ = ["PromptDefinitionError", "YamlPrompt", "YamlPromptProvider"]
