"""Registration records and protocol payloads.

Descriptors bind an identifier or URI pattern to a handler and a parameter
schema. They are frozen once built and live for the whole process.
"""

import base64
import json
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_core import to_jsonable_python

from .uri_template import has_placeholders


class Role(str, Enum):
    """Message roles."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    RESOURCE_ATTACHMENT = "resource-attachment"


class ContentKind(str, Enum):
    """How resource content should be interpreted."""

    TEXT = "text"
    JSON = "json"
    BINARY = "binary"


class Parameter(BaseModel):
    """A typed, named parameter. Omitting ``default`` makes it required."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(min_length=1)
    type: Any = str
    description: str = ""
    required: bool = True
    default: Any = None

    @model_validator(mode="before")
    @classmethod
    def default_implies_optional(cls, data: Any) -> Any:
        if isinstance(data, dict) and "default" in data and "required" not in data:
            data = {**data, "required": False}
        return data


def _check_unique_parameters(params: tuple[Parameter, ...]) -> tuple[Parameter, ...]:
    names = [p.name for p in params]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise ValueError(f"Duplicate parameter names: {duplicates}")
    return params


class ToolDescriptor(BaseModel):
    """A model-invocable function."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(min_length=1)
    handler: Callable[..., Any]
    description: str = ""
    parameters: tuple[Parameter, ...] = ()
    return_type: Any = None

    @field_validator("parameters")
    @classmethod
    def unique_parameters(cls, v: tuple[Parameter, ...]) -> tuple[Parameter, ...]:
        return _check_unique_parameters(v)


class ResourceDescriptor(BaseModel):
    """Read-only data addressed by a literal or templated URI."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    uri: str = Field(min_length=1)
    handler: Callable[..., Any]
    name: str = ""
    description: str = ""
    mime_type: str = "text/plain"
    content_kind: ContentKind = ContentKind.TEXT
    params: Mapping[str, Any] = Field(default_factory=dict)
    side_effect_free: bool = True

    @model_validator(mode="before")
    @classmethod
    def default_name(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("name"):
            data = {**data, "name": data.get("uri", "")}
        return data

    @property
    def is_template(self) -> bool:
        return has_placeholders(self.uri)

    def metadata(self) -> dict[str, Any]:
        """Identifying metadata; never touches the handler."""
        key = "uriTemplate" if self.is_template else "uri"
        return {
            key: self.uri,
            "name": self.name,
            "description": self.description,
            "mimeType": self.mime_type,
            "sideEffectFree": self.side_effect_free,
        }


class PromptDescriptor(BaseModel):
    """A user-selected template that expands to messages."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(min_length=1)
    handler: Callable[..., Any]
    description: str = ""
    parameters: tuple[Parameter, ...] = ()

    @field_validator("parameters")
    @classmethod
    def unique_parameters(cls, v: tuple[Parameter, ...]) -> tuple[Parameter, ...]:
        return _check_unique_parameters(v)


class ResourceReference(BaseModel):
    """Unresolved pointer to a resource, produced by prompt handlers."""

    model_config = ConfigDict(frozen=True)

    uri: str


class ResourceContents(BaseModel):
    """Resolved resource content."""

    model_config = ConfigDict(frozen=True)

    uri: str
    value: Any
    mime_type: str = "text/plain"
    content_kind: ContentKind = ContentKind.TEXT

    @property
    def text(self) -> str:
        """Content rendered as text; binary is base64-encoded."""
        if self.content_kind is ContentKind.BINARY:
            return base64.b64encode(self.value).decode("ascii")
        if self.content_kind is ContentKind.JSON and not isinstance(self.value, str):
            return json.dumps(self.value, default=str)
        return str(self.value)

    def to_payload(self) -> dict[str, Any]:
        """JSON-safe form: ``text`` for text and JSON, ``blob`` for binary."""
        payload: dict[str, Any] = {"uri": self.uri, "mimeType": self.mime_type}
        key = "blob" if self.content_kind is ContentKind.BINARY else "text"
        payload[key] = self.text
        return payload


class Message(BaseModel):
    """One role-tagged entry of a prompt expansion."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str | None = None
    resource: ResourceReference | ResourceContents | None = None

    @model_validator(mode="after")
    def exactly_one_body(self) -> "Message":
        if (self.content is None) == (self.resource is None):
            raise ValueError("A message needs either content or a resource")
        return self

    def to_payload(self) -> dict[str, Any]:
        if self.resource is None:
            return {"role": self.role.value, "content": self.content}
        if isinstance(self.resource, ResourceContents):
            return {"role": self.role.value, "resource": self.resource.to_payload()}
        return {"role": self.role.value, "resource": {"uri": self.resource.uri}}


class ErrorInfo(BaseModel):
    """Machine-readable kind plus human-readable detail."""

    model_config = ConfigDict(frozen=True)

    kind: str
    detail: str


class InvocationResult(BaseModel):
    """Outcome of a tool call: a success value or an error, never both."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    value: Any = None
    error: ErrorInfo | None = None

    @model_validator(mode="after")
    def value_or_error(self) -> "InvocationResult":
        if self.error is not None and self.value is not None:
            raise ValueError("InvocationResult cannot carry both a value and an error")
        return self

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any) -> "InvocationResult":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: str, detail: str) -> "InvocationResult":
        return cls(error=ErrorInfo(kind=kind, detail=detail))

    def to_payload(self) -> dict[str, Any]:
        """JSON-safe form with an ``isError`` flag."""
        if self.error is not None:
            return {"isError": True, "error": self.error.model_dump()}
        return {
            "isError": False,
            "value": to_jsonable_python(self.value, fallback=str),
        }
