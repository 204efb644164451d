"""Utilities for deriving parameter schemas from function signatures."""

import inspect
from collections.abc import Callable
from typing import Any, get_type_hints

from capserve.core.mcp.descriptors import Parameter

_SECTION_HEADERS = ("Args:", "Returns:", "Raises:", "Yields:", "Example:")


def docstring_summary(func: Callable[..., Any]) -> str:
    """First paragraph of a function's docstring, joined into one line."""
    doc = inspect.getdoc(func)
    if not doc:
        return ""

    desc_lines = []
    for line in doc.split("\n"):
        line = line.strip()
        if not line or line in _SECTION_HEADERS:
            break
        desc_lines.append(line)
    return " ".join(desc_lines)


def docstring_arguments(func: Callable[..., Any]) -> dict[str, str]:
    """Parse ``name: description`` entries from a Google-style Args section."""
    doc = inspect.getdoc(func)
    if not doc:
        return {}

    descriptions: dict[str, str] = {}
    in_args = False
    current: str | None = None
    arg_indent: int | None = None
    for raw in doc.split("\n"):
        line = raw.strip()
        if line == "Args:":
            in_args = True
            continue
        if not in_args:
            continue
        if not line or line in _SECTION_HEADERS:
            break

        indent = len(raw) - len(raw.lstrip())
        name, sep, rest = line.partition(":")
        name = name.split(" (")[0].strip()
        if sep and name.isidentifier() and (arg_indent is None or indent <= arg_indent):
            arg_indent = indent if arg_indent is None else arg_indent
            current = name
            descriptions[current] = rest.strip()
        elif current:
            # Continuation of the previous argument
            descriptions[current] = f"{descriptions[current]} {line}".strip()
    return descriptions


def parameters_from_function(func: Callable[..., Any]) -> tuple[Parameter, ...]:
    """Build an ordered parameter schema from a function signature.

    Type hints become parameter types (``str`` when missing), defaults make
    a parameter optional, and descriptions come from the Args section of the
    docstring. ``self``, ``cls`` and ``*args``/``**kwargs`` are skipped.
    """
    sig = inspect.signature(func)
    try:
        hints = get_type_hints(func, include_extras=True)
    except (NameError, TypeError):
        hints = {}
    descriptions = docstring_arguments(func)

    params = []
    for name, param in sig.parameters.items():
        if name in ("self", "cls") or param.kind in (
            inspect.Parameter.VAR_POSITIONAL,
            inspect.Parameter.VAR_KEYWORD,
        ):
            continue

        fields: dict[str, Any] = {
            "name": name,
            "type": hints.get(name, str),
            "description": descriptions.get(name, ""),
        }
        if param.default is not inspect.Parameter.empty:
            fields["default"] = param.default
        params.append(Parameter(**fields))
    return tuple(params)


def return_type_of(func: Callable[..., Any]) -> Any:
    """Annotated return type, or None when absent."""
    try:
        return get_type_hints(func).get("return")
    except (NameError, TypeError):
        return None
