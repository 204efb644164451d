"""Argument validation for tools and prompts.

Each descriptor's parameter list is compiled once into a pydantic model.
Validation reports every offending field at once so a model can fix all of
its mistakes in a single retry.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, create_model
from pydantic import ValidationError as PydanticValidationError
from pydantic.errors import PydanticInvalidForJsonSchema

from .descriptors import Parameter
from .exceptions import ValidationError

logger = logging.getLogger(__name__)


def format_validation_errors(
    error: PydanticValidationError, context: str = "arguments"
) -> str:
    """Format all pydantic validation errors into one message.

    Args:
        error: The pydantic ValidationError containing all failures
        context: What was being validated (e.g. "arguments for tool 'divide'")

    Returns:
        A single line for one error, or a bulleted list for several
    """
    errors = error.errors()

    if len(errors) == 1:
        err = errors[0]
        field = ".".join(str(x) for x in err["loc"]) or "arguments"
        input_val = err.get("input", "N/A")
        return f"Invalid {context}: {field} - {err['msg']} (received: {input_val!r})"

    msg_lines = [f"Invalid {context} - {len(errors)} errors:"]
    for err in errors:
        field = ".".join(str(x) for x in err["loc"]) or "arguments"
        input_val = err.get("input", "N/A")
        input_type = type(input_val).__name__ if input_val != "N/A" else "unknown"
        msg_lines.append(
            f"  • {field}: {err['msg']} (received {input_type}: {input_val!r})"
        )

    msg_lines.append("\nPlease fix all errors and retry with correct types.")
    return "\n".join(msg_lines)


def offending_fields(error: PydanticValidationError) -> list[str]:
    """Top-level argument names named by a pydantic error, in order."""
    fields: list[str] = []
    for err in error.errors():
        name = str(err["loc"][0]) if err["loc"] else "arguments"
        if name not in fields:
            fields.append(name)
    return fields


def coerce_bool(v: Any) -> bool | Any:
    """Coerce common string spellings ("true", "no", "") to booleans."""
    if isinstance(v, str):
        lower_v = v.strip().lower()
        if lower_v in ("true", "1", "yes", "on"):
            return True
        elif lower_v in ("false", "0", "no", "off", ""):
            return False
    return v


def coerce_int(v: Any) -> int | Any:
    """Coerce numeric strings such as "80" to int."""
    if isinstance(v, str):
        try:
            return int(v.strip())
        except ValueError:
            pass  # Let pydantic report it with proper context
    return v


def coerce_float(v: Any) -> float | Any:
    """Coerce numeric strings such as "2.5" to float."""
    if isinstance(v, str):
        try:
            return float(v.strip())
        except ValueError:
            pass  # Let pydantic report it with proper context
    return v


_COERCERS = {bool: coerce_bool, int: coerce_int, float: coerce_float}


def _annotation(param: Parameter) -> Any:
    coercer = _COERCERS.get(param.type)
    if coercer is None:
        return param.type
    return Annotated[param.type, BeforeValidator(coercer)]


def build_arguments_model(
    model_name: str, parameters: Iterable[Parameter]
) -> type[BaseModel]:
    """Compile a parameter list into a pydantic model.

    Fields are aliased to the parameter names so that names like ``schema``
    or ``copy`` never collide with BaseModel attributes. Unknown arguments
    are rejected.
    """
    fields: dict[str, Any] = {}
    for index, param in enumerate(parameters):
        if param.required:
            field = Field(alias=param.name, description=param.description)
        else:
            field = Field(
                default=param.default, alias=param.name, description=param.description
            )
        fields[f"arg_{index}"] = (_annotation(param), field)

    return create_model(  # type: ignore[call-overload, no-any-return]
        model_name,
        __config__=ConfigDict(extra="forbid", arbitrary_types_allowed=True),
        **fields,
    )


def validate_arguments(
    target: str, model: type[BaseModel], arguments: Mapping[str, Any] | None
) -> dict[str, Any]:
    """Validate raw arguments, returning them keyed by parameter name.

    Raises:
        ValidationError: Listing every offending field
    """
    try:
        validated = model.model_validate(dict(arguments or {}))
    except PydanticValidationError as e:
        fields = offending_fields(e)
        logger.info(f"Rejected arguments for {target}: {fields}")
        raise ValidationError(
            target, format_validation_errors(e, f"arguments for {target}"), fields
        ) from e
    return {
        field.alias or name: getattr(validated, name)
        for name, field in type(validated).model_fields.items()
    }


def arguments_schema(model: type[BaseModel]) -> dict[str, Any]:
    """JSON schema of the arguments model, as advertised in listings."""
    try:
        schema = model.model_json_schema(by_alias=True)
    except PydanticInvalidForJsonSchema:
        logger.debug(f"No JSON schema for {model.__name__}, advertising names only")
        fields = model.model_fields.values()
        return {
            "type": "object",
            "properties": {f.alias: {} for f in fields},
            "required": [f.alias for f in fields if f.is_required()],
        }
    schema.pop("title", None)
    for prop in schema.get("properties", {}).values():
        prop.pop("title", None)
    return schema
