"""
Settings schemas for section and block types.

A schema is the list of ``SettingField`` entries a theme declares for a type.
Each schema is compiled once into a pydantic model; field keys become aliases
so keys that are not Python identifiers still validate.
"""
import copy
import re
import threading
from typing import Annotated, Any, Dict, Hashable, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StringConstraints, create_model
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ValidationError

HEX_COLOR = r"^#(?:[0-9a-fA-F]{3,4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$"
TEXT_TYPES = {"text", "textarea", "richtext", "url", "image", "html", "video_url"}
NUMBER_TYPES = {"number", "range"}

_models: Dict[Hashable, type] = {}
_models_lock = threading.Lock()


class _SettingsBase(BaseModel):
    # Theme authors may store keys their schema does not describe.
    model_config = ConfigDict(extra="allow")


def _field_type(field) -> Tuple[Any, Dict[str, Any]]:
    constraints: Dict[str, Any] = {}

    if field.type in TEXT_TYPES:
        return str, constraints
    if field.type in NUMBER_TYPES:
        if field.min is not None:
            constraints["ge"] = field.min
        if field.max is not None:
            constraints["le"] = field.max
        return float, constraints
    if field.type == "toggle":
        return StrictBool, constraints
    if field.type == "select":
        values = field.option_values()
        if values:
            return Literal[tuple(values)], constraints
        return Any, constraints
    if field.type == "color":
        return Annotated[str, StringConstraints(pattern=HEX_COLOR)], constraints
    if field.type == "blocks":
        return List[Any], constraints
    return Any, constraints


def build_settings_model(schema, *, name: str = "Settings") -> type:
    fields = {}
    for index, field in enumerate(schema):
        annotation, constraints = _field_type(field)
        if field.required:
            fields[f"field_{index}"] = (annotation, Field(..., alias=field.key, **constraints))
        else:
            fields[f"field_{index}"] = (
                Optional[annotation],
                Field(None, alias=field.key, **constraints),
            )

    model_name = re.sub(r"\W", "_", name) or "Settings"
    return create_model(model_name, __base__=_SettingsBase, **fields)


def _settings_model(schema, cache_key: Optional[Hashable], name: str) -> type:
    if cache_key is None:
        return build_settings_model(schema, name=name)

    with _models_lock:
        model = _models.get(cache_key)
        if model is None:
            model = build_settings_model(schema, name=name)
            _models[cache_key] = model
        return model


def validate_settings(
    schema,
    settings: Optional[Dict[str, Any]],
    *,
    cache_key: Optional[Hashable] = None,
    name: str = "Settings",
) -> Dict[str, Any]:
    """
    Validate a complete settings blob against ``schema``.

    Returns a copy of the blob as given (values are not coerced). A ``None``
    schema means the type is free-form and any JSON object passes.
    """
    if settings is None:
        settings = {}
    if not isinstance(settings, dict):
        raise ValidationError("Settings must be a JSON object")
    if not schema:
        return copy.deepcopy(settings)

    model = _settings_model(schema, cache_key, name)
    try:
        model.model_validate(settings)
    except PydanticValidationError as exc:
        errors = [
            {
                "field": ".".join(str(part) for part in error["loc"]),
                "message": error["msg"],
            }
            for error in exc.errors(include_url=False)
        ]
        raise ValidationError(f"Invalid {name} settings", details=errors) from exc

    return copy.deepcopy(settings)


def defaults_for(schema) -> Dict[str, Any]:
    return {
        field.key: copy.deepcopy(field.default)
        for field in schema or []
        if field.default is not None
    }


def validate_section_settings(theme, section_type: str, settings):
    schema = theme.section_schema(section_type) if theme else None
    key = (theme.code, theme.version, "section", section_type) if theme else None
    return validate_settings(schema, settings, cache_key=key, name=f"{section_type} section")


def validate_block_settings(theme, block_type: str, settings):
    schema = theme.block_schema(block_type) if theme else None
    key = (theme.code, theme.version, "block", block_type) if theme else None
    return validate_settings(schema, settings, cache_key=key, name=f"{block_type} block")


def clear_model_cache() -> None:
    with _models_lock:
        _models.clear()
