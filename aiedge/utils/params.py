"""
AI Edge Repository
Introductory remarks: This module is part of the aiedge codebase.

Loading and normalizing build parameters.

Parameters are accepted either as a flat mapping::

    s3SecretName: my-secret
    expectedLabels: [cat, dog]

or in Tekton's list form::

    params:
      - name: s3SecretName
        value: my-secret
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import jsonschema  # type: ignore[import]
import yaml  # type: ignore[import]

from aiedge.errors import ParameterValidationError, ValidationError
from aiedge.models import ParamValue

_PARAM_VALUE_SCHEMA: Dict[str, Any] = {
    "oneOf": [
        {"type": "string"},
        {"type": "array", "items": {"type": "string"}},
    ]
}

PARAMS_FILE_SCHEMA: Dict[str, Any] = {
    "oneOf": [
        {
            "type": "object",
            "required": ["params"],
            "additionalProperties": False,
            "properties": {
                "params": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "required": ["name", "value"],
                        "properties": {
                            "name": {"type": "string", "minLength": 1},
                            "value": _PARAM_VALUE_SCHEMA,
                        },
                    },
                }
            },
        },
        {
            "type": "object",
            "not": {"required": ["params"]},
            "additionalProperties": _PARAM_VALUE_SCHEMA,
        },
    ]
}


def read_params(path: Union[str, Path]) -> Dict[str, ParamValue]:
    """Load, validate and flatten a YAML or JSON parameters file."""

    params_path = Path(path)
    try:
        text = params_path.read_text(encoding="utf-8")
    except OSError as error:
        raise ValidationError(
            f"unable to read parameters file {params_path}: {error}"
        ) from error

    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as error:
        raise ValidationError(
            f"parameters file {params_path} is not valid YAML: {error}"
        ) from error

    if document is None:
        return {}
    return parse_params_document(document, source=str(params_path))


def parse_params_document(
    document: Any,
    *,
    source: str = "<parameters>",
) -> Dict[str, ParamValue]:
    try:
        jsonschema.validate(instance=document, schema=PARAMS_FILE_SCHEMA)
    except jsonschema.ValidationError as error:
        raise ValidationError(
            f"invalid parameters in {source}: {error.message}"
        ) from error

    if "params" in document:
        flat = {entry["name"]: entry["value"] for entry in document["params"]}
    else:
        flat = dict(document)
    return normalize_parameters(flat)


def normalize_parameters(
    parameters: Optional[Mapping[str, Any]],
) -> Optional[Dict[str, ParamValue]]:
    """Copy ``parameters`` into the closed ``str | list[str]`` shape.

    ``None`` passes through so callers can tell "no parameters" apart from
    "empty parameters". Any other value shape raises
    :class:`ParameterValidationError` naming the offending key.
    """

    if parameters is None:
        return None
    normalized: Dict[str, ParamValue] = {}
    for key, value in parameters.items():
        if not isinstance(key, str) or not key:
            raise ParameterValidationError(
                f"parameter names must be non-empty strings, got {key!r}",
                key=str(key),
            )
        if isinstance(value, str):
            normalized[key] = value
        elif isinstance(value, (list, tuple)):
            normalized[key] = _string_list(key, value)
        else:
            raise ParameterValidationError(
                f"parameter {key} has unsupported type "
                f"{type(value).__name__}; expected a string or a list of "
                "strings",
                key=key,
            )
    return normalized


def _string_list(key: str, values: Any) -> List[str]:
    items: List[str] = []
    for item in values:
        if not isinstance(item, str):
            raise ParameterValidationError(
                f"parameter {key} has a non-string list item "
                f"({type(item).__name__})",
                key=key,
            )
        items.append(item)
    return items
