"""
AI Edge Repository
Introductory remarks: This module is part of the aiedge codebase.

Conversion between build parameter maps and registry custom properties.

The registry only stores scalar strings and one opaque "struct" blob per
key, so string lists travel as base64 encoded JSON documents of the form
``{"items": [...]}``.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Any, Dict, List, Mapping, Sequence

from aiedge.errors import MetadataCodecError
from aiedge.models import MetadataValue, ParamValue

logger = logging.getLogger(__name__)


def to_metadata_value_map(
    parameters: Mapping[str, Any],
    *,
    strict: bool = False,
) -> Dict[str, MetadataValue]:
    """Encode a parameter map into registry metadata values.

    Lists must hold strings only. Values of any other type are dropped unless
    ``strict`` is set, in which case they raise :class:`MetadataCodecError`.
    """

    properties: Dict[str, MetadataValue] = {}
    for key, value in parameters.items():
        if isinstance(value, str):
            properties[key] = MetadataValue.string(value)
        elif isinstance(value, (list, tuple)):
            properties[key] = MetadataValue.struct(
                encode_string_list(key, value)
            )
        elif strict:
            raise MetadataCodecError(
                f"unsupported metadata value type for {key}: "
                f"{type(value).__name__}. Only string and list of strings "
                "are supported",
                key=key,
            )
        else:
            logger.debug(
                "Skipping metadata key %s with unsupported type %s",
                key,
                type(value).__name__,
            )
    return properties


def from_metadata_value_map(
    properties: Mapping[str, MetadataValue],
) -> Dict[str, ParamValue]:
    """Decode registry metadata values back into a parameter map."""

    parameters: Dict[str, ParamValue] = {}
    for key, value in properties.items():
        if value.is_string:
            parameters[key] = "" if value.value is None else str(value.value)
        elif value.is_struct:
            parameters[key] = decode_string_list(key, value.value)
        # Kinds we do not understand are left for newer clients.
    return parameters


def encode_string_list(key: str, items: Sequence[Any]) -> str:
    strings: List[str] = []
    for item in items:
        if not isinstance(item, str):
            raise MetadataCodecError(
                f"unsupported metadata value type for {key}: "
                f"{type(item).__name__}. Only string and list of strings "
                "are supported",
                key=key,
            )
        strings.append(item)
    document = json.dumps({"items": strings}, separators=(",", ":")) + "\n"
    return base64.b64encode(document.encode("utf-8")).decode("ascii")


def decode_string_list(key: str, encoded: Any) -> List[str]:
    if not isinstance(encoded, str):
        raise MetadataCodecError(
            f"failed to decode metadata value for {key}: not a string",
            key=key,
        )
    try:
        document = json.loads(base64.b64decode(encoded, validate=True))
    except (binascii.Error, ValueError) as error:
        raise MetadataCodecError(
            f"failed to decode metadata value for {key}: {error}",
            key=key,
        ) from error

    if isinstance(document, dict):
        if "items" not in document:
            logger.debug(
                "Metadata value for %s has no items field; decoding as empty",
                key,
            )
        items = document.get("items")
    else:
        items = document
    if items is None:
        return []
    if not isinstance(items, list) or not all(
        isinstance(item, str) for item in items
    ):
        raise MetadataCodecError(
            f"failed to decode metadata value for {key}: "
            "expected a list of strings",
            key=key,
        )
    return list(items)
