"""Mapping between nested documents and flat Neo4j node properties.

Neo4j properties hold primitives and homogeneous lists of primitives only,
so documents are flattened before they are written:

    {"health_metrics": {"total_invocations": 3}}  ->  {"health_metrics__total_invocations": 3}
    {"daily_log": [{"summary": "..."}]}             ->  {"daily_log__jsonl": ['{"summary": "..."}']}
    {"context": {"free form": 1}}                   ->  {"context__json": '{"free form": 1}'}

Lists of maps are stored one JSON string per element so that an append is a
single ``coalesce(list, []) + [item]`` update.
"""

import json
import re
from collections.abc import Mapping
from typing import Any

from continuum.core.errors import ProcessingError

SEPARATOR = "__"
JSONL_SUFFIX = "__jsonl"
JSON_SUFFIX = "__json"

_IDENTIFIER = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")
_PATH = re.compile(r"^[A-Za-z][A-Za-z0-9_]*(\.[A-Za-z][A-Za-z0-9_]*)*$")


def validate_identifier(name: str) -> str:
    """Guard names that are interpolated into Cypher (labels, property keys)."""
    if not _IDENTIFIER.match(name) or SEPARATOR in name:
        raise ProcessingError(
            message=f"Invalid storage identifier: {name!r}",
            details={"source": "storage_codec", "operation": "validate_identifier", "identifier": name},
        )
    return name


def property_key(path: str) -> str:
    """Turn a dotted document path into a flat property key."""
    if not _PATH.match(path) or SEPARATOR in path:
        raise ProcessingError(
            message=f"Invalid document path: {path!r}",
            details={"source": "storage_codec", "operation": "property_key", "path": path},
        )
    return path.replace(".", SEPARATOR)


def _is_flattenable_map(value: Mapping[str, Any]) -> bool:
    return all(isinstance(key, str) and _IDENTIFIER.match(key) and SEPARATOR not in key for key in value)


def _is_primitive_list(value: list[Any]) -> bool:
    if not value:
        return True
    kinds = {type(item) for item in value}
    if len(kinds) != 1:
        return kinds <= {int, float}
    return kinds.pop() in (str, int, float, bool)


def encode_list(key: str, value: list[Any]) -> tuple[str, list[Any]]:
    """Pick the property key and stored form for a list value."""
    if _is_primitive_list(value):
        return key, value
    return key + JSONL_SUFFIX, [json.dumps(item, sort_keys=True) for item in value]


def encode_item(key: str, item: Any) -> tuple[str, Any]:
    """Pick the property key and stored form for one appended element."""
    if isinstance(item, str | int | float | bool):
        return key, item
    return key + JSONL_SUFFIX, json.dumps(item, sort_keys=True)


def flatten(document: Mapping[str, Any], prefix: str = "") -> dict[str, Any]:
    """Flatten a nested document into Neo4j-compatible properties."""
    properties: dict[str, Any] = {}
    for name, value in document.items():
        key = f"{prefix}{SEPARATOR}{name}" if prefix else name
        if isinstance(value, Mapping):
            if _is_flattenable_map(value):
                properties.update(flatten(value, key))
            else:
                properties[key + JSON_SUFFIX] = json.dumps(value, sort_keys=True)
        elif isinstance(value, list | tuple):
            list_key, stored = encode_list(key, list(value))
            properties[list_key] = stored
        else:
            properties[key] = value
    return properties


def sibling_keys(key: str) -> list[str]:
    """Every property key a value at ``key`` may have been stored under."""
    return [key, key + JSONL_SUFFIX, key + JSON_SUFFIX]


def flatten_update(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Flatten a dotted-path update, clearing stale encodings of replaced values.

    A property set to ``None`` is removed by ``SET n += $props``.
    """
    properties: dict[str, Any] = {}
    for path, value in fields.items():
        key = property_key(path)
        encoded = flatten({key: value}) if isinstance(value, Mapping | list | tuple) else {key: value}
        for sibling in sibling_keys(key):
            properties.setdefault(sibling, None)
        properties.update(encoded)
    return properties


def _assign(target: dict[str, Any], segments: list[str], value: Any) -> None:
    for segment in segments[:-1]:
        target = target.setdefault(segment, {})
    leaf = segments[-1]
    existing = target.get(leaf)
    if isinstance(existing, list) and isinstance(value, list):
        existing.extend(value)
    else:
        target[leaf] = value


def unflatten(properties: Mapping[str, Any]) -> dict[str, Any]:
    """Rebuild a nested document from flat node properties."""
    document: dict[str, Any] = {}
    for key in sorted(properties):
        value = properties[key]
        if key.endswith(JSONL_SUFFIX):
            key = key[: -len(JSONL_SUFFIX)]
            value = [json.loads(item) for item in value]
        elif key.endswith(JSON_SUFFIX):
            key = key[: -len(JSON_SUFFIX)]
            value = json.loads(value)
        elif isinstance(value, list):
            value = list(value)
        _assign(document, key.split(SEPARATOR), value)
    return document
