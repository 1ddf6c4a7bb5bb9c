# ==============================================
# Serialization
# ==============================================
#
# PURPOSE:
#   Turn a metadata document (nested dict) into the opaque blob
#   stored in the `_value` column / file, and back.
#
# FORMAT:
#   UTF-8 JSON with sorted keys, so the same document always
#   produces the same blob.
#
# FUNCTIONS:
# ----------
# - serialize(document: Mapping) -> str
#     Raises SerializationError for non-mappings and values JSON
#     cannot represent (sets, bytes, arbitrary objects, NaN)
#     and for non-string keys at any depth, which JSON would
#     silently turn into strings.
#
# - deserialize(blob: str | bytes) -> dict
#     Raises DeserializationError when the blob is not valid JSON
#     or does not decode to a mapping. Callers can therefore tell
#     "stored value is broken" apart from "no value stored".
#
# ==============================================

import json
from collections.abc import Mapping
from typing import Any, Dict, Union

from metastore.errors import DeserializationError, SerializationError


def _check_keys(node: Any, path: str) -> None:
    if isinstance(node, Mapping):
        for key, value in node.items():
            if not isinstance(key, str):
                raise SerializationError(
                    f"metadata key {key!r} at {path} is {type(key).__name__}, keys must be strings"
                )
            _check_keys(value, f"{path}.{key}")
    elif isinstance(node, (list, tuple)):
        for i, item in enumerate(node):
            _check_keys(item, f"{path}[{i}]")


def serialize(document: Mapping) -> str:
    if not isinstance(document, Mapping):
        raise SerializationError(
            f"metadata must be a mapping, got {type(document).__name__}"
        )
    try:
        _check_keys(document, "$")
    except RecursionError as e:
        raise SerializationError("metadata is nested too deeply or refers to itself") from e
    try:
        return json.dumps(dict(document), sort_keys=True, allow_nan=False, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"metadata is not serializable: {e}") from e


def deserialize(blob: Union[str, bytes, bytearray, None]) -> Dict[str, Any]:
    if blob is None:
        raise DeserializationError("stored value is NULL")
    if isinstance(blob, (bytes, bytearray)):
        try:
            blob = bytes(blob).decode("utf-8")
        except UnicodeDecodeError as e:
            raise DeserializationError(f"stored value is not UTF-8: {e}") from e
    try:
        document = json.loads(blob)
    except (TypeError, ValueError) as e:
        raise DeserializationError(f"stored value is not valid JSON: {e}") from e
    if not isinstance(document, dict):
        raise DeserializationError(
            f"stored value decodes to {type(document).__name__}, expected an object"
        )
    return document
