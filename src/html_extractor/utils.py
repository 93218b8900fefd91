"""
Utility functions for html_extractor.

Provides property-path lookup on input records and markup decoding helpers.
"""

import base64
import binascii
import logging
import re
from typing import Any, List, Union

logger = logging.getLogger(__name__)

_MISSING = object()

# "a.b[0].c" -> ["a", "b", 0, "c"]
_PATH_TOKEN = re.compile(r"[^.\[\]]+|\[(\d+)\]")


def split_path(path: str) -> List[Union[str, int]]:
    """
    Split a property path into keys and list indexes.

    Args:
        path: Dotted path, optionally with bracket indexes (e.g. "pages[0].html")

    Returns:
        List of path segments
    """
    segments: List[Union[str, int]] = []
    for match in _PATH_TOKEN.finditer(path):
        if match.group(1) is not None:
            segments.append(int(match.group(1)))
        else:
            segments.append(match.group(0))
    return segments


def get_path(data: Any, path: str, default: Any = None) -> Any:
    """
    Read a nested value from mappings and lists.

    A key containing dots is tried verbatim before the path is split.

    Args:
        data: Record to read from
        path: Property path
        default: Value returned when the path does not resolve

    Returns:
        Value at the path or the default
    """
    if isinstance(data, dict) and path in data:
        return data[path]

    current = data
    for segment in split_path(path):
        current = _step(current, segment)
        if current is _MISSING:
            return default
    return current


def has_path(data: Any, path: str) -> bool:
    """Check whether a property path resolves on a record."""
    return get_path(data, path, _MISSING) is not _MISSING


def _step(current: Any, segment: Union[str, int]) -> Any:
    if isinstance(current, dict):
        key = segment if segment in current else str(segment)
        return current.get(key, _MISSING)
    if isinstance(current, (list, tuple)):
        try:
            index = int(segment)
        except ValueError:
            return _MISSING
        return current[index] if -len(current) <= index < len(current) else _MISSING
    return _MISSING


def decode_binary(data: Union[bytes, bytearray, str]) -> str:
    """
    Decode binary markup as UTF-8.

    Strings are treated as base64-encoded payloads, which is how binary data
    usually travels inside JSON records. Strings that are not valid base64, or
    whose decoded bytes are not valid UTF-8, are returned unchanged. Plain text
    that happens to be valid base64 of UTF-8 bytes (e.g. "dGV4dA==") is still
    decoded; markup always contains "<", which base64 never does.
    """
    if isinstance(data, (bytes, bytearray)):
        return bytes(data).decode("utf-8", errors="replace")

    try:
        return base64.b64decode(data, validate=True).decode("utf-8")
    except (binascii.Error, ValueError):
        logger.debug("Binary source is not base64 encoded UTF-8, using it as text")
        return data


def ensure_list(value: Any) -> List[Any]:
    """Wrap a single value into a list; lists and tuples are copied."""
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]
