# brandsync/theme/merge.py
import copy
import json
from typing import Any, Dict, Mapping


class _Missing:
    """Sentinel for a path that is not present in a nested mapping."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


def get_path(data: Any, dotted_path: str) -> Any:
    """
    Look up ``a.b.c`` in nested mappings.

    Returns ``MISSING`` when any segment is absent or when an intermediate
    value is not a mapping.
    """
    current = data
    for segment in dotted_path.split("."):
        if not isinstance(current, Mapping) or segment not in current:
            return MISSING
        current = current[segment]
    return current


def set_path(data: Dict[str, Any], dotted_path: str, value: Any) -> Dict[str, Any]:
    """Return a deep copy of ``data`` with ``dotted_path`` set to ``value``.

    Missing intermediate mappings are created; a non-mapping intermediate is
    replaced by a mapping.
    """
    result = copy.deepcopy(data)
    segments = dotted_path.split(".")
    current = result
    for segment in segments[:-1]:
        child = current.get(segment)
        if not isinstance(child, dict):
            child = {}
            current[segment] = child
        current = child
    current[segments[-1]] = copy.deepcopy(value)
    return result


def delete_path(data: Dict[str, Any], dotted_path: str) -> Dict[str, Any]:
    """Return a deep copy of ``data`` without ``dotted_path``. Absent paths are ignored."""
    result = copy.deepcopy(data)
    segments = dotted_path.split(".")
    current = result
    for segment in segments[:-1]:
        current = current.get(segment)
        if not isinstance(current, dict):
            return result
    current.pop(segments[-1], None)
    return result


def deep_merge(base: Mapping[str, Any], overlay: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Merge ``overlay`` on top of ``base`` without mutating either.

    A key present in ``overlay`` wins. Nested mappings merge recursively.
    Lists and every other value are replaced wholesale, never concatenated
    or merged by index.
    """
    result: Dict[str, Any] = copy.deepcopy(dict(base))
    for key, value in overlay.items():
        existing = result.get(key)
        if isinstance(value, Mapping) and isinstance(existing, Mapping):
            result[key] = deep_merge(existing, value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def canonical_json(value: Any) -> str:
    """Stable serialization used to compare resolution inputs."""
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)
