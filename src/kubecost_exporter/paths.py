"""Dotted-path lookups into nested mappings."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Tuple

from .constants import PATH_SEPARATOR


def resolve_path(path: str, root: Mapping[str, Any]) -> Tuple[Any, bool]:
    """
    Retrieve an element from a nested mapping using a dot-separated key.

    Each segment of ``path`` indexes one level deeper. A missing segment, or an
    intermediate value that is not itself a mapping, is reported as not found
    rather than raised, since optional properties are routinely absent.

    Keys are assumed not to contain the separator.

    Args:
        path: Dot-separated key, e.g. ``"labels.app"``
        root: Mapping to search

    Returns:
        ``(value, True)`` when the path exists (``value`` may be ``None`` or
        empty), otherwise ``(None, False)``

    Example:
        >>> resolve_path("key1.key2", {"key1": {"key2": "value"}})
        ('value', True)
        >>> resolve_path("key1.key2.key3", {"key1": {"key2": "value"}})
        (None, False)
    """
    current: Any = root
    for segment in path.split(PATH_SEPARATOR):
        if not isinstance(current, Mapping) or segment not in current:
            return None, False
        current = current[segment]
    return current, True
