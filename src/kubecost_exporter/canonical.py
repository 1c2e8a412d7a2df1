"""
Canonical label values.

Label values must be stable across polling cycles: the same property value has
to produce the same string no matter how the upstream API happened to order
list elements or mapping keys. Values are first classified into a closed set of
kinds, then rendered by kind.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, List, Tuple

from .constants import LABEL_SEPARATOR

logger = logging.getLogger(__name__)


class ValueKind(Enum):
    TEXT = "text"
    INTEGER = "integer"
    FLOAT = "float"
    SEQUENCE = "sequence"
    MAPPING = "mapping"
    OTHER = "other"


SCALAR_KINDS = (ValueKind.TEXT, ValueKind.INTEGER, ValueKind.FLOAT)

# Sort rank used only when a sequence mixes text and numbers
_KIND_RANK = {
    ValueKind.INTEGER: 0,
    ValueKind.FLOAT: 0,
    ValueKind.TEXT: 1,
}


@dataclass(frozen=True, slots=True)
class TaggedValue:
    """A decoded property value together with its kind."""

    kind: ValueKind
    value: Any


def tag(value: Any) -> TaggedValue:
    """Classify a decoded JSON value. Booleans are never integers here."""
    if isinstance(value, TaggedValue):
        return value
    if isinstance(value, str):
        return TaggedValue(ValueKind.TEXT, value)
    if isinstance(value, bool):
        return TaggedValue(ValueKind.OTHER, value)
    if isinstance(value, int):
        return TaggedValue(ValueKind.INTEGER, value)
    if isinstance(value, float):
        return TaggedValue(ValueKind.FLOAT, value)
    if isinstance(value, Mapping):
        return TaggedValue(ValueKind.MAPPING, value)
    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        return TaggedValue(ValueKind.SEQUENCE, value)
    return TaggedValue(ValueKind.OTHER, value)


def format_float(value: float) -> str:
    """
    Render a float with the fewest digits that parse back to the same value.

    Fixed-point notation is used throughout, so ``2.0`` renders as ``"2"`` and
    ``1e21`` as ``"1000000000000000000000"``.
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    # repr() already yields the shortest round-trippable digits
    return format(Decimal(repr(value)).normalize(), "f")


def _render_scalar(item: TaggedValue) -> str:
    if item.kind is ValueKind.TEXT:
        return item.value
    if item.kind is ValueKind.INTEGER:
        return str(item.value)
    if item.kind is ValueKind.FLOAT:
        return format_float(item.value)
    return ""


def _sort_key(item: TaggedValue) -> Tuple[int, bool, Any]:
    if item.kind is ValueKind.FLOAT and math.isnan(item.value):
        # NaN is unordered; it sorts after every other number
        return 0, True, 0.0
    return _KIND_RANK.get(item.kind, 2), False, item.value if item.kind in SCALAR_KINDS else ""


def sort_and_join_sequence(items: Sequence[Any], separator: str = LABEL_SEPARATOR) -> str:
    """
    Sort the elements of a sequence and join them with ``separator``.

    Text sorts lexicographically and numbers numerically. Sequences mixing
    kinds fall back to numbers first, then text, then everything else rendered
    as an empty string.

    Example:
        >>> sort_and_join_sequence(["a", "c", "b"])
        'a,b,c'
    """
    tagged = [tag(item) for item in items]
    if len({_KIND_RANK.get(item.kind, 2) for item in tagged}) > 1:
        logger.debug("Sorting sequence of mixed kinds: %r", list(items))
    ordered = sorted(tagged, key=_sort_key)
    return separator.join(_render_scalar(item) for item in ordered)


def sort_and_join_mapping(mapping: Mapping[str, Any], separator: str = LABEL_SEPARATOR) -> str:
    """
    Sort a mapping by key and join its entries as ``key:value``.

    Entries whose value is not text or a number are left out.

    Example:
        >>> sort_and_join_mapping({"a": "1", "c": 3, "b": 2.5})
        'a:1,b:2.5,c:3'
    """
    elements: List[str] = []
    for key in sorted(mapping):
        item = tag(mapping[key])
        if item.kind not in SCALAR_KINDS:
            continue
        elements.append(f"{key}:{_render_scalar(item)}")
    return separator.join(elements)


_RENDERERS: Dict[ValueKind, Callable[[TaggedValue, str], str]] = {
    ValueKind.TEXT: lambda item, _sep: item.value,
    ValueKind.INTEGER: lambda _item, _sep: "",
    ValueKind.FLOAT: lambda _item, _sep: "",
    ValueKind.SEQUENCE: lambda item, sep: sort_and_join_sequence(item.value, sep),
    ValueKind.MAPPING: lambda item, sep: sort_and_join_mapping(item.value, sep),
    ValueKind.OTHER: lambda _item, _sep: "",
}


def canonicalize(value: Any, separator: str = LABEL_SEPARATOR) -> str:
    """
    Convert a property value into a deterministic label string.

    Only text is used as is. Numbers are rendered inside sequences and mappings;
    a number on its own, like any other value, becomes an empty label.
    """
    item = tag(value)
    return _RENDERERS[item.kind](item, separator)
