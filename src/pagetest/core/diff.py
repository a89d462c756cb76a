"""Structural comparison producing path-tagged differences."""
from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from typing import Any, FrozenSet, Iterator, List, Tuple

from .models import MISSING, Difference, PathSegment

_LEAF_SEQUENCES = (str, bytes, bytearray, memoryview)


def diff(a: Any, b: Any, path: Tuple[PathSegment, ...] = ()) -> Iterator[Difference]:
    """Yield one :class:`Difference` per leaf-level mismatch between ``a`` and ``b``.

    Composites (mappings, lists/tuples and objects with a ``__dict__``) are
    compared key by key over the union of their own keys; a key missing on
    one side compares against :data:`MISSING`. Every call walks the inputs
    afresh, and pairs already under comparison higher up the same descent are
    treated as equal, so cyclic structures terminate.
    """

    return _walk(a, b, tuple(path), frozenset())


def is_composite(value: Any) -> bool:
    if value is None or value is MISSING:
        return False
    if isinstance(value, Mapping):
        return True
    if isinstance(value, Sequence) and not isinstance(value, _LEAF_SEQUENCES):
        return True
    if isinstance(value, (set, frozenset, type)) or callable(value):
        return False
    return hasattr(value, "__dict__")


def strict_equal(a: Any, b: Any) -> bool:
    """Equality without coercion: identity for composites, typed value equality for leaves."""

    if a is b:
        return not _is_nan(a)
    if is_composite(a) or is_composite(b):
        return False
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if _is_number(a) and _is_number(b):
        return a == b
    if type(a) is not type(b) and not (isinstance(a, type(b)) or isinstance(b, type(a))):
        return False
    try:
        return bool(a == b)
    except Exception:  # pragma: no cover - exotic __eq__ implementations
        return False


def own_keys(value: Any) -> List[PathSegment]:
    if isinstance(value, Mapping):
        return list(value.keys())
    if isinstance(value, Sequence):
        return list(range(len(value)))
    return [key for key in vars(value) if not key.startswith("_")]


def get_key(value: Any, key: PathSegment) -> Any:
    if isinstance(value, Mapping):
        return value.get(key, MISSING)
    if isinstance(value, Sequence):
        if isinstance(key, int) and 0 <= key < len(value):
            return value[key]
        return MISSING
    if isinstance(key, str) and not key.startswith("_"):
        return vars(value).get(key, MISSING)
    return MISSING


def _walk(
    a: Any,
    b: Any,
    path: Tuple[PathSegment, ...],
    active: FrozenSet[Tuple[int, int]],
) -> Iterator[Difference]:
    if strict_equal(a, b):
        return
    if not is_composite(a) or not is_composite(b):
        yield Difference(path=path, actual=a, expected=b)
        return
    pair = (id(a), id(b))
    if pair in active:
        return
    active = active | {pair}
    for key in _union_keys(a, b):
        yield from _walk(get_key(a, key), get_key(b, key), path + (key,), active)


def _union_keys(a: Any, b: Any) -> List[PathSegment]:
    keys = own_keys(a)
    seen = set(keys)
    for key in own_keys(b):
        if key not in seen:
            seen.add(key)
            keys.append(key)
    return keys


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, complex)) and not isinstance(value, bool)


def _is_nan(value: Any) -> bool:
    return isinstance(value, float) and math.isnan(value)
