"""Snapshot the current field values of a configuration object."""

import dataclasses
from collections.abc import Mapping
from datetime import timedelta
from typing import Any, Dict

from configapi.binding.descriptor import FieldKind, TypeShape, describe_instance
from configapi.binding.types import Duration, Number, Size

_ANY = TypeShape(FieldKind.ANY)


def is_zero(value: Any) -> bool:
    """True for values that count as unset: None, zero, empty, all-zero objects."""
    if value is None:
        return True
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return all(is_zero(getattr(value, f.name)) for f in dataclasses.fields(value))
    if isinstance(value, (str, bytes, list, tuple, dict, set, frozenset)):
        return len(value) == 0
    if isinstance(value, (bool, int, float)):
        return value == 0
    return False


def extract(obj: Any) -> Dict[str, Any]:
    """Return the non-empty fields of ``obj`` keyed by external name.

    Durations and sizes are rendered to the same text the binder parses, so
    a snapshot can be fed back into ``bind()`` unchanged.
    """
    result: Dict[str, Any] = {}
    if obj is None:
        return result

    for field in describe_instance(obj).fields:
        if not field.visible or field.shape.has_no_shape:
            continue
        value = getattr(obj, field.attr, None)
        if field.embedded:
            result.update(extract(value))
            continue
        if is_zero(value):
            continue
        rendered = render(value, field.shape)
        if field.shape.kind is FieldKind.OBJECT and not rendered:
            continue
        result[field.name] = rendered
    return result


def render(value: Any, shape: TypeShape = _ANY) -> Any:
    """Render one value as plain data (str, int, float, bool, list, dict)."""
    if value is None:
        return None

    kind = shape.kind
    if kind is FieldKind.ANY:
        return _render_dynamic(value)
    if kind in (FieldKind.DURATION, FieldKind.SIZE):
        return str(value)
    if kind is FieldKind.OBJECT:
        return extract(value)
    if kind is FieldKind.ARRAY:
        return [render(item, shape.element) for item in value]
    if kind is FieldKind.MAP:
        return {key: render(item, shape.element) for key, item in value.items()}
    if kind in (FieldKind.FLOAT, FieldKind.NUMBER):
        return float(value)
    if kind is FieldKind.INTEGER:
        return int(value)
    return value


def _render_dynamic(value: Any) -> Any:
    """Render a value whose static type is unknown, by its runtime type."""
    if isinstance(value, (Duration, Size)):
        return str(value)
    if isinstance(value, timedelta):
        return str(Duration.from_timedelta(value))
    if isinstance(value, Number):
        return float(value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return extract(value)
    if isinstance(value, Mapping):
        return {key: _render_dynamic(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_render_dynamic(item) for item in value]
    return value
