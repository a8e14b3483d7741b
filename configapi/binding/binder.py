"""Apply untyped field values onto typed configuration objects.

``bind()`` takes a mapping of external field names to plain values (as
decoded from JSON) and writes them onto a dataclass instance, converting
each value to the static type of its destination field. Nested objects,
sequences and string-keyed mappings are handled recursively.

Fields are applied in sorted key order. The first failing field aborts the
bind with a ``BindError`` naming its path; fields applied before it stay
applied.
"""

import math
from collections.abc import Mapping
from datetime import timedelta
from typing import Any

from configapi.binding.descriptor import FieldKind, TypeShape, describe
from configapi.binding.resolver import resolve
from configapi.binding.types import Duration, Number, Size
from configapi.errors import BindError


def bind(fields: Mapping, dest: Any, path: str = "") -> None:
    """Bind ``fields`` onto the dataclass instance ``dest``.

    Args:
        fields: External field name to untyped value.
        dest: Destination configuration object, modified in place.
        path: Field path of ``dest`` itself, used to prefix error paths.

    Raises:
        BindError: If a matched field cannot be written or converted.
    """
    for key in sorted(fields):
        field_path = f"{path}.{key}" if path else key
        slot = resolve(dest, key)
        if slot is None:
            continue
        if not slot.settable:
            raise BindError(field_path, f"cannot set {slot.field.attr} ({type(slot.owner).__name__})")
        slot.set(coerce(fields[key], slot.field.shape, field_path))


def coerce(value: Any, shape: TypeShape, path: str) -> Any:
    """Convert an untyped ``value`` to the type described by ``shape``."""
    if value is None:
        if shape.nullable or shape.kind is FieldKind.ANY:
            return None
        raise BindError(path, "null is not allowed here")

    kind = shape.kind
    if kind is FieldKind.ANY:
        return value
    if kind is FieldKind.BOOL:
        if isinstance(value, bool):
            return value
    elif kind is FieldKind.INTEGER:
        if isinstance(value, int) and not isinstance(value, bool):
            return int(value)
        if isinstance(value, float) and value.is_integer():
            return int(value)
    elif kind in (FieldKind.FLOAT, FieldKind.NUMBER):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return _coerce_float(value, kind, path)
    elif kind is FieldKind.STRING:
        if isinstance(value, str):
            return value
    elif kind is FieldKind.DURATION:
        return _coerce_duration(value, path)
    elif kind is FieldKind.SIZE:
        return _coerce_size(value, path)
    elif kind is FieldKind.ARRAY:
        if isinstance(value, (list, tuple)):
            items = [coerce(item, shape.element, f"{path}[{i}]") for i, item in enumerate(value)]
            return tuple(items) if shape.py_type is tuple else items
    elif kind is FieldKind.MAP:
        if isinstance(value, Mapping):
            return _coerce_map(value, shape, path)
    elif kind is FieldKind.OBJECT:
        if isinstance(value, Mapping):
            return _coerce_object(value, shape, path)
    else:
        raise BindError(path, f"cannot bind into a field of kind {kind.value}")

    raise BindError(path, f"cannot convert {type(value).__name__} into {kind.value}")


def _coerce_float(value: Any, kind: FieldKind, path: str) -> float:
    try:
        result = float(value)
    except OverflowError as e:
        raise BindError(path, f"number out of range: {e}") from e
    if not math.isfinite(result):
        raise BindError(path, f"{result!r} is not a finite number")
    return Number(result) if kind is FieldKind.NUMBER else result


def _coerce_duration(value: Any, path: str) -> Duration:
    if isinstance(value, Duration):
        return value
    if isinstance(value, str):
        try:
            return Duration.parse(value)
        except ValueError as e:
            raise BindError(path, f"couldn't parse duration {value!r}: {e}") from e
    try:
        if isinstance(value, timedelta):
            return Duration.from_timedelta(value)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return Duration.from_seconds(value)
    except (OverflowError, ValueError) as e:
        raise BindError(path, str(e)) from e
    raise BindError(path, f"cannot convert {type(value).__name__} into duration")


def _coerce_size(value: Any, path: str) -> Size:
    if isinstance(value, Size):
        return value
    if isinstance(value, str):
        try:
            return Size.parse(value)
        except ValueError as e:
            raise BindError(path, f"couldn't parse size {value!r}: {e}") from e
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return Size(value)
    raise BindError(path, f"cannot convert {value!r} into size")


def _coerce_map(value: Mapping, shape: TypeShape, path: str) -> dict:
    result = {}
    for key in sorted(value, key=str):
        if not isinstance(key, str):
            raise BindError(path, f"map keys must be strings, got {type(key).__name__}")
        result[key] = coerce(value[key], shape.element, f"{path}.{key}")
    return result


def _coerce_object(value: Mapping, shape: TypeShape, path: str) -> Any:
    descriptor = describe(shape.py_type)
    try:
        obj = descriptor.new_instance()
    except TypeError as e:
        raise BindError(path, f"cannot create {shape.py_type.__name__}: {e}") from e
    bind(value, obj, path)
    return obj
