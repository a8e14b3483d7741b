"""Configuration binding engine.

Derives schemas from configuration dataclasses, snapshots their values and
binds untyped field maps onto them.
"""

from configapi.binding.binder import bind, coerce
from configapi.binding.descriptor import (
    FieldKind,
    TypeShape,
    config_field,
    describe,
    shape_of,
)
from configapi.binding.extractor import extract, is_zero, render
from configapi.binding.naming import EXCLUDE, external_name, to_snake_case
from configapi.binding.resolver import FieldSlot, resolve
from configapi.binding.schema import FieldSchema, FieldType, derive
from configapi.binding.types import Duration, Number, Size

__all__ = [
    "bind",
    "coerce",
    "FieldKind",
    "TypeShape",
    "config_field",
    "describe",
    "shape_of",
    "extract",
    "is_zero",
    "render",
    "EXCLUDE",
    "external_name",
    "to_snake_case",
    "FieldSlot",
    "resolve",
    "FieldSchema",
    "FieldType",
    "derive",
    "Duration",
    "Number",
    "Size",
]
