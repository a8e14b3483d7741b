"""Derive a field schema from a configuration type.

The schema is published to external tooling as the authoritative description
of what a plugin type accepts, so derivation fails loudly with
``SchemaDerivationError`` instead of skipping fields it cannot describe.
"""

from enum import Enum
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, Field

from configapi.binding.descriptor import FieldKind, TypeShape, describe
from configapi.binding.extractor import is_zero, render
from configapi.errors import SchemaDerivationError


class FieldType(str, Enum):
    """Field type tags published in schemas."""

    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOL = "bool"
    DURATION = "duration"
    SIZE = "size"
    ANY = "any"
    ARRAY = "array"
    MAP = "map"
    OBJECT = "object"
    UNKNOWN = "unknown"


_KIND_TO_TYPE = {
    FieldKind.STRING: FieldType.STRING,
    FieldKind.INTEGER: FieldType.INTEGER,
    FieldKind.FLOAT: FieldType.FLOAT,
    FieldKind.NUMBER: FieldType.FLOAT,
    FieldKind.BOOL: FieldType.BOOL,
    FieldKind.DURATION: FieldType.DURATION,
    FieldKind.SIZE: FieldType.SIZE,
    FieldKind.ANY: FieldType.ANY,
    FieldKind.ARRAY: FieldType.ARRAY,
    FieldKind.MAP: FieldType.MAP,
    FieldKind.OBJECT: FieldType.OBJECT,
}


class FieldSchema(BaseModel):
    """Describes the accepted shape of a single configuration field."""

    type: FieldType = Field(..., description="Field type tag")
    default: Optional[Any] = Field(default=None, description="Default value, when non-empty")
    format: Optional[str] = Field(default=None, description="Type-specific format hint, e.g. 'url'")
    required: bool = Field(default=False, description="Whether the field must be provided")
    sub_type: Optional[FieldType] = Field(
        default=None, description="Element type of arrays and maps; 'object' for objects"
    )
    sub_fields: Optional[Dict[str, "FieldSchema"]] = Field(
        default=None, description="Nested fields of objects or object elements"
    )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with unset members left out."""
        return self.model_dump(mode="json", exclude_defaults=True)


FieldSchema.model_rebuild()


def field_type(shape: TypeShape) -> FieldType:
    return _KIND_TO_TYPE.get(shape.kind, FieldType.UNKNOWN)


def derive(target: Any) -> Dict[str, FieldSchema]:
    """Derive the field schema of a configuration type.

    Args:
        target: A freshly constructed ("zero value") instance, whose non-empty
            field values become schema defaults, or the dataclass itself.

    Returns:
        External field name to ``FieldSchema``.

    Raises:
        SchemaDerivationError: If a visible field has a type the engine
            cannot describe, or the type refers back to itself.
    """
    return _derive(target, ())


def _derive(target: Any, stack: Tuple[type, ...]) -> Dict[str, FieldSchema]:
    cls = target if isinstance(target, type) else type(target)
    instance = None if isinstance(target, type) else target
    if cls in stack:
        chain = " -> ".join(c.__name__ for c in stack + (cls,))
        raise SchemaDerivationError(f"cyclic configuration type: {chain}")
    stack = stack + (cls,)

    schema: Dict[str, FieldSchema] = {}
    for field in describe(cls).fields:
        shape = field.shape
        if not field.visible or shape.has_no_shape or shape.kind is FieldKind.ANY:
            continue
        value = getattr(instance, field.attr, None) if instance is not None else None
        where = f"{cls.__name__}.{field.attr}"

        if shape.kind is FieldKind.OBJECT:
            sub_fields = _derive(_nested_target(shape.py_type, value), stack)
            if field.embedded:
                schema.update(sub_fields)
            else:
                schema[field.name] = FieldSchema(
                    type=FieldType.OBJECT,
                    sub_type=FieldType.OBJECT,
                    sub_fields=sub_fields,
                )
            continue

        tag = field_type(shape)
        if tag is FieldType.UNKNOWN:
            raise SchemaDerivationError(f"unknown type for field {where}: {field.annotation!r}")

        fs = FieldSchema(type=tag, format=field.format or None, required=field.required)
        if not is_zero(value):
            fs.default = render(value, shape)

        if shape.is_collection:
            element = shape.element
            sub_type = field_type(element)
            if sub_type is FieldType.UNKNOWN:
                raise SchemaDerivationError(
                    f"unknown element type for field {where}: {field.annotation!r}"
                )
            fs.sub_type = sub_type
            if element.kind is FieldKind.OBJECT:
                fs.sub_fields = _derive(_nested_target(element.py_type, None), stack)

        schema[field.name] = fs
    return schema


def _nested_target(cls: type, value: Any) -> Any:
    """Pick what to derive a nested type from: its current value, a fresh one, or the class."""
    if value is not None and isinstance(value, cls):
        return value
    try:
        return cls()
    except TypeError:
        return cls
