"""Structural descriptors for plugin configuration types.

Configuration types are plain dataclasses. ``describe()`` turns one into a
``TypeDescriptor``: the list of its fields with their external names, value
shapes and annotations. The resolver, binder, schema deriver and extractor
all work from descriptors instead of poking at classes directly.

Field annotations are declared with ``config_field()``::

    @dataclass
    class HTTPConfig:
        url: str = config_field(default="", format="url", required=True)
        timeout: Duration = config_field(default=Duration(5 * SECOND))
        common: CommonConfig = config_field(default_factory=CommonConfig, embed=True)
        client: Any = config_field(default=None, name=EXCLUDE)
"""

import abc
import collections.abc
import dataclasses
import sys
import types
import typing
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from functools import lru_cache
from typing import Any, Optional, Tuple

from configapi.binding.naming import EXCLUDE, external_name
from configapi.binding.types import Duration, Number, Size

METADATA_KEY = "configapi"

_SEQUENCE_ORIGINS = (
    list,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
)
_MAPPING_ORIGINS = (
    dict,
    collections.abc.Mapping,
    collections.abc.MutableMapping,
)
_UNION_TYPES = (typing.Union, types.UnionType) if sys.version_info >= (3, 10) else (typing.Union,)


class FieldKind(str, Enum):
    """Value kinds the binding engine knows how to handle."""

    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    NUMBER = "number"
    BOOL = "bool"
    DURATION = "duration"
    SIZE = "size"
    ANY = "any"
    ARRAY = "array"
    MAP = "map"
    OBJECT = "object"
    FUNC = "func"
    INTERFACE = "interface"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class TypeShape:
    """Classified annotation: kind, concrete class and element shape."""

    kind: FieldKind
    py_type: Any = None
    element: Optional["TypeShape"] = None
    nullable: bool = False

    @property
    def is_collection(self) -> bool:
        return self.kind in (FieldKind.ARRAY, FieldKind.MAP)

    @property
    def has_no_shape(self) -> bool:
        """Function and interface values carry nothing serializable."""
        return self.kind in (FieldKind.FUNC, FieldKind.INTERFACE)


_ANY = TypeShape(FieldKind.ANY)


@dataclass(frozen=True)
class FieldDescriptor:
    """One configurable field of a dataclass."""

    attr: str
    name: Optional[str]
    override: Optional[str]
    shape: TypeShape
    annotation: Any = None
    embedded: bool = False
    exported: bool = True
    settable: bool = True
    format: str = ""
    required: bool = False

    @property
    def excluded(self) -> bool:
        return self.name is None

    @property
    def visible(self) -> bool:
        """Whether the field is part of the external surface."""
        return self.exported and not self.excluded

    def matches(self, name: str) -> bool:
        """Check whether ``name`` addresses this field.

        An explicit override is the only name a field answers to; without
        one, exported fields answer to their snake_case name.
        """
        if self.override is not None:
            return self.override != EXCLUDE and self.override == name
        return self.exported and self.name == name


@dataclass(frozen=True)
class TypeDescriptor:
    """Ordered field list of a configuration dataclass."""

    cls: type
    fields: Tuple[FieldDescriptor, ...]

    def new_instance(self) -> Any:
        return self.cls()


def config_field(
    *,
    default: Any = dataclasses.MISSING,
    default_factory: Any = dataclasses.MISSING,
    name: Optional[str] = None,
    format: str = "",
    required: bool = False,
    embed: bool = False,
    **kwargs: Any,
) -> Any:
    """Declare a dataclass field with configuration annotations.

    Args:
        default: Default value, as for ``dataclasses.field``.
        default_factory: Default factory, as for ``dataclasses.field``.
        name: External name override. ``EXCLUDE`` hides the field.
        format: Free-form format hint published in the schema (e.g. "url").
        required: Published in the schema; not enforced by the binder.
        embed: Flatten the field's dataclass into the owning type.
        **kwargs: Passed through to ``dataclasses.field``.
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[METADATA_KEY] = {
        "name": name,
        "format": format,
        "required": required,
        "embed": embed,
    }
    return dataclasses.field(
        default=default,
        default_factory=default_factory,
        metadata=metadata,
        **kwargs,
    )


def shape_of(annotation: Any) -> TypeShape:
    """Classify a type annotation into a ``TypeShape``."""
    origin = typing.get_origin(annotation)
    args = typing.get_args(annotation)

    if origin in _UNION_TYPES:
        members = [a for a in args if a is not type(None)]
        if len(members) == 1 and len(members) < len(args):
            return dataclasses.replace(shape_of(members[0]), nullable=True)
        return TypeShape(FieldKind.UNKNOWN, annotation)

    if annotation is Any:
        return _ANY

    if origin is collections.abc.Callable or annotation is collections.abc.Callable:
        return TypeShape(FieldKind.FUNC, annotation)

    if origin in _SEQUENCE_ORIGINS:
        element = shape_of(args[0]) if args else _ANY
        return TypeShape(FieldKind.ARRAY, list, element)

    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return TypeShape(FieldKind.ARRAY, tuple, shape_of(args[0]))
        return TypeShape(FieldKind.UNKNOWN, annotation)

    if origin in _MAPPING_ORIGINS:
        if args and args[0] is not str:
            return TypeShape(FieldKind.UNKNOWN, annotation)
        element = shape_of(args[1]) if args else _ANY
        return TypeShape(FieldKind.MAP, dict, element)

    if not isinstance(annotation, type):
        return TypeShape(FieldKind.UNKNOWN, annotation)

    # Order matters: bool and the domain scalars are int/float subclasses.
    if annotation is bool:
        return TypeShape(FieldKind.BOOL, bool)
    if issubclass(annotation, Duration) or annotation is timedelta:
        return TypeShape(FieldKind.DURATION, Duration)
    if issubclass(annotation, Size):
        return TypeShape(FieldKind.SIZE, Size)
    if issubclass(annotation, Number):
        return TypeShape(FieldKind.NUMBER, Number)
    if issubclass(annotation, Enum):
        return TypeShape(FieldKind.UNKNOWN, annotation)
    if issubclass(annotation, int):
        return TypeShape(FieldKind.INTEGER, int)
    if issubclass(annotation, float):
        return TypeShape(FieldKind.FLOAT, float)
    if issubclass(annotation, str):
        return TypeShape(FieldKind.STRING, str)
    if annotation is list:
        return TypeShape(FieldKind.ARRAY, list, _ANY)
    if annotation is tuple:
        return TypeShape(FieldKind.ARRAY, tuple, _ANY)
    if annotation is dict:
        return TypeShape(FieldKind.MAP, dict, _ANY)
    if dataclasses.is_dataclass(annotation):
        return TypeShape(FieldKind.OBJECT, annotation)
    if getattr(annotation, "_is_protocol", False) or isinstance(annotation, abc.ABCMeta):
        return TypeShape(FieldKind.INTERFACE, annotation)
    return TypeShape(FieldKind.UNKNOWN, annotation)


@lru_cache(maxsize=None)
def describe(cls: type) -> TypeDescriptor:
    """Build (and cache) the descriptor of a configuration dataclass.

    Raises:
        TypeError: If ``cls`` is not a dataclass.
    """
    if not (isinstance(cls, type) and dataclasses.is_dataclass(cls)):
        raise TypeError(f"{cls!r} is not a dataclass configuration type")

    hints = typing.get_type_hints(cls)
    frozen = cls.__dataclass_params__.frozen
    fields = []
    for f in dataclasses.fields(cls):
        options = f.metadata.get(METADATA_KEY, {})
        override = options.get("name")
        annotation = hints.get(f.name, f.type)
        exported = not f.name.startswith("_")
        fields.append(
            FieldDescriptor(
                attr=f.name,
                name=external_name(f.name, override),
                override=override,
                shape=shape_of(annotation),
                annotation=annotation,
                embedded=bool(options.get("embed")),
                exported=exported,
                settable=exported and not frozen,
                format=options.get("format") or "",
                required=bool(options.get("required")),
            )
        )
    return TypeDescriptor(cls=cls, fields=tuple(fields))


def describe_instance(obj: Any) -> TypeDescriptor:
    """Descriptor for an instance (or class) of a configuration dataclass."""
    return describe(obj if isinstance(obj, type) else type(obj))
