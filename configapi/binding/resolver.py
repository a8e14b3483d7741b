"""Locate the field slot an external field name refers to."""

import dataclasses
from dataclasses import dataclass
from typing import Any, Optional

from configapi.binding.descriptor import FieldDescriptor, describe_instance


@dataclass(frozen=True)
class FieldSlot:
    """A resolved field: the object that owns it plus its descriptor."""

    owner: Any
    field: FieldDescriptor

    @property
    def settable(self) -> bool:
        return self.field.settable

    def set(self, value: Any) -> None:
        setattr(self.owner, self.field.attr, value)


def resolve(dest: Any, name: str) -> Optional[FieldSlot]:
    """Find the slot on ``dest`` addressed by the external ``name``.

    Embedded (composed) sub-objects are searched as if their fields belonged
    to ``dest``. Returns None when nothing matches; callers treat that as
    extra input to ignore. A match on a slot that cannot be written is still
    returned, so the caller can report it.
    """
    if dest is None or not dataclasses.is_dataclass(dest) or isinstance(dest, type):
        return None

    for field in describe_instance(dest).fields:
        if field.embedded:
            slot = resolve(getattr(dest, field.attr, None), name)
            if slot is not None:
                return slot
        if field.matches(name):
            return FieldSlot(owner=dest, field=field)
    return None
