"""Wire models for the plugin configuration API."""

from typing import Any, Dict

from pydantic import BaseModel, Field

from configapi.binding.schema import FieldSchema


class PluginConfigTypeInfo(BaseModel):
    """A plugin type and the configuration fields it accepts."""

    name: str = Field(..., description="Qualified plugin type name, e.g. 'inputs.cpu'")
    config: Dict[str, FieldSchema] = Field(default_factory=dict, description="Field name to field schema")

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "config": {k: v.to_dict() for k, v in self.config.items()}}


class PluginConfigCreate(BaseModel):
    """Create/update payload: a plugin type name and its field values."""

    name: str = Field(..., description="Qualified plugin type name, e.g. 'inputs.cpu'")
    config: Dict[str, Any] = Field(default_factory=dict, description="Field name to field value")


class PluginConfig(PluginConfigCreate):
    """Record passed to lifecycle hooks."""

    id: str = Field(..., description="Running plugin ID")
    name: str = Field(default="", description="Qualified plugin type name; empty on removal")


class RunningPlugin(BaseModel):
    """A running plugin instance and a snapshot of its configuration."""

    id: str = Field(..., description="Running plugin ID")
    name: str = Field(..., description="Display name, e.g. 'inputs.cpu' or 'inputs.cpu::alias'")
    config: Dict[str, Any] = Field(default_factory=dict, description="Current field values")
