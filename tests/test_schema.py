"""Tests for schema derivation."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import pytest

from configapi.binding import EXCLUDE, Duration, Number, Size, config_field, derive
from configapi.binding.schema import FieldType
from configapi.binding.types import SECOND
from configapi.builtin import register_builtin
from configapi.errors import SchemaDerivationError
from configapi.plugins.registry import CATEGORIES, PluginTypeRegistry


@dataclass
class Common:
    alias: str = ""
    interval: Duration = Duration(10 * SECOND)


@dataclass
class TLS:
    ca: str = config_field(default="", format="path")


@dataclass
class Endpoint:
    url: str = ""
    weight: int = 1


@dataclass
class HTTPInput:
    common: Common = config_field(default_factory=Common, embed=True)
    urls: List[str] = config_field(default_factory=lambda: ["http://localhost"], format="url", required=True)
    timeout: Duration = Duration(5 * SECOND)
    max_body: Size = Size(1024 * 1024)
    tls: TLS = field(default_factory=TLS)
    headers: Dict[str, str] = field(default_factory=dict)
    endpoints: List[Endpoint] = field(default_factory=list)
    weight: Number = Number(0)
    hook: Optional[Callable[[], None]] = None
    client: Any = None
    hidden: str = config_field(default="", name=EXCLUDE)
    _cache: dict = field(default_factory=dict)


@dataclass
class Node:
    name: str = ""
    child: Optional["Node"] = None


@dataclass
class WithTimestamp:
    when: datetime = field(default_factory=datetime.now)


@dataclass
class WithIntKeys:
    counts: Dict[int, str] = field(default_factory=dict)


@dataclass
class WithComplexElements:
    values: List[complex] = field(default_factory=list)


def _as_dict(schema):
    return {k: v.to_dict() for k, v in schema.items()}


class TestDerive:
    """Tests for derive function."""

    def test_full_schema(self):
        assert _as_dict(derive(HTTPInput())) == {
            "alias": {"type": "string"},
            "interval": {"type": "duration", "default": "10s"},
            "urls": {
                "type": "array",
                "default": ["http://localhost"],
                "format": "url",
                "required": True,
                "sub_type": "string",
            },
            "timeout": {"type": "duration", "default": "5s"},
            "max_body": {"type": "size", "default": "1MiB"},
            "tls": {
                "type": "object",
                "sub_type": "object",
                "sub_fields": {"ca": {"type": "string", "format": "path"}},
            },
            "headers": {"type": "map", "sub_type": "string"},
            "endpoints": {
                "type": "array",
                "sub_type": "object",
                "sub_fields": {
                    "url": {"type": "string"},
                    "weight": {"type": "integer", "default": 1},
                },
            },
            "weight": {"type": "float"},
        }

    def test_class_without_instance_has_no_defaults(self):
        schema = derive(HTTPInput)
        assert schema["timeout"].default is None
        assert schema["endpoints"].sub_fields["weight"].default == 1

    def test_defaults_follow_the_given_instance(self):
        schema = derive(HTTPInput(timeout=Duration(90 * SECOND), tls=TLS(ca="/etc/ca.pem")))
        assert schema["timeout"].default == "1m30s"
        assert schema["tls"].sub_fields["ca"].default == "/etc/ca.pem"

    def test_skipped_fields(self):
        schema = derive(HTTPInput())
        for name in ("hook", "client", "hidden", "_cache", "cache", "common"):
            assert name not in schema

    def test_unknown_field_type_raises(self):
        with pytest.raises(SchemaDerivationError):
            derive(WithTimestamp())

    def test_non_string_map_keys_raise(self):
        with pytest.raises(SchemaDerivationError):
            derive(WithIntKeys())

    def test_unknown_element_type_raises(self):
        with pytest.raises(SchemaDerivationError):
            derive(WithComplexElements())

    def test_cyclic_type_raises(self):
        with pytest.raises(SchemaDerivationError, match="cyclic"):
            derive(Node())


class TestBuiltinSchemas:
    """Every built-in plugin type must have a complete schema."""

    @pytest.fixture
    def registry(self):
        registry = PluginTypeRegistry()
        register_builtin(registry)
        return registry

    def test_all_builtin_types_derive(self, registry):
        allowed = set(FieldType)
        for category in CATEGORIES:
            for name in registry.names(category):
                schema = derive(registry.get(category, name)())
                for fs in schema.values():
                    assert fs.type in allowed

    def test_cpu_schema(self, registry):
        assert _as_dict(derive(registry.get("inputs", "cpu")())) == {
            "percpu": {"type": "bool", "default": True},
            "totalcpu": {"type": "bool", "default": True},
            "collect_cpu_time": {"type": "bool"},
            "report_active": {"type": "bool"},
            "core_tags": {"type": "bool"},
        }

    def test_rename_schema_nests_replacements(self, registry):
        schema = derive(registry.get("processors", "rename")())
        assert schema["replace"].to_dict() == {
            "type": "array",
            "sub_type": "object",
            "sub_fields": {
                "measurement": {"type": "string"},
                "tag": {"type": "string"},
                "field": {"type": "string"},
                "dest": {"type": "string"},
            },
        }

    def test_file_output_schema(self, registry):
        schema = _as_dict(derive(registry.get("outputs", "file")()))
        assert schema["files"] == {"type": "array", "default": ["stdout"], "sub_type": "string"}
        assert schema["rotation_max_size"] == {"type": "size"}
