"""Tests for field resolution and value binding."""

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

from configapi.binding import EXCLUDE, Duration, Number, Size, bind, config_field, resolve
from configapi.binding.types import MILLISECOND, SECOND
from configapi.errors import BadRequestError, BindError


@dataclass
class Common:
    alias: str = ""
    interval: Duration = Duration(10 * SECOND)


@dataclass
class Endpoint:
    url: str = ""
    weight: int = 1


@dataclass(frozen=True)
class FrozenPoint:
    x: int = 0


@dataclass
class Sample:
    common: Common = config_field(default_factory=Common, embed=True)
    name: str = ""
    count: int = 0
    ratio: float = 0.0
    level: Number = Number(0)
    enabled: bool = False
    timeout: Duration = Duration(0)
    max_size: Size = Size(0)
    servers: List[str] = field(default_factory=list)
    ports: Tuple[int, ...] = ()
    labels: Dict[str, str] = field(default_factory=dict)
    endpoint: Endpoint = field(default_factory=Endpoint)
    endpoints: List[Endpoint] = field(default_factory=list)
    by_name: Dict[str, Endpoint] = field(default_factory=dict)
    extra: Any = None
    parent: Optional[Endpoint] = None
    renamed: str = config_field(default="", name="json_renamed")
    hidden: str = config_field(default="", name=EXCLUDE)
    point: FrozenPoint = field(default_factory=FrozenPoint)
    callback: Optional[Callable[[], None]] = None
    _secret: str = config_field(default="", name="secret")
    _private: str = ""


class TestResolve:
    """Tests for resolve function."""

    def test_convention_name(self):
        s = Sample()
        slot = resolve(s, "max_size")
        assert slot.owner is s
        assert slot.field.attr == "max_size"

    def test_embedded_fields_resolve_on_sub_object(self):
        s = Sample()
        slot = resolve(s, "alias")
        assert slot.owner is s.common

    def test_override_replaces_convention_name(self):
        assert resolve(Sample(), "json_renamed").field.attr == "renamed"
        assert resolve(Sample(), "renamed") is None

    def test_excluded_and_private_never_match(self):
        assert resolve(Sample(), "hidden") is None
        assert resolve(Sample(), "_private") is None

    def test_private_field_with_override_is_unsettable(self):
        slot = resolve(Sample(), "secret")
        assert slot is not None
        assert not slot.settable

    def test_unknown_name_and_none_destination(self):
        assert resolve(Sample(), "nope") is None
        assert resolve(None, "name") is None


class TestBindScalars:
    """Tests for binding scalar values."""

    def test_plain_values(self):
        s = Sample()
        bind({"name": "a", "count": 3, "ratio": 1, "enabled": True, "level": 4}, s)
        assert s.name == "a"
        assert s.count == 3
        assert s.ratio == 1.0 and isinstance(s.ratio, float)
        assert s.enabled is True
        assert isinstance(s.level, Number) and s.level == 4.0

    def test_integral_float_into_integer(self):
        s = Sample()
        bind({"count": 5.0}, s)
        assert s.count == 5 and isinstance(s.count, int)

    def test_duration_sources(self):
        s = Sample()
        bind({"timeout": "1m30s"}, s)
        assert s.timeout == Duration.parse("1m30s")
        bind({"timeout": 2}, s)
        assert s.timeout == 2 * SECOND
        bind({"timeout": timedelta(milliseconds=250)}, s)
        assert s.timeout == 250 * MILLISECOND
        assert isinstance(s.timeout, Duration)

    def test_size_sources(self):
        s = Sample()
        bind({"max_size": "64MiB"}, s)
        assert s.max_size == 64 * 1024 ** 2
        bind({"max_size": 10}, s)
        assert s.max_size == 10 and isinstance(s.max_size, Size)

    def test_embedded_field(self):
        s = Sample()
        bind({"alias": "x", "interval": "5s"}, s)
        assert s.common.alias == "x"
        assert s.common.interval == 5 * SECOND

    def test_any_and_nullable(self):
        s = Sample()
        bind({"extra": {"k": [1, 2]}, "parent": None}, s)
        assert s.extra == {"k": [1, 2]}
        assert s.parent is None

    def test_unknown_and_excluded_keys_ignored(self):
        s = Sample()
        bind({"nope": 1, "hidden": "x", "_private": "y"}, s)
        assert s.hidden == ""
        assert s._private == ""


class TestBindComposite:
    """Tests for binding sequences, maps and nested objects."""

    def test_sequences(self):
        s = Sample()
        bind({"servers": ["a", "b"], "ports": [80, 443]}, s)
        assert s.servers == ["a", "b"]
        assert s.ports == (80, 443)

    def test_map(self):
        s = Sample()
        bind({"labels": {"dc": "eu", "rack": "1"}}, s)
        assert s.labels == {"dc": "eu", "rack": "1"}

    def test_nested_object_is_fresh_instance(self):
        s = Sample()
        before = s.endpoint
        bind({"endpoint": {"url": "http://x"}}, s)
        assert s.endpoint is not before
        assert s.endpoint == Endpoint(url="http://x", weight=1)

    def test_nullable_object_allocated(self):
        s = Sample()
        bind({"parent": {"weight": 3}}, s)
        assert s.parent == Endpoint(weight=3)

    def test_object_elements(self):
        s = Sample()
        bind(
            {
                "endpoints": [{"url": "a"}, {"url": "b", "weight": 2}],
                "by_name": {"main": {"url": "m"}},
            },
            s,
        )
        assert s.endpoints == [Endpoint(url="a"), Endpoint(url="b", weight=2)]
        assert s.by_name == {"main": Endpoint(url="m")}


class TestBindErrors:
    """Tests for bind failures."""

    @pytest.mark.parametrize(
        "fields, path",
        [
            ({"count": "3"}, "count"),
            ({"count": 1.5}, "count"),
            ({"count": True}, "count"),
            ({"ratio": "1"}, "ratio"),
            ({"enabled": 1}, "enabled"),
            ({"name": 5}, "name"),
            ({"timeout": "soon"}, "timeout"),
            ({"max_size": "lots"}, "max_size"),
            ({"max_size": -1}, "max_size"),
            ({"servers": "a"}, "servers"),
            ({"servers": ["a", 1]}, "servers[1]"),
            ({"labels": {"dc": 1}}, "labels.dc"),
            ({"endpoint": "x"}, "endpoint"),
            ({"endpoints": [{"url": "a"}, {"weight": "x"}]}, "endpoints[1].weight"),
            ({"name": None}, "name"),
            ({"callback": "f"}, "callback"),
            ({"ratio": 10**400}, "ratio"),
            ({"ratio": float("inf")}, "ratio"),
            ({"level": float("nan")}, "level"),
            ({"timeout": float("inf")}, "timeout"),
            ({"timeout": float("nan")}, "timeout"),
            ({"timeout": 10**12}, "timeout"),
            ({"timeout": timedelta(days=999_999_999)}, "timeout"),
        ],
    )
    def test_error_path(self, fields, path):
        with pytest.raises(BindError) as exc:
            bind(fields, Sample())
        assert exc.value.field_path == path

    def test_numeric_duration_limit_matches_text_limit(self):
        sample = Sample()
        bind({"timeout": 9_000_000_000}, sample)
        text = str(sample.timeout)
        bind({"timeout": text}, Sample())
        with pytest.raises(BindError) as exc:
            bind({"timeout": 9_300_000_000}, Sample())
        assert "out of range" in str(exc.value)

    def test_bind_error_is_bad_request(self):
        with pytest.raises(BadRequestError):
            bind({"count": "x"}, Sample())

    def test_parse_failure_quotes_text(self):
        with pytest.raises(BindError) as exc:
            bind({"timeout": "soon"}, Sample())
        assert "'soon'" in str(exc.value)

    def test_unsettable_field(self):
        with pytest.raises(BindError) as exc:
            bind({"secret": "x"}, Sample())
        assert exc.value.field_path == "secret"

    def test_frozen_nested_object(self):
        with pytest.raises(BindError) as exc:
            bind({"point": {"x": 1}}, Sample())
        assert exc.value.field_path == "point.x"

    def test_sorted_order_without_rollback(self):
        s = Sample()
        with pytest.raises(BindError) as exc:
            bind({"name": "kept", "count": "bad", "ratio": 2.0}, s)
        # "count" sorts first, so nothing was applied before it
        assert exc.value.field_path == "count"
        assert s.name == ""

        s = Sample()
        with pytest.raises(BindError):
            bind({"alias": "kept", "count": "bad"}, s)
        assert s.common.alias == "kept"
