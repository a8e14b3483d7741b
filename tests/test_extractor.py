"""Tests for value extraction."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from configapi.binding import EXCLUDE, Duration, Number, Size, bind, config_field, extract, is_zero
from configapi.binding.types import MILLISECOND, SECOND


@dataclass
class Common:
    alias: str = ""
    interval: Duration = Duration(0)


@dataclass
class Endpoint:
    url: str = ""
    weight: int = 0


@dataclass
class Sample:
    common: Common = config_field(default_factory=Common, embed=True)
    name: str = ""
    ratio: Number = Number(0)
    timeout: Duration = Duration(0)
    max_size: Size = Size(0)
    servers: List[str] = field(default_factory=list)
    labels: Dict[str, Any] = field(default_factory=dict)
    endpoint: Endpoint = field(default_factory=Endpoint)
    endpoints: List[Endpoint] = field(default_factory=list)
    parent: Optional[Endpoint] = None
    extra: Any = None
    hidden: str = config_field(default="secret", name=EXCLUDE)
    _private: str = "x"


class TestIsZero:
    def test_zero_values(self):
        for value in (None, "", 0, 0.0, False, [], {}, (), Endpoint()):
            assert is_zero(value)

    def test_non_zero_values(self):
        for value in ("a", 1, True, [0], {"a": 0}, Endpoint(weight=1)):
            assert not is_zero(value)


class TestExtract:
    """Tests for extract function."""

    def test_empty_instance(self):
        assert extract(Sample()) == {}

    def test_none(self):
        assert extract(None) == {}

    def test_values_rendered(self):
        s = Sample(
            common=Common(alias="a", interval=Duration(10 * SECOND)),
            ratio=Number(2),
            timeout=Duration(1500 * MILLISECOND),
            max_size=Size(64 * 1024 ** 2),
            servers=["a", "b"],
            labels={"d": Duration(SECOND), "n": 1},
            endpoint=Endpoint(url="http://x"),
            endpoints=[Endpoint(weight=2)],
            extra={"when": Duration(2 * SECOND), "items": (1, 2)},
        )
        assert extract(s) == {
            "alias": "a",
            "interval": "10s",
            "ratio": 2.0,
            "timeout": "1.5s",
            "max_size": "64MiB",
            "servers": ["a", "b"],
            "labels": {"d": "1s", "n": 1},
            "endpoint": {"url": "http://x"},
            "endpoints": [{"weight": 2}],
            "extra": {"when": "2s", "items": [1, 2]},
        }

    def test_hidden_and_private_fields_skipped(self):
        snapshot = extract(Sample(name="n"))
        assert snapshot == {"name": "n"}

    def test_empty_elements_kept_in_collections(self):
        snapshot = extract(Sample(endpoints=[Endpoint(), Endpoint(url="u")], labels={"a": ""}))
        assert snapshot["endpoints"] == [{}, {"url": "u"}]
        assert snapshot["labels"] == {"a": ""}

    def test_snapshot_binds_back(self):
        fields = {
            "alias": "a",
            "interval": "1m30s",
            "max_size": "1KiB512B",
            "timeout": "250ms",
            "servers": ["x"],
            "endpoints": [{"url": "u", "weight": 3}],
            "parent": {"url": "p"},
        }
        s = Sample()
        bind(fields, s)
        snapshot = extract(s)
        assert snapshot == fields

        copy = Sample()
        bind(snapshot, copy)
        assert copy == s
