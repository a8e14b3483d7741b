"""Input data formats.

``ParserConfig`` is bound from the same field map as the input that uses it,
so its field names share the input's namespace (``data_format``,
``json_query`` and so on).
"""

import json
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from configapi.agent.interfaces import Parser
from configapi.agent.metric import Metric

logger = logging.getLogger(__name__)

PARSER_FORMATS = ("influx", "json", "value")

_TIME_UNITS = {
    "unix": 1_000_000_000,
    "unix_ms": 1_000_000,
    "unix_us": 1_000,
    "unix_ns": 1,
}


@dataclass
class ParserConfig:
    data_format: str = ""
    metric_name: str = ""
    json_strict: bool = False
    json_name_key: str = ""
    json_query: str = ""
    json_time_key: str = ""
    json_time_format: str = ""
    tag_keys: List[str] = field(default_factory=list)
    json_string_fields: List[str] = field(default_factory=list)
    default_tags: Dict[str, str] = field(default_factory=dict)
    data_type: str = ""


def _apply_default_tags(metrics: List[Metric], tags: Dict[str, str]) -> List[Metric]:
    for metric in metrics:
        for key, value in tags.items():
            metric.tags.setdefault(key, value)
    return metrics


# ----------------------------------------------------------------------
# Influx line protocol
# ----------------------------------------------------------------------


def _split_unescaped(text: str, sep: str, respect_quotes: bool = False) -> List[str]:
    """Split on ``sep`` unless it is backslash-escaped or inside quotes."""
    parts, current = [], []
    quoted = False
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == "\\" and i + 1 < len(text):
            current.append(text[i : i + 2])
            i += 2
            continue
        if respect_quotes and ch == '"':
            quoted = not quoted
        if ch == sep and not quoted:
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
        i += 1
    if quoted:
        raise ValueError("unterminated string")
    parts.append("".join(current))
    return parts


_UNESCAPE = re.compile(r"\\([,= \"\\])")


def _unescape(text: str) -> str:
    return _UNESCAPE.sub(r"\1", text)


def _parse_field_value(raw: str) -> Any:
    if raw.startswith('"'):
        if len(raw) < 2 or not raw.endswith('"'):
            raise ValueError(f"invalid string field {raw!r}")
        return _unescape(raw[1:-1])
    if raw in ("t", "T", "true", "True", "TRUE"):
        return True
    if raw in ("f", "F", "false", "False", "FALSE"):
        return False
    if raw.endswith("i") or raw.endswith("u"):
        return int(raw[:-1])
    return float(raw)


class InfluxParser(Parser):
    """Parses influx line protocol: ``name,tag=v field=1i,other=2.5 1700000000000000000``."""

    def __init__(self, default_tags: Optional[Dict[str, str]] = None):
        self.default_tags = dict(default_tags or {})

    def parse_line(self, line: str) -> Metric:
        sections = [s for s in _split_unescaped(line, " ", respect_quotes=True) if s != ""]
        if len(sections) not in (2, 3):
            raise ValueError(f"invalid line {line!r}")

        series = _split_unescaped(sections[0], ",")
        name = _unescape(series[0])
        if not name:
            raise ValueError(f"missing measurement in {line!r}")
        tags = {}
        for pair in series[1:]:
            key, sep, value = pair.partition("=")
            if not sep:
                raise ValueError(f"invalid tag {pair!r}")
            tags[_unescape(key)] = _unescape(value)

        fields = {}
        for pair in _split_unescaped(sections[1], ",", respect_quotes=True):
            key, sep, value = pair.partition("=")
            if not sep:
                raise ValueError(f"invalid field {pair!r}")
            fields[_unescape(key)] = _parse_field_value(value)

        metric = Metric(name, tags, fields)
        if len(sections) == 3:
            metric.time = int(sections[2])
        return metric

    def parse(self, data: bytes) -> List[Metric]:
        metrics = []
        for line in data.decode("utf-8").splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            metrics.append(self.parse_line(line))
        return _apply_default_tags(metrics, self.default_tags)


# ----------------------------------------------------------------------
# JSON
# ----------------------------------------------------------------------


def _query(document: Any, path: str) -> Any:
    """Follow a dotted path (``a.b.0.c``) into ``document``."""
    for part in path.split("."):
        if isinstance(document, dict):
            if part not in document:
                raise ValueError(f"json_query {path!r} did not match")
            document = document[part]
        elif isinstance(document, list) and part.isdigit() and int(part) < len(document):
            document = document[int(part)]
        else:
            raise ValueError(f"json_query {path!r} did not match")
    return document


def _flatten(prefix: str, value: Any, out: Dict[str, Any]) -> None:
    if isinstance(value, dict):
        for key, item in value.items():
            _flatten(f"{prefix}_{key}" if prefix else key, item, out)
    elif isinstance(value, list):
        for i, item in enumerate(value):
            _flatten(f"{prefix}_{i}" if prefix else str(i), item, out)
    else:
        out[prefix] = value


class JSONParser(Parser):
    """Parses JSON objects (or arrays of objects) into one metric each."""

    def __init__(self, config: ParserConfig):
        self.metric_name = config.metric_name
        self.strict = config.json_strict
        self.name_key = config.json_name_key
        self.query = config.json_query
        self.time_key = config.json_time_key
        self.time_format = config.json_time_format
        self.tag_keys = list(config.tag_keys)
        self.string_fields = list(config.json_string_fields)
        self.default_tags = dict(config.default_tags)

    def _timestamp(self, value: Any) -> int:
        if self.time_format in _TIME_UNITS:
            return int(float(value) * _TIME_UNITS[self.time_format])
        parsed = datetime.strptime(str(value), self.time_format)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return int(parsed.timestamp() * 1_000_000_000)

    def _parse_object(self, obj: Dict[str, Any]) -> Metric:
        flat: Dict[str, Any] = {}
        _flatten("", obj, flat)

        metric = Metric(self.metric_name)
        for key, value in flat.items():
            if key in self.tag_keys:
                metric.tags[key] = str(value)
            elif key == self.name_key and isinstance(value, str):
                metric.name = value
            elif key == self.time_key and self.time_key:
                metric.time = self._timestamp(value)
            elif isinstance(value, bool):
                metric.fields[key] = value
            elif isinstance(value, (int, float)):
                metric.fields[key] = float(value)
            elif isinstance(value, str) and key in self.string_fields:
                metric.fields[key] = value

        if self.time_key and self.time_key not in flat:
            raise ValueError(f"time key {self.time_key!r} not found")
        return metric

    def parse(self, data: bytes) -> List[Metric]:
        document = json.loads(data)
        if self.query:
            document = _query(document, self.query)

        if isinstance(document, dict):
            document = [document]
        if not isinstance(document, list):
            raise ValueError("JSON value is not an object or array")

        metrics = []
        for item in document:
            if not isinstance(item, dict):
                if self.strict:
                    raise ValueError(f"JSON array element is not an object: {item!r}")
                logger.debug(f"Skipping non-object JSON element: {item!r}")
                continue
            metrics.append(self._parse_object(item))
        return _apply_default_tags(metrics, self.default_tags)


# ----------------------------------------------------------------------
# Single value
# ----------------------------------------------------------------------


_VALUE_TYPES = ("integer", "float", "long", "string", "boolean")


class ValueParser(Parser):
    """Parses a single value per payload into a ``value`` field."""

    def __init__(self, metric_name: str, data_type: str, default_tags: Optional[Dict[str, str]] = None):
        self.metric_name = metric_name
        self.data_type = data_type or "float"
        self.default_tags = dict(default_tags or {})

    def _convert(self, text: str) -> Any:
        if self.data_type in ("integer", "long"):
            return int(text)
        if self.data_type == "float":
            return float(text)
        if self.data_type == "boolean":
            lowered = text.lower()
            if lowered not in ("true", "false"):
                raise ValueError(f"invalid boolean {text!r}")
            return lowered == "true"
        return text

    def parse(self, data: bytes) -> List[Metric]:
        text = data.decode("utf-8").strip()
        if not text:
            return []
        # Multi-line payloads report only the last value.
        text = text.splitlines()[-1].strip()
        metric = Metric(self.metric_name, fields={"value": self._convert(text)})
        return _apply_default_tags([metric], self.default_tags)


def new_parser(config: ParserConfig) -> Parser:
    """Build the parser selected by ``config.data_format``."""
    data_format = config.data_format or "influx"
    if data_format == "influx":
        return InfluxParser(config.default_tags)
    if data_format == "json":
        return JSONParser(config)
    if data_format == "value":
        if config.data_type and config.data_type not in _VALUE_TYPES:
            raise ValueError(f"invalid data_type {config.data_type!r}")
        return ValueParser(config.metric_name, config.data_type, config.default_tags)
    raise ValueError(f"invalid data format: {data_format}")
