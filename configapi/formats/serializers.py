"""Output data formats."""

import json
import math
from dataclasses import dataclass
from typing import Any, Dict, List

from configapi.agent.interfaces import Serializer
from configapi.agent.metric import Metric
from configapi.binding.descriptor import config_field
from configapi.binding.types import SECOND, Duration

SERIALIZER_FORMATS = ("influx", "json")


@dataclass
class SerializerConfig:
    data_format: str = ""
    timestamp_units: Duration = config_field(default=Duration(0), name="json_timestamp_units")
    influx_sort_fields: bool = False
    influx_max_line_bytes: int = 0


def _escape(text: str, chars: str) -> str:
    for ch in "\\" + chars:
        text = text.replace(ch, "\\" + ch)
    return text


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return f"{value}i"
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise ValueError(f"unsupported float value {value}")
        return repr(value)
    return f'"{_escape(str(value), chr(34))}"'


class InfluxSerializer(Serializer):
    """Writes influx line protocol, one line per metric.

    With ``max_line_bytes`` set, metrics whose line would exceed the limit
    are split across several lines sharing the same series and timestamp.
    """

    def __init__(self, sort_fields: bool = False, max_line_bytes: int = 0):
        self.sort_fields = sort_fields
        self.max_line_bytes = max_line_bytes

    def _series(self, metric: Metric) -> str:
        parts = [_escape(metric.name, ", ")]
        for key in sorted(metric.tags):
            value = metric.tags[key]
            if key == "" or value == "":
                continue
            parts.append(f"{_escape(key, ',= ')}={_escape(value, ',= ')}")
        return ",".join(parts)

    def serialize(self, metric: Metric) -> bytes:
        series = self._series(metric)
        suffix = f" {metric.time}\n"
        keys = sorted(metric.fields) if self.sort_fields else list(metric.fields)

        pairs = []
        for key in keys:
            try:
                pairs.append(f"{_escape(key, ',= ')}={_format_value(metric.fields[key])}")
            except ValueError:
                continue
        if not pairs:
            return b""

        lines: List[str] = []
        current: List[str] = []
        for pair in pairs:
            candidate = current + [pair]
            size = len(f"{series} {','.join(candidate)}{suffix}".encode("utf-8"))
            if current and self.max_line_bytes and size > self.max_line_bytes:
                lines.append(f"{series} {','.join(current)}{suffix}")
                current = [pair]
            else:
                current = candidate
        lines.append(f"{series} {','.join(current)}{suffix}")
        return "".join(lines).encode("utf-8")


class JSONSerializer(Serializer):
    """Writes one JSON document per metric, or a ``metrics`` array per batch."""

    def __init__(self, timestamp_units: Duration):
        self.timestamp_units = timestamp_units

    def _document(self, metric: Metric) -> Dict[str, Any]:
        return {
            "fields": metric.fields,
            "name": metric.name,
            "tags": metric.tags,
            "timestamp": metric.time // int(self.timestamp_units),
        }

    def serialize(self, metric: Metric) -> bytes:
        return (json.dumps(self._document(metric)) + "\n").encode("utf-8")

    def serialize_batch(self, metrics: List[Metric]) -> bytes:
        documents = [self._document(m) for m in metrics]
        return (json.dumps({"metrics": documents}) + "\n").encode("utf-8")


def new_serializer(config: SerializerConfig) -> Serializer:
    """Build the serializer selected by ``config.data_format``."""
    data_format = config.data_format or "influx"
    if data_format == "influx":
        return InfluxSerializer(config.influx_sort_fields, config.influx_max_line_bytes)
    if data_format == "json":
        units = config.timestamp_units
        if units < 0:
            raise ValueError(f"json_timestamp_units must be positive, got {units}")
        return JSONSerializer(Duration(units or SECOND))
    raise ValueError(f"invalid data format: {data_format}")
