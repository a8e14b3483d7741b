"""Built-in aggregator plugins."""

from dataclasses import dataclass, field
from typing import Dict, Tuple

from configapi.agent.interfaces import Aggregator
from configapi.agent.metric import Accumulator, Metric

SeriesKey = Tuple[str, Tuple[Tuple[str, str], ...]]


@dataclass
class _Series:
    name: str
    tags: Dict[str, str]
    fields: Dict[str, Tuple[float, float]]


@dataclass
class MinMax(Aggregator):
    """Tracks the minimum and maximum of every numeric field per series."""

    _cache: Dict[SeriesKey, _Series] = field(default_factory=dict, init=False, repr=False)

    def add(self, metric: Metric) -> None:
        key = (metric.name, tuple(sorted(metric.tags.items())))
        series = self._cache.get(key)
        if series is None:
            series = self._cache[key] = _Series(metric.name, dict(metric.tags), {})
        for name, value in metric.fields.items():
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                continue
            value = float(value)
            low, high = series.fields.get(name, (value, value))
            series.fields[name] = (min(low, value), max(high, value))

    def push(self, acc: Accumulator) -> None:
        for series in self._cache.values():
            fields = {}
            for name, (low, high) in series.fields.items():
                fields[f"{name}_min"] = low
                fields[f"{name}_max"] = high
            if fields:
                acc.add_fields(series.name, fields, series.tags)

    def reset(self) -> None:
        self._cache = {}
