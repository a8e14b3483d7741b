"""Metric model and the accumulator handed to gathering plugins."""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class Metric:
    """A single measurement: name, tags, fields and a nanosecond timestamp."""

    name: str
    tags: Dict[str, str] = field(default_factory=dict)
    fields: Dict[str, Any] = field(default_factory=dict)
    time: int = field(default_factory=time.time_ns)

    def copy(self) -> "Metric":
        return Metric(self.name, dict(self.tags), dict(self.fields), self.time)


class Accumulator:
    """Collects metrics produced by a plugin and forwards them to a sink.

    ``prepare`` lets the owning running plugin rename, tag or filter each
    metric; returning None drops it.
    """

    def __init__(
        self,
        source: str,
        sink: Callable[[Metric], None],
        prepare: Optional[Callable[[Metric], Optional[Metric]]] = None,
    ):
        self.source = source
        self._sink = sink
        self._prepare = prepare

    def add_fields(
        self,
        name: str,
        fields: Dict[str, Any],
        tags: Optional[Dict[str, str]] = None,
        timestamp: Optional[int] = None,
    ) -> None:
        metric = Metric(name, dict(tags or {}), dict(fields))
        if timestamp is not None:
            metric.time = timestamp
        self.add_metric(metric)

    def add_metric(self, metric: Metric) -> None:
        if self._prepare is not None:
            metric = self._prepare(metric)
            if metric is None:
                return
        self._sink(metric)

    def add_error(self, error: Exception) -> None:
        logger.error(f"[{self.source}] Error in plugin: {error}")
