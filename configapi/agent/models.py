"""Running plugin wrappers and their per-kind configuration.

A running plugin pairs a plugin object (itself a configuration dataclass)
with a wrapper configuration that holds the settings every plugin of its
kind shares: name, alias, filters, intervals and batching limits.
"""

import asyncio
import logging
import secrets
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Deque, Dict, List, Optional

from configapi.agent.filter import Filter
from configapi.agent.interfaces import Aggregator, Input, Output, Processor
from configapi.agent.metric import Accumulator, Metric
from configapi.binding.descriptor import config_field
from configapi.binding.naming import EXCLUDE
from configapi.binding.types import MILLISECOND, SECOND, Duration

logger = logging.getLogger(__name__)


class PluginState(str, Enum):
    """Running plugin lifecycle states."""

    CREATED = "created"
    RUNNING = "running"
    STOPPING = "stopping"
    DEAD = "dead"


def new_plugin_id() -> str:
    """Generate a random 64-bit plugin ID as 16 hex digits."""
    return f"{secrets.randbits(64):016x}"


@dataclass
class InputConfig:
    name: str = ""
    alias: str = ""
    interval: Duration = Duration(0)
    collection_jitter: Duration = Duration(0)
    precision: Duration = Duration(0)
    name_override: str = ""
    measurement_prefix: str = ""
    measurement_suffix: str = ""
    tags: Dict[str, str] = field(default_factory=dict)
    filter: Filter = config_field(default_factory=Filter, name=EXCLUDE)


@dataclass
class ProcessorConfig:
    name: str = ""
    alias: str = ""
    order: int = 0
    filter: Filter = config_field(default_factory=Filter, name=EXCLUDE)


@dataclass
class AggregatorConfig:
    name: str = ""
    alias: str = ""
    drop_original: bool = False
    period: Duration = Duration(30 * SECOND)
    delay: Duration = Duration(100 * MILLISECOND)
    grace: Duration = Duration(0)
    name_override: str = ""
    measurement_prefix: str = ""
    measurement_suffix: str = ""
    tags: Dict[str, str] = field(default_factory=dict)
    filter: Filter = config_field(default_factory=Filter, name=EXCLUDE)


@dataclass
class OutputConfig:
    name: str = ""
    alias: str = ""
    flush_interval: Duration = Duration(0)
    flush_jitter: Duration = Duration(0)
    metric_batch_size: int = 0
    metric_buffer_limit: int = 0
    name_override: str = ""
    name_prefix: str = ""
    name_suffix: str = ""
    filter: Filter = config_field(default_factory=Filter, name=EXCLUDE)


class RunningPlugin:
    """State shared by all running plugin wrappers."""

    category = ""

    def __init__(self, plugin: Any, config: Any):
        self.id = new_plugin_id()
        self.plugin = plugin
        self.config = config
        self.task: Optional[asyncio.Task] = None
        self._state = PluginState.CREATED
        self._stop_event = asyncio.Event()

    @property
    def state(self) -> PluginState:
        return self._state

    def set_state(self, state: PluginState) -> None:
        self._state = state

    @property
    def stop_requested(self) -> bool:
        return self._stop_event.is_set()

    def log_name(self) -> str:
        if not self.config.alias:
            return f"{self.category}.{self.config.name}"
        return f"{self.category}.{self.config.name}::{self.config.alias}"

    def init(self) -> None:
        """Compile the filter and run the plugin's own ``init()`` if it has one."""
        self.config.filter.compile()
        init = getattr(self.plugin, "init", None)
        if callable(init):
            init()

    def request_stop(self) -> None:
        if self._state in (PluginState.CREATED, PluginState.RUNNING):
            self._state = PluginState.STOPPING
        self._stop_event.set()

    async def wait_for_stop(self, timeout: Optional[float]) -> None:
        """Sleep until ``timeout`` elapses or a stop is requested."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            pass

    def close(self) -> None:
        pass

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.log_name()} id={self.id} state={self._state.value}>"


def _rename(metric: Metric, override: str, prefix: str, suffix: str) -> None:
    if override:
        metric.name = override
    metric.name = f"{prefix}{metric.name}{suffix}"


class RunningInput(RunningPlugin):
    category = "inputs"

    def __init__(self, plugin: Input, config: InputConfig):
        super().__init__(plugin, config)
        self.default_tags: Dict[str, str] = {}

    def set_default_tags(self, tags: Dict[str, str]) -> None:
        self.default_tags = dict(tags)

    def make_metric(self, metric: Metric) -> Optional[Metric]:
        cfg = self.config
        _rename(metric, cfg.name_override, cfg.measurement_prefix, cfg.measurement_suffix)
        for key, value in {**self.default_tags, **cfg.tags}.items():
            metric.tags.setdefault(key, value)
        if not cfg.filter.select(metric):
            return None
        cfg.filter.modify(metric)
        if not metric.fields:
            return None
        return metric

    def gather(self, acc: Accumulator) -> None:
        self.plugin.gather(acc)


class RunningProcessor(RunningPlugin):
    category = "processors"

    def __init__(self, plugin: Processor, config: ProcessorConfig):
        super().__init__(plugin, config)

    @property
    def order(self) -> int:
        return self.config.order

    def apply(self, metrics: List[Metric]) -> List[Metric]:
        selected = [m for m in metrics if self.config.filter.select(m)]
        passed = [m for m in metrics if not self.config.filter.select(m)]
        if not selected:
            return metrics
        return passed + self.plugin.apply(selected)


class RunningAggregator(RunningPlugin):
    category = "aggregators"

    def __init__(self, plugin: Aggregator, config: AggregatorConfig):
        super().__init__(plugin, config)

    @property
    def order(self) -> int:
        return 0

    def add(self, metric: Metric) -> bool:
        """Offer ``metric`` to the aggregator; True means drop the original."""
        if not self.config.filter.select(metric):
            return False
        candidate = metric.copy()
        self.config.filter.modify(candidate)
        if candidate.fields:
            self.plugin.add(candidate)
        return self.config.drop_original

    def make_metric(self, metric: Metric) -> Optional[Metric]:
        cfg = self.config
        _rename(metric, cfg.name_override, cfg.measurement_prefix, cfg.measurement_suffix)
        for key, value in cfg.tags.items():
            metric.tags.setdefault(key, value)
        return metric

    def push(self, acc: Accumulator) -> None:
        self.plugin.push(acc)
        self.plugin.reset()

    def apply(self, metrics: List[Metric]) -> List[Metric]:
        return [m for m in metrics if not self.add(m)]


class RunningOutput(RunningPlugin):
    category = "outputs"

    def __init__(
        self,
        plugin: Output,
        config: OutputConfig,
        batch_size: int,
        buffer_limit: int,
    ):
        super().__init__(plugin, config)
        self.batch_size = config.metric_batch_size or batch_size
        self.buffer_limit = config.metric_buffer_limit or buffer_limit
        self.buffer: Deque[Metric] = deque(maxlen=self.buffer_limit)
        self.dropped = 0

    def add_metric(self, metric: Metric) -> None:
        if not self.config.filter.select(metric):
            return
        metric = metric.copy()
        self.config.filter.modify(metric)
        _rename(metric, self.config.name_override, self.config.name_prefix, self.config.name_suffix)
        if len(self.buffer) == self.buffer.maxlen:
            self.dropped += 1
        self.buffer.append(metric)

    def connect(self) -> None:
        self.plugin.connect()

    def write_batch(self) -> int:
        """Write up to one batch from the buffer; failed batches are requeued."""
        batch = []
        while self.buffer and len(batch) < self.batch_size:
            batch.append(self.buffer.popleft())
        if not batch:
            return 0
        try:
            self.plugin.write(batch)
        except Exception:
            self.buffer.extendleft(reversed(batch))
            raise
        return len(batch)

    def close(self) -> None:
        try:
            while self.buffer:
                self.write_batch()
        except Exception as e:
            logger.error(f"[{self.log_name()}] Error flushing on close, dropping {len(self.buffer)} metrics: {e}")
        self.plugin.close()
