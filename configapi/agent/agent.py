"""The agent's running-instance model.

Tracks running inputs, processors (aggregators included) and outputs, and
runs each of them as its own asyncio task. Metrics gathered by inputs flow
through the processors in order and are buffered by every output until its
next flush.
"""

import asyncio
import logging
import threading
from typing import Awaitable, Callable, Dict, List, Optional, Union

from configapi.agent.metric import Accumulator, Metric
from configapi.agent.models import (
    PluginState,
    RunningAggregator,
    RunningInput,
    RunningOutput,
    RunningPlugin,
    RunningProcessor,
)
from configapi.binding.types import SECOND, Duration

logger = logging.getLogger(__name__)

RunningProcessorLike = Union[RunningProcessor, RunningAggregator]
Tick = Callable[[RunningPlugin], Awaitable[None]]


class Agent:
    """Holds the running plugin lists and schedules their execution."""

    def __init__(
        self,
        tags: Optional[Dict[str, str]] = None,
        interval: Duration = Duration(10 * SECOND),
        flush_interval: Duration = Duration(10 * SECOND),
        metric_batch_size: int = 1000,
        metric_buffer_limit: int = 10000,
    ):
        self.tags = dict(tags or {})
        self.interval = interval
        self.flush_interval = flush_interval
        self.metric_batch_size = metric_batch_size
        self.metric_buffer_limit = metric_buffer_limit

        self._lock = threading.Lock()
        self._inputs: List[RunningInput] = []
        self._processors: List[RunningProcessorLike] = []
        self._outputs: List[RunningOutput] = []

    # ------------------------------------------------------------------
    # Running lists
    # ------------------------------------------------------------------

    def running_inputs(self) -> List[RunningInput]:
        with self._lock:
            return list(self._inputs)

    def running_processors(self) -> List[RunningProcessorLike]:
        with self._lock:
            return list(self._processors)

    def running_outputs(self) -> List[RunningOutput]:
        with self._lock:
            return list(self._outputs)

    def add_input(self, ri: RunningInput) -> None:
        with self._lock:
            self._inputs.append(ri)

    def add_processor(self, rp: RunningProcessorLike) -> None:
        with self._lock:
            self._processors.append(rp)
            self._processors.sort(key=lambda p: p.order)

    def add_output(self, ro: RunningOutput) -> None:
        with self._lock:
            self._outputs.append(ro)

    def _remove(self, running: RunningPlugin) -> None:
        with self._lock:
            for plugins in (self._inputs, self._processors, self._outputs):
                if running in plugins:
                    plugins.remove(running)

    # ------------------------------------------------------------------
    # Run / stop
    # ------------------------------------------------------------------

    def run_input(self, ri: RunningInput) -> asyncio.Task:
        interval = ri.config.interval or self.interval
        return self._launch(ri, self._gather, interval)

    def run_processor(self, rp: RunningProcessorLike) -> asyncio.Task:
        if isinstance(rp, RunningAggregator):
            return self._launch(rp, self._push, rp.config.period)
        return self._launch(rp, None, None)

    def run_output(self, ro: RunningOutput) -> asyncio.Task:
        interval = ro.config.flush_interval or self.flush_interval
        return self._launch(ro, self._flush, interval)

    def stop_input(self, ri: RunningInput) -> None:
        ri.request_stop()

    def stop_processor(self, rp: RunningProcessorLike) -> None:
        rp.request_stop()

    def stop_output(self, ro: RunningOutput) -> None:
        ro.request_stop()

    async def shutdown(self) -> None:
        """Stop every running plugin and wait for all of them to finish."""
        running = self.running_inputs() + self.running_processors() + self.running_outputs()
        for plugin in running:
            plugin.request_stop()
        tasks = [p.task for p in running if p.task is not None]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info(f"Agent stopped {len(running)} plugin(s)")

    def _launch(self, running: RunningPlugin, tick: Optional[Tick], interval: Optional[Duration]) -> asyncio.Task:
        running.task = asyncio.get_running_loop().create_task(
            self._run(running, tick, interval),
            name=f"plugin-{running.id}",
        )
        return running.task

    async def _run(self, running: RunningPlugin, tick: Optional[Tick], interval: Optional[Duration]) -> None:
        name = running.log_name()
        timeout = interval.total_seconds() if interval else None
        try:
            if isinstance(running, RunningOutput):
                running.connect()
            if not running.stop_requested:
                running.set_state(PluginState.RUNNING)
            logger.info(f"[{name}] Started plugin {running.id}")

            while not running.stop_requested:
                if tick is not None:
                    try:
                        await tick(running)
                    except Exception as e:
                        logger.error(f"[{name}] Error in plugin: {e}")
                await running.wait_for_stop(timeout)
        except Exception as e:
            logger.error(f"[{name}] Plugin failed: {e}")
        finally:
            running.set_state(PluginState.STOPPING)
            try:
                running.close()
            except Exception as e:
                logger.error(f"[{name}] Error closing plugin: {e}")
            running.set_state(PluginState.DEAD)
            self._remove(running)
            logger.info(f"[{name}] Stopped plugin {running.id}")

    # ------------------------------------------------------------------
    # Ticks
    # ------------------------------------------------------------------

    async def _gather(self, ri: RunningInput) -> None:
        acc = Accumulator(ri.log_name(), self._route, ri.make_metric)
        ri.gather(acc)

    async def _push(self, ra: RunningAggregator) -> None:
        acc = Accumulator(ra.log_name(), self._deliver, ra.make_metric)
        ra.push(acc)

    async def _flush(self, ro: RunningOutput) -> None:
        while ro.buffer:
            if ro.write_batch() == 0:
                break

    def _route(self, metric: Metric) -> None:
        metrics = [metric]
        for rp in self.running_processors():
            if rp.state is not PluginState.RUNNING:
                continue
            metrics = rp.apply(metrics)
            if not metrics:
                return
        for m in metrics:
            self._deliver(m)

    def _deliver(self, metric: Metric) -> None:
        for ro in self.running_outputs():
            if ro.state is PluginState.RUNNING:
                ro.add_metric(metric)
