"""Tests for the agent running-instance model."""

import asyncio
import json

import pytest

from configapi.agent import (
    Agent,
    AggregatorConfig,
    Filter,
    InputConfig,
    Metric,
    OutputConfig,
    PluginState,
    ProcessorConfig,
    RunningAggregator,
    RunningInput,
    RunningOutput,
    RunningProcessor,
)
from configapi.agent.interfaces import Input, Output
from configapi.builtin import Discard, FileOutput, MinMax, Override
from configapi.formats import JSONSerializer
from configapi.binding.types import SECOND, Duration


class StaticInput(Input):
    def __init__(self, metrics):
        self.metrics = metrics

    def gather(self, acc):
        for m in self.metrics:
            acc.add_metric(m.copy())


class FailingInput(Input):
    def __init__(self):
        self.calls = 0

    def gather(self, acc):
        self.calls += 1
        raise RuntimeError("boom")


class MemoryOutput(Output):
    def __init__(self, fail=False):
        self.written = []
        self.fail = fail
        self.closed = False

    def write(self, metrics):
        if self.fail:
            raise IOError("unavailable")
        self.written.extend(metrics)

    def close(self):
        self.closed = True


class TestFilter:
    """Tests for Filter."""

    def _compiled(self, **kwargs):
        f = Filter(**kwargs)
        f.compile()
        return f

    def test_inactive_filter_passes_everything(self):
        f = self._compiled()
        assert not f.is_active
        assert f.select(Metric("anything"))

    def test_name_rules(self):
        f = self._compiled(namepass=["cpu*"], namedrop=["cpu_debug"])
        assert f.select(Metric("cpu"))
        assert not f.select(Metric("mem"))
        assert not f.select(Metric("cpu_debug"))

    def test_tag_rules(self):
        f = self._compiled(tagpass={"cpu": ["cpu0", "cpu-total"]}, tagdrop={"host": ["test*"]})
        assert f.select(Metric("cpu", {"cpu": "cpu0"}))
        assert not f.select(Metric("cpu", {"cpu": "cpu1"}))
        assert not f.select(Metric("cpu", {"cpu": "cpu0", "host": "test-1"}))

    def test_modify(self):
        f = self._compiled(fieldpass=["usage_*"], fielddrop=["usage_guest"], tagexclude=["host"])
        m = Metric("cpu", {"host": "h", "cpu": "0"}, {"usage_user": 1.0, "usage_guest": 0.0, "time": 3})
        f.modify(m)
        assert m.fields == {"usage_user": 1.0}
        assert m.tags == {"cpu": "0"}

    def test_empty_tagpass_patterns_rejected(self):
        with pytest.raises(ValueError):
            Filter(tagpass={"cpu": []}).compile()


class TestRunningPlugins:
    """Tests for the running plugin wrappers."""

    def test_log_name(self):
        ri = RunningInput(StaticInput([]), InputConfig(name="cpu"))
        assert ri.log_name() == "inputs.cpu"
        ri = RunningInput(StaticInput([]), InputConfig(name="cpu", alias="fast"))
        assert ri.log_name() == "inputs.cpu::fast"
        assert len(ri.id) == 16
        assert ri.state is PluginState.CREATED

    def test_input_make_metric(self):
        config = InputConfig(name="cpu", name_override="proc", measurement_prefix="x_", tags={"dc": "eu"})
        ri = RunningInput(StaticInput([]), config)
        ri.set_default_tags({"host": "h", "dc": "ignored"})
        ri.init()
        m = ri.make_metric(Metric("cpu", {"cpu": "0"}, {"v": 1}))
        assert m.name == "x_proc"
        assert m.tags == {"cpu": "0", "dc": "eu", "host": "h"}

    def test_input_filter_drops(self):
        config = InputConfig(name="cpu")
        config.filter.fieldpass = ["usage"]
        ri = RunningInput(StaticInput([]), config)
        ri.init()
        assert ri.make_metric(Metric("cpu", fields={"other": 1})) is None

    def test_processor_only_sees_selected_metrics(self):
        config = ProcessorConfig(name="override")
        config.filter.namepass = ["cpu"]
        rp = RunningProcessor(Override(name_prefix="p_"), config)
        rp.init()
        out = rp.apply([Metric("cpu", fields={"v": 1}), Metric("mem", fields={"v": 1})])
        assert sorted(m.name for m in out) == ["mem", "p_cpu"]

    def test_aggregator_drop_original(self):
        ra = RunningAggregator(MinMax(), AggregatorConfig(name="minmax", drop_original=True))
        ra.init()
        assert ra.apply([Metric("cpu", fields={"v": 1}), Metric("cpu", fields={"v": 3})]) == []

        pushed = []

        class Acc:
            def add_fields(self, name, fields, tags=None):
                pushed.append((name, fields))

        ra.push(Acc())
        assert pushed == [("cpu", {"v_min": 1.0, "v_max": 3.0})]
        ra.push(Acc())
        assert len(pushed) == 1

    def test_output_batches_and_requeues(self):
        out = MemoryOutput(fail=True)
        ro = RunningOutput(out, OutputConfig(name="mem", metric_batch_size=2), batch_size=100, buffer_limit=3)
        ro.init()
        for i in range(4):
            ro.add_metric(Metric("m", fields={"i": i}))
        assert len(ro.buffer) == 3
        assert ro.dropped == 1

        with pytest.raises(IOError):
            ro.write_batch()
        assert [m.fields["i"] for m in ro.buffer] == [1, 2, 3]

        out.fail = False
        assert ro.write_batch() == 2
        assert ro.write_batch() == 1
        assert [m.fields["i"] for m in out.written] == [1, 2, 3]


class TestAgent:
    """Tests for Agent scheduling and routing."""

    def _agent(self):
        return Agent(interval=Duration(10 * SECOND), flush_interval=Duration(10 * SECOND))

    @pytest.mark.asyncio
    async def test_metrics_flow_to_outputs(self):
        agent = self._agent()
        out = MemoryOutput()
        ro = RunningOutput(out, OutputConfig(name="memory"), 100, 1000)
        ro.init()
        agent.add_output(ro)
        agent.run_output(ro)

        rp = RunningProcessor(Override(tags={"env": "test"}), ProcessorConfig(name="override"))
        rp.init()
        agent.add_processor(rp)
        agent.run_processor(rp)
        await asyncio.sleep(0)

        ri = RunningInput(StaticInput([Metric("cpu", fields={"v": 1})]), InputConfig(name="static"))
        ri.init()
        agent.add_input(ri)
        agent.run_input(ri)
        await asyncio.sleep(0.05)

        assert ro.state is PluginState.RUNNING
        await agent.shutdown()

        assert out.closed
        assert [(m.name, m.tags) for m in out.written] == [("cpu", {"env": "test"})]
        assert agent.running_inputs() == []
        assert agent.running_processors() == []
        assert agent.running_outputs() == []
        assert ri.state is PluginState.DEAD

    @pytest.mark.asyncio
    async def test_tick_errors_do_not_stop_plugin(self):
        agent = Agent(interval=Duration(SECOND // 100))
        plugin = FailingInput()
        ri = RunningInput(plugin, InputConfig(name="failing"))
        ri.init()
        agent.add_input(ri)
        agent.run_input(ri)
        await asyncio.sleep(0.1)

        assert ri.state is PluginState.RUNNING
        assert plugin.calls > 1
        await agent.shutdown()
        assert ri.state is PluginState.DEAD

    @pytest.mark.asyncio
    async def test_stop_is_not_awaited(self):
        agent = self._agent()
        ro = RunningOutput(Discard(), OutputConfig(name="discard"), 10, 10)
        ro.init()
        agent.add_output(ro)
        agent.run_output(ro)
        await asyncio.sleep(0)

        agent.stop_output(ro)
        assert ro.state is PluginState.STOPPING
        await ro.task
        assert ro.state is PluginState.DEAD
        assert agent.running_outputs() == []

    def test_processors_sorted_by_order(self):
        agent = self._agent()
        late = RunningProcessor(Override(), ProcessorConfig(name="late", order=2))
        early = RunningProcessor(Override(), ProcessorConfig(name="early", order=1))
        agent.add_processor(late)
        agent.add_processor(early)
        assert [p.config.name for p in agent.running_processors()] == ["early", "late"]


class TestFileOutput:
    @pytest.mark.asyncio
    async def test_writes_serialized_metrics(self, tmp_path):
        path = tmp_path / "out.json"
        plugin = FileOutput(files=[str(path)])
        plugin.set_serializer(JSONSerializer(Duration(SECOND)))
        agent = Agent()
        ro = RunningOutput(plugin, OutputConfig(name="file"), 100, 100)
        ro.init()
        agent.add_output(ro)
        agent.run_output(ro)
        await asyncio.sleep(0)

        ro.add_metric(Metric("cpu", fields={"v": 1}, time=5 * SECOND))
        await agent.shutdown()

        doc = json.loads(path.read_text().strip())
        assert doc == {"fields": {"v": 1}, "name": "cpu", "tags": {}, "timestamp": 5}
