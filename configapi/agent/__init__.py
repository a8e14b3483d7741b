"""Agent running-instance model: plugin interfaces, wrappers and scheduler."""

from configapi.agent.agent import Agent
from configapi.agent.filter import Filter
from configapi.agent.interfaces import (
    Aggregator,
    Input,
    Output,
    Parser,
    ParserInput,
    Processor,
    Serializer,
    SerializerOutput,
)
from configapi.agent.metric import Accumulator, Metric
from configapi.agent.models import (
    AggregatorConfig,
    InputConfig,
    OutputConfig,
    PluginState,
    ProcessorConfig,
    RunningAggregator,
    RunningInput,
    RunningOutput,
    RunningPlugin,
    RunningProcessor,
)

__all__ = [
    "Agent",
    "Filter",
    "Aggregator",
    "Input",
    "Output",
    "Parser",
    "ParserInput",
    "Processor",
    "Serializer",
    "SerializerOutput",
    "Accumulator",
    "Metric",
    "AggregatorConfig",
    "InputConfig",
    "OutputConfig",
    "PluginState",
    "ProcessorConfig",
    "RunningAggregator",
    "RunningInput",
    "RunningOutput",
    "RunningPlugin",
    "RunningProcessor",
]
