"""Built-in plugin types registered at startup."""

from configapi.builtin.aggregators import MinMax
from configapi.builtin.inputs import CPUStats, FileInput, MemStats
from configapi.builtin.outputs import Discard, FileOutput
from configapi.builtin.processors import Override, Rename, Replacement


def register_builtin(registry) -> None:
    """Add every built-in plugin type to ``registry``."""
    registry.add_input("cpu", CPUStats)
    registry.add_input("mem", MemStats)
    registry.add_input("file", FileInput)
    registry.add_processor("rename", Rename)
    registry.add_processor("override", Override)
    registry.add_aggregator("minmax", MinMax)
    registry.add_output("file", FileOutput)
    registry.add_output("discard", Discard)


__all__ = [
    "register_builtin",
    "CPUStats",
    "FileInput",
    "MemStats",
    "Override",
    "Rename",
    "Replacement",
    "MinMax",
    "Discard",
    "FileOutput",
]
