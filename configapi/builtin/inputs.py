"""Built-in input plugins."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import psutil

from configapi.agent.interfaces import Input, Parser, ParserInput
from configapi.agent.metric import Accumulator
from configapi.binding.descriptor import config_field

logger = logging.getLogger(__name__)


@dataclass
class CPUStats(Input):
    """Per-CPU and total CPU usage from psutil."""

    percpu: bool = True
    totalcpu: bool = True
    collect_cpu_time: bool = False
    report_active: bool = False
    core_tags: bool = False

    _last_times: dict = field(default_factory=dict, init=False, repr=False)

    def _emit(self, acc: Accumulator, cpu: str, times, index: Optional[int]) -> None:
        tags = {"cpu": cpu}
        if self.core_tags and index is not None:
            tags["core_id"] = str(index)

        current = times._asdict()
        if self.collect_cpu_time:
            acc.add_fields("cpu", {f"time_{k}": v for k, v in current.items()}, tags)

        last = self._last_times.get(cpu)
        self._last_times[cpu] = current
        if last is None:
            return

        deltas = {k: current[k] - last.get(k, 0.0) for k in current}
        total = sum(deltas.values())
        if total <= 0:
            return
        fields = {f"usage_{k}": 100.0 * v / total for k, v in deltas.items()}
        if self.report_active:
            fields["usage_active"] = 100.0 * (total - deltas.get("idle", 0.0) - deltas.get("iowait", 0.0)) / total
        acc.add_fields("cpu", fields, tags)

    def gather(self, acc: Accumulator) -> None:
        if self.percpu:
            for i, times in enumerate(psutil.cpu_times(percpu=True)):
                self._emit(acc, f"cpu{i}", times, i)
        if self.totalcpu:
            self._emit(acc, "cpu-total", psutil.cpu_times(percpu=False), None)


@dataclass
class MemStats(Input):
    """Virtual memory usage from psutil."""

    def gather(self, acc: Accumulator) -> None:
        vm = psutil.virtual_memory()
        acc.add_fields(
            "mem",
            {
                "total": vm.total,
                "available": vm.available,
                "used": vm.used,
                "free": vm.free,
                "available_percent": 100.0 * vm.available / vm.total if vm.total else 0.0,
                "used_percent": vm.percent,
            },
        )


@dataclass
class FileInput(Input, ParserInput):
    """Parses whole files on every interval through the configured data format."""

    files: List[str] = field(default_factory=list)
    file_tag: str = ""
    character_encoding: str = config_field(default="", format="encoding")

    _parser: Optional[Parser] = field(default=None, init=False, repr=False)

    def init(self) -> None:
        if self.character_encoding:
            "".encode(self.character_encoding)

    def set_parser(self, parser: Parser) -> None:
        self._parser = parser

    def _read(self, path: Path) -> bytes:
        data = path.read_bytes()
        if self.character_encoding:
            data = data.decode(self.character_encoding).encode("utf-8")
        return data

    def gather(self, acc: Accumulator) -> None:
        if self._parser is None:
            raise RuntimeError("file input has no parser")
        for pattern in self.files:
            path = Path(pattern)
            if path.is_absolute():
                matches = sorted(Path(path.anchor).glob(str(path.relative_to(path.anchor))))
            else:
                matches = sorted(Path().glob(pattern))
            for match in matches:
                try:
                    metrics = self._parser.parse(self._read(match))
                except (OSError, ValueError) as e:
                    acc.add_error(RuntimeError(f"reading {match}: {e}"))
                    continue
                for metric in metrics:
                    if self.file_tag:
                        metric.tags[self.file_tag] = match.name
                    acc.add_metric(metric)
