"""Built-in processor plugins."""

from dataclasses import dataclass, field
from typing import Dict, List

from configapi.agent.interfaces import Processor
from configapi.agent.metric import Metric


@dataclass
class Replacement:
    """Renames one measurement, tag or field to ``dest``."""

    measurement: str = ""
    tag: str = ""
    field: str = ""
    dest: str = ""


@dataclass
class Rename(Processor):
    replace: List[Replacement] = field(default_factory=list)

    def init(self) -> None:
        for i, r in enumerate(self.replace):
            if not r.dest:
                raise ValueError(f"replace[{i}]: dest must be set")
            if sum(1 for source in (r.measurement, r.tag, r.field) if source) != 1:
                raise ValueError(f"replace[{i}]: exactly one of measurement, tag or field must be set")

    def _rename(self, metric: Metric) -> None:
        for r in self.replace:
            if r.measurement and metric.name == r.measurement:
                metric.name = r.dest
            elif r.tag and r.tag in metric.tags:
                metric.tags[r.dest] = metric.tags.pop(r.tag)
            elif r.field and r.field in metric.fields:
                metric.fields[r.dest] = metric.fields.pop(r.field)

    def apply(self, metrics: List[Metric]) -> List[Metric]:
        for metric in metrics:
            self._rename(metric)
        return metrics


@dataclass
class Override(Processor):
    """Overrides measurement names and tags of passing metrics."""

    name_override: str = ""
    name_prefix: str = ""
    name_suffix: str = ""
    tags: Dict[str, str] = field(default_factory=dict)

    def apply(self, metrics: List[Metric]) -> List[Metric]:
        for metric in metrics:
            if self.name_override:
                metric.name = self.name_override
            metric.name = f"{self.name_prefix}{metric.name}{self.name_suffix}"
            metric.tags.update(self.tags)
        return metrics
