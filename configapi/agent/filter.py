"""Metric selection and modification filters shared by all plugin kinds."""

from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from typing import Dict, List

from configapi.agent.metric import Metric


def _match_any(patterns: List[str], value: str) -> bool:
    return any(fnmatchcase(value, pattern) for pattern in patterns)


def _match_tags(rules: Dict[str, List[str]], tags: Dict[str, str]) -> bool:
    for key, patterns in rules.items():
        if key in tags and _match_any(patterns, tags[key]):
            return True
    return False


@dataclass
class Filter:
    """Glob based metric filter.

    ``namepass``/``namedrop`` and ``tagpass``/``tagdrop`` decide whether a
    metric is handled at all; ``fieldpass``/``fielddrop`` and
    ``taginclude``/``tagexclude`` trim what is kept of it.
    """

    namepass: List[str] = field(default_factory=list)
    namedrop: List[str] = field(default_factory=list)
    fieldpass: List[str] = field(default_factory=list)
    fielddrop: List[str] = field(default_factory=list)
    tagpass: Dict[str, List[str]] = field(default_factory=dict)
    tagdrop: Dict[str, List[str]] = field(default_factory=dict)
    taginclude: List[str] = field(default_factory=list)
    tagexclude: List[str] = field(default_factory=list)

    _active: bool = field(default=False, init=False, repr=False)

    def compile(self) -> None:
        """Validate the filter and mark whether it has any rules."""
        for name, rules in (("tagpass", self.tagpass), ("tagdrop", self.tagdrop)):
            for key, patterns in rules.items():
                if not patterns:
                    raise ValueError(f"{name} for tag {key!r} has no patterns")
        self._active = any(
            (
                self.namepass,
                self.namedrop,
                self.fieldpass,
                self.fielddrop,
                self.tagpass,
                self.tagdrop,
                self.taginclude,
                self.tagexclude,
            )
        )

    @property
    def is_active(self) -> bool:
        return self._active

    def select(self, metric: Metric) -> bool:
        """Return True if ``metric`` passes the name and tag rules."""
        if not self._active:
            return True
        if self.namepass and not _match_any(self.namepass, metric.name):
            return False
        if self.namedrop and _match_any(self.namedrop, metric.name):
            return False
        if self.tagpass and not _match_tags(self.tagpass, metric.tags):
            return False
        if self.tagdrop and _match_tags(self.tagdrop, metric.tags):
            return False
        return True

    def modify(self, metric: Metric) -> None:
        """Drop fields and tags excluded by the filter, in place."""
        if not self._active:
            return
        if self.fieldpass:
            metric.fields = {k: v for k, v in metric.fields.items() if _match_any(self.fieldpass, k)}
        if self.fielddrop:
            metric.fields = {k: v for k, v in metric.fields.items() if not _match_any(self.fielddrop, k)}
        if self.taginclude:
            metric.tags = {k: v for k, v in metric.tags.items() if _match_any(self.taginclude, k)}
        if self.tagexclude:
            metric.tags = {k: v for k, v in metric.tags.items() if not _match_any(self.tagexclude, k)}
