"""Plugin interfaces implemented by input, processor, aggregator and output types.

Plugin types are configuration dataclasses that also subclass one of these
interfaces. Every plugin may additionally define ``init()``, which is called
once after its configuration has been bound; raising from it rejects the
configuration.
"""

from abc import ABC, abstractmethod
from typing import List

from configapi.agent.metric import Accumulator, Metric


class Input(ABC):
    """Collects metrics on every interval."""

    @abstractmethod
    def gather(self, acc: Accumulator) -> None:
        """Add the current measurements to ``acc``."""


class Processor(ABC):
    """Transforms metrics in flight."""

    @abstractmethod
    def apply(self, metrics: List[Metric]) -> List[Metric]:
        """Return the transformed metrics; dropping or adding is allowed."""


class Aggregator(ABC):
    """Aggregates metrics over a period."""

    @abstractmethod
    def add(self, metric: Metric) -> None:
        ...

    @abstractmethod
    def push(self, acc: Accumulator) -> None:
        """Emit the aggregates for the period that just ended."""

    @abstractmethod
    def reset(self) -> None:
        ...


class Output(ABC):
    """Writes metrics to a destination."""

    def connect(self) -> None:
        pass

    def close(self) -> None:
        pass

    @abstractmethod
    def write(self, metrics: List[Metric]) -> None:
        ...


class Parser(ABC):
    """Decodes raw bytes into metrics."""

    @abstractmethod
    def parse(self, data: bytes) -> List[Metric]:
        ...


class Serializer(ABC):
    """Encodes metrics into bytes."""

    @abstractmethod
    def serialize(self, metric: Metric) -> bytes:
        ...

    def serialize_batch(self, metrics: List[Metric]) -> bytes:
        return b"".join(self.serialize(m) for m in metrics)


class ParserInput(ABC):
    """Input that reads its data through a configurable data format."""

    @abstractmethod
    def set_parser(self, parser: Parser) -> None:
        ...


class SerializerOutput(ABC):
    """Output that writes its data through a configurable data format."""

    @abstractmethod
    def set_serializer(self, serializer: Serializer) -> None:
        ...
