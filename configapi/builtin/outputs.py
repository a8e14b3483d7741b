"""Built-in output plugins."""

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, List, Optional

from configapi.agent.interfaces import Output, Serializer, SerializerOutput
from configapi.agent.metric import Metric
from configapi.binding.types import Size

logger = logging.getLogger(__name__)


class _RotatingFile:
    """Append-only file that rolls over to ``<name>.1`` past ``max_size`` bytes."""

    def __init__(self, path: Path, max_size: int):
        self.path = path
        self.max_size = max_size
        self._fh: BinaryIO = open(path, "ab")

    def write(self, data: bytes) -> None:
        if self.max_size and self._fh.tell() + len(data) > self.max_size and self._fh.tell() > 0:
            self._fh.close()
            self.path.replace(self.path.with_name(self.path.name + ".1"))
            self._fh = open(self.path, "ab")
        self._fh.write(data)
        self._fh.flush()

    def close(self) -> None:
        self._fh.close()


@dataclass
class FileOutput(Output, SerializerOutput):
    """Writes serialized metrics to stdout and/or files."""

    files: List[str] = field(default_factory=lambda: ["stdout"])
    rotation_max_size: Size = Size(0)
    use_batch_format: bool = False

    _serializer: Optional[Serializer] = field(default=None, init=False, repr=False)
    _writers: list = field(default_factory=list, init=False, repr=False)

    def set_serializer(self, serializer: Serializer) -> None:
        self._serializer = serializer

    def connect(self) -> None:
        for name in self.files:
            if name == "stdout":
                self._writers.append(sys.stdout.buffer)
            else:
                self._writers.append(_RotatingFile(Path(name), int(self.rotation_max_size)))

    def close(self) -> None:
        for writer in self._writers:
            if isinstance(writer, _RotatingFile):
                writer.close()
        self._writers = []

    def write(self, metrics: List[Metric]) -> None:
        if self._serializer is None:
            raise RuntimeError("file output has no serializer")
        if self.use_batch_format:
            chunks = [self._serializer.serialize_batch(metrics)]
        else:
            chunks = [self._serializer.serialize(m) for m in metrics]
        data = b"".join(chunks)
        for writer in self._writers:
            writer.write(data)
            if not isinstance(writer, _RotatingFile):
                writer.flush()


@dataclass
class Discard(Output):
    """Accepts and drops every metric."""

    def write(self, metrics: List[Metric]) -> None:
        logger.debug(f"Discarding {len(metrics)} metrics")
