"""Parser and serializer configurations and their factories."""

from configapi.formats.parsers import (
    PARSER_FORMATS,
    InfluxParser,
    JSONParser,
    ParserConfig,
    ValueParser,
    new_parser,
)
from configapi.formats.serializers import (
    SERIALIZER_FORMATS,
    InfluxSerializer,
    JSONSerializer,
    SerializerConfig,
    new_serializer,
)

__all__ = [
    "PARSER_FORMATS",
    "InfluxParser",
    "JSONParser",
    "ParserConfig",
    "ValueParser",
    "new_parser",
    "SERIALIZER_FORMATS",
    "InfluxSerializer",
    "JSONSerializer",
    "SerializerConfig",
    "new_serializer",
]
