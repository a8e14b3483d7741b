"""External field naming.

A configuration field is addressed externally by its explicit override name
when one is declared, otherwise by its declared name converted to
snake_case. The override ``"-"`` removes the field from the external surface.
"""

import re
from typing import Optional

EXCLUDE = "-"

_FIRST_CAPITAL = re.compile(r"(.)([A-Z][a-z]+)")
_ALL_CAPITALS = re.compile(r"([a-z0-9])([A-Z])")


def to_snake_case(name: str) -> str:
    """Convert a declared name to snake_case.

    >>> to_snake_case("MetricBatchSize")
    'metric_batch_size'
    >>> to_snake_case("HTTPTimeout")
    'http_timeout'
    """
    snake = _FIRST_CAPITAL.sub(r"\1_\2", name)
    snake = _ALL_CAPITALS.sub(r"\1_\2", snake)
    return snake.lower()


def external_name(declared: str, override: Optional[str] = None) -> Optional[str]:
    """Return the external name for a field, or None if it is excluded."""
    if override is not None:
        return None if override == EXCLUDE else override
    return to_snake_case(declared)
