"""Plugin type registry - maps qualified names to configuration types."""
from __future__ import annotations

import logging
from typing import Callable, Dict, Optional, Tuple, Type

logger = logging.getLogger(__name__)

CATEGORIES = ("inputs", "processors", "aggregators", "outputs")

Factory = Callable[[], object]


def split_name(qualified: str) -> Optional[Tuple[str, str]]:
    """Split ``inputs.cpu`` into ``("inputs", "cpu")``.

    Returns None when the name is not exactly two non-empty dot-separated
    segments or the category is unknown.
    """
    parts = qualified.split(".")
    if len(parts) != 2 or not all(parts):
        return None
    if parts[0] not in CATEGORIES:
        return None
    return parts[0], parts[1]


class PluginTypeRegistry:
    """Registry of plugin types per category.

    Each entry is a factory returning a fresh zero-value configuration
    object; for dataclass plugins the class itself is the factory.
    """

    def __init__(self):
        self._types: Dict[str, Dict[str, Factory]] = {c: {} for c in CATEGORIES}

    def register(self, category: str, name: str, factory: Factory) -> None:
        """Register a plugin type under ``category.name``.

        Raises:
            ValueError: If the category is unknown or the name is taken.
        """
        if category not in self._types:
            raise ValueError(f"Unknown plugin category: {category}")
        if name in self._types[category]:
            raise ValueError(f"Plugin type '{category}.{name}' already registered")
        self._types[category][name] = factory
        logger.debug(f"Registered plugin type: {category}.{name}")

    def add_input(self, name: str, factory: Type) -> None:
        self.register("inputs", name, factory)

    def add_processor(self, name: str, factory: Type) -> None:
        self.register("processors", name, factory)

    def add_aggregator(self, name: str, factory: Type) -> None:
        self.register("aggregators", name, factory)

    def add_output(self, name: str, factory: Type) -> None:
        self.register("outputs", name, factory)

    def get(self, category: str, name: str) -> Optional[Factory]:
        """Get the factory for ``category.name``."""
        return self._types.get(category, {}).get(name)

    def names(self, category: str) -> list[str]:
        """Registered names in ``category``, sorted."""
        return sorted(self._types.get(category, {}))

    def has(self, qualified: str) -> bool:
        """Check if ``category.name`` is registered."""
        parts = split_name(qualified)
        return parts is not None and self.get(*parts) is not None

    def count(self) -> int:
        """Get total number of registered plugin types."""
        return sum(len(types) for types in self._types.values())
