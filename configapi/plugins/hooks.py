"""Lifecycle hooks fired when plugins are added to or removed from the agent."""

import logging
from typing import Callable, List

from configapi.plugins.models import PluginConfig

logger = logging.getLogger(__name__)

LifecycleHook = Callable[[PluginConfig], None]


class HookRegistry:
    """Ordered lists of add/remove callbacks.

    Callbacks run synchronously, in registration order, on the caller's task.
    Exceptions raised by a callback propagate to the operation that fired it.
    """

    def __init__(self):
        self._added: List[LifecycleHook] = []
        self._removed: List[LifecycleHook] = []

    def on_plugin_added(self, hook: LifecycleHook) -> None:
        """Register a callback fired after a plugin is created and initialized."""
        self._added.append(hook)

    def on_plugin_removed(self, hook: LifecycleHook) -> None:
        """Register a callback fired before a plugin is stopped."""
        self._removed.append(hook)

    def fire_added(self, record: PluginConfig) -> None:
        logger.debug(f"Firing {len(self._added)} added hook(s) for {record.name} ({record.id})")
        for hook in self._added:
            hook(record)

    def fire_removed(self, record: PluginConfig) -> None:
        logger.debug(f"Firing {len(self._removed)} removed hook(s) for {record.id}")
        for hook in self._removed:
            hook(record)
