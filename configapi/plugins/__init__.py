"""Plugin type registry, lifecycle hooks and the runtime plugin manager."""

from configapi.plugins.hooks import HookRegistry, LifecycleHook
from configapi.plugins.manager import PluginManager
from configapi.plugins.models import (
    PluginConfig,
    PluginConfigCreate,
    PluginConfigTypeInfo,
    RunningPlugin,
)
from configapi.plugins.registry import CATEGORIES, PluginTypeRegistry, split_name

__all__ = [
    "HookRegistry",
    "LifecycleHook",
    "PluginManager",
    "PluginConfig",
    "PluginConfigCreate",
    "PluginConfigTypeInfo",
    "RunningPlugin",
    "CATEGORIES",
    "PluginTypeRegistry",
    "split_name",
]
