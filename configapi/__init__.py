"""Runtime plugin configuration API for the telemetry agent.

Imports are lazy so the binding engine can be used without pulling in
FastAPI or psutil.
"""

__all__ = [
    "Agent",
    "PluginManager",
    "PluginTypeRegistry",
    "HookRegistry",
    "register_builtin",
]


def __getattr__(name):
    if name == "Agent":
        from configapi.agent.agent import Agent
        return Agent
    if name == "PluginManager":
        from configapi.plugins.manager import PluginManager
        return PluginManager
    if name == "PluginTypeRegistry":
        from configapi.plugins.registry import PluginTypeRegistry
        return PluginTypeRegistry
    if name == "HookRegistry":
        from configapi.plugins.hooks import HookRegistry
        return HookRegistry
    if name == "register_builtin":
        from configapi.builtin import register_builtin
        return register_builtin
    raise AttributeError(f"module 'configapi' has no attribute {name!r}")
