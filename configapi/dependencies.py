"""Dependency injection container for the registry, agent and plugin manager."""

import logging

from configapi.agent.agent import Agent
from configapi.builtin import register_builtin
from configapi.plugins.manager import PluginManager
from configapi.plugins.registry import PluginTypeRegistry

logger = logging.getLogger(__name__)

# ============================================================================
# Global instances (Singleton pattern, but exposed via functions for easier testing/mocking)
# ============================================================================

_registry_instance = None
_agent_instance = None
_plugin_manager_instance = None


def get_registry() -> PluginTypeRegistry:
    """Get plugin type registry with the built-in types (singleton)."""
    global _registry_instance
    if _registry_instance is None:
        _registry_instance = PluginTypeRegistry()
        register_builtin(_registry_instance)
        logger.info(f"Created PluginTypeRegistry with {_registry_instance.count()} plugin types")
    return _registry_instance


def get_agent() -> Agent:
    """Get agent (singleton)."""
    global _agent_instance
    if _agent_instance is None:
        from configapi.constants import (
            AGENT_FLUSH_INTERVAL,
            AGENT_INTERVAL,
            AGENT_METRIC_BATCH_SIZE,
            AGENT_METRIC_BUFFER_LIMIT,
            AGENT_TAGS,
        )

        _agent_instance = Agent(
            tags=AGENT_TAGS,
            interval=AGENT_INTERVAL,
            flush_interval=AGENT_FLUSH_INTERVAL,
            metric_batch_size=AGENT_METRIC_BATCH_SIZE,
            metric_buffer_limit=AGENT_METRIC_BUFFER_LIMIT,
        )
        logger.info("Created Agent instance")
    return _agent_instance


def get_plugin_manager() -> PluginManager:
    """Get plugin manager (singleton)."""
    global _plugin_manager_instance
    if _plugin_manager_instance is None:
        from configapi.constants import POLL_INTERVAL, UPDATE_TIMEOUT

        _plugin_manager_instance = PluginManager(
            registry=get_registry(),
            agent=get_agent(),
            update_timeout=UPDATE_TIMEOUT,
            poll_interval=POLL_INTERVAL,
        )
        logger.info("Created PluginManager instance")
    return _plugin_manager_instance


# Test utility function (for unit testing - resets all singletons)
def reset_services():
    """Reset all service instances (only for testing)."""
    global _registry_instance, _agent_instance, _plugin_manager_instance

    _registry_instance = None
    _agent_instance = None
    _plugin_manager_instance = None
    logger.info("Reset all service instances")
