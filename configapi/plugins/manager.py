"""Plugin manager - creates, updates and removes running plugins at runtime."""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from configapi.agent.agent import Agent
from configapi.agent.interfaces import ParserInput, SerializerOutput
from configapi.agent.models import (
    AggregatorConfig,
    InputConfig,
    OutputConfig,
    PluginState,
    ProcessorConfig,
    RunningAggregator,
    RunningInput,
    RunningOutput,
    RunningProcessor,
    new_plugin_id,
)
from configapi.agent.models import RunningPlugin as AgentPlugin
from configapi.binding import bind, derive, extract
from configapi.binding.types import MILLISECOND, SECOND, Duration
from configapi.errors import BadRequestError, BindError, NotFoundError, UpdateTimeoutError
from configapi.formats import ParserConfig, SerializerConfig, new_parser, new_serializer
from configapi.plugins.hooks import HookRegistry, LifecycleHook
from configapi.plugins.models import (
    PluginConfig,
    PluginConfigCreate,
    PluginConfigTypeInfo,
    RunningPlugin,
)
from configapi.plugins.registry import CATEGORIES, PluginTypeRegistry, split_name

logger = logging.getLogger(__name__)

DEFAULT_UPDATE_TIMEOUT = Duration(30 * SECOND)
DEFAULT_POLL_INTERVAL = Duration(100 * MILLISECOND)


class PluginManager:
    """Runtime plugin configuration API.

    Lists plugin types with their configuration schemas, snapshots running
    plugins, and creates, updates and deletes running plugins on the agent.
    """

    def __init__(
        self,
        registry: PluginTypeRegistry,
        agent: Agent,
        hooks: Optional[HookRegistry] = None,
        update_timeout: Duration = DEFAULT_UPDATE_TIMEOUT,
        poll_interval: Duration = DEFAULT_POLL_INTERVAL,
    ):
        self.registry = registry
        self.agent = agent
        self.hooks = hooks or HookRegistry()
        self.update_timeout = update_timeout
        self.poll_interval = poll_interval

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def list_plugin_types(self) -> List[PluginConfigTypeInfo]:
        """Schema of every registered plugin type, by category then name.

        Raises:
            SchemaDerivationError: If any plugin type cannot be described.
        """
        result = []
        for category in CATEGORIES:
            for name in self.registry.names(category):
                factory = self.registry.get(category, name)
                result.append(
                    PluginConfigTypeInfo(name=f"{category}.{name}", config=derive(factory()))
                )
        return result

    def list_running_plugins(self) -> List[RunningPlugin]:
        """Snapshot of every running plugin's configuration."""
        result = []
        for rp in self._running():
            config: Dict[str, Any] = {}
            config.update(extract(rp.config))
            config.update(extract(rp.config.filter))
            config.update(extract(rp.plugin))
            result.append(RunningPlugin(id=rp.id, name=rp.log_name(), config=config))
        return result

    # ------------------------------------------------------------------
    # Create / update / delete
    # ------------------------------------------------------------------

    async def create_plugin(self, cfg: PluginConfigCreate, forced_id: Optional[str] = None) -> str:
        """Create, initialize and start a plugin; returns its ID.

        ``forced_id`` is only used by ``update_plugin`` to keep the ID of the
        plugin being replaced.

        Raises:
            NotFoundError: If ``cfg.name`` is not a registered plugin type.
            BadRequestError: If a field cannot be bound, the data format is
                invalid, or the plugin fails to initialize.
        """
        logger.info(f"Creating plugin {cfg.name!r}")

        parts = split_name(cfg.name)
        factory = self.registry.get(*parts) if parts else None
        if factory is None:
            raise NotFoundError(f"finding plugin with name {cfg.name}")
        category, name = parts

        plugin = factory()
        try:
            bind(cfg.config, plugin)
            running = self._wrap(category, name, plugin, cfg.config)
        except BindError as e:
            raise BindError(e.field_path, e.reason, plugin_name=cfg.name) from e
        running.id = self._assign_id(forced_id)

        try:
            running.init()
        except Exception as e:
            raise BadRequestError(f"could not initialize plugin {cfg.name}: {e}") from e

        if category == "inputs":
            self.agent.add_input(running)
        elif category == "outputs":
            self.agent.add_output(running)
        else:
            self.agent.add_processor(running)

        self.hooks.fire_added(PluginConfig(id=running.id, name=cfg.name, config=cfg.config))

        if category == "inputs":
            self.agent.run_input(running)
        elif category == "outputs":
            self.agent.run_output(running)
        else:
            self.agent.run_processor(running)

        logger.info(f"Created plugin {running.log_name()} with ID {running.id}")
        return running.id

    def _wrap(self, category: str, name: str, plugin: Any, fields: Dict[str, Any]) -> AgentPlugin:
        """Bind the wrapper config (and data format, if any) and build the running plugin."""
        if category == "inputs":
            if isinstance(plugin, ParserInput):
                pc = ParserConfig(metric_name=name, json_strict=True, data_format="influx")
                bind(fields, pc)
                try:
                    plugin.set_parser(new_parser(pc))
                except ValueError as e:
                    raise BadRequestError(f"could not create parser: {e}", "data_format") from e
            ic = InputConfig(name=name)
            bind(fields, ic)
            bind(fields, ic.filter)
            ri = RunningInput(plugin, ic)
            ri.set_default_tags(self.agent.tags)
            return ri

        if category == "outputs":
            if isinstance(plugin, SerializerOutput):
                sc = SerializerConfig(timestamp_units=Duration(SECOND), data_format="influx")
                bind(fields, sc)
                try:
                    plugin.set_serializer(new_serializer(sc))
                except ValueError as e:
                    raise BadRequestError(f"could not create serializer: {e}", "data_format") from e
            oc = OutputConfig(name=name)
            bind(fields, oc)
            bind(fields, oc.filter)
            return RunningOutput(plugin, oc, self.agent.metric_batch_size, self.agent.metric_buffer_limit)

        if category == "aggregators":
            ac = AggregatorConfig(
                name=name,
                delay=Duration(100 * MILLISECOND),
                period=Duration(30 * SECOND),
                grace=Duration(0),
            )
            bind(fields, ac)
            bind(fields, ac.filter)
            return RunningAggregator(plugin, ac)

        pc = ProcessorConfig(name=name)
        bind(fields, pc)
        bind(fields, pc.filter)
        return RunningProcessor(plugin, pc)

    def _assign_id(self, forced_id: Optional[str]) -> str:
        tracked = {rp.id for rp in self._running()}
        if forced_id:
            if forced_id in tracked:
                raise BadRequestError(f"plugin ID {forced_id} is already in use")
            logger.debug(f"Using forced plugin ID {forced_id}")
            return forced_id
        plugin_id = new_plugin_id()
        while plugin_id in tracked:
            plugin_id = new_plugin_id()
        logger.debug(f"Assigned plugin ID {plugin_id}")
        return plugin_id

    async def update_plugin(self, plugin_id: str, cfg: PluginConfigCreate) -> str:
        """Replace a running plugin with a new configuration under the same ID.

        The old plugin is deleted and must reach ``dead`` within
        ``update_timeout`` before the replacement is created. Its runtime
        state (buffers, counters) is not carried over.

        Raises:
            NotFoundError: If no plugin with ``plugin_id`` is running.
            UpdateTimeoutError: If the old plugin does not stop in time.
        """
        logger.info(f"Updating plugin {plugin_id}")
        self.delete_plugin(plugin_id)

        try:
            await asyncio.wait_for(self._wait_dead(plugin_id), timeout=self.update_timeout.total_seconds())
        except asyncio.TimeoutError as e:
            raise UpdateTimeoutError(f"timed out shutting down plugin {plugin_id} for update") from e

        return await self.create_plugin(cfg, forced_id=plugin_id)

    async def _wait_dead(self, plugin_id: str) -> None:
        interval = self.poll_interval.total_seconds()
        while self.get_plugin_status(plugin_id) is not PluginState.DEAD:
            await asyncio.sleep(interval)

    def delete_plugin(self, plugin_id: str) -> None:
        """Request a running plugin to stop; does not wait for it.

        Raises:
            NotFoundError: If no plugin with ``plugin_id`` is running.
        """
        self.hooks.fire_removed(PluginConfig(id=plugin_id))

        stoppers = (
            (self.agent.running_inputs(), self.agent.stop_input),
            (self.agent.running_processors(), self.agent.stop_processor),
            (self.agent.running_outputs(), self.agent.stop_output),
        )
        for running, stop in stoppers:
            for rp in running:
                if rp.id == plugin_id:
                    stop(rp)
                    logger.info(f"Requested stop of plugin {rp.log_name()} ({plugin_id})")
                    return
        raise NotFoundError(f"plugin {plugin_id} not found")

    def get_plugin_status(self, plugin_id: str) -> PluginState:
        """Lifecycle state of a plugin; ``dead`` when it is not tracked."""
        for rp in self._running():
            if rp.id == plugin_id:
                return rp.state
        return PluginState.DEAD

    def _running(self) -> List[AgentPlugin]:
        return [
            *self.agent.running_inputs(),
            *self.agent.running_processors(),
            *self.agent.running_outputs(),
        ]

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def on_plugin_added(self, hook: LifecycleHook) -> None:
        self.hooks.on_plugin_added(hook)

    def on_plugin_removed(self, hook: LifecycleHook) -> None:
        self.hooks.on_plugin_removed(hook)
