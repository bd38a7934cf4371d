from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from .core.spawn_config import VesselSpawnConfig
from .map.view import MapView
from .params.dispatcher import SpawnCommand, SpawnDispatcher
from .settings import Settings, SettingsStore
from .telemetry.client import BatchCallback, TelemetryClient

log = logging.getLogger(__name__)

ClientFactory = Callable[[Settings, BatchCallback], TelemetryClient]


class Dashboard:
    """Home dashboard session: live map, telemetry feed and vessel spawning.

    Use as an async context manager. Leaving the block always tears the
    telemetry connection down, whether it ends normally, raises or is
    cancelled. Switching instance re-mounts: the old connection is closed
    before a new one is opened.
    """

    def __init__(
        self,
        settings: Settings,
        api: Any,
        map_view: Optional[MapView] = None,
        *,
        store: Optional[SettingsStore] = None,
        client_factory: ClientFactory = TelemetryClient,
    ) -> None:
        self.settings = settings
        self.api = api
        self.store = store
        self.dispatcher = SpawnDispatcher(api, settings)
        self.map_view = map_view or MapView.from_settings(settings.map)
        self.map_view.set_spawn_handler(self.spawn_vessel)
        self.client: Optional[TelemetryClient] = None
        self.scenarios: list[str] = []
        self.instances: list[str] = []
        self._client_factory = client_factory

    async def __aenter__(self) -> "Dashboard":
        await self.mount()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.dispose()

    async def mount(self) -> None:
        await self.refresh()
        if self.client is None:
            self.client = self._client_factory(self.settings, self.map_view.update)
            await self.client.connect()

    async def dispose(self) -> None:
        client, self.client = self.client, None
        if client is not None:
            await client.disconnect()

    async def refresh(self) -> None:
        self.scenarios = await self.api.list_scenarios()
        self.instances = await self.api.list_instances()

    async def select_instance(self, instance: str) -> None:
        if self.store is not None:
            self.store.save_instance(instance)
        else:
            log.info("No settings store; instance %r is not persisted", instance)
        self.settings.instance = instance
        log.info("Selected instance %r", instance)
        if self.client is not None:
            await self.dispose()
            await self.mount()

    async def spawn_vessel(self, config: VesselSpawnConfig) -> SpawnCommand:
        return await self.dispatcher.spawn(config)


__all__ = ["ClientFactory", "Dashboard"]
