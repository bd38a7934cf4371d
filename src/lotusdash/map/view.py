from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Sequence

from ..core.spawn_config import LatLng, VesselSpawnConfig
from ..core.types import LatLongPosition, VesselData
from ..settings import MapSettings
from .markers import Marker, build_marker

log = logging.getLogger(__name__)

ADD_VESSEL = "Add Vessel"
CANCEL = "Cancel"

SpawnHandler = Callable[[VesselSpawnConfig], Awaitable[Any]]


@dataclass(slots=True)
class ContainerBounds:
    """Top-left corner of the map container in client (window) pixels."""

    left: float
    top: float


@dataclass(slots=True)
class ContextMenu:
    x: float
    y: float
    items: tuple[str, ...] = (ADD_VESSEL, CANCEL)


class MapView:
    """Keeps the vessel markers in step with the latest telemetry batch.

    Markers are only re-derived when a batch arrives or the zoom changes;
    icons come from the (zoom, heading) cache in :mod:`.markers`.
    """

    def __init__(
        self,
        center: tuple[float, float] = (1.2421, 103.7198),
        zoom: float = 15,
        max_zoom: float = 22,
        on_spawn: Optional[SpawnHandler] = None,
    ) -> None:
        self.center = center
        self.max_zoom = max_zoom
        self.zoom = self._clamp(zoom)
        self.markers: list[Marker] = []
        self.context_menu: Optional[ContextMenu] = None
        self.clicked: Optional[LatLng] = None
        self.spawn_dialog: Optional[VesselSpawnConfig] = None
        self._batch: list[VesselData] = []
        self._on_spawn = on_spawn

    @classmethod
    def from_settings(cls, settings: MapSettings, on_spawn: Optional[SpawnHandler] = None) -> "MapView":
        return cls(center=tuple(settings.center), zoom=settings.zoom, max_zoom=settings.max_zoom, on_spawn=on_spawn)

    def set_spawn_handler(self, handler: Optional[SpawnHandler]) -> None:
        self._on_spawn = handler

    # ------------------------------------------------------------------
    # Telemetry
    # ------------------------------------------------------------------
    def update(self, batch: Sequence[VesselData]) -> None:
        """Replace every marker with those of ``batch``."""
        self._batch = list(batch)
        self._rebuild()
        log.debug("Map updated with %d vessels", len(self.markers))

    def set_zoom(self, zoom: float) -> None:
        zoom = self._clamp(zoom)
        if zoom == self.zoom:
            return
        self.zoom = zoom
        self._rebuild()

    def _clamp(self, zoom: float) -> float:
        return min(max(float(zoom), 0.0), float(self.max_zoom))

    def _rebuild(self) -> None:
        self.markers = [build_marker(vessel, self.zoom) for vessel in self._batch]

    # ------------------------------------------------------------------
    # Context menu and spawn dialog
    # ------------------------------------------------------------------
    def right_click(
        self,
        lat: float,
        lng: float,
        client_x: float,
        client_y: float,
        bounds: Optional[ContainerBounds],
    ) -> Optional[ContextMenu]:
        if bounds is None:
            return None
        self.clicked = LatLng(lat=lat, lng=lng)
        self.context_menu = ContextMenu(x=client_x - bounds.left, y=client_y - bounds.top)
        return self.context_menu

    def close_context_menu(self) -> None:
        self.context_menu = None

    def choose(self, item: str) -> Optional[VesselSpawnConfig]:
        if item == ADD_VESSEL:
            return self.open_spawn_dialog()
        if item == CANCEL:
            self.close_context_menu()
            return None
        raise ValueError(f"unknown context menu item {item!r}")

    def open_spawn_dialog(self) -> VesselSpawnConfig:
        clicked = self.clicked or LatLng()
        self.spawn_dialog = VesselSpawnConfig(
            position=LatLongPosition(latitude=clicked.lat, longitude=clicked.lng, elevation=0.0, heading=0.0)
        )
        self.context_menu = None
        return self.spawn_dialog

    def close_spawn_dialog(self) -> None:
        self.spawn_dialog = None
        self.context_menu = None

    async def submit_spawn(self, config: Optional[VesselSpawnConfig] = None) -> Any:
        config = config or self.spawn_dialog
        if config is None:
            raise ValueError("no spawn dialog is open")
        if self._on_spawn is None:
            raise RuntimeError("no spawn handler registered")
        try:
            return await self._on_spawn(config)
        finally:
            self.close_spawn_dialog()


__all__ = ["ADD_VESSEL", "CANCEL", "ContainerBounds", "ContextMenu", "MapView"]
