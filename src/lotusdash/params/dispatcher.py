from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict

from ..core.spawn_config import VesselSpawnConfig
from ..settings import Settings
from .serializer import serialize

log = logging.getLogger(__name__)

SPAWN_CMD_TYPE = 0


class GeoPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float
    altitude: float


class SpawnCommand(BaseModel):
    """Spawn request body for ``POST /instance/{instance}/vessel``.

    Frozen: the position is snapshotted when the command is built, so later
    edits to the dialog state cannot change what was submitted.
    """

    model_config = ConfigDict(frozen=True)

    cmd_type: int = SPAWN_CMD_TYPE
    sdf_string: str
    model_name: str
    vessel_name: str
    geo_point: GeoPoint
    heading: float


def build_spawn_command(config: VesselSpawnConfig) -> SpawnCommand:
    position = config.position
    return SpawnCommand(
        sdf_string=serialize(config),
        model_name=config.model_name,
        vessel_name=config.vessel_name,
        geo_point=GeoPoint(
            latitude=position.latitude,
            longitude=position.longitude,
            altitude=position.elevation,
        ),
        heading=position.heading,
    )


class SpawnDispatcher:
    """Hands spawn commands to the REST API for the selected instance."""

    def __init__(self, api: Any, settings: Settings) -> None:
        self.api = api
        self.settings = settings

    async def check_model(self, model_name: str) -> bool:
        models = await self.api.list_models()
        if model_name not in models:
            log.warning("Model %r is not among the %d models known to the backend", model_name, len(models))
            return False
        return True

    async def spawn(self, config: VesselSpawnConfig) -> SpawnCommand:
        command = build_spawn_command(config)
        instance = self.settings.instance
        log.info(
            "Spawning vessel %r (model %r) on instance %r at lat=%.6f lon=%.6f",
            command.vessel_name,
            command.model_name,
            instance,
            command.geo_point.latitude,
            command.geo_point.longitude,
        )
        await self.api.spawn_vessel(instance, command.model_dump())
        return command


__all__ = ["GeoPoint", "SPAWN_CMD_TYPE", "SpawnCommand", "SpawnDispatcher", "build_spawn_command"]
