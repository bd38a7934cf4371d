from __future__ import annotations

import math
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class LatLongPosition(BaseModel):
    """Geographic position of a vessel. Heading is in degrees, 0 = north."""

    model_config = ConfigDict(validate_assignment=True)

    latitude: float = 0.0
    longitude: float = 0.0
    elevation: float = 0.0
    heading: float = 0.0


class Vector3(BaseModel):
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


class Quaternion(BaseModel):
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 1.0


class Pose(BaseModel):
    """Mounting frame for sensors and actuators, independent of LatLongPosition."""

    position: Vector3 = Field(default_factory=Vector3)
    orientation: Quaternion = Field(default_factory=Quaternion)


class VesselData(BaseModel):
    """One vessel entry of a telemetry batch. Only built by the telemetry client."""

    model_config = ConfigDict(frozen=True)

    vessel_name: str
    pose: LatLongPosition
    additionalInfo: Optional[str] = None


def rad_to_deg(radians: float) -> float:
    return radians * (180.0 / math.pi)
