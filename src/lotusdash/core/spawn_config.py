from __future__ import annotations

from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .types import LatLongPosition


class PhysicsMode(str, Enum):
    AERIAL = "aerial"
    SURFACE = "surface"
    UNDERWATER = "underwater"


# Serialization order of the physics sub-sections.
PHYSICS_MODES: tuple[PhysicsMode, ...] = (PhysicsMode.AERIAL, PhysicsMode.SURFACE, PhysicsMode.UNDERWATER)


class ConnectionType(str, Enum):
    TCPIP = "TCPIP"
    ROS2 = "ROS2"


class _EditableModel(BaseModel):
    model_config = ConfigDict(validate_assignment=True)


class RenderBlock(_EditableModel):
    enabled: bool = False
    publish_render: bool = False
    renderer_type_name: str = ""


class PhysicsModeConfig(_EditableModel):
    enabled: bool = False
    connection_type: Optional[ConnectionType] = None
    uri: str = ""
    thrusters: List[str] = Field(default_factory=list)

    @field_validator("thrusters", mode="before")
    @classmethod
    def _split_thrusters(cls, value):
        # Accept the comma-separated form typed by operators.
        if isinstance(value, str):
            if not value.strip():
                return []
            return [name.strip() for name in value.split(",")]
        return value


class PhysicsBlock(_EditableModel):
    enabled: bool = False
    aerial: PhysicsModeConfig = Field(default_factory=PhysicsModeConfig)
    surface: PhysicsModeConfig = Field(default_factory=PhysicsModeConfig)
    underwater: PhysicsModeConfig = Field(default_factory=PhysicsModeConfig)
    init_state: str = ""

    def mode(self, mode: PhysicsMode | str) -> PhysicsModeConfig:
        return getattr(self, PhysicsMode(mode).value)

    def enabled_modes(self) -> list[PhysicsMode]:
        return [m for m in PHYSICS_MODES if self.mode(m).enabled]

    def init_state_options(self) -> list[str]:
        """Initial states the operator may pick: the enabled modes, capitalised."""
        return [m.value.capitalize() for m in self.enabled_modes()]

    def set_init_state(self, value: str) -> None:
        if value and value not in self.init_state_options():
            raise ValueError(f"init state {value!r} is not one of {self.init_state_options()}")
        self.init_state = value

    def effective_init_state(self) -> str:
        """The chosen initial state, or "" once its mode has been disabled."""
        return self.init_state if self.init_state in self.init_state_options() else ""

    @model_validator(mode="after")
    def _check_init_state(self) -> "PhysicsBlock":
        if self.init_state and self.init_state not in self.init_state_options():
            raise ValueError(f"init state {self.init_state!r} is not one of {self.init_state_options()}")
        return self


class LatLng(BaseModel):
    lat: float = 0.0
    lng: float = 0.0


class WaypointsFollower(_EditableModel):
    mode: Literal["waypoints"] = "waypoints"
    waypoints: List[LatLng] = Field(default_factory=list)


class LineFollower(_EditableModel):
    mode: Literal["line"] = "line"
    direction: float = 0.0
    length: float = 0.0


class CircleFollower(_EditableModel):
    mode: Literal["circle"] = "circle"
    radius: float = 0.0


Follower = Annotated[Union[WaypointsFollower, LineFollower, CircleFollower], Field(discriminator="mode")]


class WaypointFollowerBlock(_EditableModel):
    """Waypoint follower plugin settings.

    The kinematic limits are shared by every follower kind. ``follower`` holds
    exactly one kind (or none), so only one ``<follower>`` can ever be emitted.
    """

    enabled: bool = False
    loop: bool = True
    linear_acc_limit: float = 0.5
    angular_acc_limit: float = 0.005
    angular_vel_limit: float = 0.01
    follower: Optional[Follower] = None


class VesselSpawnConfig(_EditableModel):
    """In-progress vessel spawn configuration, edited in the spawn dialog."""

    model_name: str = ""
    vessel_name: str = ""
    position: LatLongPosition = Field(default_factory=LatLongPosition)
    render: RenderBlock = Field(default_factory=RenderBlock)
    physics: PhysicsBlock = Field(default_factory=PhysicsBlock)
    waypoint_follower: WaypointFollowerBlock = Field(default_factory=WaypointFollowerBlock)

    @classmethod
    def from_yaml(cls, path: str) -> "VesselSpawnConfig":
        with open(path, "r", encoding="utf-8") as f:
            return cls.model_validate(yaml.safe_load(f) or {})


__all__ = [
    "CircleFollower",
    "ConnectionType",
    "Follower",
    "LatLng",
    "LineFollower",
    "PHYSICS_MODES",
    "PhysicsBlock",
    "PhysicsMode",
    "PhysicsModeConfig",
    "RenderBlock",
    "VesselSpawnConfig",
    "WaypointFollowerBlock",
    "WaypointsFollower",
]
