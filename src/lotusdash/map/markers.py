from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from ..core.types import VesselData

BASE_ICON_SIZE = 0.5
ICON_ASPECT = 1.625
ICON_ANCHOR = (16, 16)
POPUP_ANCHOR = (0, -32)
ICON_SPRITE = "sprite_medium.png"


@dataclass(frozen=True, slots=True)
class MarkerIcon:
    """Arrow icon for one (zoom, heading) pair.

    Attributes
    ----------
    width / height:
        Icon size in pixels; ``height`` is always ``ICON_ASPECT`` times ``width``.
    rotation_deg:
        Vessel heading in degrees, applied around the icon's visual center.
    anchor / popup_anchor:
        Pixel offsets of the icon tip and of the popup relative to it.
    """

    width: float
    height: float
    rotation_deg: float
    anchor: tuple[int, int] = ICON_ANCHOR
    popup_anchor: tuple[int, int] = POPUP_ANCHOR

    @property
    def size(self) -> tuple[float, float]:
        return self.width, self.height

    @property
    def html(self) -> str:
        return (
            '<div class="blue-arrow-icon" style="'
            f"width:{self.width}px;height:{self.height}px;"
            f"background-image:url('{ICON_SPRITE}');"
            "background-position:-6px 0px;background-size:251px 175px;"
            f"transform: rotate({self.rotation_deg}deg);"
            'transform-origin: center center;"></div>'
        )


def icon_size(zoom: float) -> tuple[float, float]:
    """Icon (width, height) for a zoom level: ``0.5 + zoom`` wide, 1.625x as tall."""
    width = BASE_ICON_SIZE + zoom
    return width, width * ICON_ASPECT


@lru_cache(maxsize=4096)
def build_icon(zoom: float, heading: float) -> MarkerIcon:
    """Icon for a vessel, shared by every vessel drawn at the same zoom and heading."""
    width, height = icon_size(zoom)
    return MarkerIcon(width=width, height=height, rotation_deg=heading)


@dataclass(frozen=True, slots=True)
class Marker:
    vessel_name: str
    latitude: float
    longitude: float
    icon: MarkerIcon
    additional_info: Optional[str] = None

    @property
    def position(self) -> tuple[float, float]:
        return self.latitude, self.longitude

    def popup_lines(self) -> list[str]:
        return [
            f"Vessel: {self.vessel_name}",
            f"Latitude: {self.latitude}",
            f"Longitude: {self.longitude}",
            self.additional_info or "No additional info",
        ]


def build_marker(vessel: VesselData, zoom: float) -> Marker:
    pose = vessel.pose
    return Marker(
        vessel_name=vessel.vessel_name,
        latitude=pose.latitude,
        longitude=pose.longitude,
        icon=build_icon(zoom, pose.heading),
        additional_info=vessel.additionalInfo,
    )


__all__ = ["ICON_ASPECT", "Marker", "MarkerIcon", "build_icon", "build_marker", "icon_size"]
