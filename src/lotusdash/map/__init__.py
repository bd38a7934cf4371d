from .markers import Marker, MarkerIcon, build_icon, build_marker, icon_size
from .view import ContainerBounds, ContextMenu, MapView

__all__ = ["ContainerBounds", "ContextMenu", "MapView", "Marker", "MarkerIcon", "build_icon", "build_marker", "icon_size"]
