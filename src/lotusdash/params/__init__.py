from .dispatcher import GeoPoint, SpawnCommand, SpawnDispatcher, build_spawn_command
from .serializer import escape_markup, normalize_document, serialize

__all__ = [
    "GeoPoint",
    "SpawnCommand",
    "SpawnDispatcher",
    "build_spawn_command",
    "escape_markup",
    "normalize_document",
    "serialize",
]
