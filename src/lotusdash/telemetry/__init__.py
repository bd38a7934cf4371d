from .client import ConnectionState, InvalidBatch, TelemetryClient, parse_batch
from .events import BatchReceived, Closed, ConnectionEvent, Opened, TransportError

__all__ = [
    "BatchReceived",
    "Closed",
    "ConnectionEvent",
    "ConnectionState",
    "InvalidBatch",
    "Opened",
    "TelemetryClient",
    "TransportError",
    "parse_batch",
]
