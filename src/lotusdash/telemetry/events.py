from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Union


@dataclass(slots=True)
class Opened:
    """The websocket handshake completed.

    Attributes
    ----------
    connection:
        The open connection; the identity message is sent on it.
    """

    connection: Any


@dataclass(slots=True)
class BatchReceived:
    """One inbound frame, still unparsed.

    Attributes
    ----------
    raw:
        Frame payload as delivered by the transport (text or UTF-8 bytes).
    """

    raw: Union[str, bytes]


@dataclass(slots=True)
class TransportError:
    """The transport reported an error. Does not by itself end the connection."""

    error: BaseException


@dataclass(slots=True)
class Closed:
    """The connection ended.

    Attributes
    ----------
    was_clean:
        ``True`` when the closing handshake completed (including a
        client-initiated disconnect), ``False`` when the connection died.
    code / reason:
        Close code and reason if the peer sent a close frame.
    """

    was_clean: bool
    code: Optional[int] = None
    reason: str = ""


ConnectionEvent = Union[Opened, BatchReceived, TransportError, Closed]

__all__ = ["BatchReceived", "Closed", "ConnectionEvent", "Opened", "TransportError"]
