"""
=============================================================================
CORE RELAY COMPONENTS
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  LISTENER        The bound 127.0.0.1:PORT socket; accepts clients  │
    ├─────────────────────────────────────────────────────────────────────┤
    │  REGISTRY        fd → Connection table, identity counter, and the  │
    │                  selector that is the active set                   │
    ├─────────────────────────────────────────────────────────────────────┤
    │  FRAMER          Splits accumulated bytes on b"\\n"                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │  BROADCASTER     Sends one message to every client but the sender  │
    ├─────────────────────────────────────────────────────────────────────┤
    │  EVENT LOOP      select() → accept / recv → frame → broadcast      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .broadcaster import Broadcaster
from .connection import Connection, ConnectionState
from .event_loop import EventLoop
from .framer import extract
from .listener import Listener
from .registry import ConnectionRegistry

__all__ = [
    "Broadcaster",         # Fan-out to every client but the sender
    "Connection",          # One accepted client
    "ConnectionState",     # OPEN / CLOSED
    "ConnectionRegistry",  # Connection table + identity counter
    "EventLoop",           # The single-threaded dispatcher
    "Listener",            # The listening socket
    "extract",             # Line framing
]
