"""
=============================================================================
BROADCASTER
=============================================================================

Fan-out of one message to every connected client except the sender.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                       broadcast(fd=5, msg)                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   listening socket (fd 3)   ── never a recipient                    │
    │   client 0 (fd 4)           ── send(msg)                            │
    │   client 1 (fd 5)           ── skipped, it is the sender            │
    │   client 2 (fd 7)           ── send(msg)   (failure ignored)        │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Recipients are visited in ascending descriptor order. Each recipient gets
exactly one send() call. A failed or short send is logged at DEBUG and
otherwise ignored: the relay makes no delivery promise, and one broken
receiver must not keep the others from getting the message.

=============================================================================
"""

import logging
from typing import Iterable, Optional, Protocol

from .connection import Connection


logger = logging.getLogger(__name__)


class ConnectionSource(Protocol):
    """Anything that can list the live connections in descriptor order."""
    
    def connections(self) -> Iterable[Connection]:
        ...


class Broadcaster:
    """
    Writes a message to every active connection except one.
    
    Usage:
        broadcaster = Broadcaster(registry)
        broadcaster.broadcast(sender.fd, b"client 0: hello\\n")
    """
    
    def __init__(self, source: ConnectionSource):
        self._source = source
    
    def broadcast(self, exclude_fd: Optional[int], message: bytes) -> int:
        """
        Send message to all connections except exclude_fd.
        
        The listening socket is never part of the connection source, so
        it cannot receive anything.
        
        Args:
            exclude_fd: Descriptor of the sender, or None to reach everyone.
            message: Raw bytes, sent as-is.
        
        Returns:
            Number of recipients whose send() call did not raise.
        """
        delivered = 0
        for conn in self._source.connections():
            if conn.fd == exclude_fd:
                continue
            if conn.send(message):
                delivered += 1
            else:
                logger.debug(f"Dropped {len(message)} bytes for client {conn.identity}")
        return delivered
