"""
=============================================================================
CONNECTION
=============================================================================

One accepted client: its socket, its identity and the bytes it has sent
that do not yet form a complete line.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    Connection Lifecycle                              │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   accept()  ──►  OPEN  ──── recv() returns data ────┐               │
    │                   │  ▲                               │               │
    │                   │  └──── inbound buffer updated ◄──┘               │
    │                   │                                                  │
    │                   └── recv() returns b"" or fails ──►  CLOSED       │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The identity is handed out by the registry and is never reused, even when
the OS gives a later client the same file descriptor number.

=============================================================================
"""

import logging
import socket
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Connection lifecycle states."""
    OPEN = "open"        # Registered and watched for input
    CLOSED = "closed"    # Socket released


@dataclass
class Connection:
    """
    Represents a client connection.
    
    Attributes:
        identity: Process-unique client number, assigned in arrival order.
        socket: The accepted client socket (non-blocking).
        peer: Client's (ip, port) tuple, for log lines only.
        inbound: Bytes received but not yet terminated by a newline.
        fd: File descriptor captured at accept time. Kept after close so
            the registry can still find the entry while tearing it down.
    """
    
    identity: int
    socket: socket.socket
    peer: Optional[Tuple[str, int]] = None
    
    inbound: bytearray = field(default_factory=bytearray, repr=False)
    state: ConnectionState = ConnectionState.OPEN
    fd: int = field(init=False)
    
    def __post_init__(self):
        self.fd = self.socket.fileno()
        # Reads happen only after a readiness event, and sends must never
        # stall the loop on one slow receiver.
        self.socket.setblocking(False)
    
    @property
    def is_open(self) -> bool:
        return self.state is ConnectionState.OPEN
    
    # =========================================================================
    # READING
    # =========================================================================
    
    def recv(self, size: int) -> Optional[bytes]:
        """
        Take up to size bytes from the socket.
        
        Returns:
            The bytes read; b"" if the peer is gone (orderly close and
            errors look the same); None if nothing was actually ready.
        """
        try:
            return self.socket.recv(size)
        except (BlockingIOError, InterruptedError):
            return None
        except OSError as e:
            logger.debug(f"[client {self.identity}] recv failed: {e}")
            return b""
    
    # =========================================================================
    # WRITING
    # =========================================================================
    
    def send(self, data: bytes) -> bool:
        """
        Hand data to the kernel once, without retrying.
        
        A full send buffer or a partial send is not retried; the caller
        only learns whether the call raised.
        
        Returns:
            True if send() did not raise, False otherwise.
        """
        try:
            self.socket.send(data)
            return True
        except OSError as e:
            logger.debug(f"[client {self.identity}] send failed: {e}")
            return False
    
    # =========================================================================
    # CLOSING
    # =========================================================================
    
    def close(self):
        """Release the buffer and the socket. Safe to call twice."""
        if self.state is ConnectionState.CLOSED:
            return
        
        self.inbound = bytearray()
        try:
            self.socket.close()
        except OSError:
            pass  # Already gone
        
        self.state = ConnectionState.CLOSED
        logger.debug(f"[client {self.identity}] Connection closed")
