"""
=============================================================================
CONNECTION REGISTRY
=============================================================================

Owns every live client connection and the set of descriptors the event
loop waits on.

=============================================================================
TWO VIEWS OF THE SAME STATE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   selector (active set)              _by_fd (connection table)      │
    │   ─────────────────────              ─────────────────────────      │
    │   fd 3  listening socket             (no entry)                     │
    │   fd 4  ───────────────────────────► Connection(identity=0)         │
    │   fd 6  ───────────────────────────► Connection(identity=2)         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Apart from the listening socket, a descriptor is in the selector if and
only if it has a Connection in the table. join() and leave() are the only
places either side changes, and they always change both.

=============================================================================
IDENTITIES
=============================================================================

Identities start at 0 and only ever go up. The OS recycles descriptor
numbers freely (client 0 on fd 4 leaves, the next client gets fd 4 again),
so the identity is stored on the Connection rather than derived from the
descriptor:

    join(fd 4)  → client 0
    join(fd 5)  → client 1
    leave(fd 4)
    join(fd 4)  → client 2        ← same fd, new identity

=============================================================================
"""

import logging
import selectors
import socket
from typing import Dict, Iterator, List, Optional, Tuple

from .broadcaster import Broadcaster
from .connection import Connection
from .framer import extract


logger = logging.getLogger(__name__)


ARRIVAL_FORMAT = "server: client {identity} just arrived\n"
DEPARTURE_FORMAT = "server: client {identity} just left\n"


class ConnectionRegistry:
    """
    The connection table plus the identity counter.
    
    Args:
        selector: The selector holding the active set. The registry adds
                  and removes client descriptors; the listening socket is
                  registered by the event loop and never touched here.
    """
    
    def __init__(self, selector: selectors.BaseSelector):
        self._selector = selector
        self._by_fd: Dict[int, Connection] = {}
        self._next_identity = 0
        self.broadcaster = Broadcaster(self)
    
    # =========================================================================
    # LOOKUP
    # =========================================================================
    
    def __len__(self) -> int:
        return len(self._by_fd)
    
    def __contains__(self, fd: int) -> bool:
        return fd in self._by_fd
    
    def get(self, fd: int) -> Optional[Connection]:
        return self._by_fd.get(fd)
    
    def identity_of(self, fd: int) -> int:
        """Identity of the client on fd. Raises KeyError if unknown."""
        return self._by_fd[fd].identity
    
    @property
    def next_identity(self) -> int:
        return self._next_identity
    
    def connections(self) -> Iterator[Connection]:
        """Live connections in ascending descriptor order."""
        for fd in sorted(self._by_fd):
            yield self._by_fd[fd]
    
    # =========================================================================
    # MEMBERSHIP
    # =========================================================================
    
    def join(self, client_socket: socket.socket, peer: Optional[Tuple[str, int]] = None) -> int:
        """
        Register a freshly accepted socket.
        
        Assigns the next identity, starts watching the socket for input
        and tells every other client about the arrival.
        
        Returns:
            The new client's identity.
        """
        conn = Connection(identity=self._next_identity, socket=client_socket, peer=peer)
        self._next_identity += 1
        
        self._by_fd[conn.fd] = conn
        self._selector.register(client_socket, selectors.EVENT_READ, data=conn)
        
        logger.info(f"Client {conn.identity} arrived from {peer} on fd {conn.fd}")
        self.broadcaster.broadcast(conn.fd, self._announce(ARRIVAL_FORMAT, conn))
        return conn.identity
    
    def leave(self, fd: int) -> None:
        """
        Drop the client on fd.
        
        The departure notice goes out first, while the table still has the
        connection; then the descriptor leaves the active set and the
        socket is closed. Works whether or not the client ever sent data.
        """
        conn = self._by_fd[fd]
        
        self.broadcaster.broadcast(fd, self._announce(DEPARTURE_FORMAT, conn))
        
        del self._by_fd[fd]
        self._selector.unregister(conn.socket)
        conn.close()
        
        logger.info(f"Client {conn.identity} left")
    
    def close_all(self) -> None:
        """Close every client socket without announcing anything."""
        for conn in list(self._by_fd.values()):
            self._selector.unregister(conn.socket)
            conn.close()
        self._by_fd.clear()
    
    # =========================================================================
    # INBOUND DATA
    # =========================================================================
    
    def append_inbound(self, fd: int, data: bytes) -> List[bytes]:
        """
        Feed freshly read bytes through the framer for fd.
        
        The unterminated remainder is stored back on the connection.
        
        Returns:
            Complete lines, each ending in b"\\n", in arrival order.
        
        Raises:
            FatalError: If memory runs out while framing.
        """
        conn = self._by_fd[fd]
        conn.inbound, lines = extract(conn.inbound, data)
        return lines
    
    @staticmethod
    def _announce(template: str, conn: Connection) -> bytes:
        return template.format(identity=conn.identity).encode("ascii")
