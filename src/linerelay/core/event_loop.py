"""
=============================================================================
EVENT LOOP
=============================================================================

The single thread of control. Everything the relay does happens inside
run_once(), one readiness pass at a time.

=============================================================================
ONE PASS
=============================================================================

    ┌─────────────────────────────────────────────────────────────────┐
    │                       run_once() Flow                            │
    ├─────────────────────────────────────────────────────────────────┤
    │                                                                  │
    │   selector.select()          ← blocks until something is ready   │
    │        │                        (listener + every client)        │
    │        ▼                                                         │
    │   sort ready fds ascending                                       │
    │        │                                                         │
    │        ▼                                                         │
    │   for each fd:                                                   │
    │     listener?  ── accept() ──► registry.join()                   │
    │                                  └── "server: client N just arrived"
    │     client?    ── recv(1000)                                     │
    │                    │                                             │
    │                    ├── b"" / error ──► registry.leave()          │
    │                    │                     └── "... just left"     │
    │                    │                                             │
    │                    └── data ──► registry.append_inbound()        │
    │                                   └── per line:                  │
    │                                        broadcast "client N: "    │
    │                                        broadcast line            │
    │                                                                  │
    └─────────────────────────────────────────────────────────────────┘

Lower descriptors are fully serviced, broadcasts included, before higher
ones in the same pass. There is no timeout in normal operation: an idle
relay sleeps inside select() forever.

=============================================================================
WHY NO LOCKS?
=============================================================================

Only this thread touches the registry, the buffers and the sockets. The
only place it ever waits is select(); accept, recv, framing and every
send of a broadcast run to completion in between. Ordering falls out of
the sequencing for free.

=============================================================================
"""

import logging
import selectors
from typing import Optional

from ..errors import FatalError
from .listener import Listener
from .registry import ConnectionRegistry


logger = logging.getLogger(__name__)


RELAY_PREFIX_FORMAT = "client {identity}: "


class EventLoop:
    """
    Drives the listener, the registry and the broadcaster.
    
    Args:
        listener: A bound Listener.
        registry: The registry whose selector holds the active set.
        selector: The same selector the registry registers clients with.
        recv_size: Maximum bytes read from one client per pass.
    """
    
    def __init__(
        self,
        listener: Listener,
        registry: ConnectionRegistry,
        selector: selectors.BaseSelector,
        recv_size: int = 1000,
    ):
        self.listener = listener
        self.registry = registry
        self.recv_size = recv_size
        self._selector = selector
        
        # The listening socket stays in the active set for the life of
        # the process; data=None marks it apart from client entries.
        self._selector.register(listener.listening_socket, selectors.EVENT_READ, data=None)
    
    def run_forever(self) -> None:
        """Serve until the process dies. Never returns normally."""
        while True:
            self.run_once()
    
    def run_once(self, timeout: Optional[float] = None) -> int:
        """
        Wait for readiness once and service every ready descriptor.
        
        Args:
            timeout: Seconds to wait. None blocks until something is ready.
        
        Returns:
            How many descriptors were ready.
        
        Raises:
            FatalError: If the readiness wait fails or framing runs out
                        of memory.
        """
        try:
            events = self._selector.select(timeout)
        except OSError as e:
            logger.debug(f"Readiness wait failed: {e}")
            raise FatalError("select failed") from e
        
        listener_fd = self.listener.fd
        ready = sorted(key.fd for key, mask in events if mask & selectors.EVENT_READ)
        
        for fd in ready:
            if fd == listener_fd:
                self._accept()
            elif fd in self.registry:
                self._service(fd)
        
        return len(ready)
    
    # =========================================================================
    # DISPATCH
    # =========================================================================
    
    def _accept(self) -> None:
        accepted = self.listener.accept()
        if accepted is None:
            return
        client_socket, peer = accepted
        self.registry.join(client_socket, peer)
    
    def _service(self, fd: int) -> None:
        conn = self.registry.get(fd)
        data = conn.recv(self.recv_size)
        
        if data is None:
            logger.debug(f"[client {conn.identity}] Spurious wakeup")
            return
        
        if not data:
            # Orderly close and errors are treated the same way
            self.registry.leave(fd)
            return
        
        lines = self.registry.append_inbound(fd, data)
        if not lines:
            return
        
        identity = self.registry.identity_of(fd)
        logger.debug(f"[client {identity}] Relaying {len(lines)} line(s)")
        
        prefix = RELAY_PREFIX_FORMAT.format(identity=identity).encode("ascii")
        broadcaster = self.registry.broadcaster
        for line in lines:
            broadcaster.broadcast(fd, prefix)
            broadcaster.broadcast(fd, line)
