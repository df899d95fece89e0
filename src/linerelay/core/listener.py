"""
=============================================================================
LISTENER
=============================================================================

Owns the one listening socket and turns readiness on it into accepted
client sockets.

SOCKET LIFECYCLE (Server Side):
────────────────────────────────

    1. socket()    Create the TCP socket
    2. bind()      Reserve 127.0.0.1:PORT
    3. listen()    Let the kernel queue up to `backlog` pending clients
    4. accept()    Called only when the event loop says the socket is
                   readable; never blocks

Any failure in steps 1-3 is fatal. There is no retry and no fallback port.

=============================================================================
"""

import logging
import socket
from typing import Optional, Tuple

from ..errors import FatalError


logger = logging.getLogger(__name__)


class Listener:
    """
    The bound, listening socket.
    
    Usage:
        listener = Listener("127.0.0.1", 4242, backlog=128)
        listener.bind()
        accepted = listener.accept()
        if accepted:
            client_socket, peer = accepted
    """
    
    def __init__(self, host: str, port: int, backlog: int = 128):
        self.host = host
        self.port = port
        self.backlog = backlog
        self._socket: Optional[socket.socket] = None
    
    @property
    def listening_socket(self) -> socket.socket:
        if self._socket is None:
            raise RuntimeError("Listener is not bound")
        return self._socket
    
    @property
    def fd(self) -> int:
        return self.listening_socket.fileno()
    
    @property
    def address(self) -> Tuple[str, int]:
        """The address actually bound; resolves port 0 to the real port."""
        return self.listening_socket.getsockname()[:2]
    
    def bind(self) -> socket.socket:
        """
        Create, bind and start listening.
        
        Returns:
            The listening socket.
        
        Raises:
            FatalError: If any of socket(), bind() or listen() fails.
        """
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        except OSError as e:
            logger.debug(f"Failed to create socket: {e}")
            raise FatalError("socket creation failed") from e
        
        try:
            # SO_REUSEADDR: a restart does not have to wait out TIME_WAIT
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.host, self.port))
            sock.listen(self.backlog)
            sock.setblocking(False)
        except OSError as e:
            logger.debug(f"Failed to listen on {self.host}:{self.port}: {e}")
            sock.close()
            raise FatalError("bind/listen failed") from e
        
        self._socket = sock
        logger.info(f"Listening on {self.address[0]}:{self.address[1]}")
        return sock
    
    def accept(self) -> Optional[Tuple[socket.socket, Tuple[str, int]]]:
        """
        Accept one pending client if there is one.
        
        Returns:
            (client_socket, peer_address), or None when the wakeup turned
            out to be spurious or the client gave up before being accepted.
        """
        try:
            return self.listening_socket.accept()
        except (BlockingIOError, InterruptedError, ConnectionAbortedError):
            logger.debug("Accept found nothing ready")
            return None
        except OSError as e:
            # EMFILE and friends: the client stays queued; try next pass
            logger.warning(f"Accept error: {e}")
            return None
    
    def close(self):
        if self._socket is not None:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None
