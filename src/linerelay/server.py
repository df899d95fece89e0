"""
=============================================================================
RELAY SERVER
=============================================================================

Ties the core components into one running relay and owns the single
server state object: the listening socket, the active set (a selector)
and the connection registry.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    RELAY SERVER ARCHITECTURE                        │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │                        ┌─────────────────┐                          │
    │                        │   RelayServer   │                          │
    │                        │  (Orchestrator) │                          │
    │                        └────────┬────────┘                          │
    │                                 │                                    │
    │                        ┌────────▼────────┐                          │
    │                        │    EventLoop    │                          │
    │                        └────────┬────────┘                          │
    │            ┌────────────────────┼────────────────────┐              │
    │            ▼                    ▼                    ▼              │
    │    ┌──────────────┐    ┌──────────────────┐  ┌──────────────┐      │
    │    │   Listener   │    │ConnectionRegistry│─►│ Broadcaster  │      │
    │    └──────────────┘    └────────┬─────────┘  └──────────────┘      │
    │                                 │                                    │
    │                        ┌────────▼────────┐                          │
    │                        │     Framer      │                          │
    │                        └─────────────────┘                          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

import logging
import selectors
from typing import Optional, Tuple

from .config import RelayConfig
from .core import ConnectionRegistry, EventLoop, Listener


logger = logging.getLogger(__name__)


class RelayServer:
    """
    A newline relay on one loopback port.
    
    Usage:
        server = RelayServer(RelayConfig(port=4242))
        server.run()  # blocks forever
    
    For tests, start() binds without looping and the loop can be driven
    one pass at a time:
    
        server = RelayServer(RelayConfig(port=0))
        server.start()
        host, port = server.address
        server.loop.run_once(timeout=0.1)
    """
    
    def __init__(self, config: Optional[RelayConfig] = None):
        self.config = config or RelayConfig()
        self.config.validate()  # Fail-fast on invalid config
        
        self.listener = Listener(self.config.host, self.config.port, self.config.backlog)
        self._selector: Optional[selectors.BaseSelector] = None
        self.registry: Optional[ConnectionRegistry] = None
        self.loop: Optional[EventLoop] = None
    
    @property
    def address(self) -> Tuple[str, int]:
        return self.listener.address
    
    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================
    
    def start(self) -> None:
        """
        Bind the listening socket and build the loop.
        
        Raises:
            FatalError: If the socket cannot be created, bound or listened on.
        """
        self.listener.bind()
        self._selector = selectors.DefaultSelector()
        self.registry = ConnectionRegistry(self._selector)
        self.loop = EventLoop(
            self.listener,
            self.registry,
            self._selector,
            recv_size=self.config.recv_size,
        )
    
    def run(self) -> None:
        """
        Start the relay and serve until the process is interrupted.
        
        Raises:
            FatalError: On any process-ending condition.
        """
        self._setup_logging()
        self.start()
        
        try:
            self.loop.run_forever()
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self.close()
    
    def close(self) -> None:
        """Release every socket. Clients are not told anything."""
        if self.registry is not None:
            self.registry.close_all()
        if self._selector is not None:
            self._selector.close()
            self._selector = None
        self.listener.close()
        logger.info("Relay stopped")
    
    def _setup_logging(self):
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.WARNING)
        
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        
        logging.getLogger("linerelay").setLevel(level)
