"""
=============================================================================
RELAY CONFIGURATION
=============================================================================

Centralized configuration for the line relay.

The relay has very few knobs on purpose. The only value a user is expected
to supply is the port; everything else has a default that matches the
documented wire behavior (loopback only, backlog of 128, reads of at most
1000 bytes).

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    WHERE VALUES COME FROM                           │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m linerelay 4242 --log-level DEBUG                 │
    │                                                                      │
    │   2. Dataclass defaults                                             │
    │      └── RelayConfig(port=4242)                                     │
    │                                                                      │
    │   There is no config file and no environment variable.              │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from dataclasses import dataclass


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class RelayConfig:
    """
    Configuration for the relay server.
    
    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================
    
    NETWORK SETTINGS
    - host, port, backlog, recv_size
    
    LOGGING
    - log_level
    
    =========================================================================
    USAGE
    =========================================================================
    
        config = RelayConfig(port=4242)
        config.validate()
        server = RelayServer(config)
    
    Tests pass port=0 so the OS picks a free port; the real port is then
    read back from the listener.
    
    =========================================================================
    """
    
    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────
    
    port: int = 0
    """
    The TCP port to listen on. 0 lets the OS choose one.
    """
    
    host: str = "127.0.0.1"
    """
    The address to bind to. The relay serves the local machine only.
    """
    
    backlog: int = 128
    """
    Maximum number of connections the kernel queues before accept().
    """
    
    recv_size: int = 1000
    """
    Upper bound on bytes taken from a client socket per readiness event.
    Longer lines simply arrive over several reads and are reassembled
    by the framer.
    """
    
    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────
    
    log_level: str = "WARNING"
    """
    Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    DEBUG - Every extracted line and every failed send
    INFO - Arrivals, departures, listening address
    WARNING - Quiet (default)
    """
    
    def validate(self) -> None:
        """
        Validate configuration values.
        
        Called once at startup so a bad value stops the process before
        any socket is created.
        
        Raises:
            ValueError: If any value is out of range.
        """
        if not isinstance(self.port, int) or not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")
        
        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")
        
        if self.recv_size < 1:
            raise ValueError("recv_size must be >= 1")
        
        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.log_level}")
