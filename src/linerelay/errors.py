"""
Exceptions raised by the relay.

Only two outcomes exist for a failure: it either ends one connection
(handled inside the event loop, never surfaced as an exception) or it ends
the whole process. The second kind is FatalError.
"""


class RelayError(Exception):
    """Base class for relay errors."""


class FatalError(RelayError):
    """
    An unrecoverable condition for the whole server.
    
    Raised when the listening socket cannot be created, bound or put into
    listening mode, when the readiness wait itself fails, and when memory
    runs out while growing a connection's pending buffer. The bootstrap
    catches it, writes DIAGNOSTIC to stderr and exits with status 1.
    """
    
    DIAGNOSTIC = "Fatal error\n"
    
    def __init__(self, reason: str = ""):
        super().__init__(reason or self.DIAGNOSTIC.strip())
        self.reason = reason
