"""
=============================================================================
LINERELAY - Newline Broadcast Relay Over TCP
=============================================================================

Clients connect to one loopback port. Every complete line a client sends
is passed on to every other client, prefixed with the sender's number:

    client 0 sends      b"hello\\n"
    client 1 receives   b"client 0: hello\\n"

Arrivals and departures are announced the same way:

    b"server: client 2 just arrived\\n"
    b"server: client 0 just left\\n"

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    linerelay/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m linerelay PORT)
    ├── server.py            # RelayServer, owns the server state
    ├── config.py            # RelayConfig dataclass
    ├── errors.py            # RelayError, FatalError
    └── core/
        ├── listener.py      # Listening socket
        ├── connection.py    # One client
        ├── registry.py      # Connection table and identities
        ├── framer.py        # Line splitting
        ├── broadcaster.py   # Fan-out
        └── event_loop.py    # select() dispatcher

=============================================================================
QUICK START
=============================================================================

    $ python -m linerelay 4242
    $ nc 127.0.0.1 4242     # in two other terminals

=============================================================================
"""

__version__ = "1.0.0"

from .config import RelayConfig
from .errors import FatalError, RelayError
from .server import RelayServer

__all__ = ["RelayServer", "RelayConfig", "FatalError", "RelayError", "__version__"]
