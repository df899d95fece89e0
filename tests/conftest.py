"""
pytest configuration and fixtures.
"""

import selectors
import socket
import time
from typing import Generator, List
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from linerelay import RelayServer, RelayConfig
from linerelay.core import ConnectionRegistry


@pytest.fixture
def selector() -> Generator[selectors.BaseSelector, None, None]:
    """A fresh selector, closed after the test."""
    sel = selectors.DefaultSelector()
    yield sel
    sel.close()


@pytest.fixture
def registry(selector) -> Generator[ConnectionRegistry, None, None]:
    """A registry with no listening socket behind it."""
    reg = ConnectionRegistry(selector)
    yield reg
    reg.close_all()


@pytest.fixture
def socket_pairs() -> Generator[List, None, None]:
    """
    Factory for connected socket pairs.
    
    The first socket of each pair plays the accepted server side, the
    second the remote client.
    """
    made = []
    
    def make():
        server_side, client_side = socket.socketpair()
        client_side.settimeout(2.0)
        made.append((server_side, client_side))
        return server_side, client_side
    
    yield make
    
    for server_side, client_side in made:
        server_side.close()
        client_side.close()


def read_exactly(sock: socket.socket, size: int, timeout: float = 2.0) -> bytes:
    """Read exactly size bytes or fail the test."""
    sock.settimeout(timeout)
    data = b""
    while len(data) < size:
        chunk = sock.recv(size - len(data))
        if not chunk:
            break
        data += chunk
    return data


def assert_silent(sock: socket.socket) -> None:
    """Assert nothing is waiting to be read on sock."""
    sock.setblocking(False)
    try:
        data = sock.recv(4096)
    except BlockingIOError:
        return
    finally:
        sock.settimeout(2.0)
    raise AssertionError(f"Expected no data, got {data!r}")


class RelayHarness:
    """
    A relay driven from the test thread.
    
    Instead of running the loop forever in the background, each call to
    pump() services whatever is ready right now, so tests control exactly
    when the relay reacts.
    """
    
    def __init__(self, server: RelayServer):
        self.server = server
        self.clients: List[socket.socket] = []
    
    @property
    def port(self) -> int:
        return self.server.address[1]
    
    def pump(self, idle_timeout: float = 0.2, max_rounds: int = 50) -> None:
        """Run loop passes until one pass finds nothing ready."""
        for _ in range(max_rounds):
            if self.server.loop.run_once(timeout=idle_timeout) == 0:
                return
    
    def connect(self) -> socket.socket:
        """Connect a client and let the relay accept it."""
        sock = socket.create_connection(("127.0.0.1", self.port), timeout=2.0)
        self.clients.append(sock)
        self.pump()
        return sock
    
    def send(self, sock: socket.socket, data: bytes) -> None:
        sock.sendall(data)
        # Give loopback a moment before polling
        time.sleep(0.01)
        self.pump()
    
    def close(self):
        for sock in self.clients:
            sock.close()
        self.server.close()


@pytest.fixture
def relay() -> Generator[RelayHarness, None, None]:
    """A started relay on a free loopback port."""
    server = RelayServer(RelayConfig(port=0))
    server.start()
    harness = RelayHarness(server)
    
    yield harness
    
    harness.close()


@pytest.fixture(name="read_exactly")
def read_exactly_fixture():
    return read_exactly


@pytest.fixture(name="assert_silent")
def assert_silent_fixture():
    return assert_silent
