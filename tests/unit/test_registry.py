"""
Unit tests for the connection registry.

Each "client" is one end of a socketpair: the registry gets the first
socket as if it had been accepted, and the test reads what the relay sent
from the second.
"""

import selectors

import pytest


class TestIdentities:
    """Identity assignment."""
    
    def test_identities_start_at_zero_and_increase(self, registry, socket_pairs):
        ids = [registry.join(socket_pairs()[0]) for _ in range(3)]
        
        assert ids == [0, 1, 2]
        assert registry.next_identity == 3
    
    def test_identities_not_reused_after_leave(self, registry, socket_pairs):
        first, _ = socket_pairs()
        registry.join(first)
        registry.leave(first.fileno())
        
        second, _ = socket_pairs()
        assert registry.join(second) == 1
    
    def test_identity_lookup_by_fd(self, registry, socket_pairs):
        a, _ = socket_pairs()
        b, _ = socket_pairs()
        registry.join(a)
        registry.join(b)
        
        assert registry.identity_of(a.fileno()) == 0
        assert registry.identity_of(b.fileno()) == 1
        assert registry.get(b.fileno()).identity == 1
    
    def test_unknown_fd(self, registry):
        assert registry.get(9999) is None
        with pytest.raises(KeyError):
            registry.identity_of(9999)


class TestAnnouncements:
    """Arrival and departure notices."""
    
    def test_arrival_goes_to_others_only(self, registry, socket_pairs, read_exactly, assert_silent):
        a, a_remote = socket_pairs()
        b, b_remote = socket_pairs()
        registry.join(a)
        registry.join(b)
        
        expected = b"server: client 1 just arrived\n"
        assert read_exactly(a_remote, len(expected)) == expected
        assert_silent(b_remote)
    
    def test_first_client_hears_nothing(self, registry, socket_pairs, assert_silent):
        a, a_remote = socket_pairs()
        registry.join(a)
        
        assert_silent(a_remote)
    
    def test_departure_goes_to_remaining(self, registry, socket_pairs, read_exactly):
        a, a_remote = socket_pairs()
        b, b_remote = socket_pairs()
        registry.join(a)
        registry.join(b)
        read_exactly(a_remote, len(b"server: client 1 just arrived\n"))
        
        registry.leave(a.fileno())
        
        expected = b"server: client 0 just left\n"
        assert read_exactly(b_remote, len(expected)) == expected
    
    def test_leave_closes_socket(self, registry, socket_pairs):
        a, a_remote = socket_pairs()
        registry.join(a)
        conn = registry.get(a.fileno())
        
        registry.leave(a.fileno())
        
        assert not conn.is_open
        assert a.fileno() == -1
        # The remote end sees EOF
        assert a_remote.recv(16) == b""


class TestConsistency:
    """The selector and the connection table always agree."""
    
    def _watched(self, selector):
        return {key.fd for key in selector.get_map().values()}
    
    def test_join_and_leave_update_both(self, registry, selector, socket_pairs):
        a, _ = socket_pairs()
        b, _ = socket_pairs()
        registry.join(a)
        registry.join(b)
        
        assert self._watched(selector) == {a.fileno(), b.fileno()}
        assert len(registry) == 2
        
        fd = a.fileno()
        registry.leave(fd)
        
        assert self._watched(selector) == {b.fileno()}
        assert fd not in registry
        assert len(registry) == 1
    
    def test_registered_for_reading(self, registry, selector, socket_pairs):
        a, _ = socket_pairs()
        registry.join(a)
        
        key = selector.get_key(a)
        assert key.events == selectors.EVENT_READ
        assert key.data is registry.get(a.fileno())
    
    def test_connections_in_fd_order(self, registry, socket_pairs):
        socks = [socket_pairs()[0] for _ in range(4)]
        for sock in reversed(socks):
            registry.join(sock)
        
        fds = [conn.fd for conn in registry.connections()]
        assert fds == sorted(fds)
    
    def test_close_all(self, registry, selector, socket_pairs):
        a, a_remote = socket_pairs()
        b, b_remote = socket_pairs()
        registry.join(a)
        registry.join(b)
        a_remote.recv(64)
        
        registry.close_all()
        
        assert len(registry) == 0
        assert self._watched(selector) == set()
        assert a_remote.recv(16) == b""


class TestAppendInbound:
    """Buffered framing per connection."""
    
    def test_lines_and_remainder(self, registry, socket_pairs):
        a, _ = socket_pairs()
        registry.join(a)
        fd = a.fileno()
        
        assert registry.append_inbound(fd, b"ab") == []
        assert registry.get(fd).inbound == b"ab"
        
        assert registry.append_inbound(fd, b"c\nd") == [b"abc\n"]
        assert registry.get(fd).inbound == b"d"
    
    def test_buffers_are_per_connection(self, registry, socket_pairs):
        a, _ = socket_pairs()
        b, _ = socket_pairs()
        registry.join(a)
        registry.join(b)
        
        registry.append_inbound(a.fileno(), b"from a ")
        assert registry.append_inbound(b.fileno(), b"from b\n") == [b"from b\n"]
        assert registry.append_inbound(a.fileno(), b"done\n") == [b"from a done\n"]
