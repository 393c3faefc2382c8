import queue
import socket
import time

import pytest

from blastarena.network import (
    Protocol,
    Role,
    TcpManager,
    UdpManager,
    create_manager,
)

WAIT = 5


def collect(handlers):
    received = queue.Queue()
    handlers.append(received.put)
    return received


def free_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as probe:
        probe.bind(("127.0.0.1", 0))
        return probe.getsockname()[1]


def test_tcp_round_trip_between_server_and_client():
    with TcpManager() as server, TcpManager() as client:
        assert server.initialize(Role.SERVER, "127.0.0.1", 0)
        server_status = collect(server.status_handlers)
        server_data = collect(server.data_handlers)
        client_data = collect(client.data_handlers)
        assert client.initialize(Role.CLIENT, "127.0.0.1", server.local_port)
        assert server_status.get(timeout=WAIT) is True
        client.send_data({"type": "playerDied", "playerId": 2})
        assert server_data.get(timeout=WAIT) == {"type": "playerDied", "playerId": 2}
        server.send_data({"type": "playerMoved", "key": 87, "isPressed": True})
        assert client_data.get(timeout=WAIT) == {"type": "playerMoved", "key": 87, "isPressed": True}


def test_tcp_messages_keep_their_order():
    with TcpManager() as server, TcpManager() as client:
        assert server.initialize(Role.SERVER, "127.0.0.1", 0)
        server_data = collect(server.data_handlers)
        assert client.initialize(Role.CLIENT, "127.0.0.1", server.local_port)
        messages = [{"sequenceNumber": n} for n in range(5)]
        for message in messages:
            client.send_data(message)
        assert [server_data.get(timeout=WAIT) for _ in messages] == messages


def test_tcp_server_sees_disconnect_and_accepts_new_peer():
    with TcpManager() as server:
        assert server.initialize(Role.SERVER, "127.0.0.1", 0)
        status = collect(server.status_handlers)
        first = TcpManager()
        assert first.initialize(Role.CLIENT, "127.0.0.1", server.local_port)
        assert status.get(timeout=WAIT) is True
        first.stop()
        assert status.get(timeout=WAIT) is False
        with TcpManager() as second:
            assert second.initialize(Role.CLIENT, "127.0.0.1", server.local_port)
            assert status.get(timeout=WAIT) is True


def test_tcp_second_server_on_same_port_fails():
    with TcpManager() as server, TcpManager() as other:
        assert server.initialize(Role.SERVER, "127.0.0.1", 0)
        errors = collect(other.error_handlers)
        assert other.initialize(Role.SERVER, "127.0.0.1", server.local_port) is False
        assert isinstance(errors.get(timeout=WAIT), str)


def test_tcp_client_without_server_fails():
    with TcpManager() as client:
        errors = collect(client.error_handlers)
        assert client.initialize(Role.CLIENT, "127.0.0.1", free_port()) is False
        assert isinstance(errors.get(timeout=WAIT), str)
        assert client.local_port is None


def test_tcp_skips_lines_that_are_not_json_objects():
    with TcpManager() as server:
        assert server.initialize(Role.SERVER, "127.0.0.1", 0)
        data = collect(server.data_handlers)
        with socket.create_connection(("127.0.0.1", server.local_port), timeout=WAIT) as raw:
            raw.sendall(b'not json\n[1, 2]\n{"a": 1}\n')
            assert data.get(timeout=WAIT) == {"a": 1}


def test_tcp_joins_a_message_split_across_packets():
    with TcpManager() as server:
        assert server.initialize(Role.SERVER, "127.0.0.1", 0)
        data = collect(server.data_handlers)
        with socket.create_connection(("127.0.0.1", server.local_port), timeout=WAIT) as raw:
            raw.sendall(b'{"health":')
            time.sleep(0.05)
            raw.sendall(b' 3}\n')
            assert data.get(timeout=WAIT) == {"health": 3}


def test_udp_round_trip_server_answers_last_sender():
    with UdpManager() as server, UdpManager() as client:
        assert server.initialize(Role.SERVER, "127.0.0.1", 0)
        assert client.initialize(Role.CLIENT, "127.0.0.1", server.local_port)
        server_data = collect(server.data_handlers)
        client_data = collect(client.data_handlers)
        client.send_data({"type": "connectionStatus"})
        assert server_data.get(timeout=WAIT) == {"type": "connectionStatus"}
        server.send_data({"x": 1.5, "y": 2.5})
        assert client_data.get(timeout=WAIT) == {"x": 1.5, "y": 2.5}


def test_udp_second_server_on_same_port_fails():
    with UdpManager() as server, UdpManager() as other:
        assert server.initialize(Role.SERVER, "127.0.0.1", 0)
        errors = collect(other.error_handlers)
        assert other.initialize(Role.SERVER, "127.0.0.1", server.local_port) is False
        assert isinstance(errors.get(timeout=WAIT), str)


def test_udp_stop_releases_the_port():
    server = UdpManager()
    assert server.initialize(Role.SERVER, "127.0.0.1", 0)
    port = server.local_port
    server.stop()
    assert server.local_port is None
    with UdpManager() as again:
        assert again.initialize(Role.SERVER, "127.0.0.1", port)


@pytest.mark.parametrize("protocol, expected", [
    ("TCP", TcpManager),
    ("UDP", UdpManager),
    (Protocol.TCP, TcpManager),
    (Protocol.UDP, UdpManager),
])
def test_create_manager_picks_transport(protocol, expected):
    manager = create_manager(protocol)
    assert type(manager) is expected
    assert manager.role is None


def test_create_manager_rejects_unknown_protocol():
    with pytest.raises(ValueError):
        create_manager("SCTP")