"""Peer-to-peer transport of JSON messages over TCP or UDP."""

from __future__ import annotations

import abc
import enum
import json
import logging
import os
import socket
import threading
from typing import Any, Callable

log = logging.getLogger(__name__)

POLL_INTERVAL = 0.1
CONNECT_TIMEOUT = 3.0
MAX_DATAGRAM = 65535

DataHandler = Callable[[dict], Any]
StatusHandler = Callable[[bool], Any]
ErrorHandler = Callable[[str], Any]


class Role(enum.Enum):
    SERVER = "server"
    CLIENT = "client"


class Protocol(str, enum.Enum):
    TCP = "TCP"
    UDP = "UDP"


def _encode(data: dict) -> bytes:
    """One message per line: compact JSON followed by a newline."""
    return (json.dumps(data) + "\n").encode("utf-8")


def _decode(raw: bytes) -> dict | None:
    """The JSON object held in *raw*, or None if it is not one."""
    if not raw.strip():
        return None
    try:
        value = json.loads(raw)
    except ValueError:
        return None
    return value if isinstance(value, dict) else None


class NetworkManager(abc.ABC):
    """A connection to the other player that sends and receives JSON objects.

    Handlers registered in ``data_handlers``, ``status_handlers`` and
    ``error_handlers`` may be called from a background thread.
    """

    def __init__(self) -> None:
        self.address = ""
        self.port = 0
        self.role: Role | None = None
        self.data_handlers: list[DataHandler] = []
        self.status_handlers: list[StatusHandler] = []
        self.error_handlers: list[ErrorHandler] = []
        self._stopping = threading.Event()
        self._threads: list[threading.Thread] = []
        self._threads_lock = threading.Lock()

    def __enter__(self) -> NetworkManager:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    @abc.abstractmethod
    def initialize(self, role: Role, address: str, port: int) -> bool:
        """Open the connection in the given role; False if that is not possible."""

    @abc.abstractmethod
    def send_data(self, data: dict) -> None:
        """Send one message to the peer, if there is one."""

    @abc.abstractmethod
    def stop(self) -> None:
        """Close every socket and stop the background threads."""

    def _emit_data(self, data: dict) -> None:
        for handler in list(self.data_handlers):
            handler(data)

    def _emit_status(self, connected: bool) -> None:
        for handler in list(self.status_handlers):
            handler(connected)

    def _emit_error(self, message: str) -> None:
        for handler in list(self.error_handlers):
            handler(message)

    def _start_thread(self, target: Callable[..., Any], *args: Any) -> None:
        thread = threading.Thread(target=target, args=args, daemon=True)
        with self._threads_lock:
            self._threads = [t for t in self._threads if t.is_alive()]
            self._threads.append(thread)
        thread.start()

    def _join_threads(self) -> None:
        with self._threads_lock:
            threads, self._threads = self._threads, []
        current = threading.current_thread()
        for thread in threads:
            if thread is not current:
                thread.join(timeout=1.0)

    def _prepare(self, role: Role, address: str, port: int) -> None:
        self.stop()
        self._stopping.clear()
        self.role = role
        self.address = address
        self.port = port


class TcpManager(NetworkManager):
    """A single TCP connection; the server side accepts one peer at a time."""

    def __init__(self) -> None:
        super().__init__()
        self._server: socket.socket | None = None
        self._socket: socket.socket | None = None
        self._lock = threading.Lock()

    @property
    def local_port(self) -> int | None:
        """The port the server listens on, or the client's local port."""
        with self._lock:
            sock = self._server or self._socket
            return sock.getsockname()[1] if sock is not None else None

    def initialize(self, role: Role, address: str, port: int) -> bool:
        self._prepare(role, address, port)
        success = self._setup_server() if role is Role.SERVER else self._setup_client()
        log.debug("TCPManager initialized with role %s", role.name)
        return success

    def _setup_server(self) -> bool:
        server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        if os.name == "posix":
            server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            server.bind(("", self.port))
            server.listen(1)
        except OSError as exc:
            server.close()
            self._emit_error(str(exc))
            return False
        server.settimeout(POLL_INTERVAL)
        with self._lock:
            self._server = server
        self._start_thread(self._accept_loop, server)
        log.debug("Server started")
        return True

    def _setup_client(self) -> bool:
        try:
            sock = socket.create_connection((self.address, self.port), timeout=CONNECT_TIMEOUT)
        except OSError as exc:
            log.debug("Client connection failed")
            self._emit_error(str(exc))
            return False
        sock.settimeout(POLL_INTERVAL)
        with self._lock:
            self._socket = sock
        self._start_thread(self._read_loop, sock)
        self._emit_status(True)
        return True

    def _accept_loop(self, server: socket.socket) -> None:
        while not self._stopping.is_set():
            try:
                conn, _ = server.accept()
            except TimeoutError:
                continue
            except OSError:
                break
            with self._lock:
                if self._socket is not None:
                    conn.close()
                    continue
                conn.settimeout(POLL_INTERVAL)
                self._socket = conn
            self._emit_status(True)
            log.debug("Client connected")
            self._start_thread(self._read_loop, conn)

    def _read_loop(self, sock: socket.socket) -> None:
        buffer = b""
        while not self._stopping.is_set():
            try:
                chunk = sock.recv(4096)
            except TimeoutError:
                continue
            except OSError as exc:
                if not self._stopping.is_set():
                    self._emit_error(str(exc))
                break
            if not chunk:
                break
            *lines, buffer = (buffer + chunk).split(b"\n")
            for line in lines:
                message = _decode(line)
                if message is not None:
                    self._emit_data(message)
        if not self._stopping.is_set():
            self._on_disconnected(sock)

    def _on_disconnected(self, sock: socket.socket) -> None:
        with self._lock:
            if self._socket is sock:
                self._socket = None
        sock.close()
        self._emit_status(False)
        log.debug("Peer disconnected")

    def send_data(self, data: dict) -> None:
        payload = _encode(data)
        with self._lock:
            sock = self._socket
        if sock is None:
            return
        try:
            sock.sendall(payload)
        except OSError as exc:
            self._emit_error(str(exc))
            return
        log.debug("TCP data sent: %s", payload.decode("utf-8").rstrip())

    def stop(self) -> None:
        self._stopping.set()
        with self._lock:
            server, self._server = self._server, None
            sock, self._socket = self._socket, None
        if sock is not None:
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            sock.close()
        if server is not None:
            server.close()
        self._join_threads()


class UdpManager(NetworkManager):
    """Datagram transport; the server answers whoever wrote to it last."""

    def __init__(self) -> None:
        super().__init__()
        self._socket: socket.socket | None = None
        self._peer: tuple[str, int] | None = None
        self._lock = threading.Lock()

    @property
    def local_port(self) -> int | None:
        with self._lock:
            return self._socket.getsockname()[1] if self._socket is not None else None

    def initialize(self, role: Role, address: str, port: int) -> bool:
        self._prepare(role, address, port)
        self._peer = None
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.bind(("", port if role is Role.SERVER else 0))
        except OSError as exc:
            sock.close()
            self._emit_error(str(exc))
            log.debug("UDPManager initialized with role %s", role.name)
            return False
        sock.settimeout(POLL_INTERVAL)
        with self._lock:
            self._socket = sock
        self._start_thread(self._read_loop, sock)
        log.debug("UDP %s bound to port %d", role.name, sock.getsockname()[1])
        return True

    def _read_loop(self, sock: socket.socket) -> None:
        while not self._stopping.is_set():
            try:
                datagram, sender = sock.recvfrom(MAX_DATAGRAM)
            except TimeoutError:
                continue
            except ConnectionResetError as exc:
                self._emit_error(str(exc))
                continue
            except OSError as exc:
                if not self._stopping.is_set():
                    self._emit_error(str(exc))
                break
            if self.role is Role.SERVER:
                with self._lock:
                    self._peer = (sender[0], sender[1])
            message = _decode(datagram)
            if message is not None:
                self._emit_data(message)

    def send_data(self, data: dict) -> None:
        payload = _encode(data)
        with self._lock:
            sock = self._socket
            target = self._peer if self.role is Role.SERVER else (self.address, self.port)
        if sock is None or target is None or not target[0] or target[1] == 0:
            return
        try:
            sock.sendto(payload, target)
        except OSError as exc:
            self._emit_error(str(exc))
            return
        log.debug("UDP data sent to %s:%d: %s", target[0], target[1],
                  payload.decode("utf-8").rstrip())

    def stop(self) -> None:
        self._stopping.set()
        with self._lock:
            sock, self._socket = self._socket, None
        if sock is not None:
            sock.close()
        self._join_threads()


def create_manager(protocol: Protocol | str) -> NetworkManager:
    """A fresh manager for "TCP" or "UDP"; ValueError for anything else."""
    chosen = Protocol(protocol)
    return TcpManager() if chosen is Protocol.TCP else UdpManager()