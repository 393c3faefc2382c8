"""Game messages exchanged between the two players."""

from __future__ import annotations

import enum
import logging
from typing import Any, Callable

from .network import NetworkManager, Protocol, Role, create_manager

log = logging.getLogger(__name__)

DEFAULT_ADDRESS = "127.0.0.1"
DEFAULT_PORT = 12345
BOMB_REPEAT = 3


class MessageType(enum.Enum):
    PLAYER_MOVED = "playerMoved"
    PLAYER_DIED = "playerDied"
    PLAYER_PLACED_BOMB = "playerPlacedBomb"
    CONNECTION_STATUS = "connectionStatus"
    PLAYER_STATE_UPDATE = "playerStateUpdate"
    TYPE_ERROR = ""

    @classmethod
    def _missing_(cls, value: object) -> MessageType:
        return cls.TYPE_ERROR


class MessageField(enum.Enum):
    PLAYER_ID = "playerId"
    KEY = "key"
    IS_PRESSED = "isPressed"
    TYPE = "type"
    SEQUENCE_NUMBER = "sequenceNumber"
    X = "x"
    Y = "y"
    HEALTH = "health"
    FIELD_ERROR = ""

    @classmethod
    def _missing_(cls, value: object) -> MessageField:
        return cls.FIELD_ERROR


def _to_int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if isinstance(value, float) and not value.is_integer():
        return 0
    return int(value)


def _to_float(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value)


def _to_bool(value: Any) -> bool:
    return value if isinstance(value, bool) else False


def _to_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


class GameNetworkManager:
    """Turns local player events into messages and incoming messages into events."""

    def __init__(self, selected_player: int, protocol: Protocol | str, *,
                 manager_factory: Callable[[Protocol | str], NetworkManager] = create_manager,
                 address: str = DEFAULT_ADDRESS, port: int = DEFAULT_PORT):
        self.selected_player = selected_player
        self.protocol = protocol
        self.address = address
        self.port = port
        self.manager: NetworkManager | None = None
        self._factory = manager_factory
        self.update_sequence_number = 0
        self.bomb_sequence_number = 0
        self.received_bomb_sequence_numbers: set[int] = set()
        self.last_received_sequence_number = -1
        self.player_died_handlers: list[Callable[[int], Any]] = []
        self.player_moved_handlers: list[Callable[[int, int, bool], Any]] = []
        self.player_placed_bomb_handlers: list[Callable[[int], Any]] = []
        self.player_state_handlers: list[Callable[[int, float, float, int], Any]] = []
        self.state_update_handlers: list[Callable[[int], Any]] = []

    def setup(self) -> Role | None:
        """Become the server, or join as a client if the port is taken.

        Returns the role taken, or None if neither worked.
        """
        manager = self._factory(self.protocol)
        self.manager = manager
        role = Role.SERVER
        if not manager.initialize(role, self.address, self.port):
            log.debug("Server initialization failed. Joining as a client.")
            role = Role.CLIENT
            if not manager.initialize(role, self.address, self.port):
                log.debug("Client initialization failed as well!")
                return None
        manager.status_handlers.append(self.on_connection_status_changed)
        manager.data_handlers.append(self.on_data_received)
        manager.error_handlers.append(self.on_error_occurred)
        if self.protocol == Protocol.UDP and role is Role.CLIENT:
            self.on_connection_status_changed(True)
        return role

    def _send(self, message: dict) -> None:
        if self.manager is None:
            log.debug("No connection; message dropped: %s", message)
            return
        self.manager.send_data(message)

    @staticmethod
    def _message(message_type: MessageType, **fields: Any) -> dict:
        message = {MessageField.TYPE.value: message_type.value}
        message.update((MessageField[name].value, value) for name, value in fields.items())
        return message

    def on_player_died(self, player_id: int) -> None:
        if player_id == self.selected_player:
            self._send(self._message(MessageType.PLAYER_DIED, PLAYER_ID=player_id))

    def on_player_moved(self, player_id: int, key: int, is_pressed: bool) -> None:
        if player_id == self.selected_player:
            self._send(self._message(MessageType.PLAYER_MOVED, PLAYER_ID=player_id,
                                     KEY=int(key), IS_PRESSED=bool(is_pressed)))

    def on_player_placed_bomb(self, player_id: int) -> None:
        if player_id != self.selected_player:
            return
        message = self._message(MessageType.PLAYER_PLACED_BOMB, PLAYER_ID=player_id,
                                SEQUENCE_NUMBER=self.bomb_sequence_number)
        self.bomb_sequence_number += 1
        for _ in range(BOMB_REPEAT):
            self._send(dict(message))

    def send_updated_player_state(self, player_id: int, x: float, y: float, health: int) -> None:
        message = self._message(MessageType.PLAYER_STATE_UPDATE,
                                SEQUENCE_NUMBER=self.update_sequence_number,
                                PLAYER_ID=player_id, X=x, Y=y, HEALTH=health)
        self.update_sequence_number += 1
        for handler in list(self.state_update_handlers):
            handler(self.update_sequence_number)
        self._send(message)

    def on_data_received(self, data: dict) -> None:
        message_type = MessageType(_to_str(data.get(MessageField.TYPE.value)))
        sequence = _to_int(data.get(MessageField.SEQUENCE_NUMBER.value))
        player_id = _to_int(data.get(MessageField.PLAYER_ID.value))

        if message_type is MessageType.PLAYER_DIED:
            for handler in list(self.player_died_handlers):
                handler(player_id)
        elif message_type is MessageType.PLAYER_MOVED:
            key = _to_int(data.get(MessageField.KEY.value))
            is_pressed = _to_bool(data.get(MessageField.IS_PRESSED.value))
            for handler in list(self.player_moved_handlers):
                handler(player_id, key, is_pressed)
        elif message_type is MessageType.PLAYER_PLACED_BOMB:
            if sequence in self.received_bomb_sequence_numbers:
                log.debug("Duplicate bomb placement message received. Ignoring.")
                return
            self.received_bomb_sequence_numbers.add(sequence)
            for handler in list(self.player_placed_bomb_handlers):
                handler(player_id)
        elif message_type is MessageType.PLAYER_STATE_UPDATE:
            if sequence <= self.last_received_sequence_number:
                log.debug("Ignored outdated update. Current seq: %d",
                          self.last_received_sequence_number)
                return
            self.last_received_sequence_number = sequence
            x = _to_float(data.get(MessageField.X.value))
            y = _to_float(data.get(MessageField.Y.value))
            health = _to_int(data.get(MessageField.HEALTH.value))
            for handler in list(self.player_state_handlers):
                handler(player_id, x, y, health)
            for handler in list(self.state_update_handlers):
                handler(sequence)

    def on_connection_status_changed(self, connected: bool) -> None:
        log.debug("Connection status changed: %s", connected)
        if not connected:
            log.debug("Disconnected from peer.")
            return
        log.debug("Connected to peer.")
        if self.manager is not None and self.manager.role is Role.CLIENT:
            self._send(self._message(MessageType.CONNECTION_STATUS))

    def on_error_occurred(self, message: str) -> None:
        log.debug("Error occurred: %s", message)