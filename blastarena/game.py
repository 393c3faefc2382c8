"""The match: map, players, HUD and the link to the other player."""

from __future__ import annotations

import logging
import queue
import threading
from pathlib import Path
from typing import Any, Callable

from .actors import Player
from .animation import Loader, Scheduler, Timer, load_image
from .hud import HUD
from .maploader import MapLoader
from .network import Protocol
from .objects import Scene
from .session import GameNetworkManager

log = logging.getLogger(__name__)

MAP_PATH = "map.txt"
BACKGROUND = "Background.png"
DEFAULT_SCENE_SIZE = (496, 208)


def _connect(handlers: list, handler: Callable[..., Any]) -> None:
    if handler not in handlers:
        handlers.append(handler)


class Game:
    """Runs one match between the local player and the remote one."""

    FRAME_RATE = 30
    STATE_UPDATE_INTERVAL_MS = 250
    MAP_COLUMNS = 31
    MAP_ROWS = 13
    VIEW_SCALE = 2.0
    GAME_OVER_DELAY_MS = 500

    def __init__(self, selected_player: int, protocol: Protocol | str, *,
                 scheduler: Scheduler | None = None, loader: Loader = load_image,
                 network: GameNetworkManager | None = None,
                 map_path: str | Path = MAP_PATH,
                 scene_size: tuple[float, float] | None = None,
                 network_in_background: bool = True):
        self.selected_player = selected_player
        self.protocol = Protocol(protocol)
        self.scheduler = scheduler if scheduler is not None else Scheduler()
        self.loader = loader
        self.map_path = map_path
        self.scene = Scene()
        self.scene_size = scene_size if scene_size is not None else self._background_size()
        self.hud = HUD(self.scene_size[0])
        self.map_loader = MapLoader(self.scheduler, loader)
        self.players: list[Player] = []
        self.winner: int | None = None
        self.finished = False
        self.game_over_handlers: list[Callable[[int], Any]] = []
        self.network = network if network is not None else GameNetworkManager(
            selected_player, self.protocol)
        self._inbox: queue.SimpleQueue = queue.SimpleQueue()
        self._game_timer: Timer | None = None
        self._network_thread: threading.Thread | None = None
        log.debug("Game started with selected player: %d and protocol: %s",
                  selected_player, self.protocol.value)
        self._connect_network_signals()
        if network_in_background:
            self._network_thread = threading.Thread(target=self.network.setup, daemon=True)
            self._network_thread.start()
        else:
            self.network.setup()
        self._state_timer = self.scheduler.call_every(
            self.STATE_UPDATE_INTERVAL_MS, self.emit_player_state)

    def _background_size(self) -> tuple[float, float]:
        image = self.loader(BACKGROUND)
        get_size = getattr(image, "get_size", None)
        return tuple(get_size()) if get_size is not None else DEFAULT_SCENE_SIZE

    @property
    def view_size(self) -> tuple[float, float]:
        return (self.scene_size[0] * self.VIEW_SCALE, self.scene_size[1] * self.VIEW_SCALE)

    def _queued(self, handler: Callable[..., Any]) -> Callable[..., None]:
        """Wrap *handler* so that network threads hand their calls to the game loop."""
        def enqueue(*args: Any) -> None:
            self._inbox.put((handler, args))
        return enqueue

    def _connect_network_signals(self) -> None:
        self.network.player_died_handlers.append(self._queued(self.handle_player_died))
        self.network.player_moved_handlers.append(self._queued(self.handle_player_moved))
        self.network.player_placed_bomb_handlers.append(
            self._queued(self.handle_player_placed_bomb))
        self.network.player_state_handlers.append(self._queued(self.update_player_state))

    def _drain_network(self) -> None:
        while True:
            try:
                handler, args = self._inbox.get_nowait()
            except queue.Empty:
                return
            handler(*args)

    def start(self) -> None:
        """Load the map, give a player the keyboard and start the frame timer."""
        if not self.map_loader.load_map(self.map_path, self.scene, self.view_size,
                                        self.MAP_COLUMNS, self.MAP_ROWS, self):
            log.debug("Map loading failed!")
        self._set_focus_on_player()
        if self._game_timer is None:
            self._game_timer = self.scheduler.call_every(1000 // self.FRAME_RATE, self.update)

    def add_player(self, player: Player) -> None:
        self.players.append(player)

    def _connect_player_signals(self, player: Player) -> None:
        _connect(player.died_handlers, self.network.on_player_died)
        _connect(player.died_handlers, self.game_over)
        _connect(player.moved_handlers, self.network.on_player_moved)
        _connect(player.bomb_handlers, self.network.on_player_placed_bomb)

    def _set_focus_on_player(self) -> None:
        focus = None
        for player in self.players:
            if not player.alive:
                continue
            self._connect_player_signals(player)
            if player.player_id == self.selected_player:
                focus = player
        if focus is None and self.players:
            focus = self.players[0]
        if focus is not None:
            focus.focusable = True
            self.scene.set_focus(focus)

    def _player_by_id(self, player_id: int) -> Player | None:
        return next((player for player in self.players
                     if player.alive and player.player_id == player_id), None)

    def update(self) -> None:
        """One frame: apply network events, move the players, refresh the HUD."""
        self._drain_network()
        if self.scene.focus_item is None:
            self._set_focus_on_player()
        self.players = [player for player in self.players if player.alive]
        for player in self.players:
            player.update_movement()
        self.hud.update_health(self.players)

    def game_over(self, died_player_id: int) -> None:
        winner = 2 if died_player_id == 1 else 1
        self.winner = winner
        log.info("Player %d is the winner!", winner)
        for handler in list(self.game_over_handlers):
            handler(winner)
        self.scheduler.call_later(self.GAME_OVER_DELAY_MS, self._finish)

    def _finish(self) -> None:
        self.finished = True

    def handle_player_died(self, player_id: int) -> None:
        log.debug("Player %d died.", player_id)
        player = self._player_by_id(player_id)
        if player is not None:
            player.die()

    def handle_player_moved(self, player_id: int, key: int, is_pressed: bool) -> None:
        log.debug("Player %d moved.", player_id)
        player = self._player_by_id(player_id)
        if player is not None:
            player.update_direction_state(key, is_pressed)

    def handle_player_placed_bomb(self, player_id: int) -> None:
        log.debug("Player %d placed a bomb.", player_id)
        player = self._player_by_id(player_id)
        if player is not None:
            player.place_bomb()

    def update_player_state(self, player_id: int, x: float, y: float, health: int) -> None:
        player = self._player_by_id(player_id)
        if player is not None:
            player.set_pos(x, y)
            player.set_health(health)

    def emit_player_state(self) -> None:
        """Send the local player's position and health to the peer."""
        player = self._player_by_id(self.selected_player)
        if player is not None:
            self.network.send_updated_player_state(
                self.selected_player, player.x, player.y, player.health)

    def shutdown(self) -> None:
        """Stop the timers and close the network connection."""
        self._state_timer.cancel()
        if self._game_timer is not None:
            self._game_timer.cancel()
            self._game_timer = None
        if self._network_thread is not None:
            self._network_thread.join(timeout=5.0)
            self._network_thread = None
        if self.network.manager is not None:
            self.network.manager.stop()