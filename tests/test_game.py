import pytest

from blastarena.actors import Bomb, Key
from blastarena.animation import Scheduler
from blastarena.game import Game
from blastarena.network import NetworkManager
from blastarena.session import GameNetworkManager


def no_image(path):
    return None


class FakeManager(NetworkManager):
    def __init__(self):
        super().__init__()
        self.sent = []
        self.stopped = False

    def initialize(self, role, address, port):
        self.role = role
        return True

    def send_data(self, data):
        self.sent.append(data)

    def stop(self):
        self.stopped = True


@pytest.fixture
def map_file(tmp_path):
    path = tmp_path / "map.txt"
    path.write_text("XXXXXXXXXX\nX1XXXX2XXX\nXXXXXXXXXX\n", encoding="utf-8")
    return path


def make_game(map_file, selected=1):
    manager = FakeManager()
    network = GameNetworkManager(selected, "UDP", manager_factory=lambda protocol: manager)
    game = Game(selected, "UDP", scheduler=Scheduler(), loader=no_image, network=network,
                map_path=map_file, scene_size=(496, 208), network_in_background=False)
    return game, manager


def player(game, player_id):
    return next(p for p in game.players if p.player_id == player_id)


def bombs_in(game):
    return [item for item in game.scene.items() if isinstance(item, Bomb)]


def test_start_loads_players_and_focuses_selected(map_file):
    game, _ = make_game(map_file)
    game.start()
    assert sorted(p.player_id for p in game.players) == [1, 2]
    assert game.scene.focus_item is player(game, 1)


def test_focus_on_second_player(map_file):
    game, _ = make_game(map_file, selected=2)
    game.start()
    assert game.scene.focus_item is player(game, 2)


def test_focus_falls_back_to_first_player(map_file):
    game, _ = make_game(map_file, selected=3)
    game.start()
    assert game.scene.focus_item is game.players[0]


def test_missing_map_leaves_no_players(tmp_path):
    game, _ = make_game(tmp_path / "absent.txt")
    game.start()
    assert game.players == []


def test_local_key_moves_player_and_is_sent(map_file):
    game, manager = make_game(map_file)
    game.start()
    me = player(game, 1)
    start_x = me.x
    game.scene.focus_item.key_press(Key.D)
    game.update()
    assert me.x > start_x
    assert manager.sent[-1]["type"] == "playerMoved"
    assert manager.sent[-1]["key"] == int(Key.D)


def test_remote_move_applies_after_update(map_file):
    game, _ = make_game(map_file)
    game.start()
    other = player(game, 2)
    start_y = other.y
    game.network.on_data_received(
        {"type": "playerMoved", "playerId": 2, "key": int(Key.S), "isPressed": True})
    assert other.y == start_y
    game.update()
    assert other.y > start_y


def test_remote_state_update(map_file):
    game, _ = make_game(map_file)
    game.start()
    game.network.on_data_received({"type": "playerStateUpdate", "sequenceNumber": 0,
                                   "playerId": 2, "x": 40.0, "y": 24.0, "health": 2})
    game.update()
    other = player(game, 2)
    assert other.pos == (40.0, 24.0)
    assert other.health == 2
    assert game.hud.p2.text == "Player 2: 2"


def test_emit_player_state_sends_selected_player(map_file):
    game, manager = make_game(map_file)
    game.start()
    game.emit_player_state()
    message = manager.sent[-1]
    me = player(game, 1)
    assert message["type"] == "playerStateUpdate"
    assert (message["playerId"], message["x"], message["y"]) == (1, me.x, me.y)
    assert message["health"] == me.health


def test_state_timer_sends_periodically(map_file):
    game, manager = make_game(map_file)
    game.start()
    game.scheduler.advance(Game.STATE_UPDATE_INTERVAL_MS)
    assert [m["type"] for m in manager.sent].count("playerStateUpdate") == 1


def test_remote_bomb_is_placed(map_file):
    game, _ = make_game(map_file)
    game.start()
    assert len(bombs_in(game)) == 0
    message = {"type": "playerPlacedBomb", "playerId": 2, "sequenceNumber": 0}
    game.network.on_data_received(message)
    game.update()
    assert len(bombs_in(game)) == 1
    game.network.on_data_received(dict(message))
    game.update()
    assert len(bombs_in(game)) == 1


def test_local_death_is_sent_and_ends_game(map_file):
    game, manager = make_game(map_file)
    game.start()
    winners = []
    game.game_over_handlers.append(winners.append)
    player(game, 1).take_damage(Game.MAP_ROWS)
    assert {"type": "playerDied", "playerId": 1} in manager.sent
    assert winners == [2]
    assert game.finished is False
    game.scheduler.advance(Game.GAME_OVER_DELAY_MS)
    assert game.finished is True


def test_remote_death_removes_player(map_file):
    game, _ = make_game(map_file)
    game.start()
    game.network.on_data_received({"type": "playerDied", "playerId": 2})
    game.update()
    assert game.winner == 1
    game.scheduler.advance(1000)
    game.update()
    assert [p.player_id for p in game.players] == [1]


def test_player_signals_connected_once(map_file):
    game, _ = make_game(map_file)
    game.start()
    for _ in range(3):
        game.scene.focus_item = None
        game.update()
    winners = []
    game.game_over_handlers.append(winners.append)
    player(game, 2).die()
    assert winners == [1]


def test_invalid_protocol_rejected(map_file):
    with pytest.raises(ValueError):
        Game(1, "SCTP", scheduler=Scheduler(), loader=no_image, map_path=map_file,
             scene_size=(496, 208), network_in_background=False)


def test_shutdown_stops_connection(map_file):
    game, manager = make_game(map_file)
    game.start()
    game.shutdown()
    assert manager.stopped is True
    sent = len(manager.sent)
    game.scheduler.advance(1000)
    assert len(manager.sent) == sent