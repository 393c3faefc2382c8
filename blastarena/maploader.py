"""Build a level from a text map."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Protocol

from .actors import Player
from .animation import ASSET_DIR, Loader, Scheduler, load_image
from .objects import Block, BreakableBlock, GameObject, Scene

log = logging.getLogger(__name__)

BLOCK_CHAR = "B"
BREAKABLE_CHAR = "H"
PLAYER1_CHAR = "1"
PLAYER2_CHAR = "2"
IGNORE_CHAR = "X"
CELL_SCALE = 0.5

PLAYER_SPRITE = "player_down2.png"


class PlayerSink(Protocol):
    def add_player(self, player: Player) -> Any: ...


class MapLoader:
    """Creates blocks and players from a grid of symbols."""

    def __init__(self, scheduler: Scheduler, loader: Loader = load_image):
        self.scheduler = scheduler
        self.loader = loader

    def load_map(self, file_path: str | Path, scene: Scene, view_size: tuple[float, float],
                 num_cols: int, num_rows: int, game: PlayerSink | None = None) -> bool:
        """Fill *scene* from the map file; False if the file cannot be read."""
        if num_cols <= 0 or num_rows <= 0:
            raise ValueError("the map needs at least one column and one row")
        path = Path(file_path)
        if not path.is_absolute():
            path = ASSET_DIR / path
        try:
            text = path.read_text(encoding="utf-8")
        except OSError:
            log.debug("Error: Could not open map file: %s", path)
            return False
        cell_size = min(view_size[0] / num_cols, view_size[1] / num_rows)
        self.parse_lines(text.splitlines(), cell_size, scene, game)
        return True

    def parse_lines(self, lines: Iterable[str], cell_size: float, scene: Scene,
                    game: PlayerSink | None = None) -> list[GameObject]:
        """Place one object per known symbol and return the objects created."""
        created: list[GameObject] = []
        step = cell_size * CELL_SCALE
        for row, line in enumerate(lines):
            for col, symbol in enumerate(line):
                item = self._create(symbol, row, col)
                if item is None:
                    continue
                item.set_pos(col * step, row * step)
                scene.add_item(item)
                if isinstance(item, Player) and game is not None:
                    game.add_player(item)
                created.append(item)
        return created

    def _create(self, symbol: str, row: int, col: int) -> GameObject | None:
        if symbol == BLOCK_CHAR:
            return Block(self.scheduler, self.loader)
        if symbol == BREAKABLE_CHAR:
            return BreakableBlock(self.scheduler, self.loader)
        if symbol in (PLAYER1_CHAR, PLAYER2_CHAR):
            return Player(self.loader(PLAYER_SPRITE), int(symbol), self.scheduler, self.loader)
        if symbol != IGNORE_CHAR:
            log.debug("Warning: Unknown symbol: %r at row: %d col: %d", symbol, row, col)
        return None