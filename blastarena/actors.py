"""Players and the bombs they place."""

from __future__ import annotations

import enum
import math
from typing import Any, Callable

from .animation import Animation, Loader, Scheduler, load_frames, load_image
from .objects import (
    TILE_SIZE,
    Block,
    BreakableBlock,
    ExplosionEffect,
    ExplosionType,
    GameObject,
    Rect,
    Scene,
)


class Key(enum.IntEnum):
    """Key codes understood by players; the values travel over the network."""

    SPACE = 0x20
    A = 0x41
    D = 0x44
    S = 0x53
    W = 0x57


_DIRECTIONS = (
    ((-1, 0), ExplosionType.LEFT, ExplosionType.END_LEFT),
    ((1, 0), ExplosionType.RIGHT, ExplosionType.END_RIGHT),
    ((0, -1), ExplosionType.UP, ExplosionType.END_UP),
    ((0, 1), ExplosionType.DOWN, ExplosionType.END_DOWN),
)


class Bomb(GameObject):
    """A bomb that explodes in a cross after a fixed delay."""

    FRAME_COUNT = 3
    FRAME_DURATION_MS = 250
    EXPLOSION_DELAY = 2000
    EXPLOSION_RANGE = 3
    REMOVAL_DELAY = 200

    def __init__(self, scheduler: Scheduler, loader: Loader = load_image):
        super().__init__(loader("bomb1.png"), scheduler)
        self._loader = loader
        self.exploded = False
        frames = load_frames("bomb{}.png", self.FRAME_COUNT, loader)
        self.add_animation(Animation("explode", frames, self.FRAME_DURATION_MS, scheduler))
        self.play_animation("explode")
        self._fuse = self.schedule(self.EXPLOSION_DELAY, self.explode)

    def collision_rect(self) -> Rect | None:
        return None

    def explode(self) -> None:
        if self.exploded or not self.alive:
            return
        self.exploded = True
        self._fuse.cancel()
        scene = self.scene
        if scene is not None:
            areas = [self._spawn_effect(scene, self.pos, ExplosionType.CENTER)]
            for offset, normal, end in _DIRECTIONS:
                areas.extend(self._propagate(scene, offset, normal, end))
            self._damage_players(scene, areas)
        self.schedule(self.REMOVAL_DELAY, self.destroy)

    def _spawn_effect(self, scene: Scene, position: tuple[float, float],
                      explosion_type: ExplosionType) -> Rect:
        scene.add_item(ExplosionEffect(position, explosion_type, self.scheduler, self._loader))
        return Rect(position[0], position[1], TILE_SIZE, TILE_SIZE)

    def _propagate(self, scene: Scene, offset: tuple[int, int],
                   normal: ExplosionType, end: ExplosionType) -> list[Rect]:
        tiles = []
        for step in range(1, self.EXPLOSION_RANGE + 1):
            tile = (self.x + offset[0] * step * TILE_SIZE, self.y + offset[1] * step * TILE_SIZE)
            area = Rect(tile[0], tile[1], TILE_SIZE, TILE_SIZE)
            block = next((item for item in scene.items_in(area) if isinstance(item, Block)), None)
            if block is not None:
                if isinstance(block, BreakableBlock):
                    block.destroy_block()
                break
            tiles.append(tile)
        return [
            self._spawn_effect(scene, tile, end if index == len(tiles) - 1 else normal)
            for index, tile in enumerate(tiles)
        ]

    @staticmethod
    def _damage_players(scene: Scene, areas: list[Rect]) -> None:
        for item in scene.items():
            if not isinstance(item, Player) or not item.enabled:
                continue
            player_rect = item.scene_bounding_rect()
            if any(area.intersects(player_rect) for area in areas):
                item.take_damage(1)


class Player(GameObject):
    """A player moved by WASD keys who places bombs with space."""

    SCALE_FACTOR = 0.8
    DEFAULT_SPEED = 2.0
    DEFAULT_HEALTH = 3
    DIAGONAL_FACTOR = 0.7071
    DEATH_ANIMATION_DURATION = 600
    FRAME_COUNT = 3
    FRAME_DURATION = 100
    ANIMATIONS = ("down", "up", "left", "right", "dead")

    def __init__(self, sprite: Any, player_id: int, scheduler: Scheduler,
                 loader: Loader = load_image):
        super().__init__(sprite, scheduler)
        self.player_id = player_id
        self.scale = self.SCALE_FACTOR
        self.tint = None if player_id == 1 else "red"
        self.speed = self.DEFAULT_SPEED
        self._loader = loader
        self._health = self.DEFAULT_HEALTH
        self.is_dead = False
        self._move_up = self._move_down = self._move_left = self._move_right = False
        self.is_moving = False
        self.died_handlers: list[Callable[[int], Any]] = []
        self.moved_handlers: list[Callable[[int, int, bool], Any]] = []
        self.bomb_handlers: list[Callable[[int], Any]] = []
        for name in self.ANIMATIONS:
            frames = load_frames(f"player_{name}{{}}.png", self.FRAME_COUNT, loader)
            self.add_animation(Animation(name, frames, self.FRAME_DURATION, scheduler))

    @property
    def health(self) -> int:
        return self._health

    def take_damage(self, damage: int) -> None:
        if self.is_dead:
            return
        self._health -= damage
        if self._health <= 0:
            self.die()

    def set_health(self, health: int) -> None:
        self._health = health
        if self._health <= 0 and not self.is_dead:
            self.die()

    def die(self) -> None:
        if self.is_dead:
            return
        self.is_dead = True
        self.play_animation("dead")
        self.focusable = False
        self.enabled = False
        if self.scene is not None and self.scene.focus_item is self:
            self.scene.focus_item = None
        self.schedule(self.DEATH_ANIMATION_DURATION, self.destroy)
        for handler in list(self.died_handlers):
            handler(self.player_id)

    def key_press(self, key: int) -> bool:
        """Handle a key press; False if the player ignores it."""
        if self.is_dead:
            return False
        if key == Key.SPACE:
            self.place_bomb()
            for handler in list(self.bomb_handlers):
                handler(self.player_id)
            return True
        self.update_direction_state(key, True)
        return True

    def key_release(self, key: int) -> bool:
        if self.is_dead:
            return False
        self.update_direction_state(key, False)
        return True

    def update_direction_state(self, key: int, is_pressed: bool) -> None:
        try:
            key = Key(key)
        except ValueError:
            pass
        if key == Key.W:
            self._move_up = is_pressed
        elif key == Key.S:
            self._move_down = is_pressed
        elif key == Key.A:
            self._move_left = is_pressed
        elif key == Key.D:
            self._move_right = is_pressed
        self.is_moving = self._move_up or self._move_down or self._move_left or self._move_right
        for handler in list(self.moved_handlers):
            handler(self.player_id, key, is_pressed)

    def update_movement(self) -> None:
        if self.is_dead:
            return
        dx = (-self.speed if self._move_left else 0.0) + (self.speed if self._move_right else 0.0)
        dy = (-self.speed if self._move_up else 0.0) + (self.speed if self._move_down else 0.0)
        if dx and dy:
            dx *= self.DIAGONAL_FACTOR
            dy *= self.DIAGONAL_FACTOR
        if not dx and not dy:
            self.stop_animation()
            return
        self.set_pos(self.x + dx, self.y + dy)
        if any(isinstance(item, Block) for item in self.colliding_items()):
            self.set_pos(self.x - dx, self.y - dy)
            self.stop_animation()
            return
        if abs(dy) >= abs(dx):
            self.play_animation("up" if dy < 0 else "down")
        else:
            self.play_animation("left" if dx < 0 else "right")

    def place_bomb(self) -> Bomb | None:
        """Drop a bomb on the tile under the player's centre; None if it cannot go there."""
        if self.scene is None:
            return None
        center_x, center_y = self.bounding_rect().center
        tile_x = math.floor((self.x + center_x) / TILE_SIZE) * TILE_SIZE
        tile_y = math.floor((self.y + center_y) / TILE_SIZE) * TILE_SIZE
        bomb = Bomb(self.scheduler, self._loader)
        bomb.set_pos(tile_x, tile_y)
        bomb.z = self.z - 1
        footprint = bomb.bounding_rect().translated(tile_x, tile_y)
        if any(isinstance(item, Block) for item in self.scene.items_in(footprint)):
            bomb.destroy()
            return None
        self.scene.add_item(bomb)
        return bomb