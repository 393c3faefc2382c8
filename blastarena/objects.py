"""Scene, game objects, blocks and explosion effects."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, replace
from typing import Any, Callable

from .animation import Animation, Loader, Scheduler, Timer, load_frames, load_image

log = logging.getLogger(__name__)

TILE_SIZE = 16


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def intersects(self, other: Rect) -> bool:
        """True if the two rectangles share an area; touching edges do not count."""
        if self.is_empty() or other.is_empty():
            return False
        return (self.x < other.right and other.x < self.right
                and self.y < other.bottom and other.y < self.bottom)

    def translated(self, dx: float, dy: float) -> Rect:
        return replace(self, x=self.x + dx, y=self.y + dy)


class Scene:
    """A flat collection of game objects with stacking order and focus."""

    def __init__(self) -> None:
        self._items: list[GameObject] = []
        self.focus_item: GameObject | None = None

    def __contains__(self, item: object) -> bool:
        return item in self._items

    def __len__(self) -> int:
        return len(self._items)

    def add_item(self, item: GameObject) -> None:
        if item.scene is self:
            return
        if item.scene is not None:
            item.scene.remove_item(item)
        self._items.append(item)
        item.scene = self

    def remove_item(self, item: GameObject) -> None:
        if item.scene is not self:
            return
        self._items.remove(item)
        item.scene = None
        if self.focus_item is item:
            self.focus_item = None

    def items(self) -> list[GameObject]:
        """Items from the topmost down; later items sit above earlier ones at equal z."""
        return sorted(reversed(self._items), key=lambda item: -item.z)

    def items_in(self, rect: Rect) -> list[GameObject]:
        found = []
        for item in self.items():
            shape = item.collision_rect()
            if shape is not None and shape.intersects(rect):
                found.append(item)
        return found

    def set_focus(self, item: GameObject | None) -> None:
        if item is None or (item.scene is self and item.focusable and item.enabled):
            self.focus_item = item


class GameObject:
    """A positioned sprite that can play named animations."""

    def __init__(self, sprite: Any, scheduler: Scheduler, *,
                 size: tuple[float, float] = (TILE_SIZE, TILE_SIZE)):
        self.pixmap = sprite
        self.scheduler = scheduler
        self.default_size = size
        self.x = 0.0
        self.y = 0.0
        self.z = 0.0
        self.scale = 1.0
        self.enabled = True
        self.focusable = False
        self.alive = True
        self.scene: Scene | None = None
        self._animations: dict[str, Animation] = {}
        self._current: Animation | None = None
        self._timers: list[Timer] = []

    @property
    def pos(self) -> tuple[float, float]:
        return (self.x, self.y)

    def set_pos(self, x: float, y: float) -> None:
        self.x = x
        self.y = y

    @property
    def size(self) -> tuple[float, float]:
        get_size = getattr(self.pixmap, "get_size", None)
        return tuple(get_size()) if get_size is not None else self.default_size

    def bounding_rect(self) -> Rect:
        width, height = self.size
        return Rect(0, 0, width, height)

    def scene_bounding_rect(self) -> Rect:
        width, height = self.size
        return Rect(self.x, self.y, width * self.scale, height * self.scale)

    def collision_rect(self) -> Rect | None:
        """The area used for hit tests, or None for an object that cannot be hit."""
        return self.scene_bounding_rect()

    def colliding_items(self) -> list[GameObject]:
        rect = self.collision_rect()
        if self.scene is None or rect is None:
            return []
        return [item for item in self.scene.items_in(rect) if item is not self]

    @property
    def current_animation(self) -> str | None:
        return self._current.name if self._current is not None else None

    def add_animation(self, animation: Animation | None) -> None:
        if animation is None:
            return
        self._animations[animation.name] = animation
        animation.subscribe(self._update_frame)

    def play_animation(self, name: str) -> None:
        animation = self._animations.get(name)
        if animation is None:
            log.warning("Animation %s not found!", name)
            return
        if self._current is animation and animation.is_running():
            return
        if self._current is not None:
            self._current.stop()
        self._current = animation
        animation.reset()
        animation.start()
        self.pixmap = animation.current_frame()

    def stop_animation(self) -> None:
        if self._current is not None:
            self._current.stop()
            self._current = None

    def _update_frame(self) -> None:
        if self._current is not None:
            self.pixmap = self._current.current_frame()

    def schedule(self, delay_ms: float, callback: Callable[[], Any]) -> Timer:
        """Run *callback* after a delay unless the object is destroyed first."""
        self._timers = [timer for timer in self._timers if timer.active]
        timer = self.scheduler.call_later(delay_ms, callback)
        self._timers.append(timer)
        return timer

    def destroy(self) -> None:
        """Stop everything the object runs and take it out of its scene."""
        if not self.alive:
            return
        self.alive = False
        for animation in self._animations.values():
            animation.stop()
        self._current = None
        for timer in self._timers:
            timer.cancel()
        self._timers.clear()
        if self.scene is not None:
            self.scene.remove_item(self)


class Block(GameObject):
    """A solid tile that stops movement and explosions."""

    def __init__(self, scheduler: Scheduler, loader: Loader = load_image):
        super().__init__(loader("block.png"), scheduler)


class BreakableBlock(Block):
    """A tile that crumbles when an explosion reaches it."""

    FRAME_COUNT = 3
    FRAME_DURATION_MS = 200

    def __init__(self, scheduler: Scheduler, loader: Loader = load_image):
        super().__init__(scheduler, loader)
        self.pixmap = loader("breakable_block.png")
        frames = load_frames("breakable_block{}.png", self.FRAME_COUNT, loader)
        self.add_animation(Animation("break", frames, self.FRAME_DURATION_MS, scheduler))
        self.breaking = False

    def destroy_block(self) -> None:
        if self.breaking or not self.alive:
            return
        self.breaking = True
        self.play_animation("break")
        self.schedule(self.FRAME_COUNT * self.FRAME_DURATION_MS, self.destroy)


class ExplosionType(enum.Enum):
    CENTER = "center"
    LEFT = "left"
    RIGHT = "right"
    UP = "up"
    DOWN = "down"
    END_LEFT = "end_left"
    END_RIGHT = "end_right"
    END_UP = "end_up"
    END_DOWN = "end_down"


_FRAME_PATHS = {
    ExplosionType.CENTER: "center_exp{}.png",
    ExplosionType.LEFT: "x_exp{}.png",
    ExplosionType.RIGHT: "x_exp{}.png",
    ExplosionType.UP: "y_exp{}.png",
    ExplosionType.DOWN: "y_exp{}.png",
    ExplosionType.END_LEFT: "left_exp{}.png",
    ExplosionType.END_RIGHT: "right_exp{}.png",
    ExplosionType.END_UP: "up_exp{}.png",
    ExplosionType.END_DOWN: "down_exp{}.png",
}


def frame_path_for_type(explosion_type: ExplosionType) -> str:
    """The frame path template used for one piece of an explosion."""
    return _FRAME_PATHS.get(explosion_type, _FRAME_PATHS[ExplosionType.CENTER])


class ExplosionEffect(GameObject):
    """A short-lived flame tile."""

    FRAME_COUNT = 2
    FRAME_DURATION_MS = 100
    REMOVAL_DELAY_MS = 300

    def __init__(self, position: tuple[float, float], explosion_type: ExplosionType,
                 scheduler: Scheduler, loader: Loader = load_image):
        super().__init__(None, scheduler)
        self.explosion_type = explosion_type
        self.set_pos(*position)
        frames = load_frames(frame_path_for_type(explosion_type), self.FRAME_COUNT, loader)
        self.add_animation(Animation("exp", frames, self.FRAME_DURATION_MS, scheduler))
        self.play_animation("exp")
        self.schedule(self.REMOVAL_DELAY_MS, self.destroy)