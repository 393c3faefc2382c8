"""Settings, window and main loop."""

from __future__ import annotations

import argparse
import logging
import os
from dataclasses import dataclass
from typing import Sequence

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")
import pygame  # noqa: E402

from .actors import Key, Player  # noqa: E402
from .animation import Loader, load_image  # noqa: E402
from .game import BACKGROUND, Game  # noqa: E402
from .hud import HUD, HealthDisplay  # noqa: E402
from .network import Protocol  # noqa: E402
from .objects import GameObject, Scene  # noqa: E402

log = logging.getLogger(__name__)

FPS = 60

_KEYS = {
    pygame.K_w: Key.W,
    pygame.K_a: Key.A,
    pygame.K_s: Key.S,
    pygame.K_d: Key.D,
    pygame.K_SPACE: Key.SPACE,
}


@dataclass(frozen=True)
class Settings:
    player: int = 1
    protocol: Protocol = Protocol.UDP
    verbose: bool = False


def parse_settings(argv: Sequence[str] | None = None) -> Settings:
    """Read the player number and protocol from the command line."""
    parser = argparse.ArgumentParser(prog="blastarena", description="Two-player bomb arena.")
    parser.add_argument("--player", type=int, choices=(1, 2), default=1,
                        help="the player you control (default: 1)")
    parser.add_argument("--protocol", choices=[p.value for p in Protocol],
                        default=Protocol.UDP.value, help="transport (default: UDP)")
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug messages")
    args = parser.parse_args(argv)
    return Settings(args.player, Protocol(args.protocol), args.verbose)


class GameView:
    """A window showing the scene at twice its size."""

    SCALE = 2.0

    def __init__(self, scene_size: tuple[float, float], *, scale: float = SCALE,
                 loader: Loader = load_image, title: str = "Blast Arena"):
        self.scene_size = scene_size
        self.scale = scale
        self.title = title
        self.banner: str | None = None
        self.surface: pygame.Surface | None = None
        self.background: pygame.Surface | None = None
        self._loader = loader
        self._fonts: dict[tuple[int, bool], pygame.font.Font] = {}

    @property
    def size(self) -> tuple[int, int]:
        return (round(self.scene_size[0] * self.scale), round(self.scene_size[1] * self.scale))

    def initialize(self) -> None:
        pygame.init()
        self.surface = pygame.display.set_mode(self.size)
        pygame.display.set_caption(self.title)
        image = self._loader(BACKGROUND)
        self.background = pygame.transform.scale(image, self.size) if image is not None else None

    def _font(self, size: int, bold: bool) -> pygame.font.Font:
        key = (size, bold)
        if key not in self._fonts:
            self._fonts[key] = pygame.font.SysFont("arial", size, bold=bold)
        return self._fonts[key]

    def _scaled(self, x: float, y: float) -> tuple[int, int]:
        return (round(x * self.scale), round(y * self.scale))

    def _draw_item(self, item: GameObject) -> None:
        pixmap = item.pixmap
        if not isinstance(pixmap, pygame.Surface):
            return
        width, height = item.size
        target = self._scaled(width * item.scale, height * item.scale)
        if target[0] <= 0 or target[1] <= 0:
            return
        image = pygame.transform.scale(pixmap, target)
        tint = getattr(item, "tint", None)
        if tint is not None:
            image = image.copy()
            image.fill(pygame.Color(tint), special_flags=pygame.BLEND_RGB_MULT)
        self.surface.blit(image, self._scaled(item.x, item.y))

    def _draw_display(self, display: HealthDisplay) -> None:
        if not display.text:
            return
        font = self._font(round(display.font_size * self.scale), display.bold)
        x, y = self._scaled(*display.position)
        dx, dy = self._scaled(*display.shadow_offset)
        self.surface.blit(font.render(display.text, True, pygame.Color(display.shadow_color)),
                          (x + dx, y + dy))
        self.surface.blit(font.render(display.text, True, pygame.Color(display.color)), (x, y))

    def _draw_banner(self, text: str) -> None:
        font = self._font(round(12 * self.scale), True)
        label = font.render(text, True, pygame.Color("white"))
        box = label.get_rect(center=self.surface.get_rect().center).inflate(24, 16)
        pygame.draw.rect(self.surface, pygame.Color("black"), box)
        self.surface.blit(label, label.get_rect(center=box.center))

    def render(self, scene: Scene, hud: HUD | None = None) -> None:
        """Draw the background, the scene from the bottom up, the HUD and any banner."""
        if self.surface is None:
            raise RuntimeError("the view has not been initialized")
        if self.background is not None:
            self.surface.blit(self.background, (0, 0))
        else:
            self.surface.fill(pygame.Color("black"))
        for item in reversed(scene.items()):
            self._draw_item(item)
        if hud is not None:
            for display in hud.displays:
                self._draw_display(display)
        if self.banner:
            self._draw_banner(self.banner)
        pygame.display.flip()


def _dispatch_key(game: Game, event: pygame.event.Event) -> None:
    key = _KEYS.get(event.key)
    focus = game.scene.focus_item
    if key is None or not isinstance(focus, Player):
        return
    if event.type == pygame.KEYDOWN:
        focus.key_press(key)
    else:
        focus.key_release(key)


def main(argv: Sequence[str] | None = None) -> int:
    settings = parse_settings(argv)
    logging.basicConfig(level=logging.DEBUG if settings.verbose else logging.INFO)
    game = Game(settings.player, settings.protocol)
    view = GameView(game.scene_size)
    game.game_over_handlers.append(
        lambda winner: setattr(view, "banner", f"Player {winner} is the winner!"))
    acknowledged = False
    try:
        view.initialize()
        game.start()
        clock = pygame.time.Clock()
        clock.tick()
        while not game.finished:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    return 0
                if game.winner is not None:
                    if event.type in (pygame.KEYDOWN, pygame.MOUSEBUTTONDOWN):
                        acknowledged = True
                elif event.type in (pygame.KEYDOWN, pygame.KEYUP):
                    _dispatch_key(game, event)
            elapsed = clock.tick(FPS)
            if game.winner is None or acknowledged:
                game.scheduler.advance(elapsed)
            view.render(game.scene, game.hud)
    finally:
        game.shutdown()
        pygame.quit()
    return 0