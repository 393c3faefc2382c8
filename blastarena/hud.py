"""Health read-outs shown over the arena."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from .actors import Player


@dataclass
class HealthDisplay:
    text: str
    color: str
    position: tuple[float, float]
    shadow_color: str = "black"
    shadow_offset: tuple[float, float] = (1, 1)
    font_family: str = "Arial"
    font_size: int = 8
    bold: bool = True
    z: float = 1


class HUD:
    """Two health displays, player 1 on the left and player 2 on the right."""

    HEALTH_DISPLAY_OFFSET = -3
    HEALTH_DISPLAY_P2_OFFSET = 64

    def __init__(self, scene_width: float):
        self.p1 = HealthDisplay("Player 1: ", "blue", (0, self.HEALTH_DISPLAY_OFFSET))
        self.p2 = HealthDisplay(
            "Player 2: ", "red",
            (scene_width - self.HEALTH_DISPLAY_P2_OFFSET, self.HEALTH_DISPLAY_OFFSET))

    @property
    def displays(self) -> tuple[HealthDisplay, HealthDisplay]:
        return (self.p1, self.p2)

    def update_health(self, players: Iterable[Player | None]) -> None:
        """Show the health of each player still present; blank for missing ones."""
        text_p1 = text_p2 = ""
        for player in players:
            if player is None or not player.alive:
                continue
            if player.player_id == 1:
                text_p1 = f"Player 1: {player.health}"
            elif player.player_id == 2:
                text_p2 = f"Player 2: {player.health}"
        self.p1.text = text_p1
        self.p2.text = text_p2