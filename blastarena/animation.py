"""Frame animations driven by a millisecond scheduler."""

from __future__ import annotations

import heapq
import itertools
import logging
import os
from pathlib import Path
from typing import Any, Callable, Iterable

log = logging.getLogger(__name__)

ASSET_DIR = Path(__file__).resolve().parent / "assets"

Loader = Callable[[str], Any]


class Timer:
    """Handle of a callback scheduled on a :class:`Scheduler`."""

    __slots__ = ("due", "interval", "callback", "active")

    def __init__(self, due: float, interval: float | None, callback: Callable[[], Any]):
        self.due = due
        self.interval = interval
        self.callback = callback
        self.active = True

    def cancel(self) -> None:
        self.active = False


class Scheduler:
    """A virtual clock that runs callbacks once their time has come."""

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: list[tuple[float, int, Timer]] = []
        self._order = itertools.count()

    def _push(self, timer: Timer) -> Timer:
        heapq.heappush(self._queue, (timer.due, next(self._order), timer))
        return timer

    def call_later(self, delay_ms: float, callback: Callable[[], Any]) -> Timer:
        if delay_ms < 0:
            raise ValueError("delay must not be negative")
        return self._push(Timer(self.now + delay_ms, None, callback))

    def call_every(self, interval_ms: float, callback: Callable[[], Any]) -> Timer:
        if interval_ms <= 0:
            raise ValueError("interval must be positive")
        return self._push(Timer(self.now + interval_ms, interval_ms, callback))

    def advance(self, elapsed_ms: float) -> None:
        """Move the clock forward, firing every timer that falls due on the way."""
        if elapsed_ms < 0:
            raise ValueError("time cannot go backwards")
        target = self.now + elapsed_ms
        while self._queue and self._queue[0][0] <= target:
            due, _, timer = heapq.heappop(self._queue)
            if not timer.active:
                continue
            self.now = due
            if timer.interval is None:
                timer.active = False
            timer.callback()
            if timer.active and timer.interval is not None:
                timer.due = due + timer.interval
                self._push(timer)
        self.now = target


class Animation:
    """A named, looping sequence of frames."""

    def __init__(self, name: str, frames: Iterable[Any], frame_duration_ms: float,
                 scheduler: Scheduler):
        self.name = name
        self.frames = list(frames)
        self.frame_duration_ms = frame_duration_ms
        self.scheduler = scheduler
        self.frame_index = 0
        self._timer: Timer | None = None
        self._listeners: list[Callable[[], Any]] = []
        if not self.frames:
            log.warning("Animation %s has no frames.", name)

    def subscribe(self, callback: Callable[[], Any]) -> None:
        """Call *callback* whenever the current frame changes."""
        self._listeners.append(callback)

    def start(self) -> None:
        if self.frames and not self.is_running():
            self._timer = self.scheduler.call_every(self.frame_duration_ms, self.advance_frame)

    def stop(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def reset(self) -> None:
        self.stop()
        self.frame_index = 0

    def is_running(self) -> bool:
        return self._timer is not None and self._timer.active

    def current_frame(self) -> Any:
        return self.frames[self.frame_index] if self.frames else None

    def advance_frame(self) -> None:
        if not self.frames:
            return
        self.frame_index = (self.frame_index + 1) % len(self.frames)
        for listener in list(self._listeners):
            listener()


def load_image(path: str) -> Any:
    """Load an image, relative paths from the asset directory; None if it fails."""
    os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")
    import pygame

    resolved = Path(path)
    if not resolved.is_absolute():
        resolved = ASSET_DIR / resolved
    try:
        return pygame.image.load(str(resolved))
    except (pygame.error, OSError):
        return None


def load_frames(path_template: str, frame_count: int, loader: Loader = load_image) -> list[Any]:
    """Load frames 1..frame_count of ``path_template`` (a ``str.format`` template)."""
    frames = []
    for number in range(1, frame_count + 1):
        path = path_template.format(number)
        frame = loader(path)
        if frame is None:
            log.warning("Failed to load frame: %s", path)
        else:
            frames.append(frame)
    return frames