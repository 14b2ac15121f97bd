from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable


class AutosaveSettings(ABC):
    @abstractmethod
    def get_autosave_enabled(self) -> bool:
        raise NotImplementedError


class StaticAutosaveSettings(AutosaveSettings):
    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled

    def get_autosave_enabled(self) -> bool:
        return self.enabled


class IntervalTimer:
    """Repeating timer advanced by the host loop via ``update(dt)``.

    Callbacks run on the caller's thread inside ``update``.
    """

    def __init__(self, interval: float, callback: Callable[[], None]) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self.callback = callback
        self.elapsed = 0.0
        self.running = False

    def start(self) -> None:
        self.running = True
        self.elapsed = 0.0

    def stop(self) -> None:
        self.running = False

    def update(self, dt: float) -> bool:
        if not self.running or dt <= 0:
            return False
        self.elapsed += dt
        if self.elapsed < self.interval:
            return False
        # A long frame fires once; missed ticks are not replayed.
        self.elapsed %= self.interval
        self.callback()
        return True
