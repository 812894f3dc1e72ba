"""Activity signals gating background price polling."""

from __future__ import annotations

from typing import Protocol


class ActivitySignal(Protocol):
    def is_active(self) -> bool:
        ...


class AlwaysActive:
    """Headless hosts: polling is never suspended."""

    def is_active(self) -> bool:
        return True


class ManualActivity:
    """Visibility flag toggled by the host (foreground/background)."""

    def __init__(self, active: bool = True) -> None:
        self._active = bool(active)

    def set_active(self, active: bool) -> None:
        self._active = bool(active)

    def is_active(self) -> bool:
        return self._active
