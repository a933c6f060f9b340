from rich.console import RenderableType

from subprop_shared.gateway.live_display.abc import LiveDisplay


class FakeLiveDisplay(LiveDisplay):
    """Records every frame instead of drawing it."""

    def __init__(self) -> None:
        self._updates: list[RenderableType] = []
        self._is_active = False
        self._start_count = 0

    def start(self) -> None:
        self._is_active = True
        self._start_count += 1

    def update(self, renderable: RenderableType) -> None:
        self._updates.append(renderable)

    def stop(self) -> None:
        self._is_active = False

    @property
    def updates(self) -> list[RenderableType]:
        return list(self._updates)

    @property
    def is_active(self) -> bool:
        return self._is_active

    @property
    def start_count(self) -> int:
        return self._start_count
