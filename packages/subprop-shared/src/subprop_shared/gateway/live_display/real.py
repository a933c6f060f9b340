from rich.console import Console, RenderableType
from rich.live import Live

from subprop_shared.gateway.live_display.abc import LiveDisplay


class RealLiveDisplay(LiveDisplay):
    """Rich Live display rendered on stderr."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console if console is not None else Console(stderr=True)
        self._live: Live | None = None

    def start(self) -> None:
        if self._live is not None:
            return
        self._live = Live(console=self._console, auto_refresh=False, transient=False)
        self._live.start()

    def update(self, renderable: RenderableType) -> None:
        if self._live is None:
            self.start()
        assert self._live is not None
        self._live.update(renderable, refresh=True)

    def stop(self) -> None:
        if self._live is None:
            return
        self._live.stop()
        self._live = None
