from abc import ABC, abstractmethod

from rich.console import RenderableType


class LiveDisplay(ABC):
    """A region of the terminal that is redrawn in place."""

    @abstractmethod
    def start(self) -> None:
        """Begin live rendering."""
        ...

    @abstractmethod
    def update(self, renderable: RenderableType) -> None:
        """Replace the displayed content."""
        ...

    @abstractmethod
    def stop(self) -> None:
        """Stop live rendering, leaving the last frame on screen."""
        ...
