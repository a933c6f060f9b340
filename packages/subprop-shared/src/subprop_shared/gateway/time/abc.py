from abc import ABC, abstractmethod
from datetime import datetime


class Time(ABC):
    """Abstract clock and sleep operations."""

    @abstractmethod
    def sleep(self, seconds: float) -> None:
        """Block for the given number of seconds."""
        ...

    @abstractmethod
    def now(self) -> datetime:
        """Current local time."""
        ...
