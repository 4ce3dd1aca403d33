from abc import ABC, abstractmethod

class ABCCollector(ABC):
    """
    Interface for metric collectors.
    Responsibility: Periodically read a data source into registered metrics.
    """

    @abstractmethod
    def collect(self) -> None:
        """Read the data source once and update metrics."""
        pass

    @abstractmethod
    async def start(self) -> None:
        """Start periodic collection."""
        pass

    @abstractmethod
    async def stop(self) -> None:
        """Stop periodic collection."""
        pass
