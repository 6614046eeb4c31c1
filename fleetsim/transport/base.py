"""
Base class for transports that carry position batches to consumers.

Each tick the registry hands the full batch, keyed by resource id and in
fleet order, to every adapter. Serialization and delivery are up to the
adapter.
"""

from abc import ABC, abstractmethod

from fleetsim.core.resource import PositionSample


class TransportAdapter(ABC):
    """One outbound channel for fleet positions."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique adapter name, used in logs and the registry."""

    @abstractmethod
    async def connect(self) -> None:
        """Open the channel (start a server, open a socket)."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the channel and release its resources."""

    @abstractmethod
    async def push_positions(self, samples: dict[str, PositionSample]) -> None:
        """Deliver one tick's positions."""
