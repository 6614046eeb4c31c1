"""
Transport registry: fans position batches out to every active transport.

Pushes run concurrently, so a slow transport does not hold up the rest.
A failure in one transport (dead socket, console closed) is logged and
does not stop delivery to the others.
"""

import asyncio
import logging

from fleetsim.core.resource import PositionSample
from fleetsim.transport.base import TransportAdapter

logger = logging.getLogger(__name__)


class TransportRegistry:
    """Manages the set of transport adapters fed by the position feed."""

    def __init__(self) -> None:
        self._adapters: dict[str, TransportAdapter] = {}

    def register(self, adapter: TransportAdapter) -> None:
        """Add an adapter. Raises ValueError if the name is taken."""
        if adapter.name in self._adapters:
            raise ValueError(f"Transport {adapter.name} already registered")
        self._adapters[adapter.name] = adapter
        logger.info(f"Registered transport: {adapter.name}")

    async def _each(self, action: str, calls) -> None:
        adapters = list(self._adapters.values())
        results = await asyncio.gather(*calls(adapters), return_exceptions=True)
        for adapter, result in zip(adapters, results):
            if isinstance(result, Exception):
                logger.warning(f"Transport {adapter.name} {action} failed: {result}")

    async def connect_all(self) -> None:
        await self._each("connect", lambda adapters: [a.connect() for a in adapters])

    async def disconnect_all(self) -> None:
        await self._each("disconnect", lambda adapters: [a.disconnect() for a in adapters])

    async def push_positions(self, samples: dict[str, PositionSample]) -> None:
        """Push one tick's positions to all transports."""
        await self._each(
            "position push", lambda adapters: [a.push_positions(samples) for a in adapters],
        )

    @property
    def transport_names(self) -> list[str]:
        return list(self._adapters)

    @property
    def count(self) -> int:
        return len(self._adapters)
