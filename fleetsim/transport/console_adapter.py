"""
Debug transport adapter that prints positions to stdout.

Rate-limited per resource so a 16-vehicle fleet at a 2 s tick stays
readable.
"""

import time

from fleetsim.core.resource import PositionSample
from fleetsim.transport.base import TransportAdapter


class ConsoleAdapter(TransportAdapter):
    """Prints position updates to the console."""

    def __init__(self, min_interval: float = 10.0) -> None:
        """
        Args:
            min_interval: Minimum seconds between prints for the same resource.
        """
        self._min_interval = min_interval
        self._last_print: dict[str, float] = {}

    @property
    def name(self) -> str:
        return "console"

    async def connect(self) -> None:
        print("[CONSOLE] Transport adapter connected")

    async def disconnect(self) -> None:
        print("[CONSOLE] Transport adapter disconnected")

    async def push_positions(self, samples: dict[str, PositionSample]) -> None:
        now = time.monotonic()
        for resource_id, s in samples.items():
            last = self._last_print.get(resource_id)
            if last is not None and now - last < self._min_interval:
                continue
            self._last_print[resource_id] = now
            print(
                f"[{s.timestamp.strftime('%H:%M:%S')}] "
                f"{resource_id:<16} "
                f"@ ({s.latitude:8.4f}, {s.longitude:8.4f}) "
                f"HDG {s.heading:5.1f} "
                f"SPD {s.speed:5.1f}km/h "
                f"ACC {s.accuracy:3.1f}m"
            )
