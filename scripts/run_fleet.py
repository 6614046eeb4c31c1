"""
Main entry point for the fleet simulator.

Loads the fleet file, seeds the simulation state, and runs the position
feed. Each tick advances every resource along its route and pushes the
positions through the enabled transports; the REST API serves the latest
snapshot and resolves dispatch status on every request.
"""

import asyncio
import logging
import random
import signal

import click

from fleetsim import config
from fleetsim.catalog.loader import FleetLoader
from fleetsim.core.clock import SimulationClock
from fleetsim.core.position_feed import PositionFeed
from fleetsim.core.state_store import SimulationStateStore
from fleetsim.dispatch.status import JobBoard
from fleetsim.movement.kinematics import KinematicIntegrator
from fleetsim.transport.console_adapter import ConsoleAdapter
from fleetsim.transport.registry import TransportRegistry
from fleetsim.transport.rest_api import VERSION, RestApiServer
from fleetsim.transport.websocket_adapter import WebSocketAdapter

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


async def run(
    fleet_path: str, speed: float, interval: float, port: int,
    http_port: int, transport: str, seed: int | None,
) -> None:
    """Run the simulator until SIGINT/SIGTERM."""
    print(f"\nFleet Simulator v{VERSION}")
    print("=" * 40)

    transport_names = [t.strip() for t in transport.split(",") if t.strip()]

    catalog = FleetLoader().load(fleet_path)
    print(f"Loaded {len(catalog.resources)} resources, {len(catalog.job_titles)} jobs")

    rng = random.Random(seed)
    clock = SimulationClock(speed=speed)
    store = SimulationStateStore(rng=rng)
    store.initialize(catalog.resources, now=clock.now())

    integrator = KinematicIntegrator(store, rng=rng)
    feed = PositionFeed(integrator, store, clock=clock, interval_s=interval)
    job_board = JobBoard(catalog.jobs)

    registry = TransportRegistry()
    if "console" in transport_names:
        registry.register(ConsoleAdapter())
    if "ws" in transport_names:
        registry.register(WebSocketAdapter(feed, clock=clock, host=config.WS_HOST, port=port))
        print(f"WebSocket server on ws://{config.WS_HOST}:{port}")
    feed.on_tick(registry.push_positions)

    api = RestApiServer(feed, catalog, job_board, port=http_port)

    await registry.connect_all()
    await api.start()
    clock.start()
    print(f"\nSimulation running (tick {interval}s, speed {speed}x)")
    print("Press Ctrl+C to stop\n")

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    await feed.run(stop)

    print("\nShutting down...")
    clock.pause()
    await feed.stop()
    await registry.disconnect_all()
    await api.stop()
    print(f"Simulated {clock.get_elapsed().total_seconds() / 60:.1f} minutes over {feed.tick_count} ticks")
    print("Simulator stopped")


@click.command()
@click.option("--fleet", "-f", "fleet_path", default=config.FLEET_FILE, help="Path to fleet YAML file")
@click.option("--speed", default=1.0, help="Simulation speed multiplier")
@click.option("--interval", default=config.TICK_INTERVAL_S, help="Seconds between ticks (wall clock)")
@click.option("--port", default=config.WS_PORT, help="WebSocket server port")
@click.option("--http-port", default=config.HTTP_PORT, help="REST API port")
@click.option("--transport", default="ws,console", help="Comma-separated transports (ws,console)")
@click.option("--seed", type=int, default=config.SEED, help="Random seed for reproducible runs")
def main(
    fleet_path: str, speed: float, interval: float, port: int,
    http_port: int, transport: str, seed: int | None,
) -> None:
    """Fleet position simulator with live dispatch status."""
    asyncio.run(run(fleet_path, speed, interval, port, http_port, transport, seed))


if __name__ == "__main__":
    main()
