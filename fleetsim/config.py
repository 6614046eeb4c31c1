"""
Runtime configuration, loaded from environment variables.
"""

import os


FLEET_FILE = os.environ.get("FLEET_FILE", "config/fleet.yaml")
TICK_INTERVAL_S = float(os.environ.get("FLEET_TICK_INTERVAL_S", "2.0"))

WS_HOST = os.environ.get("FLEET_WS_HOST", "0.0.0.0")
WS_PORT = int(os.environ.get("FLEET_WS_PORT", "8765"))
HTTP_PORT = int(os.environ.get("FLEET_HTTP_PORT", "3001"))

LOG_LEVEL = os.environ.get("FLEET_LOG_LEVEL", "INFO").upper()

# Empty = seed from system entropy
SEED = int(os.environ["FLEET_SEED"]) if os.environ.get("FLEET_SEED") else None
