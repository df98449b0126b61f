"""
ASA Cluster Planner - Configuration

Centralized defaults for port allocation, passwords and logging.
Every value can be overridden from the environment.
"""

import logging
import os

# =============================================================================
# Port Allocation
# =============================================================================

DEFAULT_GAME_PORT = int(os.getenv("ASA_BASE_PORT", "7777"))
DEFAULT_QUERY_PORT = int(os.getenv("ASA_QUERY_PORT_BASE", "27015"))
DEFAULT_RCON_PORT = int(os.getenv("ASA_RCON_PORT_BASE", "32330"))

# Even mode packs game/query/rcon into one block per server
EVEN_BLOCK_SIZE = 6
EVEN_QUERY_OFFSET = 2
EVEN_RCON_OFFSET = 4

MIN_PORT = 1
MAX_PORT = 65535

# Port preview shows at most this many servers
PREVIEW_LIMIT = 5


# =============================================================================
# Cluster Defaults
# =============================================================================

MAX_SERVER_COUNT = int(os.getenv("ASA_MAX_SERVER_COUNT", "50"))
DEFAULT_ADMIN_PASSWORD = os.getenv("ASA_ADMIN_PASSWORD", "admin123")
DEFAULT_CLUSTER_OWNER = os.getenv("ASA_CLUSTER_OWNER", "Admin")


# =============================================================================
# API / Logging
# =============================================================================

LOG_LEVEL = os.getenv("ASA_LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [o.strip() for o in os.getenv("ASA_CORS_ORIGINS", "*").split(",") if o.strip()]

# Finished provisioning jobs kept for progress lookups; older ones are dropped
FINISHED_JOBS_KEPT = int(os.getenv("ASA_FINISHED_JOBS_KEPT", "20"))


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once (API startup and CLI entry)."""
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level or LOG_LEVEL)
        return

    logging.basicConfig(
        level=level or LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
