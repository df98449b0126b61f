"""
ASA Cluster - Port Allocation

Pure port math for cluster servers. Two allocation modes:

- sequential: three independent counters (game, query, rcon), each
  incremented by one per server
- even: one block of six consecutive ports per server, with query at +2
  and rcon at +4 from the game port (a fixed stride for firewall rules)
"""

from collections import defaultdict
from collections.abc import Iterable

from asa.config.models import PortAllocationMode, ServerConfig, ServerPorts, WizardData
from asa.config.settings import (
    EVEN_BLOCK_SIZE,
    EVEN_QUERY_OFFSET,
    EVEN_RCON_OFFSET,
    PREVIEW_LIMIT,
)


def allocate(
    base_port: int,
    query_port_base: int,
    rcon_port_base: int,
    mode: PortAllocationMode | str,
    index: int,
) -> ServerPorts:
    """
    Compute the ports of the server at position `index`.

    Args:
        base_port: Game port of the first server
        query_port_base: Query port of the first server (sequential mode only)
        rcon_port_base: RCON port of the first server (sequential mode only)
        mode: Allocation mode
        index: Zero-based server position; no upper bound

    Returns:
        ServerPorts for that position

    Examples:
        >>> allocate(7777, 27015, 32330, "sequential", 1).as_tuple()
        (7778, 27016, 32331)
        >>> allocate(7777, 27015, 32330, "even", 1).as_tuple()
        (7783, 7785, 7787)
    """
    if index < 0:
        raise ValueError(f"Server index must be non-negative, got {index}")

    if PortAllocationMode(mode) == PortAllocationMode.EVEN:
        game_port = base_port + EVEN_BLOCK_SIZE * index
        return ServerPorts(
            game_port=game_port,
            query_port=game_port + EVEN_QUERY_OFFSET,
            rcon_port=game_port + EVEN_RCON_OFFSET,
        )

    return ServerPorts(
        game_port=base_port + index,
        query_port=query_port_base + index,
        rcon_port=rcon_port_base + index,
    )


def ports_for(data: WizardData, index: int) -> ServerPorts:
    """Ports of server `index` using the draft's bases and mode"""
    return allocate(
        data.base_port,
        data.port_configuration.query_port_base,
        data.port_configuration.rcon_port_base,
        data.port_allocation_mode,
        index,
    )


def port_increment(mode: PortAllocationMode | str) -> int:
    """Distance between two consecutive servers' game ports"""
    return EVEN_BLOCK_SIZE if PortAllocationMode(mode) == PortAllocationMode.EVEN else 1


def preview_ports(data: WizardData, limit: int = PREVIEW_LIMIT) -> tuple[list[ServerPorts], int]:
    """
    Ports of the first servers for display, without touching the draft.

    Returns:
        Tuple of (ports of the first min(server_count, limit) servers,
        number of servers not shown)
    """
    shown = max(0, min(data.server_count, limit))
    ports = [ports_for(data, i) for i in range(shown)]
    return ports, max(0, data.server_count - shown)


def find_port_conflicts(servers: Iterable[ServerConfig]) -> list[str]:
    """
    Report every port claimed more than once across a server list.

    Game, query and rcon ports share one namespace.
    """
    claims: dict[int, list[str]] = defaultdict(list)
    for server in servers:
        claims[server.game_port].append(f"{server.name} (game)")
        claims[server.query_port].append(f"{server.name} (query)")
        claims[server.rcon_port].append(f"{server.name} (rcon)")

    return [
        f"Port {port} is used by {', '.join(owners)}"
        for port, owners in sorted(claims.items())
        if len(owners) > 1
    ]
