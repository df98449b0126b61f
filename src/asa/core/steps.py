"""
ASA Cluster - Wizard Steps

Step order, navigation and per-step validation. The store itself accepts
any step; callers use these helpers to decide whether to move on.
"""

from asa.config.models import ServerConfigMode, WizardData, WizardStep
from asa.config.settings import MAX_PORT, MAX_SERVER_COUNT, MIN_PORT
from asa.core.ports import find_port_conflicts
from asa.core.servers import generate_servers, implied_server_count

STEP_SEQUENCE: tuple[WizardStep, ...] = tuple(WizardStep)

# server-config and individual-servers are alternatives at the same position
BRANCH_STEPS = (WizardStep.SERVER_CONFIG, WizardStep.INDIVIDUAL_SERVERS)

INITIAL_STEP = WizardStep.WELCOME
TERMINAL_STEP = WizardStep.CREATING


def coerce_step(step: WizardStep | str) -> WizardStep:
    """Convert a step name to WizardStep; raises ValueError for unknown steps"""
    if isinstance(step, WizardStep):
        return step
    try:
        return WizardStep(step)
    except ValueError:
        valid = ", ".join(s.value for s in STEP_SEQUENCE)
        raise ValueError(f"Unknown wizard step {step!r} (expected one of: {valid})") from None


def branch_step(data: WizardData) -> WizardStep:
    """The server configuration step the draft's mode selects"""
    if data.server_config_mode == ServerConfigMode.INDIVIDUAL:
        return WizardStep.INDIVIDUAL_SERVERS
    return WizardStep.SERVER_CONFIG


def next_step(step: WizardStep, data: WizardData) -> WizardStep | None:
    """Step after `step`, or None at the end"""
    transitions = {
        WizardStep.WELCOME: WizardStep.CLUSTER_BASIC,
        WizardStep.CLUSTER_BASIC: WizardStep.MAP_SELECTION,
        WizardStep.MAP_SELECTION: branch_step(data),
        WizardStep.SERVER_CONFIG: WizardStep.GAME_SETTINGS,
        WizardStep.INDIVIDUAL_SERVERS: WizardStep.GAME_SETTINGS,
        WizardStep.GAME_SETTINGS: WizardStep.MODS,
        WizardStep.MODS: WizardStep.REVIEW,
        WizardStep.REVIEW: WizardStep.CREATING,
    }
    return transitions.get(step)


def previous_step(step: WizardStep, data: WizardData) -> WizardStep | None:
    """Step before `step`, or None at the start and once creating"""
    transitions = {
        WizardStep.CLUSTER_BASIC: WizardStep.WELCOME,
        WizardStep.MAP_SELECTION: WizardStep.CLUSTER_BASIC,
        WizardStep.SERVER_CONFIG: WizardStep.MAP_SELECTION,
        WizardStep.INDIVIDUAL_SERVERS: WizardStep.MAP_SELECTION,
        WizardStep.GAME_SETTINGS: branch_step(data),
        WizardStep.MODS: WizardStep.GAME_SETTINGS,
        WizardStep.REVIEW: WizardStep.MODS,
    }
    return transitions.get(step)


def _port_in_range(port: int) -> bool:
    return MIN_PORT <= port <= MAX_PORT


def _validate_cluster_basic(data: WizardData) -> list[str]:
    issues = []
    if not data.cluster_name.strip():
        issues.append("Please enter a cluster name")
    if not 1 <= data.server_count <= MAX_SERVER_COUNT:
        issues.append(f"Number of servers must be between 1 and {MAX_SERVER_COUNT}")
    if not _port_in_range(data.base_port):
        issues.append(f"Base port must be between {MIN_PORT} and {MAX_PORT}")
    return issues


def _validate_map_selection(data: WizardData) -> list[str]:
    if data.servers:
        return []
    if implied_server_count(data) == 0:
        return ["Please select at least one map"]
    if implied_server_count(data) > MAX_SERVER_COUNT:
        return [f"A cluster can have at most {MAX_SERVER_COUNT} servers"]
    return []


def _validate_servers(data: WizardData) -> list[str]:
    servers = generate_servers(data)
    issues = []
    for server in servers:
        for label, port in (
            ("game", server.game_port),
            ("query", server.query_port),
            ("rcon", server.rcon_port),
        ):
            if not _port_in_range(port):
                issues.append(f"{server.name}: {label} port {port} is out of range")
    issues.extend(find_port_conflicts(servers))

    names = [s.name for s in servers]
    issues.extend(
        f"Server name {name!r} is used more than once"
        for name in sorted({n for n in names if names.count(n) > 1})
    )
    return issues


def validate_step(step: WizardStep, data: WizardData) -> list[str]:
    """
    Problems that should block leaving `step`.

    Returns:
        Human-readable issues; empty when the step is complete
    """
    if step == WizardStep.CLUSTER_BASIC:
        return _validate_cluster_basic(data)
    if step == WizardStep.MAP_SELECTION:
        return _validate_map_selection(data)
    if step in BRANCH_STEPS:
        return _validate_servers(data)
    if step == WizardStep.REVIEW:
        return [
            *_validate_cluster_basic(data),
            *_validate_map_selection(data),
            *_validate_servers(data),
        ]
    return []
