"""
ASA Cluster - Server Generation

Derives the ordered server list of a cluster from its draft:
map selection x counts, ports from the allocation engine, naming and
password defaults, operator overrides, and effective mod lists.
"""

from collections.abc import Iterator

from asa.config.models import (
    MapSelection,
    ServerConfig,
    ServerOverride,
    SessionNameMode,
    WizardData,
)
from asa.core.maps import display_name_for, required_mods_for
from asa.core.mods import resolve_mods, with_required_mods
from asa.core.ports import ports_for


def effective_map_selections(data: WizardData) -> list[MapSelection]:
    """
    Enabled map selections, plus the pending custom map.

    A custom map typed on the map step but not yet added to the selection
    still counts, unless a selection for that map already exists.
    """
    selections = [m for m in data.selected_maps if m.enabled]

    custom_name = data.custom_map_name.strip()
    if custom_name and data.find_map(custom_name) is None:
        selections.append(
            MapSelection(
                map=custom_name,
                count=data.custom_map_count,
                enabled=True,
                display_name=data.custom_map_display_name.strip() or custom_name,
            )
        )

    return selections


def iter_server_slots(data: WizardData) -> Iterator[tuple[MapSelection, int]]:
    """Yield (map selection, occurrence index) per server, in cluster order"""
    for selection in effective_map_selections(data):
        for occurrence in range(max(1, selection.count)):
            yield selection, occurrence


def implied_server_count(data: WizardData) -> int:
    """Number of servers the map selection produces"""
    return sum(max(1, s.count) for s in effective_map_selections(data))


def default_server_name(selection: MapSelection, occurrence: int) -> str:
    """Default name of a server: {map}-{n}"""
    return f"{selection.map}-{occurrence + 1}"


def _session_name(data: WizardData, name: str, override: ServerOverride | None) -> str:
    if override is not None and override.session_name:
        return override.session_name
    if data.session_name_mode == SessionNameMode.CUSTOM and data.global_session_name.strip():
        return data.global_session_name.strip()
    return name


def _effective_mods(data: WizardData, name: str, map_name: str) -> list[str]:
    mods = resolve_mods(data.global_mods, data.server_mods.get(name))
    return with_required_mods(mods, required_mods_for(map_name))


def _build_server(
    data: WizardData,
    index: int,
    selection: MapSelection,
    occurrence: int,
    override: ServerOverride | None,
) -> ServerConfig:
    ports = ports_for(data, index)
    fields: dict = {
        "name": default_server_name(selection, occurrence),
        "map": selection.map,
        "game_port": ports.game_port,
        "query_port": ports.query_port,
        "rcon_port": ports.rcon_port,
        "max_players": data.game_settings.max_players,
        "admin_password": data.admin_password,
        "server_password": data.server_password,
    }

    # Operator edits are sticky: they win over freshly computed defaults
    sticky = override.sticky_fields() if override is not None else {}
    sticky.pop("session_name", None)
    fields.update(sticky)

    fields["session_name"] = _session_name(data, fields["name"], override)
    fields["mods"] = _effective_mods(data, fields["name"], selection.map)
    return ServerConfig(**fields)


def _explicit_servers(data: WizardData) -> list[ServerConfig]:
    """Imported servers keep their own ports; only mods are resolved"""
    servers = []
    for server in data.servers:
        resolved = resolve_mods(data.global_mods, data.server_mods.get(server.name))
        mods = with_required_mods(resolved, [*server.mods, *required_mods_for(server.map)])
        servers.append(
            server.model_copy(
                update={"session_name": server.session_name or server.name, "mods": mods},
                deep=True,
            )
        )
    return servers


def generate_servers(data: WizardData) -> list[ServerConfig]:
    """
    Derive the ordered server list of a draft.

    Pure: the draft is not modified, and calling it twice on the same
    draft yields equal lists.

    Args:
        data: The wizard draft

    Returns:
        One ServerConfig per server. Explicit servers from an import take
        precedence over map expansion; with neither, the list is empty.
    """
    if data.servers:
        return _explicit_servers(data)

    overrides = data.server_configs
    return [
        _build_server(
            data,
            index,
            selection,
            occurrence,
            overrides[index] if index < len(overrides) else None,
        )
        for index, (selection, occurrence) in enumerate(iter_server_slots(data))
    ]


def describe_server(server: ServerConfig) -> str:
    """One-line summary for listings"""
    mods = ",".join(server.mods) if server.mods else "-"
    return (
        f"{server.name} [{display_name_for(server.map)}] "
        f"game={server.game_port} query={server.query_port} rcon={server.rcon_port} "
        f"mods={mods}"
    )
