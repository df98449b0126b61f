"""
ASA Cluster - Wizard State Store

Owns the single in-progress draft and the current wizard step. The draft
changes only through discrete commands (a tagged union reduced by one
`match` statement) or an all-or-nothing import merge. After every applied
command the derived fields are brought back in line with the inputs.
"""

import logging
from pathlib import Path
from typing import Annotated, Any, Literal, Union

from pydantic import Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from asa.config.models import (
    GAME_SETTING_FIELDS,
    CamelModel,
    CommandResult,
    ConfigImportError,
    GameSettings,
    ImportResult,
    MapSelection,
    PortAllocationMode,
    ServerConfig,
    ServerConfigMode,
    ServerModOverride,
    ServerOverride,
    SessionNameMode,
    WizardData,
    WizardStep,
)
from asa.core import importer
from asa.core.maps import display_name_for, is_map_selectable
from asa.core.mods import add_mod, remove_mod
from asa.core.plan import DeploymentPlan, build_deployment_plan
from asa.core.servers import generate_servers, implied_server_count
from asa.core.steps import INITIAL_STEP, coerce_step

logger = logging.getLogger(__name__)


# =============================================================================
# Commands
# =============================================================================


class SetClusterName(CamelModel):
    type: Literal["set_cluster_name"] = "set_cluster_name"
    name: str


class SetDescription(CamelModel):
    type: Literal["set_description"] = "set_description"
    description: str


class SetServerCount(CamelModel):
    type: Literal["set_server_count"] = "set_server_count"
    count: int = Field(ge=0)


class SetBasePort(CamelModel):
    type: Literal["set_base_port"] = "set_base_port"
    port: int


class SetPortAllocationMode(CamelModel):
    type: Literal["set_port_allocation_mode"] = "set_port_allocation_mode"
    mode: PortAllocationMode


class SetPortBases(CamelModel):
    """Query/rcon bases; None leaves a base as it is"""

    type: Literal["set_port_bases"] = "set_port_bases"
    query_port_base: int | None = None
    rcon_port_base: int | None = None


class ToggleMap(CamelModel):
    type: Literal["toggle_map"] = "toggle_map"
    map: str


class SetMapCount(CamelModel):
    type: Literal["set_map_count"] = "set_map_count"
    map: str
    count: int


class RemoveMap(CamelModel):
    type: Literal["remove_map"] = "remove_map"
    map: str


class SetCustomMap(CamelModel):
    """Edit the pending custom map"""

    type: Literal["set_custom_map"] = "set_custom_map"
    name: str
    display_name: str = ""
    count: int = 1


class AddCustomMap(CamelModel):
    """Move the pending custom map into the selection"""

    type: Literal["add_custom_map"] = "add_custom_map"


class SetSessionNameMode(CamelModel):
    type: Literal["set_session_name_mode"] = "set_session_name_mode"
    mode: SessionNameMode


class SetGlobalSessionName(CamelModel):
    type: Literal["set_global_session_name"] = "set_global_session_name"
    session_name: str


class SetPasswords(CamelModel):
    type: Literal["set_passwords"] = "set_passwords"
    admin_password: str | None = None
    server_password: str | None = None
    cluster_password: str | None = None


class SetGameSetting(CamelModel):
    type: Literal["set_game_setting"] = "set_game_setting"
    key: str
    value: Any


class SetCustomDynamicConfigUrl(CamelModel):
    type: Literal["set_custom_dynamic_config_url"] = "set_custom_dynamic_config_url"
    url: str


class SetIniText(CamelModel):
    """Raw ini blobs; None leaves a blob as it is"""

    type: Literal["set_ini_text"] = "set_ini_text"
    game_ini: str | None = None
    game_user_settings_ini: str | None = None


class SetServerConfigMode(CamelModel):
    type: Literal["set_server_config_mode"] = "set_server_config_mode"
    mode: ServerConfigMode


class SetForeground(CamelModel):
    type: Literal["set_foreground"] = "set_foreground"
    foreground: bool


class AddGlobalMod(CamelModel):
    type: Literal["add_global_mod"] = "add_global_mod"
    mod_id: str | int


class RemoveGlobalMod(CamelModel):
    type: Literal["remove_global_mod"] = "remove_global_mod"
    mod_id: str | int


class AddServerMod(CamelModel):
    type: Literal["add_server_mod"] = "add_server_mod"
    server: str
    mod_id: str | int


class RemoveServerMod(CamelModel):
    type: Literal["remove_server_mod"] = "remove_server_mod"
    server: str
    mod_id: str | int


class ToggleExcludeSharedMods(CamelModel):
    """Flip the flag, or set it when `exclude` is given"""

    type: Literal["toggle_exclude_shared_mods"] = "toggle_exclude_shared_mods"
    server: str
    exclude: bool | None = None


class InitializeServerConfigs(CamelModel):
    type: Literal["initialize_server_configs"] = "initialize_server_configs"


class UpdateServerConfig(CamelModel):
    """
    Operator edit of one server.

    Only fields present in `changes` are applied; an explicit null clears
    an override so the computed default shows through again.
    """

    type: Literal["update_server_config"] = "update_server_config"
    index: int
    changes: ServerOverride


class ResetServerConfigs(CamelModel):
    type: Literal["reset_server_configs"] = "reset_server_configs"


class ClearServers(CamelModel):
    """Drop imported servers so the map selection generates the cluster again"""

    type: Literal["clear_servers"] = "clear_servers"


WizardCommand = Annotated[
    Union[
        SetClusterName,
        SetDescription,
        SetServerCount,
        SetBasePort,
        SetPortAllocationMode,
        SetPortBases,
        ToggleMap,
        SetMapCount,
        RemoveMap,
        SetCustomMap,
        AddCustomMap,
        SetSessionNameMode,
        SetGlobalSessionName,
        SetPasswords,
        SetGameSetting,
        SetCustomDynamicConfigUrl,
        SetIniText,
        SetServerConfigMode,
        SetForeground,
        AddGlobalMod,
        RemoveGlobalMod,
        AddServerMod,
        RemoveServerMod,
        ToggleExcludeSharedMods,
        InitializeServerConfigs,
        UpdateServerConfig,
        ResetServerConfigs,
        ClearServers,
    ],
    Field(discriminator="type"),
]

COMMAND_ADAPTER: TypeAdapter[WizardCommand] = TypeAdapter(WizardCommand)


def parse_command(payload: dict[str, Any]) -> WizardCommand:
    """Build a command from its JSON form; raises ValidationError"""
    return COMMAND_ADAPTER.validate_python(payload)


class CommandRejected(Exception):
    """Raised inside the reducer when a command's input is invalid"""

    def __init__(self, message: str, error: str = "invalid_command") -> None:
        super().__init__(message)
        self.message = message
        self.error = error


# =============================================================================
# Derived fields
# =============================================================================


def server_total(data: WizardData) -> int:
    """Number of servers the draft generates"""
    if data.servers:
        return len(data.servers)
    return implied_server_count(data)


def resize_overrides(overrides: list[ServerOverride], size: int) -> list[ServerOverride]:
    """Truncate, or pad with empty overrides, keeping existing edits"""
    kept = [o.model_copy() for o in overrides[:size]]
    return kept + [ServerOverride() for _ in range(size - len(kept))]


def derive(data: WizardData) -> None:
    """Bring derived fields in line with their inputs (in place)"""
    data.port_configuration.base_port = data.base_port

    if not data.servers:
        implied = implied_server_count(data)
        if implied:
            data.server_count = implied

    if data.server_configs:
        data.server_configs = resize_overrides(data.server_configs, server_total(data))


# =============================================================================
# Reducer
# =============================================================================


def _setting_name(key: str) -> str:
    if key in GAME_SETTING_FIELDS:
        return key
    for name in GAME_SETTING_FIELDS:
        if to_camel(name) == key:
            return name
    raise CommandRejected(f"Unknown game setting: {key}", "unknown_setting")


def _mod_list_update(mods: list[str], mod_id: Any, adding: bool) -> tuple[list[str], str]:
    result = add_mod(mods, mod_id) if adding else remove_mod(mods, mod_id)
    if not result.success:
        raise CommandRejected(result.message, result.error.value if result.error else "invalid_id")
    return result.mods, result.message


def _require_map_generation(data: WizardData) -> None:
    if data.servers:
        raise CommandRejected(
            "Imported servers define the cluster; clear them to edit maps or ports",
            "explicit_servers",
        )


def _server_mod_override(data: WizardData, server: str) -> ServerModOverride:
    return data.server_mods.get(server, ServerModOverride()).model_copy(deep=True)


def _update_server(data: WizardData, index: int, changes: ServerOverride) -> str:
    total = server_total(data)
    if not 0 <= index < total:
        raise CommandRejected(
            f"Server index {index} out of range (cluster has {total} server(s))", "invalid_index"
        )

    update = changes.model_dump(exclude_unset=True)

    if data.servers:
        # Imported servers carry their own values; edits apply to them directly
        current = data.servers[index]
        fields = {k: v for k, v in update.items() if v is not None}
        data.servers[index] = ServerConfig.model_validate({**current.model_dump(), **fields})
        return f"Updated server {data.servers[index].name}"

    if not data.server_configs:
        data.server_configs = resize_overrides([], total)
    current_override = data.server_configs[index]
    data.server_configs[index] = ServerOverride.model_validate(
        {**current_override.model_dump(), **update}
    )
    return f"Updated server #{index + 1}"


def _apply(data: WizardData, command: WizardCommand) -> str:
    """Apply one command to `data` in place; returns a summary message"""
    match command:
        case SetClusterName(name=name):
            data.cluster_name = name
            return "Cluster name updated"

        case SetDescription(description=description):
            data.description = description
            return "Description updated"

        case SetServerCount(count=count):
            _require_map_generation(data)
            if implied_server_count(data):
                raise CommandRejected(
                    "Server count follows the map selection", "count_follows_maps"
                )
            data.server_count = count
            return f"Server count set to {count}"

        case SetBasePort(port=port):
            _require_map_generation(data)
            data.base_port = port
            return f"Base port set to {port}"

        case SetPortAllocationMode(mode=mode):
            _require_map_generation(data)
            data.port_allocation_mode = mode
            return f"Port allocation mode set to {mode.value}"

        case SetPortBases(query_port_base=query_base, rcon_port_base=rcon_base):
            _require_map_generation(data)
            if query_base is not None:
                data.port_configuration.query_port_base = query_base
            if rcon_base is not None:
                data.port_configuration.rcon_port_base = rcon_base
            return "Port bases updated"

        case ToggleMap(map=map_name):
            _require_map_generation(data)
            existing = data.find_map(map_name)
            if existing is not None:
                existing.enabled = not existing.enabled
                return f"{existing.label} {'enabled' if existing.enabled else 'disabled'}"
            if not is_map_selectable(map_name):
                raise CommandRejected(
                    f"{display_name_for(map_name)} is not yet available", "map_unavailable"
                )
            data.selected_maps.append(
                MapSelection(map=map_name, display_name=display_name_for(map_name))
            )
            return f"{display_name_for(map_name)} added"

        case SetMapCount(map=map_name, count=count):
            _require_map_generation(data)
            existing = data.find_map(map_name)
            if existing is None:
                raise CommandRejected(f"Map not selected: {map_name}", "map_not_selected")
            existing.count = max(1, count)
            return f"{existing.label}: {existing.count} server(s)"

        case RemoveMap(map=map_name):
            _require_map_generation(data)
            if data.find_map(map_name) is None:
                return f"Map not selected: {map_name}"
            data.selected_maps = [m for m in data.selected_maps if m.map != map_name]
            return f"{display_name_for(map_name)} removed"

        case SetCustomMap(name=name, display_name=display_name, count=count):
            data.custom_map_name = name
            data.custom_map_display_name = display_name
            data.custom_map_count = max(1, count)
            return "Custom map updated"

        case AddCustomMap():
            _require_map_generation(data)
            name = data.custom_map_name.strip()
            if not name:
                raise CommandRejected("No custom map name entered", "invalid_map")
            if data.find_map(name) is not None:
                raise CommandRejected(f"Map already selected: {name}", "invalid_map")
            data.selected_maps.append(
                MapSelection(
                    map=name,
                    count=data.custom_map_count,
                    enabled=True,
                    display_name=data.custom_map_display_name.strip() or name,
                )
            )
            data.custom_map_name = ""
            data.custom_map_display_name = ""
            data.custom_map_count = 1
            return f"Custom map added: {name}"

        case SetSessionNameMode(mode=mode):
            data.session_name_mode = mode
            return f"Session names: {mode.value}"

        case SetGlobalSessionName(session_name=session_name):
            data.global_session_name = session_name
            return "Global session name updated"

        case SetPasswords(
            admin_password=admin_password,
            server_password=server_password,
            cluster_password=cluster_password,
        ):
            if admin_password is not None:
                data.admin_password = admin_password
            if server_password is not None:
                data.server_password = server_password
            if cluster_password is not None:
                data.cluster_password = cluster_password
            return "Passwords updated"

        case SetGameSetting(key=key, value=value):
            name = _setting_name(key)
            try:
                data.game_settings = GameSettings.model_validate(
                    {**data.game_settings.model_dump(), name: value}
                )
            except ValidationError as e:
                raise CommandRejected(
                    f"Invalid value for {name}: {e.errors()[0]['msg']}", "invalid_setting"
                ) from e
            return f"{name} set to {getattr(data.game_settings, name)}"

        case SetCustomDynamicConfigUrl(url=url):
            data.custom_dynamic_config_url = url.strip()
            return "Dynamic config URL updated"

        case SetIniText(game_ini=game_ini, game_user_settings_ini=game_user_settings_ini):
            if game_ini is not None:
                data.game_ini = game_ini
            if game_user_settings_ini is not None:
                data.game_user_settings_ini = game_user_settings_ini
            return "Ini text updated"

        case SetServerConfigMode(mode=mode):
            data.server_config_mode = mode
            return f"Server configuration mode: {mode.value}"

        case SetForeground(foreground=foreground):
            data.foreground = foreground
            return f"Foreground mode {'on' if foreground else 'off'}"

        case AddGlobalMod(mod_id=mod_id):
            data.global_mods, message = _mod_list_update(data.global_mods, mod_id, adding=True)
            return message

        case RemoveGlobalMod(mod_id=mod_id):
            data.global_mods, message = _mod_list_update(data.global_mods, mod_id, adding=False)
            return message

        case AddServerMod(server=server, mod_id=mod_id):
            override = _server_mod_override(data, server)
            override.additional_mods, message = _mod_list_update(
                override.additional_mods, mod_id, adding=True
            )
            data.server_mods[server] = override
            return f"{server}: {message}"

        case RemoveServerMod(server=server, mod_id=mod_id):
            override = _server_mod_override(data, server)
            override.additional_mods, message = _mod_list_update(
                override.additional_mods, mod_id, adding=False
            )
            data.server_mods[server] = override
            return f"{server}: {message}"

        case ToggleExcludeSharedMods(server=server, exclude=exclude):
            override = _server_mod_override(data, server)
            override.exclude_shared_mods = (
                not override.exclude_shared_mods if exclude is None else exclude
            )
            data.server_mods[server] = override
            state = "excluded" if override.exclude_shared_mods else "included"
            return f"{server}: shared mods {state}"

        case InitializeServerConfigs():
            if data.server_configs:
                return "Server configurations already initialized"
            data.server_configs = resize_overrides([], server_total(data))
            return f"Initialized {len(data.server_configs)} server configuration(s)"

        case UpdateServerConfig(index=index, changes=changes):
            return _update_server(data, index, changes)

        case ResetServerConfigs():
            data.server_configs = resize_overrides([], len(data.server_configs))
            return "Server configurations reset to defaults"

        case ClearServers():
            if not data.servers:
                return "No imported servers to clear"
            cleared = len(data.servers)
            data.servers = []
            data.server_configs = []
            return f"Cleared {cleared} imported server(s)"

    raise CommandRejected(f"Unsupported command: {type(command).__name__}")


# =============================================================================
# Store
# =============================================================================


class WizardStateStore:
    """Single owner of the wizard draft and current step"""

    def __init__(self, data: WizardData | None = None) -> None:
        self.data: WizardData = data if data is not None else WizardData()
        self.step: WizardStep = INITIAL_STEP

    # =========================================================================
    # Navigation
    # =========================================================================

    def go_to(self, step: WizardStep | str) -> WizardStep:
        """
        Make `step` current.

        Any member of the step sequence is accepted; completeness checks
        belong to the caller. Entering individual-servers initializes the
        per-server overrides when they are not yet populated.

        Raises:
            ValueError: `step` is not a wizard step
        """
        target = coerce_step(step)
        if target == WizardStep.INDIVIDUAL_SERVERS and not self.data.server_configs:
            self.dispatch(InitializeServerConfigs())

        if target != self.step:
            logger.info("Wizard step: %s -> %s", self.step.value, target.value)
        self.step = target
        return target

    # =========================================================================
    # Updates
    # =========================================================================

    def dispatch(self, command: WizardCommand | dict[str, Any]) -> CommandResult:
        """
        Apply one update command.

        The command runs against a copy of the draft; the copy replaces
        the draft only when the command succeeds.

        Args:
            command: A command model, or its JSON form with a `type` key

        Returns:
            CommandResult; on failure the draft is unchanged
        """
        if isinstance(command, dict):
            try:
                command = parse_command(command)
            except ValidationError as e:
                logger.debug("Rejected malformed command: %s", e)
                return CommandResult(success=False, message=str(e), error="invalid_command")

        draft = self.data.model_copy(deep=True)
        try:
            message = _apply(draft, command)
        except CommandRejected as e:
            logger.debug("Command %s rejected: %s", command.type, e.message)
            return CommandResult(success=False, message=e.message, error=e.error)

        derive(draft)
        self.data = draft
        logger.debug("Applied %s: %s", command.type, message)
        return CommandResult(success=True, message=message)

    def merge_import(self, partial: dict[str, Any]) -> CommandResult:
        """
        Replace each field named in `partial`, all or nothing.

        The merged draft is validated as a whole before it becomes current.
        """
        try:
            merged = WizardData.model_validate({**self.data.model_dump(), **partial})
        except ValidationError as e:
            logger.warning("Import merge rejected: %s", e)
            return CommandResult(
                success=False, message=str(e), error=ConfigImportError.PARSE_FAILURE.value
            )

        self.data = merged
        return CommandResult(success=True, message=f"Merged {len(partial)} field(s)")

    def import_document(self, document: Any) -> ImportResult:
        """Project an import document and merge it into the draft"""
        return self._merge_result(importer.import_config(document))

    def import_file(self, path: Path | str) -> ImportResult:
        """Read an import file and merge it into the draft"""
        return self._merge_result(importer.load_import_file(path))

    def import_text(self, content: str | bytes) -> ImportResult:
        """Parse an import document from JSON text and merge it into the draft"""
        return self._merge_result(importer.import_text(content))

    def _merge_result(self, result: ImportResult) -> ImportResult:
        if not result.success:
            return result

        merged = self.merge_import(result.draft)
        if not merged.success:
            return ImportResult(
                success=False, message=merged.message, error=ConfigImportError.PARSE_FAILURE
            )
        return result

    def reset(self) -> None:
        """Discard the draft and return to the first step"""
        self.data = WizardData()
        self.step = INITIAL_STEP
        logger.info("Wizard reset")

    # =========================================================================
    # Derived views
    # =========================================================================

    def servers(self) -> list[ServerConfig]:
        """Current server list, recomputed from the draft"""
        return generate_servers(self.data)

    def plan(self) -> DeploymentPlan:
        """Draft plus derived servers, ready for provisioning"""
        return build_deployment_plan(self.data)
